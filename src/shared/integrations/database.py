"""Database models for third-party integration settings."""

from sqlalchemy import Column, String, Boolean, DateTime, Text
from datetime import datetime
import uuid

# Import Base from auth database to use the same declarative base
from src.shared.auth.database import Base


class IntegrationSettings(Base):
    """Credentials and options for one provider (notion, slack, harvest, google_calendar)."""
    __tablename__ = "integration_settings"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    provider = Column(String, unique=True, index=True, nullable=False)
    enabled = Column(Boolean, default=False, nullable=False)
    api_key = Column(Text, nullable=True)
    api_secret = Column(Text, nullable=True)
    access_token = Column(Text, nullable=True)
    refresh_token = Column(Text, nullable=True)
    config = Column(Text, nullable=True)  # JSON-encoded provider options
    connected_at = Column(DateTime, nullable=True)
    last_tested_at = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
