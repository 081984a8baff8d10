"""Database models for managed clients."""

from sqlalchemy import Boolean, Column, String, DateTime, Date, Float, JSON, Text, CheckConstraint
from datetime import datetime
import uuid

# Import Base from auth database to use the same declarative base
from src.shared.auth.database import Base

CLIENT_STATUSES = ("ACTIVE", "INACTIVE", "ON_HOLD", "OFFBOARDING", "AS_NEEDED")
CHECK_CADENCES = ("WEEKLY", "BIWEEKLY", "MONTHLY", "QUARTERLY", "ADHOC")
PRIORITIES = ("P1", "P2", "P3", "P4")


class Client(Base):
    """A managed client. Rows linked to Notion carry notion_page_id."""
    __tablename__ = "clients"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    notion_page_id = Column(String, unique=True, index=True, nullable=True)  # Stable external identifier
    name = Column(String, nullable=False)
    status = Column(String, default="ACTIVE", nullable=False)
    priority = Column(String, nullable=True)
    default_cadence = Column(String, default="MONTHLY", nullable=False)

    # Engineer assignments, by display name as Notion reports them
    system_engineer_name = Column(String, nullable=True)
    primary_consultant_name = Column(String, nullable=True)
    secondary_consultant_names = Column(JSON, default=list, nullable=False)
    it_manager_name = Column(String, nullable=True)
    grce_engineer_name = Column(String, nullable=True)

    # Contact & service levels
    poc_email = Column(String, nullable=True)
    office_address = Column(Text, nullable=True)
    hours_per_month = Column(Float, nullable=True)
    it_syncs_frequency = Column(String, nullable=True)
    onsites_frequency = Column(String, nullable=True)
    compliance_frameworks = Column(JSON, default=list, nullable=False)
    teams = Column(JSON, default=list, nullable=False)
    start_date = Column(Date, nullable=True)

    # Links
    website_url = Column(String, nullable=True)
    it_glue_url = Column(String, nullable=True)
    zendesk_url = Column(String, nullable=True)
    trello_url = Column(String, nullable=True)
    one_password_url = Column(String, nullable=True)
    shared_drive_url = Column(String, nullable=True)

    # Access reviews, HR and policy tracking
    access_requests = Column(String, nullable=True)
    user_access_reviews = Column(String, nullable=True)
    accepted_password_policy = Column(Boolean, nullable=True)
    hr_processes = Column(JSON, default=list, nullable=False)
    policies = Column(JSON, default=list, nullable=False)
    estimation = Column(Text, nullable=True)

    # Email security, written by the DNS lookups
    dmarc = Column(String, nullable=True)  # none, quarantine, reject or 'Not Set'
    dmarc_record = Column(Text, nullable=True)
    dmarc_last_checked = Column(DateTime, nullable=True)
    spf = Column(String, nullable=True)
    spf_record = Column(Text, nullable=True)
    spf_last_checked = Column(DateTime, nullable=True)
    dkim = Column(String, nullable=True)  # 'Found' or 'Not Found'
    dkim_selector = Column(String, nullable=True)
    dkim_record = Column(Text, nullable=True)
    dkim_last_checked = Column(DateTime, nullable=True)

    notion_last_synced = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "status IN ('ACTIVE', 'INACTIVE', 'ON_HOLD', 'OFFBOARDING', 'AS_NEEDED')",
            name="check_client_status",
        ),
    )
