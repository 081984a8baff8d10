"""Pydantic schemas for Notion directory sync."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class SyncReport(BaseModel):
    """Counts for one sync pass. Built up incrementally while pages are processed."""
    synced: int = 0
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    errors: List[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class SyncStatus(BaseModel):
    configured: bool
    total_clients: int
    linked_clients: int
    last_synced_at: Optional[datetime] = None
