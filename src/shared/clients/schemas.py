"""Pydantic schemas for client API responses."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class EmailSecurityStatus(BaseModel):
    """Stored DMARC, SPF and DKIM results for a client."""
    model_config = ConfigDict(from_attributes=True)

    dmarc: Optional[str] = None
    dmarc_record: Optional[str] = None
    dmarc_last_checked: Optional[datetime] = None
    spf: Optional[str] = None
    spf_record: Optional[str] = None
    spf_last_checked: Optional[datetime] = None
    dkim: Optional[str] = None
    dkim_selector: Optional[str] = None
    dkim_record: Optional[str] = None
    dkim_last_checked: Optional[datetime] = None


class ClientResponse(EmailSecurityStatus):
    id: str
    notion_page_id: Optional[str] = None
    name: str
    status: str
    priority: Optional[str] = None
    default_cadence: str
    system_engineer_name: Optional[str] = None
    primary_consultant_name: Optional[str] = None
    secondary_consultant_names: List[str] = Field(default_factory=list)
    it_manager_name: Optional[str] = None
    grce_engineer_name: Optional[str] = None
    poc_email: Optional[str] = None
    office_address: Optional[str] = None
    hours_per_month: Optional[float] = None
    it_syncs_frequency: Optional[str] = None
    onsites_frequency: Optional[str] = None
    compliance_frameworks: List[str] = Field(default_factory=list)
    teams: List[str] = Field(default_factory=list)
    website_url: Optional[str] = None
    it_glue_url: Optional[str] = None
    zendesk_url: Optional[str] = None
    start_date: Optional[date] = None
    trello_url: Optional[str] = None
    one_password_url: Optional[str] = None
    shared_drive_url: Optional[str] = None
    access_requests: Optional[str] = None
    user_access_reviews: Optional[str] = None
    accepted_password_policy: Optional[bool] = None
    hr_processes: List[str] = Field(default_factory=list)
    policies: List[str] = Field(default_factory=list)
    estimation: Optional[str] = None
    notion_last_synced: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
