"""Pydantic schemas for email security DNS lookups."""

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


class DmarcPolicy(str, Enum):
    NONE = "none"
    QUARANTINE = "quarantine"
    REJECT = "reject"
    NOT_SET = "not_set"


class SpfPolicy(str, Enum):
    PASS = "pass"
    SOFTFAIL = "softfail"
    HARDFAIL = "hardfail"
    NEUTRAL = "neutral"
    NOT_SET = "not_set"


class DmarcResult(BaseModel):
    """DMARC policy published at _dmarc.<domain>."""
    domain: str
    found: bool
    policy: DmarcPolicy
    raw_record: Optional[str] = None
    checked_at: datetime


class SpfResult(BaseModel):
    """SPF policy taken from the domain's "all" mechanism."""
    domain: str
    found: bool
    policy: SpfPolicy
    raw_record: Optional[str] = None
    checked_at: datetime


class DkimResult(BaseModel):
    """First DKIM key found among the selectors tried."""
    domain: str
    found: bool
    selector: Optional[str] = None
    raw_record: Optional[str] = None
    checked_at: datetime


class DomainRequest(BaseModel):
    """Body for the per-client DMARC check."""
    domain: str = Field(..., min_length=1, max_length=253)

    @field_validator("domain")
    @classmethod
    def validate_domain(cls, v):
        if not v or not v.strip():
            raise ValueError("Domain is required")
        return v.strip()


class SecurityCheckRequest(DomainRequest):
    """Body for the combined email security check."""
    check_type: Literal["dmarc", "spf", "dkim", "all"] = Field(default="all", alias="checkType")
    dkim_selector: Optional[str] = Field(default=None, alias="dkimSelector", max_length=63)

    model_config = {"populate_by_name": True}
