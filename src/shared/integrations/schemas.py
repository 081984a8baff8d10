"""Pydantic schemas for integration settings API."""

import json
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

PROVIDERS = ("notion", "slack", "harvest", "google_calendar")


class IntegrationSummary(BaseModel):
    """Integration settings without credentials."""
    model_config = ConfigDict(from_attributes=True)

    provider: str
    enabled: bool
    has_api_key: bool = False
    has_access_token: bool = False
    config: Optional[str] = None
    connected_at: Optional[datetime] = None
    last_tested_at: Optional[datetime] = None
    notes: Optional[str] = None
    updated_at: Optional[datetime] = None


class IntegrationDetail(IntegrationSummary):
    """Full settings row, credentials included (admin only)."""
    api_key: Optional[str] = None
    api_secret: Optional[str] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None


class IntegrationUpdateRequest(BaseModel):
    """PATCH body. Omitted fields are left unchanged; empty strings clear a value."""
    enabled: Optional[bool] = None
    api_key: Optional[str] = Field(default=None, alias="apiKey")
    api_secret: Optional[str] = Field(default=None, alias="apiSecret")
    access_token: Optional[str] = Field(default=None, alias="accessToken")
    refresh_token: Optional[str] = Field(default=None, alias="refreshToken")
    config: Optional[str] = Field(default=None, max_length=10000)
    notes: Optional[str] = Field(default=None, max_length=2000)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("config")
    @classmethod
    def validate_config(cls, v):
        """Config must be a JSON object when provided."""
        if not v:
            return v
        try:
            parsed = json.loads(v)
        except ValueError:
            raise ValueError("Config must be valid JSON")
        if not isinstance(parsed, dict):
            raise ValueError("Config must be a JSON object")
        return v
