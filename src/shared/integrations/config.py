"""Integration configuration lookup with an explicitly invalidated cache.

Settings come from the integration_settings table. When a provider has no
stored row, or the table cannot be read, values fall back to environment
variables. Entries stay cached until clear() is called; there is no TTL.
A fallback caused by a failed read is returned but never cached.
"""

import json
import logging
import os
from threading import Lock
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.shared.integrations.database import IntegrationSettings


class IntegrationConfig(BaseModel):
    """Resolved settings for one provider."""
    provider: str
    enabled: bool = False
    api_key: Optional[str] = None
    api_secret: Optional[str] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    config: Dict[str, Any] = Field(default_factory=dict)
    source: Literal["database", "environment"] = "environment"


def parse_config(raw: Optional[str], provider: str) -> Dict[str, Any]:
    """Decode the JSON options column; invalid JSON yields an empty dict."""
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except ValueError:
        logging.warning(f"Ignoring invalid JSON config stored for {provider} integration")
        return {}
    if not isinstance(parsed, dict):
        logging.warning(f"Ignoring non-object config stored for {provider} integration")
        return {}
    return parsed


def config_from_settings(row: IntegrationSettings) -> IntegrationConfig:
    # Credentials are only handed out while the integration is switched on
    return IntegrationConfig(
        provider=row.provider,
        enabled=bool(row.enabled),
        api_key=row.api_key if row.enabled and row.api_key else None,
        api_secret=row.api_secret if row.enabled and row.api_secret else None,
        access_token=row.access_token or None,
        refresh_token=row.refresh_token or None,
        config=parse_config(row.config, row.provider),
        source="database",
    )


def config_from_environment(provider: str) -> IntegrationConfig:
    """Build a provider's config from environment variables."""
    env = os.environ
    api_key = None
    api_secret = None
    options: Dict[str, Any] = {}

    if provider == "notion":
        api_key = env.get("NOTION_API_KEY")
        options = {
            "clientDatabaseId": env.get("NOTION_CLIENT_DATABASE_ID", ""),
            "teamMembersDatabaseId": env.get("NOTION_TEAM_MEMBERS_DATABASE_ID", ""),
        }
    elif provider == "harvest":
        api_key = env.get("HARVEST_CLIENT_ID")
        api_secret = env.get("HARVEST_CLIENT_SECRET")
        options = {"redirectUri": env.get("HARVEST_REDIRECT_URI", "")}
    elif provider == "slack":
        api_key = env.get("SLACK_BOT_TOKEN")
    elif provider == "google_calendar":
        api_key = env.get("GOOGLE_CALENDAR_CLIENT_ID")
        api_secret = env.get("GOOGLE_CALENDAR_CLIENT_SECRET")

    return IntegrationConfig(
        provider=provider,
        enabled=bool(api_key),
        api_key=api_key or None,
        api_secret=api_secret or None,
        config=options,
        source="environment",
    )


class IntegrationConfigCache:
    """Process-wide cache of resolved integration configs, keyed by provider."""

    def __init__(self):
        self._entries: Dict[str, IntegrationConfig] = {}
        self._lock = Lock()

    def get(self, db: Session, provider: str) -> IntegrationConfig:
        """Return the cached config for ``provider``, loading it on a miss."""
        with self._lock:
            cached = self._entries.get(provider)
        if cached is not None:
            return cached

        try:
            row = db.query(IntegrationSettings).filter(IntegrationSettings.provider == provider).first()
        except SQLAlchemyError as e:
            # Not cached, so the stored settings are picked up once the database recovers
            db.rollback()
            logging.warning(f"Failed to load {provider} config from database, using env fallback: {str(e)}")
            return config_from_environment(provider)

        config = config_from_environment(provider) if row is None else config_from_settings(row)
        with self._lock:
            self._entries[provider] = config
        return config

    def clear(self, provider: Optional[str] = None) -> None:
        """Evict one provider, or everything when ``provider`` is None."""
        with self._lock:
            if provider is None:
                self._entries.clear()
            else:
                self._entries.pop(provider, None)

    def __contains__(self, provider: str) -> bool:
        return provider in self._entries
