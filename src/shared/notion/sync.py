"""
Notion client directory sync.

Each pass reads the Notion clients database page by page and reconciles it
into the local ``clients`` table keyed by ``notion_page_id``. Remote values
always win for tracked fields. Rows are only written when a tracked field
actually differs, so running a pass twice over the same data is a no-op.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from src.shared.clients.database import Client
from src.shared.errors import NotionAPIError, NotionNotConfiguredError, SyncError
from src.shared.integrations.config import IntegrationConfig
from src.shared.notion.client import NotionClient
from src.shared.notion.properties import (
    find_title,
    get_property_value,
    map_cadence,
    map_priority,
    map_status,
)
from src.shared.notion.schemas import SyncReport, SyncStatus

# Columns owned by Notion. DNS security columns are written by lookups and never synced.
TRACKED_FIELDS = (
    "name",
    "status",
    "priority",
    "default_cadence",
    "system_engineer_name",
    "primary_consultant_name",
    "secondary_consultant_names",
    "it_manager_name",
    "grce_engineer_name",
    "poc_email",
    "office_address",
    "hours_per_month",
    "it_syncs_frequency",
    "onsites_frequency",
    "compliance_frameworks",
    "teams",
    "website_url",
    "it_glue_url",
    "zendesk_url",
    "start_date",
    "trello_url",
    "one_password_url",
    "shared_drive_url",
    "access_requests",
    "user_access_reviews",
    "accepted_password_policy",
    "hr_processes",
    "policies",
    "estimation",
)

# Resolved through the team members database; left alone when it cannot be read
TEAM_FIELDS = (
    "system_engineer_name",
    "primary_consultant_name",
    "secondary_consultant_names",
    "it_manager_name",
    "grce_engineer_name",
)


def notion_settings(config: IntegrationConfig) -> Tuple[str, str, Optional[str]]:
    """Return (api_key, client_database_id, team_database_id) or raise if Notion is not set up."""
    client_db = config.config.get("clientDatabaseId")
    if not config.api_key or not client_db:
        raise NotionNotConfiguredError("Notion not configured. Please set up the Notion integration in Settings.")
    return config.api_key, client_db, config.config.get("teamMembersDatabaseId") or None


class NotionDirectorySync:
    """Reconciles the Notion clients database into the local clients table."""

    def __init__(
        self,
        db: Session,
        notion: NotionClient,
        client_database_id: str,
        team_database_id: Optional[str] = None,
    ):
        self.db = db
        self.notion = notion
        self.client_database_id = client_database_id
        self.team_database_id = team_database_id
        self._team_members: Dict[str, str] = {}
        self._team_loaded = True
        self._framework_names: Dict[str, Optional[str]] = {}

    async def load_team_members(self) -> Dict[str, str]:
        """Build the page id -> name map used to resolve engineer relations."""
        self._team_members = {}
        self._team_loaded = True
        if not self.team_database_id:
            return self._team_members
        try:
            async for batch in self.notion.iter_database_pages(self.team_database_id):
                for page in batch:
                    name = find_title(page.get("properties") or {})
                    if page.get("id") and name:
                        self._team_members[page["id"]] = name
        except NotionAPIError as e:
            # Stored engineer names are left as they are for this pass
            logging.warning(f"Failed to load Notion team members: {str(e)}")
            self._team_members = {}
            self._team_loaded = False
        return self._team_members

    async def sync_clients(self) -> SyncReport:
        """Run a full sync pass and return its counts.

        Raises SyncError with the partial report when Notion fails part way
        through; pages processed before the failure stay committed.
        """
        report = SyncReport()
        self._framework_names = {}
        await self.load_team_members()

        try:
            async for batch in self.notion.iter_database_pages(self.client_database_id):
                for page in batch:
                    report.synced += 1
                    try:
                        data = await self.transform_page(page)
                    except (ValueError, TypeError, KeyError, AttributeError) as e:
                        logging.warning(f"Skipping Notion page {page.get('id')}: {str(e)}")
                        report.errors.append(f"{page.get('id') or 'unknown'}: {str(e)}")
                        continue

                    outcome = self._apply(page["id"], data)
                    if outcome == "created":
                        report.created += 1
                    elif outcome == "updated":
                        report.updated += 1
                    else:
                        report.unchanged += 1
                self.db.commit()
        except NotionAPIError as e:
            self.db.rollback()
            report.timestamp = datetime.utcnow()
            logging.error(
                f"Notion sync aborted after {report.synced} records "
                f"(created={report.created}, updated={report.updated}): {str(e)}"
            )
            raise SyncError(f"Notion sync failed: {e.message}", report, cause=e) from e

        report.timestamp = datetime.utcnow()
        logging.info(
            f"Notion sync complete: synced={report.synced} created={report.created} "
            f"updated={report.updated} unchanged={report.unchanged} errors={len(report.errors)}"
        )
        return report

    async def sync_single_client(self, notion_page_id: str) -> Tuple[Client, str]:
        """Re-sync one client page. Returns the row and 'created', 'updated' or 'unchanged'."""
        self._framework_names = {}
        await self.load_team_members()
        page = await self.notion.get_page(notion_page_id)
        data = await self.transform_page(page)
        outcome = self._apply(page.get("id") or notion_page_id, data)
        self.db.commit()
        client = self.db.query(Client).filter(Client.notion_page_id == (page.get("id") or notion_page_id)).first()
        return client, outcome

    async def transform_page(self, page: Dict[str, Any]) -> Dict[str, Any]:
        """Map a Notion client page onto tracked client columns."""
        if not page.get("id"):
            raise ValueError("page has no id")
        props = page.get("properties") or {}

        hours = get_property_value(props.get("HPM"))
        it_syncs = get_property_value(props.get("IT Syncs"))
        secondaries = self._names(props.get("Secondaries"))
        teams = get_property_value(props.get("Team(s)")) or get_property_value(props.get("Teams")) or []

        return {
            "name": get_property_value(props.get("Client")) or find_title(props) or "Unknown Client",
            "status": map_status(get_property_value(props.get("Status"))),
            "priority": map_priority(get_property_value(props.get("Priority"))),
            "default_cadence": map_cadence(it_syncs),
            "system_engineer_name": _first(self._names(props.get("SE"))),
            "primary_consultant_name": _first(self._names(props.get("Primary Consultant"))),
            "secondary_consultant_names": secondaries,
            "it_manager_name": _first(self._names(props.get("IT Manager"))),
            "grce_engineer_name": _first(self._names(props.get("GRCE"))),
            "poc_email": get_property_value(props.get("POC Email")),
            "office_address": get_property_value(props.get("Office Address")),
            "hours_per_month": float(hours) if hours is not None else None,
            "it_syncs_frequency": it_syncs,
            "onsites_frequency": get_property_value(props.get("Onsites")),
            "compliance_frameworks": await self._compliance(props.get("Compliance")),
            "teams": list(teams),
            "website_url": get_property_value(props.get("Website")),
            "it_glue_url": get_property_value(props.get("IT Glue")),
            "zendesk_url": get_property_value(props.get("Zendesk")),
            "start_date": get_property_value(props.get("Start Date")),
            "trello_url": get_property_value(props.get("Trello")),
            "one_password_url": get_property_value(props.get("1Password")),
            "shared_drive_url": get_property_value(props.get("Shared Drive")),
            "access_requests": _text(get_property_value(props.get("Access Requests"))),
            "user_access_reviews": _text(get_property_value(props.get("User Access Reviews"))),
            "accepted_password_policy": _yes_no(get_property_value(props.get("Accepted Password Policy?"))),
            "hr_processes": list(get_property_value(props.get("HR Processes")) or []),
            "policies": list(get_property_value(props.get("Policies")) or []),
            "estimation": _text(get_property_value(props.get("Estimation"))),
        }

    def _names(self, prop: Optional[Dict[str, Any]]) -> List[str]:
        """Resolve a people or team-member relation property to display names."""
        if not prop:
            return []
        value = get_property_value(prop)
        if not value:
            return []
        if prop.get("type") == "people":
            return [p["name"] for p in value if p.get("name")]
        if prop.get("type") == "relation":
            return [self._team_members[i] for i in value if i in self._team_members]
        if isinstance(value, str):
            return [value]
        return [v for v in value if isinstance(v, str)]

    async def _compliance(self, prop: Optional[Dict[str, Any]]) -> List[str]:
        if not prop:
            return []
        value = get_property_value(prop)
        if prop.get("type") != "relation":
            return list(value or [])

        names = []
        for page_id in value or []:
            if page_id not in self._framework_names:
                try:
                    framework = await self.notion.get_page(page_id)
                    self._framework_names[page_id] = find_title(framework.get("properties") or {})
                except NotionAPIError as e:
                    logging.warning(f"Could not resolve compliance framework {page_id}: {str(e)}")
                    self._framework_names[page_id] = None
            if self._framework_names[page_id]:
                names.append(self._framework_names[page_id])
        return names

    def _apply(self, notion_page_id: str, data: Dict[str, Any]) -> str:
        """Create or update the local row; only changed fields are written."""
        client = self.db.query(Client).filter(Client.notion_page_id == notion_page_id).first()
        now = datetime.utcnow()

        if client is None:
            client = Client(notion_page_id=notion_page_id, notion_last_synced=now, **data)
            self.db.add(client)
            self.db.flush()
            logging.info(f"Created client {data['name']} from Notion page {notion_page_id}")
            return "created"

        fields = TRACKED_FIELDS if self._team_loaded else [f for f in TRACKED_FIELDS if f not in TEAM_FIELDS]
        changes = {field: data[field] for field in fields if getattr(client, field) != data[field]}
        if not changes:
            return "unchanged"

        for field, value in changes.items():
            setattr(client, field, value)
        client.notion_last_synced = now
        self.db.flush()
        logging.info(f"Updated client {client.name} from Notion ({', '.join(sorted(changes))})")
        return "updated"


def _first(values: List[str]) -> Optional[str]:
    return values[0] if values else None


def _text(value: Any) -> Optional[str]:
    """Flatten select, multi-select and number values into a display string."""
    if value is None or value == []:
        return None
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    return str(value)


def _yes_no(value: Any) -> Optional[bool]:
    # Checkbox or a Yes/No select, depending on how the workspace set it up
    if value is None or isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("yes", "y", "true")


def get_sync_status(db: Session, config: IntegrationConfig) -> SyncStatus:
    """Summarise how much of the client table is linked to Notion."""
    total = db.query(func.count(Client.id)).scalar() or 0
    linked = db.query(func.count(Client.id)).filter(Client.notion_page_id.isnot(None)).scalar() or 0
    last_synced = db.query(func.max(Client.notion_last_synced)).scalar()
    configured = bool(config.api_key and config.config.get("clientDatabaseId"))
    return SyncStatus(
        configured=configured,
        total_clients=total,
        linked_clients=linked,
        last_synced_at=last_synced,
    )
