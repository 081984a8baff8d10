"""Helpers for reading Notion page properties and mapping them onto client fields."""

from datetime import date, datetime
from typing import Any, Dict, Optional


def get_property_value(prop: Optional[Dict[str, Any]]) -> Any:
    """Extract a plain Python value from a Notion property object."""
    if not prop:
        return None

    prop_type = prop.get("type")
    if prop_type == "title":
        return _first_plain_text(prop.get("title"))
    if prop_type == "rich_text":
        return _first_plain_text(prop.get("rich_text"))
    if prop_type in ("select", "status"):
        option = prop.get(prop_type)
        return option.get("name") if option else None
    if prop_type == "multi_select":
        return [option.get("name") for option in prop.get("multi_select") or []]
    if prop_type == "people":
        return [
            {"id": p.get("id"), "name": p.get("name"), "email": (p.get("person") or {}).get("email")}
            for p in prop.get("people") or []
        ]
    if prop_type == "date":
        value = prop.get("date")
        return parse_notion_date(value.get("start")) if value else None
    if prop_type == "checkbox":
        return bool(prop.get("checkbox"))
    if prop_type in ("url", "email", "phone_number"):
        return prop.get(prop_type) or None
    if prop_type == "number":
        return prop.get("number")
    if prop_type == "relation":
        return [r.get("id") for r in prop.get("relation") or []]
    return None


def _first_plain_text(fragments) -> Optional[str]:
    if not fragments:
        return None
    return fragments[0].get("plain_text") or None


def parse_notion_date(value: Optional[str]) -> Optional[date]:
    """Notion dates are ISO strings, with or without a time part."""
    if not value:
        return None
    if len(value) == 10:
        return date.fromisoformat(value)
    return datetime.fromisoformat(value.replace("Z", "+00:00")).date()


def find_title(properties: Dict[str, Any]) -> Optional[str]:
    """Return the text of whichever property is the page title."""
    for prop in properties.values():
        if isinstance(prop, dict) and prop.get("type") == "title":
            title = _first_plain_text(prop.get("title"))
            if title:
                return title
    return None


_STATUS_MAP = {
    "active": "ACTIVE",
    "new - active": "ACTIVE",
    "exiting": "OFFBOARDING",
    "on-hold due to no payment": "ON_HOLD",
    "ip closing": "OFFBOARDING",
    "as needed": "AS_NEEDED",
    "deactivate": "INACTIVE",
}

_CADENCE_MAP = {
    "weekly": "WEEKLY",
    "bi-weekly": "BIWEEKLY",
    "biweekly": "BIWEEKLY",
    "monthly": "MONTHLY",
    "quarterly": "QUARTERLY",
    "adhoc": "ADHOC",
    "not needed": "ADHOC",
}

_PRIORITIES = {"p1": "P1", "p2": "P2", "p3": "P3", "p4": "P4"}


def map_status(value: Optional[str]) -> str:
    """Map a Notion client status onto ClientStatus; unknown values count as ACTIVE."""
    if not value:
        return "ACTIVE"
    return _STATUS_MAP.get(value.strip().lower(), "ACTIVE")


def map_cadence(value: Optional[str]) -> str:
    """Map the IT Syncs frequency onto a check cadence, defaulting to MONTHLY."""
    if not value:
        return "MONTHLY"
    return _CADENCE_MAP.get(value.strip().lower(), "MONTHLY")


def map_priority(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return _PRIORITIES.get(value.strip().lower())
