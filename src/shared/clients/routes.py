"""Client routes: read, email security checks and single-client Notion re-sync."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from src.shared.auth.database import get_db, User
from src.shared.auth.dependencies import get_current_user, require_engineer
from src.shared.clients.database import Client
from src.shared.clients.schemas import ClientResponse, EmailSecurityStatus
from src.shared.dns_security.lookup import lookup_dkim, lookup_dmarc, lookup_spf
from src.shared.dns_security.schemas import (
    DkimResult,
    DmarcPolicy,
    DmarcResult,
    DomainRequest,
    SecurityCheckRequest,
    SpfPolicy,
    SpfResult,
)
from src.shared.errors import DnsLookupError, NotionAPIError, NotionNotConfiguredError
from src.shared.integrations.config import IntegrationConfigCache
from src.shared.integrations.dependencies import get_integration_cache
from src.shared.notion.client import NotionClient
from src.shared.notion.sync import NotionDirectorySync, notion_settings
from src.shared.rate_limit.dependencies import rate_limited
from src.shared.rate_limit.limiter import RATE_LIMITS, RateLimitResult

router = APIRouter(prefix="/api/clients", tags=["clients"])

NOT_SET = "Not Set"


def _get_client_or_404(db: Session, client_id: str) -> Client:
    client = db.query(Client).filter(Client.id == client_id).first()
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Client not found"}
        )
    return client


def apply_dmarc(client: Client, result: DmarcResult) -> None:
    client.dmarc = NOT_SET if result.policy == DmarcPolicy.NOT_SET else result.policy.value
    client.dmarc_record = result.raw_record
    client.dmarc_last_checked = result.checked_at


def apply_spf(client: Client, result: SpfResult) -> None:
    client.spf = NOT_SET if result.policy == SpfPolicy.NOT_SET else result.policy.value
    client.spf_record = result.raw_record
    client.spf_last_checked = result.checked_at


def apply_dkim(client: Client, result: DkimResult) -> None:
    client.dkim = "Found" if result.found else "Not Found"
    client.dkim_selector = result.selector
    client.dkim_record = result.raw_record
    client.dkim_last_checked = result.checked_at


def _lookup_failed(check: str, client: Client, error: Exception) -> HTTPException:
    logging.error(f"{check} check failed for client {client.id}: {str(error)}")
    message = error.message if isinstance(error, DnsLookupError) else str(error)
    code = status.HTTP_400_BAD_REQUEST if isinstance(error, ValueError) else status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail={"error": message})


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: str,
    current_user: User = Depends(get_current_user),
    rate_limit: RateLimitResult = Depends(rate_limited(RATE_LIMITS.GENERAL)),
    db: Session = Depends(get_db)
):
    """Return a single client."""
    return _get_client_or_404(db, client_id)


@router.post("/{client_id}/dmarc")
async def check_client_dmarc(
    client_id: str,
    request: DomainRequest,
    current_user: User = Depends(require_engineer),
    rate_limit: RateLimitResult = Depends(rate_limited(RATE_LIMITS.LOOKUP)),
    db: Session = Depends(get_db)
):
    """Look up DMARC for ``domain`` and store the result on the client."""
    client = _get_client_or_404(db, client_id)

    try:
        result = await lookup_dmarc(request.domain)
    except (ValueError, DnsLookupError) as e:
        raise _lookup_failed("DMARC", client, e)

    apply_dmarc(client, result)
    db.commit()
    logging.info(f"DMARC for client {client.name} updated to {client.dmarc}")

    return {"success": True, **result.model_dump(mode="json"), "saved": True}


@router.get("/{client_id}/security", response_model=EmailSecurityStatus)
async def get_client_security(
    client_id: str,
    current_user: User = Depends(get_current_user),
    rate_limit: RateLimitResult = Depends(rate_limited(RATE_LIMITS.GENERAL)),
    db: Session = Depends(get_db)
):
    """Return the stored email security results for a client."""
    return _get_client_or_404(db, client_id)


@router.post("/{client_id}/security")
async def check_client_security(
    client_id: str,
    request: SecurityCheckRequest,
    current_user: User = Depends(require_engineer),
    rate_limit: RateLimitResult = Depends(rate_limited(RATE_LIMITS.LOOKUP)),
    db: Session = Depends(get_db)
):
    """
    Run the requested email security checks and store the results.

    All lookups complete before anything is written, so a failed check leaves
    the client's previous results untouched.
    """
    client = _get_client_or_404(db, client_id)
    check_type = request.check_type
    results = {}

    try:
        if check_type in ("all", "dmarc"):
            results["dmarc"] = await lookup_dmarc(request.domain)
        if check_type in ("all", "spf"):
            results["spf"] = await lookup_spf(request.domain)
        if check_type in ("all", "dkim"):
            results["dkim"] = await lookup_dkim(request.domain, request.dkim_selector)
    except (ValueError, DnsLookupError) as e:
        raise _lookup_failed("Email security", client, e)

    if "dmarc" in results:
        apply_dmarc(client, results["dmarc"])
    if "spf" in results:
        apply_spf(client, results["spf"])
    if "dkim" in results:
        apply_dkim(client, results["dkim"])
    db.commit()
    logging.info(f"Email security ({check_type}) checked for client {client.name}")

    return {
        "success": True,
        **{name: result.model_dump(mode="json") for name, result in results.items()},
        "saved": True,
    }


@router.post("/{client_id}/sync")
async def sync_client(
    client_id: str,
    current_user: User = Depends(require_engineer),
    rate_limit: RateLimitResult = Depends(rate_limited(RATE_LIMITS.SYNC)),
    db: Session = Depends(get_db),
    cache: IntegrationConfigCache = Depends(get_integration_cache)
):
    """Re-sync one client from its linked Notion page."""
    client = _get_client_or_404(db, client_id)
    if not client.notion_page_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"success": False, "error": "Client is not linked to Notion"}
        )

    try:
        api_key, client_db, team_db = notion_settings(cache.get(db, "notion"))
    except NotionNotConfiguredError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"success": False, "error": e.message}
        )

    try:
        async with NotionClient(api_key) as notion:
            syncer = NotionDirectorySync(db, notion, client_db, team_db)
            synced, outcome = await syncer.sync_single_client(client.notion_page_id)
    except (NotionAPIError, ValueError, TypeError, KeyError) as e:
        db.rollback()
        logging.error(f"Single client sync failed for {client_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"success": False, "error": str(e)}
        )

    return {
        "success": True,
        "message": f'Synced "{synced.name}" from Notion',
        "outcome": outcome,
        "isNew": outcome == "created",
        "syncedAt": datetime.utcnow().isoformat(),
    }
