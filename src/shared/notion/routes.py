"""Notion directory sync routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from src.shared.auth.database import get_db
from src.shared.errors import NotionNotConfiguredError, SyncError
from src.shared.integrations.config import IntegrationConfigCache
from src.shared.integrations.dependencies import get_integration_cache
from src.shared.notion.client import NotionClient
from src.shared.notion.sync import NotionDirectorySync, get_sync_status, notion_settings
from src.shared.rate_limit.dependencies import rate_limited
from src.shared.rate_limit.limiter import RATE_LIMITS, RateLimitResult

router = APIRouter(prefix="/api/notion", tags=["notion"])


@router.post("/sync")
async def sync_notion(
    rate_limit: RateLimitResult = Depends(rate_limited(RATE_LIMITS.SYNC)),
    db: Session = Depends(get_db),
    cache: IntegrationConfigCache = Depends(get_integration_cache)
):
    """
    Pull the full client directory from Notion.

    Returns the sync counts. If Notion fails part way through, responds 500
    with the counts for the pages that were already processed.
    """
    try:
        api_key, client_db, team_db = notion_settings(cache.get(db, "notion"))
    except NotionNotConfiguredError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"success": False, "error": e.message}
        )

    try:
        async with NotionClient(api_key) as notion:
            report = await NotionDirectorySync(db, notion, client_db, team_db).sync_clients()
    except SyncError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "success": False,
                "error": e.message,
                **e.report.model_dump(mode="json"),
            }
        )

    logging.info(f"Notion sync via API: {report.synced} records, {report.created} created, {report.updated} updated")
    return {
        "success": True,
        "message": f"Synced {report.synced} clients from Notion",
        **report.model_dump(mode="json"),
    }


@router.get("/sync")
async def notion_sync_status(
    rate_limit: RateLimitResult = Depends(rate_limited(RATE_LIMITS.GENERAL)),
    db: Session = Depends(get_db),
    cache: IntegrationConfigCache = Depends(get_integration_cache)
):
    """Report how many clients are linked to Notion and when they last synced."""
    sync_status = get_sync_status(db, cache.get(db, "notion"))
    return {"success": True, **sync_status.model_dump(mode="json")}
