"""Admin routes for third-party integration settings."""

import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from src.shared.admin.dependencies import verify_admin
from src.shared.auth.database import get_db, User
from src.shared.integrations.config import IntegrationConfigCache
from src.shared.integrations.database import IntegrationSettings
from src.shared.integrations.dependencies import get_integration_cache
from src.shared.integrations.schemas import (
    PROVIDERS,
    IntegrationDetail,
    IntegrationSummary,
    IntegrationUpdateRequest,
)

router = APIRouter(prefix="/api/integrations", tags=["integrations"])


def _summary_fields(row: IntegrationSettings) -> dict:
    return {
        "provider": row.provider,
        "enabled": row.enabled,
        "has_api_key": bool(row.api_key),
        "has_access_token": bool(row.access_token),
        "config": row.config,
        "connected_at": row.connected_at,
        "last_tested_at": row.last_tested_at,
        "notes": row.notes,
        "updated_at": row.updated_at,
    }


def _get_settings_or_404(db: Session, provider: str) -> IntegrationSettings:
    row = db.query(IntegrationSettings).filter(IntegrationSettings.provider == provider).first()
    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Integration not found"}
        )
    return row


@router.get("", response_model=List[IntegrationSummary])
async def list_integrations(
    admin_user: User = Depends(verify_admin),
    db: Session = Depends(get_db)
):
    """List stored integrations without their credentials."""
    rows = db.query(IntegrationSettings).order_by(IntegrationSettings.provider).all()
    return [IntegrationSummary(**_summary_fields(row)) for row in rows]


@router.get("/{provider}", response_model=IntegrationDetail)
async def get_integration(
    provider: str,
    admin_user: User = Depends(verify_admin),
    db: Session = Depends(get_db)
):
    """Return one integration including credentials, for editing."""
    row = _get_settings_or_404(db, provider)
    return IntegrationDetail(
        **_summary_fields(row),
        api_key=row.api_key,
        api_secret=row.api_secret,
        access_token=row.access_token,
        refresh_token=row.refresh_token,
    )


@router.patch("/{provider}", response_model=IntegrationSummary)
async def update_integration(
    provider: str,
    update: IntegrationUpdateRequest,
    admin_user: User = Depends(verify_admin),
    db: Session = Depends(get_db),
    cache: IntegrationConfigCache = Depends(get_integration_cache)
):
    """
    Create or update a provider's settings.

    Omitted fields keep their stored value. The provider's cached config is
    evicted so the next read sees the new values.
    """
    if provider not in PROVIDERS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": f"Unknown integration provider '{provider}'"}
        )

    row = db.query(IntegrationSettings).filter(IntegrationSettings.provider == provider).first()
    if row is None:
        row = IntegrationSettings(provider=provider, enabled=False)
        db.add(row)

    for field, value in update.model_dump(exclude_unset=True).items():
        if field == "enabled":
            row.enabled = bool(value)
        else:
            setattr(row, field, value or None)

    if row.enabled and row.api_key:
        row.connected_at = row.connected_at or datetime.utcnow()
    else:
        row.connected_at = None

    db.commit()
    db.refresh(row)
    cache.clear(provider)
    logging.info(f"Integration settings updated for {provider} by {admin_user.email}")

    return IntegrationSummary(**_summary_fields(row))


@router.delete("/{provider}")
async def delete_integration(
    provider: str,
    admin_user: User = Depends(verify_admin),
    db: Session = Depends(get_db),
    cache: IntegrationConfigCache = Depends(get_integration_cache)
):
    """Delete stored settings; the provider falls back to environment variables."""
    row = _get_settings_or_404(db, provider)
    db.delete(row)
    db.commit()
    cache.clear(provider)
    logging.info(f"Integration settings deleted for {provider} by {admin_user.email}")
    return {"success": True}


@router.post("/{provider}/clear-cache")
async def clear_integration_cache(
    provider: str,
    admin_user: User = Depends(verify_admin),
    cache: IntegrationConfigCache = Depends(get_integration_cache)
):
    """Force the next read of ``provider``'s config to hit the backing store."""
    cache.clear(provider)
    return {"success": True}
