"""Public DMARC lookup route."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.shared.dns_security.lookup import dmarc_status, lookup_dmarc
from src.shared.errors import DnsLookupError
from src.shared.rate_limit.dependencies import rate_limited
from src.shared.rate_limit.limiter import RATE_LIMITS, RateLimitResult

router = APIRouter(prefix="/api/dmarc", tags=["dns-security"])


@router.get("/lookup")
async def dmarc_lookup(
    domain: Optional[str] = Query(default=None, max_length=253),
    rate_limit: RateLimitResult = Depends(rate_limited(RATE_LIMITS.LOOKUP))
):
    """Look up the DMARC policy published for ``domain``."""
    if not domain or not domain.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Domain parameter is required"}
        )

    try:
        result = await lookup_dmarc(domain)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": str(e)}
        )
    except DnsLookupError as e:
        logging.error(f"DMARC lookup failed for {domain}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": f"DMARC lookup failed: {e.message}"}
        )

    return {
        "success": True,
        **result.model_dump(mode="json"),
        "status": dmarc_status(result.policy.value),
    }
