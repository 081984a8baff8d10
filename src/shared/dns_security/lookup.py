"""Email security lookups (DMARC, SPF, DKIM) over DNS-over-HTTPS.

Each lookup issues plain TXT queries against a JSON DoH resolver. Failures are
raised to the caller as DnsLookupError; nothing here retries.
"""

import logging
import os
import re
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, List, Optional

import httpx

from src.shared.dns_security.schemas import (
    DkimResult,
    DmarcPolicy,
    DmarcResult,
    SpfPolicy,
    SpfResult,
)
from src.shared.errors import DnsLookupError

DOH_RESOLVER_URL = os.environ.get("DOH_RESOLVER_URL", "https://dns.google/resolve")
DOH_TIMEOUT_SECONDS = float(os.environ.get("DOH_TIMEOUT_SECONDS", "5"))

TXT_RECORD_TYPE = 16
# NOERROR and NXDOMAIN both mean "the resolver answered"
ANSWERED_STATUSES = (0, 3)

# Selectors used by the common mail providers (Google, Microsoft 365, Mailchimp, ...)
COMMON_DKIM_SELECTORS = [
    "google", "selector1", "selector2",
    "k1", "k2", "k3",
    "default", "dkim", "mail",
    "s1", "s2", "sig1",
    "smtp", "email", "mx",
]

_DMARC_POLICY_RE = re.compile(r";\s*p\s*=\s*(none|quarantine|reject)", re.IGNORECASE)
_SCHEME_RE = re.compile(r"^(https?://)?(www\.)?", re.IGNORECASE)


def clean_domain(domain: str) -> str:
    """Reduce a URL or hostname to a bare lowercase domain."""
    cleaned = _SCHEME_RE.sub("", domain.strip()).split("/")[0].lower()
    if not cleaned:
        raise ValueError("Domain is required")
    return cleaned


@asynccontextmanager
async def _resolver_client(client: Optional[httpx.AsyncClient]) -> AsyncIterator[httpx.AsyncClient]:
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(timeout=DOH_TIMEOUT_SECONDS) as owned:
        yield owned


async def query_txt(name: str, client: Optional[httpx.AsyncClient] = None) -> List[str]:
    """Return the unquoted TXT strings published at ``name``."""
    try:
        async with _resolver_client(client) as http:
            resp = await http.get(
                DOH_RESOLVER_URL,
                params={"name": name, "type": "TXT"},
                headers={"Accept": "application/dns-json"},
            )
    except httpx.TimeoutException as e:
        raise DnsLookupError(f"DNS lookup for {name} timed out", cause=e) from e
    except httpx.HTTPError as e:
        raise DnsLookupError(f"DNS lookup for {name} failed: {e}", cause=e) from e

    if resp.status_code >= 400:
        raise DnsLookupError(f"DNS lookup for {name} failed: HTTP {resp.status_code}")

    try:
        data = resp.json()
    except ValueError as e:
        raise DnsLookupError(f"DNS lookup for {name} returned an invalid response", cause=e) from e
    if not isinstance(data, dict):
        raise DnsLookupError(f"DNS lookup for {name} returned an invalid response")

    status = data.get("Status", 0)
    if status not in ANSWERED_STATUSES:
        raise DnsLookupError(f"DNS lookup for {name} failed with resolver status {status}")

    records = []
    for answer in data.get("Answer") or []:
        if answer.get("type", TXT_RECORD_TYPE) != TXT_RECORD_TYPE:
            continue  # CNAME hops in the answer chain
        records.append((answer.get("data") or "").replace('"', ""))
    return records


async def lookup_dmarc(domain: str, client: Optional[httpx.AsyncClient] = None) -> DmarcResult:
    """Look up the DMARC policy for ``domain``.

    A domain with no ``v=DMARC1`` record, or a record without a recognised
    ``p=`` tag, reports ``NOT_SET``.
    """
    clean = clean_domain(domain)
    records = await query_txt(f"_dmarc.{clean}", client)
    checked_at = datetime.utcnow()

    for record in records:
        if not record.strip().lower().startswith("v=dmarc1"):
            continue
        match = _DMARC_POLICY_RE.search(record)
        policy = DmarcPolicy(match.group(1).lower()) if match else DmarcPolicy.NOT_SET
        return DmarcResult(domain=clean, found=True, policy=policy, raw_record=record, checked_at=checked_at)

    return DmarcResult(domain=clean, found=False, policy=DmarcPolicy.NOT_SET, checked_at=checked_at)


def _spf_policy(record: str) -> SpfPolicy:
    if "-all" in record:
        return SpfPolicy.HARDFAIL
    if "~all" in record:
        return SpfPolicy.SOFTFAIL
    if "?all" in record:
        return SpfPolicy.NEUTRAL
    if "+all" in record:
        return SpfPolicy.PASS
    return SpfPolicy.NOT_SET


async def lookup_spf(domain: str, client: Optional[httpx.AsyncClient] = None) -> SpfResult:
    """Look up the SPF record published at the domain apex."""
    clean = clean_domain(domain)
    records = await query_txt(clean, client)
    checked_at = datetime.utcnow()

    for record in records:
        if record.strip().lower().startswith("v=spf1"):
            return SpfResult(
                domain=clean,
                found=True,
                policy=_spf_policy(record),
                raw_record=record,
                checked_at=checked_at,
            )

    return SpfResult(domain=clean, found=False, policy=SpfPolicy.NOT_SET, checked_at=checked_at)


async def lookup_dkim(
    domain: str,
    selector: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> DkimResult:
    """Try DKIM selectors until one publishes a key.

    ``selector`` is tried first. A selector whose query fails is skipped; DKIM
    has no discovery mechanism so a miss on every selector is "not found".
    """
    clean = clean_domain(domain)
    selectors = COMMON_DKIM_SELECTORS
    if selector:
        selectors = [selector] + [s for s in COMMON_DKIM_SELECTORS if s != selector]

    async with _resolver_client(client) as http:
        for candidate in selectors:
            try:
                records = await query_txt(f"{candidate}._domainkey.{clean}", http)
            except DnsLookupError as e:
                logging.warning(f"DKIM lookup failed for selector {candidate} on {clean}: {e}")
                continue
            for record in records:
                if "v=dkim1" in record.lower() or "p=" in record:
                    return DkimResult(
                        domain=clean,
                        found=True,
                        selector=candidate,
                        raw_record=record,
                        checked_at=datetime.utcnow(),
                    )

    return DkimResult(domain=clean, found=False, checked_at=datetime.utcnow())


def dmarc_status(policy: Optional[str]) -> dict:
    """Human-readable summary of a DMARC policy value."""
    value = (policy or "").lower()
    if value == DmarcPolicy.REJECT.value:
        return {"label": "Reject", "description": "Strongest protection - unauthorized emails are rejected"}
    if value == DmarcPolicy.QUARANTINE.value:
        return {"label": "Quarantine", "description": "Medium protection - unauthorized emails go to spam"}
    if value == DmarcPolicy.NONE.value:
        return {"label": "None", "description": "Monitoring only - no action taken on unauthorized emails"}
    return {"label": "Not Set", "description": "No DMARC record found - vulnerable to email spoofing"}
