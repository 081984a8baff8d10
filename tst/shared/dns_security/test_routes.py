"""Tests for the public DMARC lookup route."""

import httpx
import respx

from src.shared.dns_security.lookup import DOH_RESOLVER_URL
from src.shared.rate_limit.limiter import RATE_LIMITS


def dmarc_answer(record):
    return {"Status": 0, "Answer": [{"type": 16, "data": f'"{record}"'}]}


def test_lookup_requires_domain(client):
    response = client.get("/api/dmarc/lookup")
    assert response.status_code == 400
    assert response.json() == {"error": "Domain parameter is required"}


def test_lookup_returns_policy(client):
    with respx.mock:
        respx.get(DOH_RESOLVER_URL).mock(return_value=httpx.Response(200, json=dmarc_answer("v=DMARC1; p=quarantine")))
        response = client.get("/api/dmarc/lookup", params={"domain": "https://www.example.com"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["domain"] == "example.com"
    assert body["found"] is True
    assert body["policy"] == "quarantine"
    assert body["status"]["label"] == "Quarantine"
    assert response.headers["X-RateLimit-Limit"] == str(RATE_LIMITS.LOOKUP.limit)


def test_lookup_failure_is_500(client):
    with respx.mock:
        respx.get(DOH_RESOLVER_URL).mock(return_value=httpx.Response(503))
        response = client.get("/api/dmarc/lookup", params={"domain": "example.com"})

    assert response.status_code == 500
    assert "DMARC lookup failed" in response.json()["error"]


def test_lookup_is_rate_limited(client, app):
    with respx.mock:
        respx.get(DOH_RESOLVER_URL).mock(return_value=httpx.Response(200, json={"Status": 3}))
        for _ in range(RATE_LIMITS.LOOKUP.limit):
            assert client.get("/api/dmarc/lookup", params={"domain": "example.com"}).status_code == 200
        response = client.get("/api/dmarc/lookup", params={"domain": "example.com"})

    assert response.status_code == 429
    assert response.json()["success"] is False
    assert int(response.headers["Retry-After"]) >= 1
