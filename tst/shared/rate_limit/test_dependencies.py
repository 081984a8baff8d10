"""Tests for the rate_limited route dependency and the 429 response."""

import pytest
from fastapi import Depends, Request
from fastapi.testclient import TestClient

from src.shared.rate_limit.dependencies import rate_limited
from src.shared.rate_limit.limiter import RateLimitConfig, RateLimitResult

TWO_PER_MINUTE = RateLimitConfig(name="two", limit=2, window_ms=60_000)


@pytest.fixture
def limited_client(app):
    @app.get("/limited")
    async def limited(request: Request, rate_limit: RateLimitResult = Depends(rate_limited(TWO_PER_MINUTE))):
        return {"remaining": rate_limit.remaining, "stored": request.state.rate_limit.remaining}

    return TestClient(app)


def test_successful_requests_carry_headers(limited_client):
    response = limited_client.get("/limited")
    assert response.status_code == 200
    assert response.json() == {"remaining": 1, "stored": 1}
    assert response.headers["X-RateLimit-Limit"] == "2"
    assert response.headers["X-RateLimit-Remaining"] == "1"
    assert response.headers["X-RateLimit-Reset"] == "60"


def test_exceeding_limit_returns_429(limited_client):
    limited_client.get("/limited")
    limited_client.get("/limited")
    response = limited_client.get("/limited")

    assert response.status_code == 429
    body = response.json()
    assert body["success"] is False
    assert body["retryAfter"] == 60
    assert "Rate limit exceeded" in body["error"]
    assert response.headers["Retry-After"] == "60"
    assert response.headers["X-RateLimit-Remaining"] == "0"


def test_authenticated_users_get_their_own_budget(limited_client, viewer_headers):
    limited_client.get("/limited")
    limited_client.get("/limited")
    assert limited_client.get("/limited").status_code == 429
    assert limited_client.get("/limited", headers=viewer_headers).status_code == 200


def test_forwarded_addresses_are_counted_separately(limited_client):
    for _ in range(2):
        limited_client.get("/limited", headers={"X-Forwarded-For": "203.0.113.1"})
    assert limited_client.get("/limited", headers={"X-Forwarded-For": "203.0.113.1"}).status_code == 429
    assert limited_client.get("/limited", headers={"X-Forwarded-For": "203.0.113.2"}).status_code == 200


def test_each_app_owns_its_limiter(app, limited_client):
    limited_client.get("/limited")
    limited_client.get("/limited")
    app.state.rate_limiter.clear()
    assert limited_client.get("/limited").status_code == 200
