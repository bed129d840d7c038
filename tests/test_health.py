"""Smoke tests - verify the app starts and basic endpoints respond."""

import httpx


async def test_health_returns_200(client: httpx.AsyncClient):
    """GET /health needs no identity and reports the service name."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "Tutor Tracker"}


async def test_malformed_identity_is_ignored(client: httpx.AsyncClient):
    """A non-numeric identity header is treated as no identity."""
    from app.config import settings

    response = await client.get("/api/leaderboard", headers={settings.AUTH_HEADER: "abc"})
    assert response.status_code == 401
