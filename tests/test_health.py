"""Smoke tests for health and app wiring."""

from httpx import AsyncClient


async def test_health_returns_ok(client: AsyncClient) -> None:
    """GET /api/v1/health returns 200 and status ok."""
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    data = response.json()
    assert data.get("status") == "ok"


async def test_request_id_is_echoed(client: AsyncClient) -> None:
    """A safe client request id is forwarded; an unsafe one is replaced."""
    kept = await client.get("/api/v1/health", headers={"X-Request-ID": "abc-123"})
    replaced = await client.get("/api/v1/health", headers={"X-Request-ID": "bad id!"})
    assert kept.headers["X-Request-ID"] == "abc-123"
    assert replaced.headers["X-Request-ID"] != "bad id!"
    assert len(replaced.headers["X-Request-ID"]) == 36


async def test_sql_routes_without_database_are_503(client: AsyncClient, monkeypatch) -> None:
    """Without DATABASE_URL, routes that need SQL answer 503 instead of failing."""
    from orgflow.core.config import get_settings
    from orgflow.infrastructure.persistence import database

    monkeypatch.setenv("DATABASE_URL", "")
    monkeypatch.setattr(database, "engine", None)
    monkeypatch.setattr(database, "AsyncSessionLocal", None)
    get_settings.cache_clear()
    try:
        response = await client.get(
            "/api/v1/workflow-templates", headers={"X-Organization-ID": "org-1"}
        )
    finally:
        get_settings.cache_clear()
    assert response.status_code == 503
    assert response.json()["error"] == "SERVICE_UNAVAILABLE"
