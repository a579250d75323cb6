"""Tests for health and root endpoints."""

import pytest
from httpx import AsyncClient

from gpms.api.v1.endpoints import health


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient) -> None:
    """Test health check endpoint."""
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data


@pytest.mark.asyncio
async def test_detailed_health_check(client: AsyncClient, monkeypatch) -> None:
    """Degraded when Redis is down and caching is enabled."""

    async def healthy() -> bool:
        return True

    async def unhealthy() -> bool:
        return False

    monkeypatch.setattr(health, "check_database_connection", healthy)
    monkeypatch.setattr(health, "check_redis_connection", unhealthy)
    monkeypatch.setattr(health.settings, "cache_enabled", True)

    response = await client.get("/api/v1/health/detailed")

    assert response.status_code == 200
    assert response.json()["database"] == "healthy"
    assert response.json()["redis"] == "unhealthy"
    assert response.json()["status"] == "degraded"


@pytest.mark.asyncio
async def test_detailed_health_check_without_cache(client: AsyncClient, monkeypatch) -> None:
    """Redis is not required when caching is disabled."""

    async def healthy() -> bool:
        return True

    monkeypatch.setattr(health, "check_database_connection", healthy)
    monkeypatch.setattr(health.settings, "cache_enabled", False)

    response = await client.get("/api/v1/health/detailed")

    assert response.json()["redis"] == "disabled"
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_ping_and_root(client: AsyncClient) -> None:
    """Ping and the welcome page need no token."""
    response = await client.get("/api/v1/ping")
    assert response.json() == {"message": "pong"}

    response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["docs"] == "/docs"


@pytest.mark.asyncio
async def test_request_id_header(client: AsyncClient) -> None:
    """Responses echo the caller's request id and report processing time."""
    response = await client.get("/api/v1/ping", headers={"X-Request-ID": "abc-123"})

    assert response.headers["x-request-id"] == "abc-123"
    assert "x-process-time" in response.headers


@pytest.mark.asyncio
async def test_unknown_route(client: AsyncClient) -> None:
    """Unknown routes use the error response shape."""
    response = await client.get("/api/v1/nope")

    assert response.status_code == 404
    assert response.json()["error"] == "HTTPException"
