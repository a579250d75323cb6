"""Health check endpoints."""

from fastapi import APIRouter, status
from pydantic import BaseModel

from gpms.config import settings
from gpms.core.redis_client import check_redis_connection
from gpms.database import check_database_connection

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    environment: str


class DetailedHealthResponse(HealthResponse):
    """Health check response including backing services."""

    database: str
    redis: str


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
)
async def health_check() -> HealthResponse:
    """Liveness check that touches no backing service."""
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Detailed health check",
)
async def detailed_health_check() -> DetailedHealthResponse:
    """
    Health check with database and Redis status.

    The database is required. Redis only degrades the status when caching
    is enabled, and reports "disabled" otherwise.

    Returns:
        Detailed health status including dependencies
    """
    db_healthy = await check_database_connection()

    if settings.cache_enabled:
        redis_healthy = await check_redis_connection()
        redis_status = "healthy" if redis_healthy else "unhealthy"
    else:
        redis_healthy = True
        redis_status = "disabled"

    return DetailedHealthResponse(
        status="healthy" if db_healthy and redis_healthy else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        database="healthy" if db_healthy else "unhealthy",
        redis=redis_status,
    )


@router.get(
    "/ping",
    status_code=status.HTTP_200_OK,
    summary="Simple ping",
)
async def ping() -> dict[str, str]:
    """Pong."""
    return {"message": "pong"}
