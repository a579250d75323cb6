"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException

from gpms.api.v1.router import api_router
from gpms.config import settings
from gpms.core.exceptions import AppException
from gpms.core.redis_client import check_redis_connection, close_redis_connection
from gpms.database import check_database_connection, engine
from gpms.middleware.error_handler import (
    app_exception_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from gpms.middleware.logging import LoggingMiddleware, configure_logging

configure_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Report backing service health on startup; release connections on shutdown."""
    logger.info(
        "application_startup",
        version=settings.app_version,
        practice_timezone=settings.practice_timezone,
        enforce_status_transitions=settings.enforce_status_transitions,
    )

    if await check_database_connection():
        logger.info("database_connected")
    else:
        logger.error("database_connection_failed")

    if settings.cache_enabled:
        if await check_redis_connection():
            logger.info("redis_connected")
        else:
            logger.warning("redis_unavailable", note="Staff lookups will bypass the cache")

    yield

    logger.info("application_shutdown")
    await engine.dispose()
    close_redis_connection()


def create_app() -> FastAPI:
    """Assemble middleware, error handlers, routes and metrics."""
    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Multi-tenant GP practice appointment scheduling API",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    application.add_middleware(LoggingMiddleware)

    application.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
    application.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    application.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    application.add_exception_handler(Exception, general_exception_handler)

    application.include_router(api_router, prefix=settings.api_v1_prefix)

    @application.get("/", tags=["Root"])
    async def root() -> dict[str, str]:
        """Service name, version and docs location."""
        return {
            "message": f"Welcome to {settings.app_name}",
            "version": settings.app_version,
            "docs": "/docs",
        }

    # Request counts and latencies per route template
    Instrumentator(
        should_group_status_codes=True,
        should_instrument_requests_inprogress=True,
        excluded_handlers=["/docs", "/redoc", "/openapi.json", "/metrics"],
        inprogress_name="http_requests_inprogress",
        inprogress_labels=True,
    ).instrument(application).expose(application, endpoint="/metrics", include_in_schema=False)

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "gpms.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )
