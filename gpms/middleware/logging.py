"""Structured logging setup and per-request access logging."""

import logging
import sys
import time
import uuid
from collections.abc import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from structlog.types import EventDict, WrappedLogger

from gpms.config import settings

REQUEST_ID_HEADER = "X-Request-ID"

# Scraped every few seconds; not worth an access log line each time
QUIET_PATHS = frozenset({"/metrics", f"{settings.api_v1_prefix}/ping"})


def _add_service(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service", settings.app_name)
    event_dict.setdefault("environment", settings.environment)
    return event_dict


def configure_logging() -> None:
    """Route stdlib and structlog output through one JSON or console renderer."""
    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _add_service,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if settings.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper()),
    )

    # Requests are logged by LoggingMiddleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.debug else logging.WARNING
    )


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log each request with its id, status and duration.

    The request id comes from ``X-Request-ID`` when the caller sends one. It
    is bound into the structlog context, so service log lines such as
    ``appointment_created`` carry it too, and is echoed on the response.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        logger = structlog.get_logger("gpms.access")
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        path = request.url.path
        quiet = path in QUIET_PATHS

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start_time = time.perf_counter()

        if not quiet:
            logger.info(
                "request_started",
                method=request.method,
                path=path,
                client=request.client.host if request.client else None,
            )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                method=request.method,
                path=path,
                error=str(e),
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            raise

        duration = time.perf_counter() - start_time

        if not quiet:
            logger.info(
                "request_completed",
                method=request.method,
                path=path,
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2),
            )

        response.headers["X-Process-Time"] = f"{duration:.6f}"
        response.headers[REQUEST_ID_HEADER] = request_id

        return response
