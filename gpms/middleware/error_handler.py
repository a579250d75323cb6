"""Exception handlers rendering the API's JSON error body.

Every error response has the shape ``{"error", "message", "path"}``;
validation errors add ``details``.
"""

from typing import Any

import structlog
from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from gpms.core.exceptions import AppException

logger = structlog.get_logger(__name__)


def _error_response(
    request: Request,
    status_code: int,
    error: str,
    message: Any,
    headers: dict[str, str] | None = None,
    **extra: Any,
) -> JSONResponse:
    content = {"error": error, "message": message, "path": str(request.url), **extra}
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Domain errors: not found, bad request, slot conflicts, illegal transitions."""
    error = exc.__class__.__name__
    logger.info(
        "app_exception",
        error=error,
        message=exc.message,
        status_code=exc.status_code,
        method=request.method,
        path=request.url.path,
    )
    return _error_response(request, exc.status_code, error, exc.message)


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Framework HTTP errors, including 401s raised by the auth dependency."""
    return _error_response(
        request,
        exc.status_code,
        "HTTPException",
        exc.detail,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Request bodies and parameters that fail schema validation."""
    return _error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "ValidationError",
        "Request validation failed",
        details=jsonable_encoder(exc.errors()),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything else: logged with traceback, reported without internals."""
    logger.exception(
        "unhandled_exception",
        method=request.method,
        path=request.url.path,
        error=str(exc),
    )
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "InternalServerError",
        "An unexpected error occurred",
    )
