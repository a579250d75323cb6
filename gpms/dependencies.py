"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from gpms.config import settings
from gpms.core.redis_client import CacheManager, get_redis_client
from gpms.core.security import decode_access_token
from gpms.database import get_db
from gpms.schemas.auth import TenantContext, TokenClaims

# Security
security = HTTPBearer(auto_error=False)


def _credentials_error(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_tenant_context(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> TenantContext:
    """
    Build the caller's tenant context from the bearer token.

    Args:
        credentials: Bearer token credentials

    Returns:
        Tenant context with practice, user and role

    Raises:
        HTTPException: If the token is missing, invalid, expired or lacks
            the practice, subject or role claims
    """
    if credentials is None:
        raise _credentials_error("Not authenticated")

    payload = decode_access_token(credentials.credentials)

    if payload is None:
        raise _credentials_error()

    try:
        claims = TokenClaims.model_validate(payload)
    except ValidationError:
        raise _credentials_error("Invalid token claims")

    return TenantContext.from_claims(claims)


def get_cache_manager() -> CacheManager | None:
    """Get the Redis cache manager, or None when caching is disabled."""
    if not settings.cache_enabled:
        return None
    return CacheManager(get_redis_client())


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
Tenant = Annotated[TenantContext, Depends(get_tenant_context)]
Cache = Annotated[CacheManager | None, Depends(get_cache_manager)]
