"""Password hashing and bearer token handling."""

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext

from gpms.config import settings
from gpms.schemas.enums import UserRole

ACCESS_TOKEN_TYPE = "access"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(
    user_id: UUID,
    practice_id: UUID,
    role: UserRole,
    expires_delta: timedelta | None = None,
    extra_claims: dict[str, Any] | None = None,
) -> str:
    """
    Issue an access token scoped to one practice.

    Production tokens come from the identity provider with the same claims;
    this is used by the seed script and tests.

    Args:
        user_id: Staff member, stored as ``sub``
        practice_id: Tenant, stored as ``practiceId``
        role: Staff role
        expires_delta: Lifetime, defaults to ``ACCESS_TOKEN_EXPIRE_MINUTES``
        extra_claims: Additional claims, applied before the standard ones

    Returns:
        Encoded JWT
    """
    now = datetime.now(UTC)
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)

    claims: dict[str, Any] = dict(extra_claims or {})
    claims.update(
        {
            "sub": str(user_id),
            "practiceId": str(practice_id),
            "role": role.value,
            "type": ACCESS_TOKEN_TYPE,
            "iat": now,
            "exp": now + lifetime,
        }
    )

    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any] | None:
    """
    Verify signature and expiry and return the claims.

    Returns:
        Claims, or None if the token is invalid, expired or not an access token
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        return None

    return payload
