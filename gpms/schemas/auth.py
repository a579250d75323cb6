"""Authentication schemas."""

from uuid import UUID

from pydantic import BaseModel, Field

from gpms.schemas.enums import UserRole


class TokenClaims(BaseModel):
    """Claims carried by a bearer access token."""

    sub: UUID
    practice_id: UUID = Field(..., alias="practiceId")
    role: UserRole


class TenantContext(BaseModel):
    """
    Caller identity and tenant scope for one request.

    Built from the bearer token and handed explicitly to every service call.
    Services filter every query by ``practice_id``.
    """

    practice_id: UUID
    user_id: UUID
    role: UserRole

    model_config = {"frozen": True}

    @classmethod
    def from_claims(cls, claims: TokenClaims) -> "TenantContext":
        """Build a context from validated token claims."""
        return cls(practice_id=claims.practice_id, user_id=claims.sub, role=claims.role)
