"""Practice schemas for request/response validation."""

from datetime import datetime
from uuid import UUID
from zoneinfo import ZoneInfoNotFoundError

from pydantic import BaseModel, EmailStr, Field, field_validator

from gpms.services.scheduling import resolve_timezone


class PracticeUpdate(BaseModel):
    """Schema for updating practice settings."""

    name: str | None = Field(None, min_length=1, max_length=200)
    ods_code: str | None = Field(None, max_length=10)
    address: str | None = None
    phone: str | None = Field(None, max_length=20)
    email: EmailStr | None = None
    timezone: str | None = Field(None, max_length=64, examples=["Europe/London"])

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str | None) -> str | None:
        """Only IANA zone names are accepted."""
        if v is None:
            return v
        try:
            resolve_timezone(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown time zone: {v}") from e
        return v


class PracticeResponse(BaseModel):
    """Schema for practice response."""

    id: UUID
    name: str
    ods_code: str | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    timezone: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
