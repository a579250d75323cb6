"""Staff schemas for request/response validation."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from gpms.schemas.enums import UserRole


class StaffBase(BaseModel):
    """Base staff schema with common fields."""

    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    role: UserRole
    phone: str | None = Field(None, max_length=20)
    gmc_number: str | None = Field(None, max_length=20)
    nmc_number: str | None = Field(None, max_length=20)


class StaffCreate(StaffBase):
    """Schema for adding a staff member."""

    password: str = Field(..., min_length=8, max_length=72)


class StaffUpdate(BaseModel):
    """Schema for updating a staff member."""

    email: EmailStr | None = None
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    role: UserRole | None = None
    phone: str | None = Field(None, max_length=20)
    gmc_number: str | None = Field(None, max_length=20)
    nmc_number: str | None = Field(None, max_length=20)
    is_active: bool | None = None


class StaffResponse(StaffBase):
    """Staff schema for API responses. Never carries the password hash."""

    id: UUID
    practice_id: UUID
    is_active: bool
    created_at: datetime
    last_login_at: datetime | None = None

    model_config = {"from_attributes": True}


class PasswordChange(BaseModel):
    """Schema for a staff member changing their own password."""

    current_password: str = Field(..., min_length=1, max_length=72)
    new_password: str = Field(..., min_length=8, max_length=72)
