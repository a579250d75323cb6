"""Patient schemas for request/response validation."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from gpms.schemas.enums import Gender, PatientStatus


class PatientBase(BaseModel):
    """Base patient schema with common fields."""

    nhs_number: str | None = Field(None, min_length=10, max_length=10)
    title: str | None = Field(None, max_length=20)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    date_of_birth: date
    gender: Gender
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=20)
    mobile_phone: str | None = Field(None, max_length=20)
    address_line1: str | None = None
    address_line2: str | None = None
    city: str | None = None
    postcode: str | None = Field(None, max_length=10)
    registered_gp_id: UUID | None = None

    @field_validator("nhs_number")
    @classmethod
    def validate_nhs_number(cls, v: str | None) -> str | None:
        """NHS numbers are ten digits."""
        if v is not None and not v.isdigit():
            raise ValueError("NHS number must contain only digits")
        return v


class PatientCreate(PatientBase):
    """Schema for registering a patient."""

    status: PatientStatus = PatientStatus.ACTIVE


class PatientUpdate(BaseModel):
    """Schema for updating a patient record."""

    nhs_number: str | None = Field(None, min_length=10, max_length=10)
    title: str | None = Field(None, max_length=20)
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    date_of_birth: date | None = None
    gender: Gender | None = None
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=20)
    mobile_phone: str | None = Field(None, max_length=20)
    address_line1: str | None = None
    address_line2: str | None = None
    city: str | None = None
    postcode: str | None = Field(None, max_length=10)
    registered_gp_id: UUID | None = None
    status: PatientStatus | None = None


class PatientResponse(PatientBase):
    """Schema for patient response."""

    id: UUID
    practice_id: UUID
    status: PatientStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PatientListResponse(BaseModel):
    """Schema for paginated patient list response."""

    items: list[PatientResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class PatientStats(BaseModel):
    """Patient counts for the practice dashboard."""

    total_patients: int
    active_patients: int
    # Registered since local midnight
    registered_today: int
