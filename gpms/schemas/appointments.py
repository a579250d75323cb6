"""Appointment schemas for request/response validation."""

from datetime import UTC, date, datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from gpms.schemas.enums import AppointmentStatus, AppointmentType, Gender, UserRole


def _as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC and normalise aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class AppointmentCreate(BaseModel):
    """Schema for booking a new appointment."""

    patient_id: UUID
    clinician_id: UUID
    appointment_type: AppointmentType
    scheduled_start: datetime
    duration: int | None = Field(
        None,
        gt=0,
        le=480,
        description="Minutes; defaults to the appointment type's default duration",
    )
    room_id: UUID | None = None
    is_urgent: bool = False
    reason: str | None = Field(None, max_length=500)
    notes: str | None = Field(None, max_length=2000)

    @field_validator("scheduled_start")
    @classmethod
    def normalise_start(cls, v: datetime) -> datetime:
        """Store start times in UTC."""
        return _as_utc(v)


class AppointmentUpdate(BaseModel):
    """Schema for rescheduling or editing an appointment."""

    clinician_id: UUID | None = None
    appointment_type: AppointmentType | None = None
    scheduled_start: datetime | None = None
    duration: int | None = Field(None, gt=0, le=480)
    room_id: UUID | None = None
    is_urgent: bool | None = None
    reason: str | None = Field(None, max_length=500)
    notes: str | None = Field(None, max_length=2000)

    @field_validator("scheduled_start")
    @classmethod
    def normalise_start(cls, v: datetime | None) -> datetime | None:
        """Store start times in UTC."""
        return _as_utc(v)


class AppointmentStatusUpdate(BaseModel):
    """Schema for updating appointment status."""

    status: AppointmentStatus
    notes: str | None = Field(None, max_length=2000)


class PatientSummary(BaseModel):
    """Patient fields shown alongside an appointment."""

    id: UUID
    first_name: str
    last_name: str
    date_of_birth: date
    gender: Gender
    phone: str | None = None


class ClinicianSummary(BaseModel):
    """Clinician fields shown alongside an appointment."""

    id: UUID
    first_name: str
    last_name: str
    role: UserRole


class RoomSummary(BaseModel):
    """Room fields shown alongside an appointment."""

    id: UUID
    name: str


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    id: UUID
    practice_id: UUID
    patient_id: UUID
    clinician_id: UUID
    room_id: UUID | None = None
    appointment_type: AppointmentType
    scheduled_start: datetime
    scheduled_end: datetime
    duration: int
    is_urgent: bool
    reason: str | None = None
    notes: str | None = None
    status: AppointmentStatus
    created_at: datetime
    updated_at: datetime
    cancelled_at: datetime | None = None
    patient: PatientSummary | None = None
    clinician: ClinicianSummary | None = None
    room: RoomSummary | None = None

    model_config = {"from_attributes": True}


class AppointmentListResponse(BaseModel):
    """Schema for paginated appointment list response."""

    items: list[AppointmentResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class AppointmentFilters(BaseModel):
    """Schema for appointment filtering."""

    start_date: datetime | None = None
    end_date: datetime | None = None
    clinician_id: UUID | None = None
    patient_id: UUID | None = None
    status: list[AppointmentStatus] | None = None
    appointment_types: list[AppointmentType] | None = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=50, ge=1, le=200)

    @field_validator("start_date", "end_date")
    @classmethod
    def normalise_dates(cls, v: datetime | None) -> datetime | None:
        """Compare against stored UTC values."""
        return _as_utc(v)


class DashboardStats(BaseModel):
    """Appointment counts for the practice dashboard."""

    today_total: int
    today_pending: int
    # today_total - today_pending; includes arrived, cancelled and DNA
    today_completed: int
    month_missed: int
    month_cancelled: int


class AppointmentTypeInfo(BaseModel):
    """Catalogue entry for an appointment type."""

    type: AppointmentType
    label: str
    code: str
    default_duration: int
    allowed_roles: list[UserRole]
