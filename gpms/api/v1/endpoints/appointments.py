"""Appointment endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Query, status

from gpms.config import settings
from gpms.dependencies import DatabaseSession, Tenant
from gpms.schemas.appointments import (
    AppointmentCreate,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatusUpdate,
    AppointmentTypeInfo,
    AppointmentUpdate,
    DashboardStats,
)
from gpms.schemas.enums import AppointmentStatus, AppointmentType
from gpms.services.appointment_service import AppointmentService

router = APIRouter()


@router.get(
    "",
    response_model=AppointmentListResponse,
    status_code=status.HTTP_200_OK,
    summary="List appointments",
)
async def list_appointments(
    ctx: Tenant,
    db: DatabaseSession,
    start_date: datetime | None = Query(None, alias="startDate"),
    end_date: datetime | None = Query(None, alias="endDate"),
    clinician_id: UUID | None = Query(None, alias="clinicianId"),
    patient_id: UUID | None = Query(None, alias="patientId"),
    status_filter: list[AppointmentStatus] | None = Query(None, alias="status"),
    appointment_types: list[AppointmentType] | None = Query(None, alias="appointmentType"),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=200, alias="pageSize"),
) -> AppointmentListResponse:
    """
    List the practice's appointments with filtering.

    Args:
        ctx: Caller's tenant context
        db: Database session
        start_date: Earliest start time
        end_date: Latest start time
        clinician_id: Filter by clinician
        patient_id: Filter by patient
        status_filter: Filter by one or more statuses
        appointment_types: Filter by one or more appointment types
        page: Page number
        page_size: Items per page

    Returns:
        Paginated list of appointments
    """
    filters = AppointmentFilters(
        start_date=start_date,
        end_date=end_date,
        clinician_id=clinician_id,
        patient_id=patient_id,
        status=status_filter,
        appointment_types=appointment_types,
        page=page,
        page_size=page_size,
    )

    service = AppointmentService(db)
    return await service.list_appointments(ctx, filters)


@router.get(
    "/stats",
    response_model=DashboardStats,
    status_code=status.HTTP_200_OK,
    summary="Appointment statistics for the dashboard",
)
async def get_stats(ctx: Tenant, db: DatabaseSession) -> DashboardStats:
    """Today's and this month's appointment counts."""
    service = AppointmentService(db)
    return await service.get_dashboard_stats(ctx)


@router.get(
    "/types",
    response_model=list[AppointmentTypeInfo],
    status_code=status.HTTP_200_OK,
    summary="List appointment types",
)
async def list_appointment_types(ctx: Tenant) -> list[AppointmentTypeInfo]:
    """Appointment types with labels and default durations."""
    return AppointmentService.list_appointment_types()


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: UUID,
    ctx: Tenant,
    db: DatabaseSession,
) -> AppointmentResponse:
    """
    Get a specific appointment by ID.

    Raises:
        NotFoundException: If the appointment is not in the caller's practice
    """
    service = AppointmentService(db)
    return await service.get_appointment(ctx, appointment_id)


@router.post(
    "",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book an appointment",
)
async def create_appointment(
    data: AppointmentCreate,
    ctx: Tenant,
    db: DatabaseSession,
) -> AppointmentResponse:
    """
    Book a new appointment.

    Raises:
        NotFoundException: If patient, clinician or room is not in the practice
        SlotUnavailableException: If the clinician is already booked then
    """
    service = AppointmentService(db)
    return await service.create_appointment(ctx, data)


@router.put(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Update or reschedule appointment",
)
async def update_appointment(
    appointment_id: UUID,
    data: AppointmentUpdate,
    ctx: Tenant,
    db: DatabaseSession,
) -> AppointmentResponse:
    """Edit an appointment, re-checking the slot when its time or clinician changes."""
    service = AppointmentService(db)
    return await service.update_appointment(ctx, appointment_id, data)


@router.patch(
    "/{appointment_id}/status",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Update appointment status",
)
async def update_appointment_status(
    appointment_id: UUID,
    data: AppointmentStatusUpdate,
    ctx: Tenant,
    db: DatabaseSession,
) -> AppointmentResponse:
    """Set any status allowed from the appointment's current status."""
    service = AppointmentService(db)
    return await service.update_status(ctx, appointment_id, data.status, data.notes)


@router.put("/{appointment_id}/confirm", response_model=AppointmentResponse, summary="Confirm")
async def confirm(appointment_id: UUID, ctx: Tenant, db: DatabaseSession) -> AppointmentResponse:
    """Mark the booking as confirmed."""
    return await AppointmentService(db).confirm(ctx, appointment_id)


@router.put(
    "/{appointment_id}/check-in",
    response_model=AppointmentResponse,
    summary="Mark patient as arrived",
)
async def check_in(appointment_id: UUID, ctx: Tenant, db: DatabaseSession) -> AppointmentResponse:
    """Mark the patient as arrived."""
    return await AppointmentService(db).check_in(ctx, appointment_id)


@router.put(
    "/{appointment_id}/start",
    response_model=AppointmentResponse,
    summary="Start consultation",
)
async def start(appointment_id: UUID, ctx: Tenant, db: DatabaseSession) -> AppointmentResponse:
    """Start the consultation."""
    return await AppointmentService(db).start(ctx, appointment_id)


@router.put(
    "/{appointment_id}/complete",
    response_model=AppointmentResponse,
    summary="Complete appointment",
)
async def complete(appointment_id: UUID, ctx: Tenant, db: DatabaseSession) -> AppointmentResponse:
    """Complete the appointment."""
    return await AppointmentService(db).complete(ctx, appointment_id)


@router.put(
    "/{appointment_id}/cancel",
    response_model=AppointmentResponse,
    summary="Cancel appointment",
)
async def cancel(appointment_id: UUID, ctx: Tenant, db: DatabaseSession) -> AppointmentResponse:
    """Cancel the appointment."""
    return await AppointmentService(db).cancel(ctx, appointment_id)


@router.put(
    "/{appointment_id}/dna",
    response_model=AppointmentResponse,
    summary="Mark as Did Not Attend",
)
async def mark_dna(appointment_id: UUID, ctx: Tenant, db: DatabaseSession) -> AppointmentResponse:
    """Record that the patient did not attend."""
    return await AppointmentService(db).mark_dna(ctx, appointment_id)
