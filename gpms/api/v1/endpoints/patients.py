"""Patient endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from gpms.dependencies import DatabaseSession, Tenant
from gpms.schemas.enums import PatientStatus
from gpms.schemas.patients import (
    PatientCreate,
    PatientListResponse,
    PatientResponse,
    PatientStats,
    PatientUpdate,
)
from gpms.services.patient_service import PatientService

router = APIRouter()


@router.get(
    "",
    response_model=PatientListResponse,
    status_code=status.HTTP_200_OK,
    summary="List patients",
)
async def list_patients(
    ctx: Tenant,
    db: DatabaseSession,
    search: str | None = Query(None, min_length=1, description="Name, email or NHS number"),
    patient_status: PatientStatus | None = Query(None, alias="status"),
    registered_gp_id: UUID | None = Query(None, alias="registeredGpId"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
) -> PatientListResponse:
    """
    List the practice's registered patients.

    Args:
        ctx: Caller's tenant context
        db: Database session
        search: Search term
        patient_status: Filter by registration status
        registered_gp_id: Filter by registered GP
        page: Page number
        page_size: Items per page

    Returns:
        Paginated list of patients
    """
    service = PatientService(db)
    result = await service.list_patients(
        ctx,
        search=search,
        status=patient_status,
        registered_gp_id=registered_gp_id,
        page=page,
        page_size=page_size,
    )
    return PatientListResponse(**result)


@router.get(
    "/stats",
    response_model=PatientStats,
    status_code=status.HTTP_200_OK,
    summary="Patient statistics for the dashboard",
)
async def get_patient_stats(ctx: Tenant, db: DatabaseSession) -> PatientStats:
    """Registered patient counts."""
    service = PatientService(db)
    return await service.get_dashboard_stats(ctx)


@router.get(
    "/{patient_id}",
    response_model=PatientResponse,
    status_code=status.HTTP_200_OK,
    summary="Get patient by ID",
)
async def get_patient(patient_id: UUID, ctx: Tenant, db: DatabaseSession) -> PatientResponse:
    """Get a patient registered with the caller's practice."""
    service = PatientService(db)
    patient = await service.get_patient(ctx, patient_id)
    return PatientResponse(**patient)


@router.post(
    "",
    response_model=PatientResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register patient",
)
async def create_patient(
    data: PatientCreate,
    ctx: Tenant,
    db: DatabaseSession,
) -> PatientResponse:
    """
    Register a new patient.

    Raises:
        NotFoundException: If the registered GP is not in the practice
    """
    service = PatientService(db)
    patient = await service.create_patient(ctx, data)
    return PatientResponse(**patient)


@router.put(
    "/{patient_id}",
    response_model=PatientResponse,
    status_code=status.HTTP_200_OK,
    summary="Update patient",
)
async def update_patient(
    patient_id: UUID,
    data: PatientUpdate,
    ctx: Tenant,
    db: DatabaseSession,
) -> PatientResponse:
    """Update a patient's demographics or registration status."""
    service = PatientService(db)
    patient = await service.update_patient(ctx, patient_id, data)
    return PatientResponse(**patient)
