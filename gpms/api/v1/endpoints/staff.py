"""Staff endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from gpms.dependencies import Cache, DatabaseSession, Tenant
from gpms.schemas.enums import UserRole
from gpms.schemas.staff import PasswordChange, StaffCreate, StaffResponse, StaffUpdate
from gpms.services.staff_service import StaffService

router = APIRouter()


@router.get(
    "",
    response_model=list[StaffResponse],
    status_code=status.HTTP_200_OK,
    summary="List staff",
)
async def list_staff(
    ctx: Tenant,
    db: DatabaseSession,
    cache: Cache,
    role: UserRole | None = Query(None),
    is_active: bool | None = Query(True, alias="isActive"),
) -> list[StaffResponse]:
    """
    List the practice's staff.

    Args:
        ctx: Caller's tenant context
        db: Database session
        cache: Cache manager, if caching is enabled
        role: Filter by role
        is_active: Filter by active flag

    Returns:
        Staff members ordered by role then surname
    """
    service = StaffService(db, cache)
    staff = await service.list_staff(ctx, role=role, is_active=is_active)
    return [StaffResponse(**s) for s in staff]


@router.get(
    "/clinicians",
    response_model=list[StaffResponse],
    status_code=status.HTTP_200_OK,
    summary="List clinicians",
)
async def list_clinicians(ctx: Tenant, db: DatabaseSession) -> list[StaffResponse]:
    """Active GPs, nurses and HCAs who can hold appointments."""
    service = StaffService(db)
    clinicians = await service.list_clinicians(ctx)
    return [StaffResponse(**c) for c in clinicians]


@router.get(
    "/{staff_id}",
    response_model=StaffResponse,
    status_code=status.HTTP_200_OK,
    summary="Get staff member by ID",
)
async def get_staff(
    staff_id: UUID,
    ctx: Tenant,
    db: DatabaseSession,
    cache: Cache,
) -> StaffResponse:
    """Get a staff member of the caller's practice."""
    service = StaffService(db, cache)
    staff = await service.get_staff(ctx, staff_id)
    return StaffResponse(**staff)


@router.post(
    "",
    response_model=StaffResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add staff member",
)
async def create_staff(
    data: StaffCreate,
    ctx: Tenant,
    db: DatabaseSession,
    cache: Cache,
) -> StaffResponse:
    """
    Add a staff member to the practice.

    Raises:
        ConflictException: If the email is already registered
    """
    service = StaffService(db, cache)
    staff = await service.create_staff(ctx, data)
    return StaffResponse(**staff)


@router.put(
    "/{staff_id}",
    response_model=StaffResponse,
    status_code=status.HTTP_200_OK,
    summary="Update staff member",
)
async def update_staff(
    staff_id: UUID,
    data: StaffUpdate,
    ctx: Tenant,
    db: DatabaseSession,
    cache: Cache,
) -> StaffResponse:
    """Update a staff member's details, role or active flag."""
    service = StaffService(db, cache)
    staff = await service.update_staff(ctx, staff_id, data)
    return StaffResponse(**staff)


@router.put(
    "/me/password",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Change own password",
)
async def change_password(data: PasswordChange, ctx: Tenant, db: DatabaseSession) -> None:
    """
    Change the caller's password.

    Raises:
        BadRequestException: If the current password is wrong
    """
    service = StaffService(db)
    await service.change_password(ctx, data)
