"""Practice settings endpoints."""

from fastapi import APIRouter, status

from gpms.dependencies import DatabaseSession, Tenant
from gpms.schemas.practices import PracticeResponse, PracticeUpdate
from gpms.services.practice_service import PracticeService

router = APIRouter()


@router.get(
    "",
    response_model=PracticeResponse,
    status_code=status.HTTP_200_OK,
    summary="Get current practice",
)
async def get_practice(ctx: Tenant, db: DatabaseSession) -> PracticeResponse:
    """Get the caller's practice."""
    service = PracticeService(db)
    practice = await service.get_practice(ctx)
    return PracticeResponse(**practice)


@router.put(
    "",
    response_model=PracticeResponse,
    status_code=status.HTTP_200_OK,
    summary="Update current practice",
)
async def update_practice(
    data: PracticeUpdate,
    ctx: Tenant,
    db: DatabaseSession,
) -> PracticeResponse:
    """Update the caller's practice details."""
    service = PracticeService(db)
    practice = await service.update_practice(ctx, data)
    return PracticeResponse(**practice)
