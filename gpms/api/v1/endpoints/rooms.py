"""Consulting room endpoints."""

from fastapi import APIRouter, Query, status

from gpms.dependencies import DatabaseSession, Tenant
from gpms.schemas.rooms import RoomCreate, RoomResponse
from gpms.services.room_service import RoomService

router = APIRouter()


@router.get(
    "",
    response_model=list[RoomResponse],
    status_code=status.HTTP_200_OK,
    summary="List rooms",
)
async def list_rooms(
    ctx: Tenant,
    db: DatabaseSession,
    is_active: bool | None = Query(True, alias="isActive"),
) -> list[RoomResponse]:
    """List the practice's consulting rooms."""
    service = RoomService(db)
    rooms = await service.list_rooms(ctx, is_active=is_active)
    return [RoomResponse(**r) for r in rooms]


@router.post(
    "",
    response_model=RoomResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add room",
)
async def create_room(data: RoomCreate, ctx: Tenant, db: DatabaseSession) -> RoomResponse:
    """Add a consulting room."""
    service = RoomService(db)
    room = await service.create_room(ctx, data)
    return RoomResponse(**room)
