"""Room service for consulting rooms."""

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from gpms.models.rooms import rooms
from gpms.schemas.auth import TenantContext
from gpms.schemas.rooms import RoomCreate


class RoomService:
    """Service for consulting room operations."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def list_rooms(self, ctx: TenantContext, is_active: bool | None = True) -> list[dict]:
        """List the practice's rooms by name."""
        conditions = [rooms.c.practice_id == ctx.practice_id]

        if is_active is not None:
            conditions.append(rooms.c.is_active == is_active)

        query = select(rooms).where(and_(*conditions)).order_by(rooms.c.name)
        result = await self.db.execute(query)
        return [dict(r) for r in result.mappings().all()]

    async def create_room(self, ctx: TenantContext, data: RoomCreate) -> dict:
        """Add a room to the practice."""
        query = (
            rooms.insert()
            .values(
                practice_id=ctx.practice_id,
                name=data.name,
                description=data.description,
            )
            .returning(rooms)
        )
        result = await self.db.execute(query)
        room = result.mappings().first()

        if not room:
            raise ValueError("Failed to create room")

        await self.db.commit()
        return dict(room)
