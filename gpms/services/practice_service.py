"""Practice service for tenant settings."""

from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from gpms.config import settings
from gpms.core.exceptions import NotFoundException
from gpms.models.practices import practices
from gpms.schemas.auth import TenantContext
from gpms.schemas.practices import PracticeUpdate


class PracticeService:
    """Service for the caller's own practice record."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def get_practice(self, ctx: TenantContext) -> dict:
        """Get the caller's practice."""
        query = select(practices).where(practices.c.id == ctx.practice_id)
        result = await self.db.execute(query)
        practice = result.mappings().first()

        if not practice:
            raise NotFoundException("Practice not found")

        return dict(practice)

    async def get_timezone(self, ctx: TenantContext) -> str:
        """The practice's own IANA zone, or ``PRACTICE_TIMEZONE`` when unset."""
        query = select(practices.c.timezone).where(practices.c.id == ctx.practice_id)
        result = await self.db.execute(query)
        return result.scalar() or settings.practice_timezone

    async def update_practice(self, ctx: TenantContext, data: PracticeUpdate) -> dict:
        """Update practice details."""
        update_data = data.model_dump(exclude_unset=True, exclude_none=True)

        if not update_data:
            return await self.get_practice(ctx)

        update_data["updated_at"] = datetime.now(UTC)

        query = (
            update(practices)
            .where(practices.c.id == ctx.practice_id)
            .values(**update_data)
            .returning(practices)
        )
        result = await self.db.execute(query)
        practice = result.mappings().first()

        if not practice:
            raise NotFoundException("Practice not found")

        await self.db.commit()
        return dict(practice)
