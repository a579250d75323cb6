"""Staff service for practice users."""

from datetime import UTC, datetime
from uuid import UUID

import structlog
from sqlalchemy import and_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gpms.core.exceptions import BadRequestException, ConflictException, NotFoundException
from gpms.core.redis_client import CacheManager
from gpms.core.security import get_password_hash, verify_password
from gpms.models.users import users
from gpms.schemas.auth import TenantContext
from gpms.schemas.enums import CLINICAL_ROLES, UserRole
from gpms.schemas.staff import PasswordChange, StaffCreate, StaffUpdate

logger = structlog.get_logger(__name__)

# Everything except the password hash
STAFF_COLUMNS = [c for c in users.c if c.name != "password_hash"]


class StaffService:
    """Service for staff operations."""

    # Cache TTL in seconds
    STAFF_CACHE_TTL = 900  # 15 minutes for individual staff members
    STAFF_LIST_CACHE_TTL = 300  # 5 minutes for lists

    def __init__(self, db: AsyncSession, cache_manager: CacheManager | None = None):
        """Initialize service with database session and optional cache manager."""
        self.db = db
        self.cache = cache_manager

    @staticmethod
    def _get_staff_cache_key(practice_id: UUID, staff_id: UUID) -> str:
        """Generate cache key for a staff member."""
        return f"staff:{practice_id}:{staff_id}"

    @staticmethod
    def _get_staff_list_cache_key(
        practice_id: UUID, role: UserRole | None, is_active: bool | None
    ) -> str:
        """Generate cache key for a staff list."""
        role_key = role.value if role else None
        return f"staff:{practice_id}:list:{role_key}:{is_active}"

    def _invalidate(self, practice_id: UUID) -> None:
        """Drop every cached staff entry for the practice."""
        if self.cache:
            self.cache.delete_pattern(f"staff:{practice_id}:*")

    async def list_staff(
        self,
        ctx: TenantContext,
        role: UserRole | None = None,
        is_active: bool | None = True,
    ) -> list[dict]:
        """List the practice's staff ordered by role then surname."""
        cache_key = self._get_staff_list_cache_key(ctx.practice_id, role, is_active)
        if self.cache:
            cached = self.cache.get_json(cache_key)
            if cached is not None:
                return cached

        conditions = [users.c.practice_id == ctx.practice_id]

        if role:
            conditions.append(users.c.role == role.value)

        if is_active is not None:
            conditions.append(users.c.is_active == is_active)

        query = (
            select(*STAFF_COLUMNS)
            .where(and_(*conditions))
            .order_by(users.c.role, users.c.last_name)
        )
        result = await self.db.execute(query)
        staff = [dict(s) for s in result.mappings().all()]

        if self.cache:
            self.cache.set_json(cache_key, staff, ttl=self.STAFF_LIST_CACHE_TTL)

        return staff

    async def list_clinicians(self, ctx: TenantContext) -> list[dict]:
        """Active staff who hold an appointment list (GPs, nurses, HCAs)."""
        query = (
            select(*STAFF_COLUMNS)
            .where(
                and_(
                    users.c.practice_id == ctx.practice_id,
                    users.c.is_active.is_(True),
                    users.c.role.in_([r.value for r in CLINICAL_ROLES]),
                )
            )
            .order_by(users.c.role, users.c.last_name)
        )
        result = await self.db.execute(query)
        return [dict(s) for s in result.mappings().all()]

    async def get_staff(self, ctx: TenantContext, staff_id: UUID) -> dict:
        """Get a staff member by ID with caching."""
        cache_key = self._get_staff_cache_key(ctx.practice_id, staff_id)
        if self.cache:
            cached = self.cache.get_json(cache_key)
            if cached:
                return cached

        query = select(*STAFF_COLUMNS).where(
            and_(users.c.id == staff_id, users.c.practice_id == ctx.practice_id)
        )
        result = await self.db.execute(query)
        staff = result.mappings().first()

        if not staff:
            raise NotFoundException("Staff member not found")

        staff_dict = dict(staff)

        if self.cache:
            self.cache.set_json(cache_key, staff_dict, ttl=self.STAFF_CACHE_TTL)

        return staff_dict

    async def create_staff(self, ctx: TenantContext, data: StaffCreate) -> dict:
        """Add a staff member to the practice."""
        existing = await self.db.execute(select(users.c.id).where(users.c.email == data.email))
        if existing.scalar() is not None:
            raise ConflictException("A user with this email already exists")

        query = (
            users.insert()
            .values(
                practice_id=ctx.practice_id,
                email=data.email,
                password_hash=get_password_hash(data.password),
                first_name=data.first_name,
                last_name=data.last_name,
                role=data.role.value,
                phone=data.phone,
                gmc_number=data.gmc_number,
                nmc_number=data.nmc_number,
            )
            .returning(*STAFF_COLUMNS)
        )

        try:
            result = await self.db.execute(query)
            staff = result.mappings().first()
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictException("A user with this email already exists") from e

        if not staff:
            raise ValueError("Failed to create staff member")

        self._invalidate(ctx.practice_id)
        logger.info(
            "staff_created",
            practice_id=str(ctx.practice_id),
            staff_id=str(staff["id"]),
            role=data.role.value,
        )

        return dict(staff)

    async def update_staff(self, ctx: TenantContext, staff_id: UUID, data: StaffUpdate) -> dict:
        """Update a staff member's profile, role or active flag."""
        await self.get_staff(ctx, staff_id)

        update_data = data.model_dump(exclude_unset=True, exclude_none=True)

        if not update_data:
            return await self.get_staff(ctx, staff_id)

        if "role" in update_data:
            update_data["role"] = update_data["role"].value

        update_data["updated_at"] = datetime.now(UTC)

        query = (
            update(users)
            .where(and_(users.c.id == staff_id, users.c.practice_id == ctx.practice_id))
            .values(**update_data)
            .returning(*STAFF_COLUMNS)
        )

        try:
            result = await self.db.execute(query)
            staff = result.mappings().first()
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictException("A user with this email already exists") from e

        self._invalidate(ctx.practice_id)

        return dict(staff)

    async def change_password(self, ctx: TenantContext, data: PasswordChange) -> None:
        """
        Replace the caller's own password.

        Raises:
            NotFoundException: If the caller's staff record no longer exists
            BadRequestException: If the current password does not match
        """
        query = select(users.c.password_hash).where(
            and_(users.c.id == ctx.user_id, users.c.practice_id == ctx.practice_id)
        )
        result = await self.db.execute(query)
        password_hash = result.scalar()

        if password_hash is None:
            raise NotFoundException("Staff member not found")

        if not verify_password(data.current_password, password_hash):
            logger.info("password_change_rejected", staff_id=str(ctx.user_id))
            raise BadRequestException("Current password is incorrect")

        await self.db.execute(
            update(users)
            .where(users.c.id == ctx.user_id)
            .values(
                password_hash=get_password_hash(data.new_password),
                updated_at=datetime.now(UTC),
            )
        )
        await self.db.commit()

        logger.info("password_changed", staff_id=str(ctx.user_id))
