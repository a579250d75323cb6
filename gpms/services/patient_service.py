"""Patient service for business logic."""

import math
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from gpms.core.exceptions import NotFoundException
from gpms.models.patients import patients
from gpms.models.users import users
from gpms.schemas.auth import TenantContext
from gpms.schemas.enums import PatientStatus
from gpms.schemas.patients import PatientCreate, PatientStats, PatientUpdate
from gpms.services.practice_service import PracticeService
from gpms.services.scheduling import dashboard_bounds, resolve_timezone


class PatientService:
    """Service for patient registration and lookup."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def _ensure_registered_gp(self, ctx: TenantContext, gp_id: UUID) -> None:
        """The registered GP must be a member of the same practice."""
        query = select(users.c.id).where(
            and_(users.c.id == gp_id, users.c.practice_id == ctx.practice_id)
        )
        result = await self.db.execute(query)
        if result.scalar() is None:
            raise NotFoundException("Registered GP not found")

    async def list_patients(
        self,
        ctx: TenantContext,
        search: str | None = None,
        status: PatientStatus | None = None,
        registered_gp_id: UUID | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> dict:
        """
        List patients with search and pagination.

        Args:
            ctx: Caller's tenant context
            search: Case-insensitive match on name or email, substring match
                on NHS number
            status: Filter by registration status
            registered_gp_id: Filter by registered GP
            page: Page number
            page_size: Items per page

        Returns:
            Paginated patients ordered by surname
        """
        conditions = [patients.c.practice_id == ctx.practice_id]

        if status:
            conditions.append(patients.c.status == status.value)

        if registered_gp_id:
            conditions.append(patients.c.registered_gp_id == registered_gp_id)

        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(
                    patients.c.first_name.ilike(pattern),
                    patients.c.last_name.ilike(pattern),
                    patients.c.email.ilike(pattern),
                    patients.c.nhs_number.contains(search),
                )
            )

        count_query = select(func.count()).select_from(patients).where(and_(*conditions))
        total = (await self.db.execute(count_query)).scalar() or 0

        query = (
            select(patients)
            .where(and_(*conditions))
            .order_by(patients.c.last_name, patients.c.first_name)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await self.db.execute(query)

        return {
            "items": [dict(p) for p in result.mappings().all()],
            "total": total,
            "page": page,
            "page_size": page_size,
            "total_pages": math.ceil(total / page_size),
        }

    async def get_dashboard_stats(
        self,
        ctx: TenantContext,
        now: datetime | None = None,
    ) -> PatientStats:
        """Total and active patients, and registrations since local midnight."""
        tz = resolve_timezone(await PracticeService(self.db).get_timezone(ctx))
        today_start, _, _ = dashboard_bounds(now or datetime.now(UTC), tz)

        query = select(
            func.count().label("total"),
            func.count().filter(patients.c.status == PatientStatus.ACTIVE.value).label("active"),
            func.count().filter(patients.c.created_at >= today_start).label("today"),
        ).where(patients.c.practice_id == ctx.practice_id)
        counts = (await self.db.execute(query)).mappings().one()

        return PatientStats(
            total_patients=counts["total"] or 0,
            active_patients=counts["active"] or 0,
            registered_today=counts["today"] or 0,
        )

    async def get_patient(self, ctx: TenantContext, patient_id: UUID) -> dict:
        """Get a patient by ID within the practice."""
        query = select(patients).where(
            and_(patients.c.id == patient_id, patients.c.practice_id == ctx.practice_id)
        )
        result = await self.db.execute(query)
        patient = result.mappings().first()

        if not patient:
            raise NotFoundException("Patient not found")

        return dict(patient)

    async def create_patient(self, ctx: TenantContext, data: PatientCreate) -> dict:
        """Register a new patient with the practice."""
        if data.registered_gp_id:
            await self._ensure_registered_gp(ctx, data.registered_gp_id)

        values = data.model_dump()
        values["gender"] = data.gender.value
        values["status"] = data.status.value

        query = (
            patients.insert()
            .values(practice_id=ctx.practice_id, **values)
            .returning(patients)
        )
        result = await self.db.execute(query)
        patient = result.mappings().first()

        if not patient:
            raise ValueError("Failed to create patient")

        await self.db.commit()
        return dict(patient)

    async def update_patient(
        self,
        ctx: TenantContext,
        patient_id: UUID,
        data: PatientUpdate,
    ) -> dict:
        """Update a patient record."""
        await self.get_patient(ctx, patient_id)

        update_data = data.model_dump(exclude_unset=True, exclude_none=True)

        if not update_data:
            return await self.get_patient(ctx, patient_id)

        if "registered_gp_id" in update_data:
            await self._ensure_registered_gp(ctx, update_data["registered_gp_id"])

        for field in ("gender", "status"):
            if field in update_data:
                update_data[field] = update_data[field].value

        update_data["updated_at"] = datetime.now(UTC)

        query = (
            update(patients)
            .where(and_(patients.c.id == patient_id, patients.c.practice_id == ctx.practice_id))
            .values(**update_data)
            .returning(patients)
        )
        result = await self.db.execute(query)
        patient = result.mappings().first()
        await self.db.commit()

        return dict(patient)
