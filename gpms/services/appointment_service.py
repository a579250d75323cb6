"""Appointment service for business logic."""

import math
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import Select, and_, func, insert, select, update
from sqlalchemy.engine import RowMapping
from sqlalchemy.ext.asyncio import AsyncSession

from gpms.config import settings
from gpms.core.exceptions import (
    AppException,
    BadRequestException,
    ConflictException,
    NotFoundException,
    SlotUnavailableException,
)
from gpms.models.appointments import appointments
from gpms.models.patients import patients
from gpms.models.rooms import rooms
from gpms.models.users import users
from gpms.schemas.appointments import (
    AppointmentCreate,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentTypeInfo,
    AppointmentUpdate,
    DashboardStats,
)
from gpms.schemas.auth import TenantContext
from gpms.schemas.enums import AppointmentStatus
from gpms.services.practice_service import PracticeService
from gpms.services.scheduling import (
    APPOINTMENT_TYPE_CONFIG,
    PENDING_STATUSES,
    RELEASED_STATUSES,
    RESCHEDULABLE_STATUSES,
    compute_end,
    dashboard_bounds,
    default_duration,
    ensure_transition,
    resolve_timezone,
)

logger = structlog.get_logger(__name__)

# Fields whose change moves the appointment in a clinician's diary
_TIME_FIELDS = frozenset({"clinician_id", "scheduled_start", "duration"})

# Fields a PUT may clear by sending null
_CLEARABLE_FIELDS = frozenset({"room_id", "reason", "notes"})


def _detail_query() -> Select:
    """Appointment rows joined with patient, clinician and room summaries."""
    return select(
        appointments,
        patients.c.first_name.label("patient_first_name"),
        patients.c.last_name.label("patient_last_name"),
        patients.c.date_of_birth.label("patient_date_of_birth"),
        patients.c.gender.label("patient_gender"),
        patients.c.phone.label("patient_phone"),
        users.c.first_name.label("clinician_first_name"),
        users.c.last_name.label("clinician_last_name"),
        users.c.role.label("clinician_role"),
        rooms.c.name.label("room_name"),
    ).select_from(
        appointments.join(patients, patients.c.id == appointments.c.patient_id)
        .join(users, users.c.id == appointments.c.clinician_id)
        .outerjoin(rooms, rooms.c.id == appointments.c.room_id)
    )


def _to_response(row: RowMapping) -> AppointmentResponse:
    """Fold the joined summary columns into nested objects."""
    data = dict(row)
    data["patient"] = {
        "id": data["patient_id"],
        "first_name": data.pop("patient_first_name"),
        "last_name": data.pop("patient_last_name"),
        "date_of_birth": data.pop("patient_date_of_birth"),
        "gender": data.pop("patient_gender"),
        "phone": data.pop("patient_phone"),
    }
    data["clinician"] = {
        "id": data["clinician_id"],
        "first_name": data.pop("clinician_first_name"),
        "last_name": data.pop("clinician_last_name"),
        "role": data.pop("clinician_role"),
    }
    room_name = data.pop("room_name")
    data["room"] = {"id": data["room_id"], "name": room_name} if data["room_id"] else None
    return AppointmentResponse.model_validate(data)


class AppointmentService:
    """Service for booking appointments and moving them through their lifecycle."""

    def __init__(self, db: AsyncSession, enforce_transitions: bool | None = None):
        """
        Initialize service with database session.

        Args:
            db: Database session
            enforce_transitions: Reject status changes outside the transition
                table. Defaults to the ``ENFORCE_STATUS_TRANSITIONS`` setting.
        """
        self.db = db
        if enforce_transitions is None:
            enforce_transitions = settings.enforce_status_transitions
        self.enforce_transitions = enforce_transitions

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def _get_row(self, ctx: TenantContext, appointment_id: UUID) -> RowMapping:
        """Fetch the bare appointment row scoped to the caller's practice."""
        stmt = select(appointments).where(
            and_(
                appointments.c.id == appointment_id,
                appointments.c.practice_id == ctx.practice_id,
            )
        )
        result = await self.db.execute(stmt)
        row = result.mappings().first()

        if not row:
            raise NotFoundException("Appointment not found")

        return row

    async def get_appointment(
        self,
        ctx: TenantContext,
        appointment_id: UUID,
    ) -> AppointmentResponse:
        """
        Get appointment by ID.

        An appointment that belongs to another practice is reported as not
        found.

        Args:
            ctx: Caller's tenant context
            appointment_id: Appointment ID

        Returns:
            Appointment details with patient, clinician and room summaries

        Raises:
            NotFoundException: If appointment not found in the practice
        """
        stmt = _detail_query().where(
            and_(
                appointments.c.id == appointment_id,
                appointments.c.practice_id == ctx.practice_id,
            )
        )
        result = await self.db.execute(stmt)
        row = result.mappings().first()

        if not row:
            raise NotFoundException("Appointment not found")

        return _to_response(row)

    async def list_appointments(
        self,
        ctx: TenantContext,
        filters: AppointmentFilters,
    ) -> AppointmentListResponse:
        """
        List appointments with filtering and pagination.

        Args:
            ctx: Caller's tenant context
            filters: Filter and pagination parameters

        Returns:
            Paginated list of appointments ordered by start time
        """
        conditions = [appointments.c.practice_id == ctx.practice_id]

        if filters.start_date:
            conditions.append(appointments.c.scheduled_start >= filters.start_date)

        if filters.end_date:
            conditions.append(appointments.c.scheduled_start <= filters.end_date)

        if filters.clinician_id:
            conditions.append(appointments.c.clinician_id == filters.clinician_id)

        if filters.patient_id:
            conditions.append(appointments.c.patient_id == filters.patient_id)

        if filters.status:
            conditions.append(appointments.c.status.in_([s.value for s in filters.status]))

        if filters.appointment_types:
            conditions.append(
                appointments.c.appointment_type.in_([t.value for t in filters.appointment_types])
            )

        # Count total
        count_stmt = select(func.count()).select_from(appointments).where(and_(*conditions))
        total_result = await self.db.execute(count_stmt)
        total = total_result.scalar() or 0

        # Get paginated results
        offset = (filters.page - 1) * filters.page_size

        stmt = (
            _detail_query()
            .where(and_(*conditions))
            .order_by(appointments.c.scheduled_start.asc())
            .limit(filters.page_size)
            .offset(offset)
        )

        result = await self.db.execute(stmt)
        items = [_to_response(row) for row in result.mappings().all()]

        return AppointmentListResponse(
            items=items,
            total=total,
            page=filters.page,
            page_size=filters.page_size,
            total_pages=math.ceil(total / filters.page_size),
        )

    # ------------------------------------------------------------------
    # Conflict checking
    # ------------------------------------------------------------------

    async def check_conflicts(
        self,
        ctx: TenantContext,
        clinician_id: UUID,
        start: datetime,
        end: datetime,
        exclude_appointment_id: UUID | None = None,
    ) -> RowMapping | None:
        """
        Find an existing booking that overlaps ``[start, end)`` for a clinician.

        Cancelled appointments never block a slot. When rescheduling, the
        appointment being moved is excluded.

        Args:
            ctx: Caller's tenant context
            clinician_id: Clinician whose diary is checked
            start: Proposed start (inclusive)
            end: Proposed end (exclusive)
            exclude_appointment_id: Appointment to ignore

        Returns:
            The first clashing appointment row, or None if the slot is free
        """
        conditions = [
            appointments.c.practice_id == ctx.practice_id,
            appointments.c.clinician_id == clinician_id,
            appointments.c.status.notin_([s.value for s in RELEASED_STATUSES]),
            # Half-open overlap: existing.start < end AND existing.end > start
            appointments.c.scheduled_start < end,
            appointments.c.scheduled_end > start,
        ]

        if exclude_appointment_id:
            conditions.append(appointments.c.id != exclude_appointment_id)

        stmt = (
            select(appointments)
            .where(and_(*conditions))
            .order_by(appointments.c.scheduled_start)
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.mappings().first()

    async def _lock_clinician(self, ctx: TenantContext, clinician_id: UUID) -> None:
        """
        Lock the clinician's staff row for the rest of the transaction.

        Bookings for the same clinician queue behind this lock, so the
        conflict check and the write that follows see a stable diary.
        """
        stmt = (
            select(users.c.id, users.c.is_active)
            .where(
                and_(
                    users.c.id == clinician_id,
                    users.c.practice_id == ctx.practice_id,
                )
            )
            .with_for_update()
        )
        result = await self.db.execute(stmt)
        clinician = result.mappings().first()

        if not clinician:
            raise NotFoundException("Clinician not found")

        if not clinician["is_active"]:
            raise BadRequestException("Clinician is not active")

    async def _ensure_in_practice(
        self,
        ctx: TenantContext,
        table: Any,
        record_id: UUID,
        label: str,
    ) -> None:
        """Raise NotFound unless the record exists in the caller's practice."""
        stmt = select(table.c.id).where(
            and_(table.c.id == record_id, table.c.practice_id == ctx.practice_id)
        )
        result = await self.db.execute(stmt)
        if result.scalar() is None:
            raise NotFoundException(f"{label} not found")

    async def _ensure_slot_free(
        self,
        ctx: TenantContext,
        clinician_id: UUID,
        start: datetime,
        end: datetime,
        exclude_appointment_id: UUID | None = None,
    ) -> None:
        """Lock the clinician's diary and reject the slot if it is taken."""
        await self._lock_clinician(ctx, clinician_id)
        conflict = await self.check_conflicts(ctx, clinician_id, start, end, exclude_appointment_id)

        if conflict is not None:
            logger.info(
                "appointment_conflict",
                practice_id=str(ctx.practice_id),
                clinician_id=str(clinician_id),
                requested_start=start.isoformat(),
                requested_end=end.isoformat(),
                conflicting_appointment_id=str(conflict["id"]),
            )
            raise SlotUnavailableException()

    # ------------------------------------------------------------------
    # Booking and rescheduling
    # ------------------------------------------------------------------

    async def create_appointment(
        self,
        ctx: TenantContext,
        data: AppointmentCreate,
    ) -> AppointmentResponse:
        """
        Book a new appointment.

        The end time is derived from the start and the duration (or the
        appointment type's default duration). The slot is checked against
        the clinician's existing bookings in the same transaction as the
        insert.

        Args:
            ctx: Caller's tenant context
            data: Appointment creation data

        Returns:
            Created appointment with patient, clinician and room summaries

        Raises:
            NotFoundException: If patient, clinician or room is not in the practice
            SlotUnavailableException: If the slot overlaps an existing booking
        """
        duration = data.duration or default_duration(data.appointment_type)
        start = data.scheduled_start
        end = compute_end(start, duration)

        try:
            await self._ensure_in_practice(ctx, patients, data.patient_id, "Patient")
            if data.room_id:
                await self._ensure_in_practice(ctx, rooms, data.room_id, "Room")
            await self._ensure_slot_free(ctx, data.clinician_id, start, end)

            stmt = (
                insert(appointments)
                .values(
                    practice_id=ctx.practice_id,
                    patient_id=data.patient_id,
                    clinician_id=data.clinician_id,
                    room_id=data.room_id,
                    appointment_type=data.appointment_type.value,
                    scheduled_start=start,
                    scheduled_end=end,
                    duration=duration,
                    is_urgent=data.is_urgent,
                    reason=data.reason,
                    notes=data.notes,
                    status=AppointmentStatus.BOOKED.value,
                )
                .returning(appointments.c.id)
            )
            result = await self.db.execute(stmt)
            appointment_id = result.scalar_one()
            await self.db.commit()
        except AppException:
            await self.db.rollback()
            raise

        logger.info(
            "appointment_created",
            practice_id=str(ctx.practice_id),
            appointment_id=str(appointment_id),
            clinician_id=str(data.clinician_id),
            start=start.isoformat(),
            duration=duration,
            booked_by=str(ctx.user_id),
        )

        return await self.get_appointment(ctx, appointment_id)

    async def update_appointment(
        self,
        ctx: TenantContext,
        appointment_id: UUID,
        data: AppointmentUpdate,
    ) -> AppointmentResponse:
        """
        Edit or reschedule an appointment.

        Changing the clinician, start or duration re-runs the conflict check,
        ignoring the appointment itself. Only booked or confirmed
        appointments can be moved. Sending null clears ``room_id``,
        ``reason`` or ``notes``; null is rejected for the other fields.

        Args:
            ctx: Caller's tenant context
            appointment_id: Appointment ID
            data: Update data

        Returns:
            Updated appointment

        Raises:
            NotFoundException: If appointment, clinician or room not found
            BadRequestException: If null is sent for a required field
            ConflictException: If the appointment can no longer be moved
            SlotUnavailableException: If the new slot overlaps another booking
        """
        current = await self._get_row(ctx, appointment_id)

        update_values: dict[str, Any] = {}
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None and field not in _CLEARABLE_FIELDS:
                raise BadRequestException(f"{field} cannot be null")
            update_values[field] = value.value if isinstance(value, Enum) else value

        if not update_values:
            # No changes, return current state
            return await self.get_appointment(ctx, appointment_id)

        try:
            if update_values.get("room_id"):
                await self._ensure_in_practice(ctx, rooms, update_values["room_id"], "Room")

            if _TIME_FIELDS & update_values.keys():
                if AppointmentStatus(current["status"]) not in RESCHEDULABLE_STATUSES:
                    raise ConflictException(
                        f"Cannot reschedule an appointment with status {current['status']}"
                    )

                clinician_id = update_values.get("clinician_id", current["clinician_id"])
                start = update_values.get("scheduled_start", current["scheduled_start"])
                duration = update_values.get("duration", current["duration"])
                end = compute_end(start, duration)
                update_values["scheduled_end"] = end

                await self._ensure_slot_free(
                    ctx,
                    clinician_id,
                    start,
                    end,
                    exclude_appointment_id=appointment_id,
                )

            update_values["updated_at"] = datetime.now(UTC)

            stmt = (
                update(appointments)
                .where(
                    and_(
                        appointments.c.id == appointment_id,
                        appointments.c.practice_id == ctx.practice_id,
                    )
                )
                .values(**update_values)
            )
            await self.db.execute(stmt)
            await self.db.commit()
        except AppException:
            await self.db.rollback()
            raise

        logger.info(
            "appointment_updated",
            practice_id=str(ctx.practice_id),
            appointment_id=str(appointment_id),
            fields=sorted(k for k in update_values if k != "updated_at"),
        )

        return await self.get_appointment(ctx, appointment_id)

    # ------------------------------------------------------------------
    # Status lifecycle
    # ------------------------------------------------------------------

    async def update_status(
        self,
        ctx: TenantContext,
        appointment_id: UUID,
        status: AppointmentStatus,
        notes: str | None = None,
    ) -> AppointmentResponse:
        """
        Move an appointment to a new status.

        Re-applying the current status is a no-op. Other changes must be in
        the transition table unless transition enforcement is disabled.
        Moving a cancelled appointment back into the diary re-checks its
        slot, since another booking may have taken it.

        Args:
            ctx: Caller's tenant context
            appointment_id: Appointment ID
            status: Requested status
            notes: Optional notes to store with the change

        Returns:
            Updated appointment

        Raises:
            NotFoundException: If appointment not found in the practice
            InvalidStatusTransitionException: If the change is not allowed
            SlotUnavailableException: If a reactivated slot is now taken
        """
        current = await self._get_row(ctx, appointment_id)
        old_status = AppointmentStatus(current["status"])

        if old_status == status:
            return await self.get_appointment(ctx, appointment_id)

        if self.enforce_transitions:
            ensure_transition(old_status, status)

        if old_status in RELEASED_STATUSES and status not in RELEASED_STATUSES:
            try:
                await self._ensure_slot_free(
                    ctx,
                    current["clinician_id"],
                    current["scheduled_start"],
                    current["scheduled_end"],
                    exclude_appointment_id=appointment_id,
                )
            except AppException:
                await self.db.rollback()
                raise

        now = datetime.now(UTC)
        update_values: dict[str, Any] = {
            "status": status.value,
            "updated_at": now,
        }

        if notes:
            update_values["notes"] = notes

        if status == AppointmentStatus.CANCELLED:
            update_values["cancelled_at"] = now

        stmt = (
            update(appointments)
            .where(
                and_(
                    appointments.c.id == appointment_id,
                    appointments.c.practice_id == ctx.practice_id,
                )
            )
            .values(**update_values)
        )
        await self.db.execute(stmt)
        await self.db.commit()

        logger.info(
            "appointment_status_changed",
            practice_id=str(ctx.practice_id),
            appointment_id=str(appointment_id),
            old_status=old_status.value,
            new_status=status.value,
            changed_by=str(ctx.user_id),
        )

        return await self.get_appointment(ctx, appointment_id)

    async def confirm(self, ctx: TenantContext, appointment_id: UUID) -> AppointmentResponse:
        """Mark the booking as confirmed by the patient."""
        return await self.update_status(ctx, appointment_id, AppointmentStatus.CONFIRMED)

    async def check_in(self, ctx: TenantContext, appointment_id: UUID) -> AppointmentResponse:
        """Mark the patient as arrived."""
        return await self.update_status(ctx, appointment_id, AppointmentStatus.ARRIVED)

    async def start(self, ctx: TenantContext, appointment_id: UUID) -> AppointmentResponse:
        """Start the consultation."""
        return await self.update_status(ctx, appointment_id, AppointmentStatus.IN_PROGRESS)

    async def complete(self, ctx: TenantContext, appointment_id: UUID) -> AppointmentResponse:
        """Complete the appointment."""
        return await self.update_status(ctx, appointment_id, AppointmentStatus.COMPLETED)

    async def cancel(self, ctx: TenantContext, appointment_id: UUID) -> AppointmentResponse:
        """Cancel the appointment, freeing its slot."""
        return await self.update_status(ctx, appointment_id, AppointmentStatus.CANCELLED)

    async def mark_dna(self, ctx: TenantContext, appointment_id: UUID) -> AppointmentResponse:
        """Record that the patient did not attend."""
        return await self.update_status(ctx, appointment_id, AppointmentStatus.DNA)

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    async def get_dashboard_stats(
        self,
        ctx: TenantContext,
        now: datetime | None = None,
        timezone: str | None = None,
    ) -> DashboardStats:
        """
        Count today's and this month's appointments for the dashboard.

        ``today_completed`` is ``today_total - today_pending``, so arrived,
        in-progress, cancelled and DNA appointments are included in it.

        Args:
            ctx: Caller's tenant context
            now: Reference time, defaults to the current time
            timezone: IANA zone for day and month boundaries, defaults to
                the practice's own zone, then the ``PRACTICE_TIMEZONE``
                setting

        Returns:
            Dashboard counts
        """
        tz = resolve_timezone(timezone or await PracticeService(self.db).get_timezone(ctx))
        today_start, tomorrow_start, month_start = dashboard_bounds(
            now or datetime.now(UTC),
            tz,
        )

        is_today = and_(
            appointments.c.scheduled_start >= today_start,
            appointments.c.scheduled_start < tomorrow_start,
        )
        status = appointments.c.status

        stmt = (
            select(
                func.count().filter(is_today).label("today_total"),
                func.count()
                .filter(and_(is_today, status.in_([s.value for s in PENDING_STATUSES])))
                .label("today_pending"),
                func.count().filter(status == AppointmentStatus.DNA.value).label("month_missed"),
                func.count()
                .filter(status == AppointmentStatus.CANCELLED.value)
                .label("month_cancelled"),
            )
            .select_from(appointments)
            .where(
                and_(
                    appointments.c.practice_id == ctx.practice_id,
                    appointments.c.scheduled_start >= month_start,
                )
            )
        )

        result = await self.db.execute(stmt)
        counts = result.mappings().one()

        today_total = counts["today_total"] or 0
        today_pending = counts["today_pending"] or 0

        return DashboardStats(
            today_total=today_total,
            today_pending=today_pending,
            today_completed=today_total - today_pending,
            month_missed=counts["month_missed"] or 0,
            month_cancelled=counts["month_cancelled"] or 0,
        )

    @staticmethod
    def list_appointment_types() -> list[AppointmentTypeInfo]:
        """Catalogue of appointment types with their default durations."""
        return [
            AppointmentTypeInfo(
                type=appointment_type,
                label=config.label,
                code=config.code,
                default_duration=config.default_duration,
                allowed_roles=list(config.allowed_roles),
            )
            for appointment_type, config in APPOINTMENT_TYPE_CONFIG.items()
        ]
