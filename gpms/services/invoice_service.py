"""Invoice service for practice billing."""

import math
from collections import defaultdict
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import Select, and_, delete, func, insert, or_, select, update
from sqlalchemy.engine import RowMapping
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gpms.core.exceptions import (
    AppException,
    BadRequestException,
    ConflictException,
    NotFoundException,
)
from gpms.models.appointments import appointments
from gpms.models.invoices import invoice_items, invoices
from gpms.models.patients import patients
from gpms.models.users import users
from gpms.schemas.auth import TenantContext
from gpms.schemas.enums import InvoiceStatus
from gpms.schemas.invoices import (
    InvoiceCreate,
    InvoiceItemCreate,
    InvoiceListResponse,
    InvoiceResponse,
    InvoiceStats,
    InvoiceUpdate,
)
from gpms.services.practice_service import PracticeService
from gpms.services.scheduling import local_month, resolve_timezone

logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")

# Invoices still owed by the patient
OUTSTANDING_STATUSES = (InvoiceStatus.PENDING, InvoiceStatus.OVERDUE)

# Fields a PUT may clear by sending null
_CLEARABLE_FIELDS = frozenset({"payment_method", "notes"})


def _line_total(item: InvoiceItemCreate) -> Decimal:
    return (item.unit_price * item.quantity).quantize(CENT)


def _detail_query() -> Select:
    """Invoice rows with the patient's and author's names."""
    creator = users.alias("creator")
    return select(
        invoices,
        (patients.c.first_name + " " + patients.c.last_name).label("patient_name"),
        (creator.c.first_name + " " + creator.c.last_name).label("created_by_name"),
    ).select_from(
        invoices.join(patients, patients.c.id == invoices.c.patient_id).join(
            creator, creator.c.id == invoices.c.created_by_id
        )
    )


class InvoiceService:
    """Service for raising, settling and reporting on invoices."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def _load_items(self, invoice_ids: list[UUID]) -> dict[UUID, list[dict]]:
        """Fetch the lines of several invoices in one query."""
        if not invoice_ids:
            return {}

        query = (
            select(invoice_items)
            .where(invoice_items.c.invoice_id.in_(invoice_ids))
            .order_by(invoice_items.c.description)
        )
        result = await self.db.execute(query)

        grouped: dict[UUID, list[dict]] = defaultdict(list)
        for row in result.mappings().all():
            grouped[row["invoice_id"]].append(dict(row))
        return grouped

    async def _to_responses(self, rows: list[RowMapping]) -> list[InvoiceResponse]:
        items = await self._load_items([row["id"] for row in rows])
        return [
            InvoiceResponse.model_validate({**row, "items": items.get(row["id"], [])})
            for row in rows
        ]

    async def _get_row(self, ctx: TenantContext, invoice_id: UUID) -> RowMapping:
        query = select(invoices).where(
            and_(invoices.c.id == invoice_id, invoices.c.practice_id == ctx.practice_id)
        )
        result = await self.db.execute(query)
        row = result.mappings().first()

        if not row:
            raise NotFoundException("Invoice not found")

        return row

    async def _insert_items(self, invoice_id: UUID, items: list[InvoiceItemCreate]) -> None:
        await self.db.execute(
            insert(invoice_items),
            [
                {
                    "invoice_id": invoice_id,
                    "description": item.description,
                    "code": item.code or "",
                    "quantity": item.quantity,
                    "unit_price": item.unit_price,
                    "total": _line_total(item),
                }
                for item in items
            ],
        )

    async def list_invoices(
        self,
        ctx: TenantContext,
        search: str | None = None,
        status: InvoiceStatus | None = None,
        patient_id: UUID | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> InvoiceListResponse:
        """
        List invoices, newest issue date first.

        Args:
            ctx: Caller's tenant context
            search: Case-insensitive match on invoice number or patient name
            status: Filter by invoice status
            patient_id: Filter by patient
            start_date: Earliest issue date (inclusive)
            end_date: Latest issue date (inclusive)
            page: Page number
            page_size: Items per page

        Returns:
            Paginated invoices with their lines
        """
        conditions = [invoices.c.practice_id == ctx.practice_id]

        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(
                    invoices.c.invoice_number.ilike(pattern),
                    patients.c.first_name.ilike(pattern),
                    patients.c.last_name.ilike(pattern),
                )
            )

        if status:
            conditions.append(invoices.c.status == status.value)

        if patient_id:
            conditions.append(invoices.c.patient_id == patient_id)

        if start_date:
            conditions.append(invoices.c.issue_date >= start_date)

        if end_date:
            conditions.append(invoices.c.issue_date <= end_date)

        count_query = (
            select(func.count())
            .select_from(invoices.join(patients, patients.c.id == invoices.c.patient_id))
            .where(and_(*conditions))
        )
        total = (await self.db.execute(count_query)).scalar() or 0

        query = (
            _detail_query()
            .where(and_(*conditions))
            .order_by(invoices.c.issue_date.desc(), invoices.c.invoice_number.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await self.db.execute(query)

        return InvoiceListResponse(
            items=await self._to_responses(result.mappings().all()),
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size),
        )

    async def get_invoice(self, ctx: TenantContext, invoice_id: UUID) -> InvoiceResponse:
        """Get an invoice with its lines."""
        query = _detail_query().where(
            and_(invoices.c.id == invoice_id, invoices.c.practice_id == ctx.practice_id)
        )
        result = await self.db.execute(query)
        row = result.mappings().first()

        if not row:
            raise NotFoundException("Invoice not found")

        (invoice,) = await self._to_responses([row])
        return invoice

    async def _check_links(self, ctx: TenantContext, data: InvoiceCreate) -> None:
        """Patient and appointment must belong to the practice and to each other."""
        query = select(patients.c.id).where(
            and_(patients.c.id == data.patient_id, patients.c.practice_id == ctx.practice_id)
        )
        if (await self.db.execute(query)).scalar() is None:
            raise NotFoundException("Patient not found")

        if data.appointment_id is None:
            return

        query = select(appointments.c.patient_id).where(
            and_(
                appointments.c.id == data.appointment_id,
                appointments.c.practice_id == ctx.practice_id,
            )
        )
        appointment_patient = (await self.db.execute(query)).scalar()

        if appointment_patient is None:
            raise NotFoundException("Appointment not found")

        if appointment_patient != data.patient_id:
            raise BadRequestException("Appointment belongs to a different patient")

    async def create_invoice(self, ctx: TenantContext, data: InvoiceCreate) -> InvoiceResponse:
        """
        Raise a new pending invoice.

        The invoice and its lines are written in one transaction. Totals are
        computed from the lines: ``total = subtotal + tax - discount``.

        Raises:
            NotFoundException: If the patient or appointment is not in the practice
            BadRequestException: If the discount exceeds the amount due
            ConflictException: If the invoice number is already used
        """
        subtotal = sum((_line_total(item) for item in data.items), Decimal("0"))
        total = subtotal + data.tax - data.discount

        if total < 0:
            raise BadRequestException("Discount exceeds invoice amount")

        try:
            await self._check_links(ctx, data)

            result = await self.db.execute(
                insert(invoices)
                .values(
                    practice_id=ctx.practice_id,
                    patient_id=data.patient_id,
                    appointment_id=data.appointment_id,
                    created_by_id=ctx.user_id,
                    invoice_number=data.invoice_number,
                    issue_date=data.issue_date,
                    due_date=data.due_date,
                    status=InvoiceStatus.PENDING.value,
                    payment_method=data.payment_method.value if data.payment_method else None,
                    notes=data.notes,
                    subtotal=subtotal,
                    tax=data.tax,
                    discount=data.discount,
                    total=total,
                )
                .returning(invoices.c.id)
            )
            invoice_id = result.scalar_one()
            await self._insert_items(invoice_id, data.items)
            await self.db.commit()
        except AppException:
            await self.db.rollback()
            raise
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictException(
                f"Invoice number {data.invoice_number} is already in use"
            ) from e

        logger.info(
            "invoice_created",
            practice_id=str(ctx.practice_id),
            invoice_id=str(invoice_id),
            total=str(total),
            created_by=str(ctx.user_id),
        )

        return await self.get_invoice(ctx, invoice_id)

    async def update_invoice(
        self,
        ctx: TenantContext,
        invoice_id: UUID,
        data: InvoiceUpdate,
    ) -> InvoiceResponse:
        """
        Update status, payment details, adjustments or lines.

        New ``items`` replace the existing lines and the totals are
        recalculated, all in one transaction. Marking an invoice paid stamps
        ``paid_at``; moving it to any other status clears it.

        Raises:
            NotFoundException: If the invoice is not in the practice
            BadRequestException: If null is sent for a required field, or the
                discount exceeds the amount due
        """
        current = await self._get_row(ctx, invoice_id)
        changes = data.model_dump(exclude_unset=True)

        for field, value in changes.items():
            if value is None and field not in _CLEARABLE_FIELDS:
                raise BadRequestException(f"{field} cannot be null")

        if not changes:
            return await self.get_invoice(ctx, invoice_id)

        values: dict[str, Any] = {}

        if "status" in changes:
            values["status"] = data.status.value
            values["paid_at"] = datetime.now(UTC) if data.status == InvoiceStatus.PAID else None

        if "payment_method" in changes:
            values["payment_method"] = data.payment_method.value if data.payment_method else None

        if "notes" in changes:
            values["notes"] = data.notes

        if data.items is not None:
            values["subtotal"] = sum((_line_total(item) for item in data.items), Decimal("0"))

        if {"items", "tax", "discount"} & changes.keys():
            subtotal = values.get("subtotal", current["subtotal"])
            values["tax"] = data.tax if data.tax is not None else current["tax"]
            values["discount"] = data.discount if data.discount is not None else current["discount"]
            values["total"] = subtotal + values["tax"] - values["discount"]

            if values["total"] < 0:
                raise BadRequestException("Discount exceeds invoice amount")

        values["updated_at"] = datetime.now(UTC)

        try:
            if data.items is not None:
                await self.db.execute(
                    delete(invoice_items).where(invoice_items.c.invoice_id == invoice_id)
                )
                await self._insert_items(invoice_id, data.items)

            await self.db.execute(
                update(invoices)
                .where(
                    and_(invoices.c.id == invoice_id, invoices.c.practice_id == ctx.practice_id)
                )
                .values(**values)
            )
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise

        logger.info(
            "invoice_updated",
            practice_id=str(ctx.practice_id),
            invoice_id=str(invoice_id),
            fields=sorted(k for k in values if k != "updated_at"),
        )

        return await self.get_invoice(ctx, invoice_id)

    async def delete_invoice(self, ctx: TenantContext, invoice_id: UUID) -> None:
        """Delete an invoice and its lines."""
        await self._get_row(ctx, invoice_id)

        await self.db.execute(delete(invoice_items).where(invoice_items.c.invoice_id == invoice_id))
        await self.db.execute(
            delete(invoices).where(
                and_(invoices.c.id == invoice_id, invoices.c.practice_id == ctx.practice_id)
            )
        )
        await self.db.commit()

        logger.info(
            "invoice_deleted",
            practice_id=str(ctx.practice_id),
            invoice_id=str(invoice_id),
            deleted_by=str(ctx.user_id),
        )

    async def get_stats(self, ctx: TenantContext, now: datetime | None = None) -> InvoiceStats:
        """
        Amounts billed and collected this month, and the outstanding balance.

        The month follows the practice's local calendar and is matched on
        issue date.
        """
        tz = resolve_timezone(await PracticeService(self.db).get_timezone(ctx))
        month_start, next_month = local_month(now or datetime.now(UTC), tz)

        in_month = and_(invoices.c.issue_date >= month_start, invoices.c.issue_date < next_month)
        status = invoices.c.status

        query = select(
            func.coalesce(func.sum(invoices.c.total).filter(in_month), 0).label("billed"),
            func.coalesce(
                func.sum(invoices.c.total).filter(
                    and_(in_month, status == InvoiceStatus.PAID.value)
                ),
                0,
            ).label("collected"),
            func.coalesce(
                func.sum(invoices.c.total).filter(
                    status.in_([s.value for s in OUTSTANDING_STATUSES])
                ),
                0,
            ).label("outstanding"),
        ).where(invoices.c.practice_id == ctx.practice_id)

        totals = (await self.db.execute(query)).mappings().one()

        return InvoiceStats(
            billed_this_month=Decimal(str(totals["billed"])).quantize(CENT),
            collected_this_month=Decimal(str(totals["collected"])).quantize(CENT),
            outstanding_balance=Decimal(str(totals["outstanding"])).quantize(CENT),
        )
