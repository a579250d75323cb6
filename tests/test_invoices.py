"""Tests for invoices, their lines and billing statistics."""

from datetime import UTC, date, datetime
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from conftest import create_patient
from gpms.core.exceptions import BadRequestException, ConflictException, NotFoundException
from gpms.models.invoices import invoice_items
from gpms.schemas.appointments import AppointmentCreate
from gpms.schemas.enums import AppointmentType, InvoiceStatus, PaymentMethod
from gpms.schemas.invoices import InvoiceCreate, InvoiceItemCreate, InvoiceUpdate
from gpms.services.appointment_service import AppointmentService
from gpms.services.invoice_service import InvoiceService


def line(description: str, price: str, quantity: int = 1, code: str | None = None):
    return InvoiceItemCreate(
        description=description, code=code, quantity=quantity, unit_price=Decimal(price)
    )


def invoice(patient_id, number: str = "INV-0001", **overrides) -> InvoiceCreate:
    values = {
        "patient_id": patient_id,
        "invoice_number": number,
        "issue_date": date(2026, 3, 2),
        "due_date": date(2026, 4, 1),
        "items": [
            line("Travel vaccination", "12.50", quantity=2, code="VAC"),
            line("Fit note", "30.00"),
        ],
        "tax": Decimal("5.00"),
        "discount": Decimal("2.50"),
    }
    values.update(overrides)
    return InvoiceCreate(**values)


async def item_count(db_session) -> int:
    result = await db_session.execute(select(func.count()).select_from(invoice_items))
    return result.scalar_one()


@pytest.mark.asyncio
async def test_create_invoice_computes_totals(db_session, ctx, patient_id):
    """Line totals, subtotal and total are derived from the items."""
    created = await InvoiceService(db_session).create_invoice(ctx, invoice(patient_id))

    assert created.status == InvoiceStatus.PENDING
    assert created.subtotal == Decimal("55.00")
    assert created.total == Decimal("57.50")
    assert created.patient_name == "Jane Smith"
    assert created.created_by_id == ctx.user_id
    assert [(i.description, i.code, i.total) for i in created.items] == [
        ("Fit note", "", Decimal("30.00")),
        ("Travel vaccination", "VAC", Decimal("25.00")),
    ]


@pytest.mark.asyncio
async def test_duplicate_invoice_number_leaves_no_lines_behind(db_session, ctx, patient_id):
    """A failed create rolls back the invoice and its lines together."""
    service = InvoiceService(db_session)
    await service.create_invoice(ctx, invoice(patient_id))

    with pytest.raises(ConflictException):
        await service.create_invoice(ctx, invoice(patient_id))

    assert await item_count(db_session) == 2


@pytest.mark.asyncio
async def test_invoice_numbers_are_per_practice(db_session, ctx, other_ctx, patient_id):
    """Two practices can use the same invoice number."""
    other_patient = await create_patient(db_session, other_ctx.practice_id)
    service = InvoiceService(db_session)

    await service.create_invoice(ctx, invoice(patient_id))
    other = await service.create_invoice(other_ctx, invoice(other_patient))

    assert other.invoice_number == "INV-0001"


@pytest.mark.asyncio
async def test_discount_cannot_exceed_amount(db_session, ctx, patient_id):
    """A negative total is refused."""
    with pytest.raises(BadRequestException):
        await InvoiceService(db_session).create_invoice(
            ctx, invoice(patient_id, discount=Decimal("100.00"))
        )


@pytest.mark.asyncio
async def test_invoice_for_unknown_patient(db_session, ctx, other_ctx):
    """The patient must be registered with the caller's practice."""
    other_patient = await create_patient(db_session, other_ctx.practice_id)

    with pytest.raises(NotFoundException):
        await InvoiceService(db_session).create_invoice(ctx, invoice(other_patient))


@pytest.mark.asyncio
async def test_invoice_appointment_must_match_patient(db_session, ctx, patient_id, clinician_id):
    """A linked appointment has to be the same patient's."""
    appointment = await AppointmentService(db_session).create_appointment(
        ctx,
        AppointmentCreate(
            patient_id=patient_id,
            clinician_id=clinician_id,
            appointment_type=AppointmentType.MINOR_SURGERY,
            scheduled_start=datetime(2026, 3, 2, 10, 0, tzinfo=UTC),
        ),
    )
    someone_else = await create_patient(db_session, ctx.practice_id, last_name="Jones")
    service = InvoiceService(db_session)

    with pytest.raises(BadRequestException):
        await service.create_invoice(ctx, invoice(someone_else, appointment_id=appointment.id))

    linked = await service.create_invoice(ctx, invoice(patient_id, appointment_id=appointment.id))
    assert linked.appointment_id == appointment.id


@pytest.mark.asyncio
async def test_replacing_items_recalculates(db_session, ctx, patient_id):
    """New lines replace the old ones; tax and discount are kept."""
    service = InvoiceService(db_session)
    created = await service.create_invoice(ctx, invoice(patient_id))

    updated = await service.update_invoice(
        ctx,
        created.id,
        InvoiceUpdate(items=[line("Insurance report", "80.00")]),
    )

    assert [i.description for i in updated.items] == ["Insurance report"]
    assert updated.subtotal == Decimal("80.00")
    assert updated.total == Decimal("82.50")
    assert await item_count(db_session) == 1


@pytest.mark.asyncio
async def test_adjusting_tax_keeps_lines(db_session, ctx, patient_id):
    """Changing tax alone recomputes the total from the stored subtotal."""
    service = InvoiceService(db_session)
    created = await service.create_invoice(ctx, invoice(patient_id))

    updated = await service.update_invoice(ctx, created.id, InvoiceUpdate(tax=Decimal("0")))

    assert updated.total == Decimal("52.50")
    assert len(updated.items) == 2


@pytest.mark.asyncio
async def test_paying_an_invoice(db_session, ctx, patient_id):
    """Marking paid stamps paid_at; reopening clears it."""
    service = InvoiceService(db_session)
    created = await service.create_invoice(ctx, invoice(patient_id))

    paid = await service.update_invoice(
        ctx,
        created.id,
        InvoiceUpdate(status=InvoiceStatus.PAID, payment_method=PaymentMethod.CARD),
    )
    assert paid.status == InvoiceStatus.PAID
    assert paid.payment_method == PaymentMethod.CARD
    assert paid.paid_at is not None

    reopened = await service.update_invoice(
        ctx, created.id, InvoiceUpdate(status=InvoiceStatus.PENDING)
    )
    assert reopened.paid_at is None


@pytest.mark.asyncio
async def test_update_rejects_null_status(db_session, ctx, patient_id):
    """Only notes and payment method can be cleared."""
    service = InvoiceService(db_session)
    created = await service.create_invoice(ctx, invoice(patient_id, notes="Posted"))

    with pytest.raises(BadRequestException):
        await service.update_invoice(
            ctx, created.id, InvoiceUpdate.model_validate({"status": None})
        )

    cleared = await service.update_invoice(
        ctx, created.id, InvoiceUpdate.model_validate({"notes": None})
    )
    assert cleared.notes is None


@pytest.mark.asyncio
async def test_invoices_are_tenant_scoped(db_session, ctx, other_ctx, patient_id):
    """Another practice can neither read nor delete the invoice."""
    service = InvoiceService(db_session)
    created = await service.create_invoice(ctx, invoice(patient_id))

    with pytest.raises(NotFoundException):
        await service.get_invoice(other_ctx, created.id)

    with pytest.raises(NotFoundException):
        await service.delete_invoice(other_ctx, created.id)

    assert (await service.list_invoices(other_ctx)).total == 0


@pytest.mark.asyncio
async def test_list_invoices_filters(db_session, ctx, patient_id):
    """Search covers invoice number and patient name; dates filter on issue date."""
    service = InvoiceService(db_session)
    jones = await create_patient(db_session, ctx.practice_id, last_name="Jones")
    await service.create_invoice(ctx, invoice(patient_id, "INV-0001"))
    await service.create_invoice(ctx, invoice(jones, "INV-0002", issue_date=date(2026, 3, 9)))
    await service.create_invoice(ctx, invoice(jones, "INV-0003", issue_date=date(2026, 2, 9)))

    everything = await service.list_invoices(ctx)
    assert [i.invoice_number for i in everything.items] == ["INV-0002", "INV-0001", "INV-0003"]

    by_name = await service.list_invoices(ctx, search="jon")
    assert {i.invoice_number for i in by_name.items} == {"INV-0002", "INV-0003"}

    by_number = await service.list_invoices(ctx, search="0001")
    assert [i.patient_name for i in by_number.items] == ["Jane Smith"]

    march = await service.list_invoices(
        ctx, start_date=date(2026, 3, 1), end_date=date(2026, 3, 31)
    )
    assert march.total == 2

    page = await service.list_invoices(ctx, page=2, page_size=2)
    assert [i.invoice_number for i in page.items] == ["INV-0003"]
    assert page.total_pages == 2


@pytest.mark.asyncio
async def test_billing_stats(db_session, ctx, patient_id):
    """Billed and collected follow the month; outstanding covers all dates."""
    service = InvoiceService(db_session)

    async def raise_invoice(number, issued, price, status=None):
        created = await service.create_invoice(
            ctx,
            invoice(
                patient_id,
                number,
                issue_date=issued,
                due_date=issued,
                items=[line("Private letter", price)],
                tax=Decimal("0"),
                discount=Decimal("0"),
            ),
        )
        if status:
            await service.update_invoice(ctx, created.id, InvoiceUpdate(status=status))

    await raise_invoice("A", date(2026, 3, 2), "100.00", InvoiceStatus.PAID)
    await raise_invoice("B", date(2026, 3, 10), "40.00")
    await raise_invoice("C", date(2026, 2, 20), "25.00", InvoiceStatus.OVERDUE)
    await raise_invoice("D", date(2026, 3, 5), "10.00", InvoiceStatus.CANCELLED)

    stats = await service.get_stats(ctx, now=datetime(2026, 3, 15, 12, 0, tzinfo=UTC))

    assert stats.billed_this_month == Decimal("150.00")
    assert stats.collected_this_month == Decimal("100.00")
    assert stats.outstanding_balance == Decimal("65.00")


@pytest.mark.asyncio
async def test_invoice_over_http(client: AsyncClient, auth_headers: dict, patient_id):
    """Create, read, settle and delete an invoice through the API."""
    payload = {
        "patient_id": str(patient_id),
        "invoice_number": "INV-0100",
        "issue_date": "2026-03-02",
        "due_date": "2026-03-30",
        "payment_method": "Bank Transfer",
        "items": [{"description": "Medical report", "quantity": 1, "unit_price": "45.00"}],
    }

    response = await client.post("/api/v1/invoices", json=payload, headers=auth_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["payment_method"] == "BANK_TRANSFER"
    assert Decimal(data["total"]) == Decimal("45.00")
    invoice_id = data["id"]

    response = await client.post("/api/v1/invoices", json=payload, headers=auth_headers)
    assert response.status_code == 409

    response = await client.put(
        f"/api/v1/invoices/{invoice_id}", json={"status": "PAID"}, headers=auth_headers
    )
    assert response.status_code == 200
    assert response.json()["paid_at"] is not None

    response = await client.get("/api/v1/invoices/stats", headers=auth_headers)
    assert response.status_code == 200
    assert set(response.json()) == {
        "billed_this_month",
        "collected_this_month",
        "outstanding_balance",
    }

    response = await client.get("/api/v1/invoices", params={"status": "PAID"}, headers=auth_headers)
    assert [i["id"] for i in response.json()["items"]] == [invoice_id]

    response = await client.delete(f"/api/v1/invoices/{invoice_id}", headers=auth_headers)
    assert response.status_code == 204

    response = await client.get(f"/api/v1/invoices/{invoice_id}", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_invalid_invoice_payload(client: AsyncClient, auth_headers: dict, patient_id):
    """Invoices need at least one line and cannot fall due before issue."""
    base = {
        "patient_id": str(patient_id),
        "invoice_number": "INV-0200",
        "issue_date": "2026-03-02",
        "due_date": "2026-03-30",
        "items": [{"description": "Medical report", "quantity": 1, "unit_price": "45.00"}],
    }

    for override in ({"items": []}, {"due_date": "2026-03-01"}, {"payment_method": "Bitcoin"}):
        response = await client.post(
            "/api/v1/invoices", json={**base, **override}, headers=auth_headers
        )
        assert response.status_code == 422
