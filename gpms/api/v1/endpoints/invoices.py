"""Invoice endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from gpms.dependencies import DatabaseSession, Tenant
from gpms.schemas.enums import InvoiceStatus
from gpms.schemas.invoices import (
    InvoiceCreate,
    InvoiceListResponse,
    InvoiceResponse,
    InvoiceStats,
    InvoiceUpdate,
)
from gpms.services.invoice_service import InvoiceService

router = APIRouter()


@router.get(
    "",
    response_model=InvoiceListResponse,
    status_code=status.HTTP_200_OK,
    summary="List invoices",
)
async def list_invoices(
    ctx: Tenant,
    db: DatabaseSession,
    search: str | None = Query(None, min_length=1, description="Invoice number or patient name"),
    invoice_status: InvoiceStatus | None = Query(None, alias="status"),
    patient_id: UUID | None = Query(None, alias="patientId"),
    start_date: date | None = Query(None, alias="startDate", description="Issued on or after"),
    end_date: date | None = Query(None, alias="endDate", description="Issued on or before"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
) -> InvoiceListResponse:
    """List the practice's invoices, newest first."""
    service = InvoiceService(db)
    return await service.list_invoices(
        ctx,
        search=search,
        status=invoice_status,
        patient_id=patient_id,
        start_date=start_date,
        end_date=end_date,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/stats",
    response_model=InvoiceStats,
    status_code=status.HTTP_200_OK,
    summary="Billing statistics",
)
async def get_stats(ctx: Tenant, db: DatabaseSession) -> InvoiceStats:
    """Billed and collected this month, and the outstanding balance."""
    service = InvoiceService(db)
    return await service.get_stats(ctx)


@router.get(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    status_code=status.HTTP_200_OK,
    summary="Get invoice by ID",
)
async def get_invoice(invoice_id: UUID, ctx: Tenant, db: DatabaseSession) -> InvoiceResponse:
    """Get an invoice with its lines."""
    service = InvoiceService(db)
    return await service.get_invoice(ctx, invoice_id)


@router.post(
    "",
    response_model=InvoiceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create invoice",
)
async def create_invoice(data: InvoiceCreate, ctx: Tenant, db: DatabaseSession) -> InvoiceResponse:
    """
    Raise an invoice for a patient.

    Raises:
        NotFoundException: If the patient or appointment is not in the practice
        ConflictException: If the invoice number is already used
    """
    service = InvoiceService(db)
    return await service.create_invoice(ctx, data)


@router.put(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    status_code=status.HTTP_200_OK,
    summary="Update invoice",
)
async def update_invoice(
    invoice_id: UUID,
    data: InvoiceUpdate,
    ctx: Tenant,
    db: DatabaseSession,
) -> InvoiceResponse:
    """Record payment, change adjustments or replace the invoice lines."""
    service = InvoiceService(db)
    return await service.update_invoice(ctx, invoice_id, data)


@router.delete(
    "/{invoice_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete invoice",
)
async def delete_invoice(invoice_id: UUID, ctx: Tenant, db: DatabaseSession) -> None:
    """Delete an invoice and its lines."""
    service = InvoiceService(db)
    await service.delete_invoice(ctx, invoice_id)
