"""Invoice schemas for request/response validation."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from gpms.schemas.enums import InvoiceStatus, PaymentMethod


def _normalise_payment_method(value: Any) -> Any:
    """Accept display labels such as ``Bank Transfer`` as well as enum values."""
    if isinstance(value, str):
        return value.strip().upper().replace(" ", "_")
    return value


class InvoiceItemCreate(BaseModel):
    """A billable line on an invoice."""

    description: str = Field(..., min_length=1, max_length=500)
    code: str | None = Field(None, max_length=50)
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)


class InvoiceCreate(BaseModel):
    """Schema for raising an invoice."""

    patient_id: UUID
    appointment_id: UUID | None = None
    invoice_number: str = Field(..., min_length=1, max_length=50)
    issue_date: date
    due_date: date
    payment_method: PaymentMethod | None = None
    notes: str | None = Field(None, max_length=2000)
    items: list[InvoiceItemCreate] = Field(..., min_length=1)
    tax: Decimal = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    discount: Decimal = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)

    @field_validator("payment_method", mode="before")
    @classmethod
    def normalise_payment_method(cls, v: Any) -> Any:
        """Accept labels such as ``Bank Transfer``."""
        return _normalise_payment_method(v)

    @model_validator(mode="after")
    def check_dates(self) -> "InvoiceCreate":
        """An invoice cannot fall due before it is issued."""
        if self.due_date < self.issue_date:
            raise ValueError("due_date must not be before issue_date")
        return self


class InvoiceUpdate(BaseModel):
    """
    Schema for updating an invoice.

    Sending ``items`` replaces every line and recalculates the totals.
    """

    status: InvoiceStatus | None = None
    payment_method: PaymentMethod | None = None
    notes: str | None = Field(None, max_length=2000)
    items: list[InvoiceItemCreate] | None = Field(None, min_length=1)
    tax: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    discount: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)

    @field_validator("payment_method", mode="before")
    @classmethod
    def normalise_payment_method(cls, v: Any) -> Any:
        """Accept labels such as ``Bank Transfer``."""
        return _normalise_payment_method(v)


class InvoiceItemResponse(BaseModel):
    """Invoice line in API responses."""

    id: UUID
    description: str
    code: str
    quantity: int
    unit_price: Decimal
    total: Decimal

    model_config = {"from_attributes": True}


class InvoiceResponse(BaseModel):
    """Schema for invoice response."""

    id: UUID
    practice_id: UUID
    patient_id: UUID
    appointment_id: UUID | None = None
    created_by_id: UUID
    invoice_number: str
    issue_date: date
    due_date: date
    status: InvoiceStatus
    payment_method: PaymentMethod | None = None
    notes: str | None = None
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal
    paid_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    patient_name: str
    created_by_name: str
    items: list[InvoiceItemResponse] = []

    model_config = {"from_attributes": True}


class InvoiceListResponse(BaseModel):
    """Schema for paginated invoice list response."""

    items: list[InvoiceResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class InvoiceStats(BaseModel):
    """Billing totals for the practice dashboard."""

    billed_this_month: Decimal
    collected_this_month: Decimal
    # Pending and overdue invoices of any date
    outstanding_balance: Decimal
