"""Invoice and invoice item table models using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
    func,
    text,
)

from gpms.models.base import metadata
from gpms.schemas.enums import InvoiceStatus, PaymentMethod, enum_values_sql

# Money is stored as pounds with two decimal places
MONEY = Numeric(10, 2)

invoices = Table(
    "invoices",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("practice_id", Uuid, ForeignKey("practices.id", ondelete="CASCADE"), nullable=False),
    Column("patient_id", Uuid, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False),
    Column("appointment_id", Uuid, ForeignKey("appointments.id", ondelete="SET NULL")),
    Column("created_by_id", Uuid, ForeignKey("users.id"), nullable=False),
    Column("invoice_number", String(50), nullable=False),
    Column("issue_date", Date, nullable=False),
    Column("due_date", Date, nullable=False),
    Column("status", String(20), nullable=False, server_default=text("'PENDING'")),
    Column("payment_method", String(20)),
    Column("notes", Text),
    # Totals; total = subtotal + tax - discount
    Column("subtotal", MONEY, nullable=False, server_default=text("0")),
    Column("tax", MONEY, nullable=False, server_default=text("0")),
    Column("discount", MONEY, nullable=False, server_default=text("0")),
    Column("total", MONEY, nullable=False, server_default=text("0")),
    Column("paid_at", DateTime(timezone=True)),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint(f"status IN ({enum_values_sql(InvoiceStatus)})", name="invoices_status_check"),
    CheckConstraint(
        f"payment_method IN ({enum_values_sql(PaymentMethod)})",
        name="invoices_payment_method_check",
    ),
    UniqueConstraint("practice_id", "invoice_number", name="invoices_practice_number_key"),
    Index("idx_invoices_practice_issue_date", "practice_id", "issue_date"),
    Index("idx_invoices_patient", "patient_id"),
)

invoice_items = Table(
    "invoice_items",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("invoice_id", Uuid, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
    Column("description", Text, nullable=False),
    Column("code", String(50), nullable=False, server_default=text("''")),
    Column("quantity", Integer, nullable=False),
    Column("unit_price", MONEY, nullable=False),
    Column("total", MONEY, nullable=False),
    CheckConstraint("quantity > 0", name="invoice_items_quantity_check"),
    Index("idx_invoice_items_invoice", "invoice_id"),
)
