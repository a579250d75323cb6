"""Practice time zone, invoices and form templates.

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _money(name: str, **kwargs) -> sa.Column:
    return sa.Column(name, sa.Numeric(10, 2), nullable=False, **kwargs)


def upgrade() -> None:
    """Upgrade database schema."""
    # NULL means the deployment's PRACTICE_TIMEZONE
    op.add_column("practices", sa.Column("timezone", sa.VARCHAR(length=64), nullable=True))

    op.create_table(
        "invoices",
        sa.Column(
            "id", postgresql.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False
        ),
        sa.Column("practice_id", postgresql.UUID(), nullable=False),
        sa.Column("patient_id", postgresql.UUID(), nullable=False),
        sa.Column("appointment_id", postgresql.UUID(), nullable=True),
        sa.Column("created_by_id", postgresql.UUID(), nullable=False),
        sa.Column("invoice_number", sa.VARCHAR(length=50), nullable=False),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("status", sa.VARCHAR(length=20), server_default="PENDING", nullable=False),
        sa.Column("payment_method", sa.VARCHAR(length=20), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _money("subtotal", server_default="0"),
        _money("tax", server_default="0"),
        _money("discount", server_default="0"),
        _money("total", server_default="0"),
        sa.Column("paid_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "status IN ('PENDING', 'PAID', 'OVERDUE', 'CANCELLED')",
            name="invoices_status_check",
        ),
        sa.CheckConstraint(
            "payment_method IN ('CASH', 'CARD', 'BANK_TRANSFER', 'CHEQUE', 'INSURANCE')",
            name="invoices_payment_method_check",
        ),
        sa.ForeignKeyConstraint(["practice_id"], ["practices.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["patient_id"], ["patients.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["appointment_id"], ["appointments.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["created_by_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("practice_id", "invoice_number", name="invoices_practice_number_key"),
    )
    op.create_index(
        "idx_invoices_practice_issue_date", "invoices", ["practice_id", "issue_date"]
    )
    op.create_index("idx_invoices_patient", "invoices", ["patient_id"])

    op.create_table(
        "invoice_items",
        sa.Column(
            "id", postgresql.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False
        ),
        sa.Column("invoice_id", postgresql.UUID(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("code", sa.VARCHAR(length=50), server_default="", nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        _money("unit_price"),
        _money("total"),
        sa.CheckConstraint("quantity > 0", name="invoice_items_quantity_check"),
        sa.ForeignKeyConstraint(["invoice_id"], ["invoices.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_invoice_items_invoice", "invoice_items", ["invoice_id"])

    op.create_table(
        "form_templates",
        sa.Column(
            "id", postgresql.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False
        ),
        sa.Column("practice_id", postgresql.UUID(), nullable=False),
        sa.Column("created_by_id", postgresql.UUID(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), server_default="", nullable=False),
        sa.Column("category", sa.VARCHAR(length=20), server_default="CUSTOM", nullable=False),
        sa.Column("status", sa.VARCHAR(length=20), server_default="DRAFT", nullable=False),
        sa.Column("language", sa.VARCHAR(length=50), server_default="English", nullable=False),
        sa.Column("is_public", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("questions", postgresql.JSON(), nullable=False),
        sa.Column("question_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "category IN ('INTAKE', 'ASSESSMENT', 'CONSENT', 'QUESTIONNAIRE', 'CUSTOM')",
            name="form_templates_category_check",
        ),
        sa.CheckConstraint(
            "status IN ('DRAFT', 'ACTIVE', 'ARCHIVED')",
            name="form_templates_status_check",
        ),
        sa.ForeignKeyConstraint(["practice_id"], ["practices.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_form_templates_practice_updated", "form_templates", ["practice_id", "updated_at"]
    )


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index("idx_form_templates_practice_updated", table_name="form_templates")
    op.drop_table("form_templates")

    op.drop_index("idx_invoice_items_invoice", table_name="invoice_items")
    op.drop_table("invoice_items")

    op.drop_index("idx_invoices_patient", table_name="invoices")
    op.drop_index("idx_invoices_practice_issue_date", table_name="invoices")
    op.drop_table("invoices")

    op.drop_column("practices", "timezone")
