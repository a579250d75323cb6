"""Initial schema - practices, staff, patients, rooms and appointments.

Revision ID: 001
Revises:
Create Date: 2026-03-01 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

APPOINTMENT_STATUSES = "'BOOKED', 'CONFIRMED', 'ARRIVED', 'IN_PROGRESS', 'COMPLETED', 'CANCELLED', 'DNA'"
APPOINTMENT_TYPES = (
    "'GP_CONSULTATION', 'GP_EXTENDED', 'GP_TELEPHONE', 'GP_VIDEO', 'NURSE_APPOINTMENT', "
    "'NURSE_CHRONIC_DISEASE', 'HCA_BLOOD_TEST', 'HCA_HEALTH_CHECK', 'VACCINATION', "
    "'SMEAR_TEST', 'MINOR_SURGERY', 'HOME_VISIT'"
)
USER_ROLES = (
    "'SUPER_ADMIN', 'PRACTICE_ADMIN', 'GP', 'NURSE', 'HCA', 'RECEPTIONIST', 'PRACTICE_MANAGER'"
)


def _id_column() -> sa.Column:
    return sa.Column(
        "id", postgresql.UUID(), server_default=sa.text("gen_random_uuid()"), nullable=False
    )


def _timestamp_column(name: str) -> sa.Column:
    return sa.Column(
        name,
        postgresql.TIMESTAMP(timezone=True),
        server_default=sa.text("NOW()"),
        nullable=False,
    )


def upgrade() -> None:
    """Upgrade database schema."""
    # Enable pgcrypto extension
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    # Practices (tenants)
    op.create_table(
        "practices",
        _id_column(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("ods_code", sa.VARCHAR(length=10), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("phone", sa.VARCHAR(length=20), nullable=True),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        _timestamp_column("created_at"),
        _timestamp_column("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("ods_code", name="practices_ods_code_key"),
    )

    # Staff users
    op.create_table(
        "users",
        _id_column(),
        sa.Column("practice_id", postgresql.UUID(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("first_name", sa.Text(), nullable=False),
        sa.Column("last_name", sa.Text(), nullable=False),
        sa.Column("role", sa.VARCHAR(length=32), nullable=False),
        sa.Column("phone", sa.VARCHAR(length=20), nullable=True),
        sa.Column("gmc_number", sa.VARCHAR(length=20), nullable=True),
        sa.Column("nmc_number", sa.VARCHAR(length=20), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        _timestamp_column("created_at"),
        _timestamp_column("updated_at"),
        sa.Column("last_login_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.CheckConstraint(f"role IN ({USER_ROLES})", name="users_role_check"),
        sa.ForeignKeyConstraint(["practice_id"], ["practices.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="users_email_key"),
    )
    op.create_index("idx_users_practice_role", "users", ["practice_id", "role"])

    # Patients
    op.create_table(
        "patients",
        _id_column(),
        sa.Column("practice_id", postgresql.UUID(), nullable=False),
        sa.Column("nhs_number", sa.VARCHAR(length=10), nullable=True),
        sa.Column("title", sa.VARCHAR(length=20), nullable=True),
        sa.Column("first_name", sa.Text(), nullable=False),
        sa.Column("last_name", sa.Text(), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=False),
        sa.Column("gender", sa.VARCHAR(length=32), nullable=False),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("phone", sa.VARCHAR(length=20), nullable=True),
        sa.Column("mobile_phone", sa.VARCHAR(length=20), nullable=True),
        sa.Column("address_line1", sa.Text(), nullable=True),
        sa.Column("address_line2", sa.Text(), nullable=True),
        sa.Column("city", sa.Text(), nullable=True),
        sa.Column("postcode", sa.VARCHAR(length=10), nullable=True),
        sa.Column("registered_gp_id", postgresql.UUID(), nullable=True),
        sa.Column("status", sa.VARCHAR(length=20), server_default="ACTIVE", nullable=False),
        _timestamp_column("created_at"),
        _timestamp_column("updated_at"),
        sa.CheckConstraint(
            "gender IN ('MALE', 'FEMALE', 'OTHER', 'PREFER_NOT_TO_SAY')",
            name="patients_gender_check",
        ),
        sa.CheckConstraint(
            "status IN ('ACTIVE', 'INACTIVE', 'DECEASED', 'TRANSFERRED')",
            name="patients_status_check",
        ),
        sa.ForeignKeyConstraint(["practice_id"], ["practices.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["registered_gp_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_patients_practice_last_name", "patients", ["practice_id", "last_name"])
    op.create_index("idx_patients_practice_nhs_number", "patients", ["practice_id", "nhs_number"])

    # Consulting rooms
    op.create_table(
        "rooms",
        _id_column(),
        sa.Column("practice_id", postgresql.UUID(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        _timestamp_column("created_at"),
        sa.ForeignKeyConstraint(["practice_id"], ["practices.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )

    # Appointments
    op.create_table(
        "appointments",
        _id_column(),
        sa.Column("practice_id", postgresql.UUID(), nullable=False),
        sa.Column("patient_id", postgresql.UUID(), nullable=False),
        sa.Column("clinician_id", postgresql.UUID(), nullable=False),
        sa.Column("room_id", postgresql.UUID(), nullable=True),
        sa.Column("appointment_type", sa.VARCHAR(length=32), nullable=False),
        sa.Column("is_urgent", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("scheduled_start", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("scheduled_end", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("status", sa.VARCHAR(length=20), server_default="BOOKED", nullable=False),
        _timestamp_column("created_at"),
        _timestamp_column("updated_at"),
        sa.Column("cancelled_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.CheckConstraint(f"status IN ({APPOINTMENT_STATUSES})", name="appointments_status_check"),
        sa.CheckConstraint(
            f"appointment_type IN ({APPOINTMENT_TYPES})", name="appointments_type_check"
        ),
        sa.CheckConstraint("duration > 0", name="appointments_duration_check"),
        sa.CheckConstraint("scheduled_end > scheduled_start", name="appointments_range_check"),
        sa.ForeignKeyConstraint(["practice_id"], ["practices.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["patient_id"], ["patients.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["clinician_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["room_id"], ["rooms.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )

    # Create indexes
    op.create_index(
        "idx_appointments_practice_start", "appointments", ["practice_id", "scheduled_start"]
    )
    # Serves the clinician overlap check
    op.create_index(
        "idx_appointments_clinician_start",
        "appointments",
        ["practice_id", "clinician_id", "scheduled_start"],
    )
    op.create_index("idx_appointments_patient", "appointments", ["patient_id"])


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index("idx_appointments_patient", table_name="appointments")
    op.drop_index("idx_appointments_clinician_start", table_name="appointments")
    op.drop_index("idx_appointments_practice_start", table_name="appointments")
    op.drop_table("appointments")

    op.drop_table("rooms")

    op.drop_index("idx_patients_practice_nhs_number", table_name="patients")
    op.drop_index("idx_patients_practice_last_name", table_name="patients")
    op.drop_table("patients")

    op.drop_index("idx_users_practice_role", table_name="users")
    op.drop_table("users")

    op.drop_table("practices")
