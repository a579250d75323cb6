"""Appointments table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    Uuid,
    func,
    text,
)

from gpms.models.base import metadata
from gpms.schemas.enums import AppointmentStatus, AppointmentType, enum_values_sql

appointments = Table(
    "appointments",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Tenant scope
    Column("practice_id", Uuid, ForeignKey("practices.id", ondelete="CASCADE"), nullable=False),
    # Parties
    Column("patient_id", Uuid, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False),
    Column("clinician_id", Uuid, ForeignKey("users.id"), nullable=False),
    Column("room_id", Uuid, ForeignKey("rooms.id", ondelete="SET NULL"), nullable=True),
    # Classification
    Column("appointment_type", String(32), nullable=False),
    Column("is_urgent", Boolean, nullable=False, server_default=text("false")),
    Column("reason", Text),
    Column("notes", Text),
    # Time, half-open [scheduled_start, scheduled_end)
    Column("scheduled_start", DateTime(timezone=True), nullable=False),
    Column("scheduled_end", DateTime(timezone=True), nullable=False),
    Column("duration", Integer, nullable=False),
    # Status management
    Column("status", String(20), nullable=False, server_default=text("'BOOKED'")),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("cancelled_at", DateTime(timezone=True), nullable=True),
    # Constraints
    CheckConstraint(
        f"status IN ({enum_values_sql(AppointmentStatus)})",
        name="appointments_status_check",
    ),
    CheckConstraint(
        f"appointment_type IN ({enum_values_sql(AppointmentType)})",
        name="appointments_type_check",
    ),
    CheckConstraint("duration > 0", name="appointments_duration_check"),
    CheckConstraint("scheduled_end > scheduled_start", name="appointments_range_check"),
    Index("idx_appointments_practice_start", "practice_id", "scheduled_start"),
    Index("idx_appointments_clinician_start", "practice_id", "clinician_id", "scheduled_start"),
    Index("idx_appointments_patient", "patient_id"),
)
