"""Patient table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    Uuid,
    func,
    text,
)

from gpms.models.base import metadata
from gpms.schemas.enums import Gender, PatientStatus, enum_values_sql

patients = Table(
    "patients",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("practice_id", Uuid, ForeignKey("practices.id", ondelete="CASCADE"), nullable=False),
    # Identity
    Column("nhs_number", String(10)),
    Column("title", String(20)),
    Column("first_name", Text, nullable=False),
    Column("last_name", Text, nullable=False),
    Column("date_of_birth", Date, nullable=False),
    Column("gender", String(32), nullable=False),
    # Contact
    Column("email", Text),
    Column("phone", String(20)),
    Column("mobile_phone", String(20)),
    Column("address_line1", Text),
    Column("address_line2", Text),
    Column("city", Text),
    Column("postcode", String(10)),
    # Registration
    Column("registered_gp_id", Uuid, ForeignKey("users.id", ondelete="SET NULL")),
    Column("status", String(20), nullable=False, server_default=text("'ACTIVE'")),
    # Audit
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint(f"gender IN ({enum_values_sql(Gender)})", name="patients_gender_check"),
    CheckConstraint(f"status IN ({enum_values_sql(PatientStatus)})", name="patients_status_check"),
    Index("idx_patients_practice_last_name", "practice_id", "last_name"),
    Index("idx_patients_practice_nhs_number", "practice_id", "nhs_number"),
)
