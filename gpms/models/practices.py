"""Practice (tenant) table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, String, Table, Text, Uuid, func, text

from gpms.models.base import metadata

practices = Table(
    "practices",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("name", Text, nullable=False),
    # NHS Organisation Data Service code
    Column("ods_code", String(10), unique=True),
    Column("address", Text),
    Column("phone", String(20)),
    Column("email", Text),
    # IANA zone for calendar boundaries; NULL falls back to PRACTICE_TIMEZONE
    Column("timezone", String(64)),
    Column("is_active", Boolean, nullable=False, server_default=text("true")),
    # Audit
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)
