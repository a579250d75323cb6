"""Consulting room table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Table, Text, Uuid, func, text

from gpms.models.base import metadata

rooms = Table(
    "rooms",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("practice_id", Uuid, ForeignKey("practices.id", ondelete="CASCADE"), nullable=False),
    Column("name", Text, nullable=False),
    Column("description", Text),
    Column("is_active", Boolean, nullable=False, server_default=text("true")),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)
