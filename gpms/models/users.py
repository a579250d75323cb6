"""Staff user table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
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
from gpms.schemas.enums import UserRole, enum_values_sql

users = Table(
    "users",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("practice_id", Uuid, ForeignKey("practices.id", ondelete="CASCADE"), nullable=False),
    # Login identity
    Column("email", Text, nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    # Profile
    Column("first_name", Text, nullable=False),
    Column("last_name", Text, nullable=False),
    Column("role", String(32), nullable=False),
    Column("phone", String(20)),
    # Professional registration numbers (GMC for doctors, NMC for nurses)
    Column("gmc_number", String(20)),
    Column("nmc_number", String(20)),
    # Account state
    Column("is_active", Boolean, nullable=False, server_default=text("true")),
    # Audit
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("last_login_at", DateTime(timezone=True)),
    CheckConstraint(f"role IN ({enum_values_sql(UserRole)})", name="users_role_check"),
    Index("idx_users_practice_role", "practice_id", "role"),
)
