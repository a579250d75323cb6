"""Form template table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    JSON,
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
from gpms.schemas.enums import FormTemplateCategory, FormTemplateStatus, enum_values_sql

form_templates = Table(
    "form_templates",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("practice_id", Uuid, ForeignKey("practices.id", ondelete="CASCADE"), nullable=False),
    Column("created_by_id", Uuid, ForeignKey("users.id"), nullable=False),
    Column("name", Text, nullable=False),
    Column("description", Text, nullable=False, server_default=text("''")),
    Column("category", String(20), nullable=False, server_default=text("'CUSTOM'")),
    Column("status", String(20), nullable=False, server_default=text("'DRAFT'")),
    Column("language", String(50), nullable=False, server_default=text("'English'")),
    Column("is_public", Boolean, nullable=False, server_default=text("false")),
    # Question definitions as built in the form designer
    Column("questions", JSON, nullable=False),
    Column("question_count", Integer, nullable=False, server_default=text("0")),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint(
        f"category IN ({enum_values_sql(FormTemplateCategory)})",
        name="form_templates_category_check",
    ),
    CheckConstraint(
        f"status IN ({enum_values_sql(FormTemplateStatus)})",
        name="form_templates_status_check",
    ),
    Index("idx_form_templates_practice_updated", "practice_id", "updated_at"),
)
