"""Form template schemas for request/response validation."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from gpms.schemas.enums import FormTemplateCategory, FormTemplateStatus


class FormTemplateCreate(BaseModel):
    """Schema for creating a form template."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=2000)
    category: FormTemplateCategory = FormTemplateCategory.CUSTOM
    status: FormTemplateStatus = FormTemplateStatus.DRAFT
    language: str = Field("English", min_length=1, max_length=50)
    is_public: bool = False
    # Question definitions are stored as given
    questions: list[dict[str, Any]] = []


class FormTemplateUpdate(BaseModel):
    """Schema for editing a form template."""

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    category: FormTemplateCategory | None = None
    status: FormTemplateStatus | None = None
    language: str | None = Field(None, min_length=1, max_length=50)
    is_public: bool | None = None
    questions: list[dict[str, Any]] | None = None


class FormTemplateResponse(BaseModel):
    """Schema for form template response."""

    id: UUID
    practice_id: UUID
    created_by_id: UUID
    created_by_name: str
    name: str
    description: str
    category: FormTemplateCategory
    status: FormTemplateStatus
    language: str
    is_public: bool
    questions: list[dict[str, Any]]
    question_count: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class FormTemplateListResponse(BaseModel):
    """Schema for paginated form template list response."""

    items: list[FormTemplateResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
