"""Room schemas for request/response validation."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class RoomCreate(BaseModel):
    """Schema for adding a consulting room."""

    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)


class RoomResponse(RoomCreate):
    """Schema for room response."""

    id: UUID
    practice_id: UUID
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
