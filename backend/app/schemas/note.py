"""Note schemas for lead notes."""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator


class NoteBase(BaseModel):
    content: str = Field(min_length=1)


class NoteCreate(NoteBase):
    """Schema for creating a note."""


class NoteRead(NoteBase):
    """Schema for reading a note."""

    id: int
    lead_id: int
    owner_id: int
    created_at: datetime

    @field_validator("created_at", mode="before")
    @classmethod
    def ensure_timezone(cls, v):
        if isinstance(v, datetime) and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    model_config = ConfigDict(from_attributes=True)
