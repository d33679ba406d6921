"""Lead schemas for create and read operations."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from backend.app.core.statuses import DEFAULT_STATUS, canonical_label

# Older clients posted the action timestamp under other names.
NEXT_ACTION_ALIASES = AliasChoices("next_action_at", "next_action_date", "follow_up_at")


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class LeadBase(BaseModel):
    name: str = Field(min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    landlord_name: Optional[str] = None
    status: str = DEFAULT_STATUS.value
    next_action_at: Optional[datetime] = Field(default=None, validation_alias=NEXT_ACTION_ALIASES)

    @field_validator("status", mode="before")
    @classmethod
    def normalise_status(cls, v):
        return canonical_label(v)

    @field_validator("next_action_at", mode="before")
    @classmethod
    def blank_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("next_action_at")
    @classmethod
    def to_utc(cls, v):
        return _utc(v)


class LeadCreate(LeadBase):
    """Schema for lead creation requests, optionally with a first note."""

    note: Optional[str] = None


class LeadUpdate(BaseModel):
    """Schema for lead updates with partial fields."""

    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    landlord_name: Optional[str] = None
    status: Optional[str] = None
    next_action_at: Optional[datetime] = Field(default=None, validation_alias=NEXT_ACTION_ALIASES)
    clear_next_action: bool = False

    @field_validator("status", mode="before")
    @classmethod
    def normalise_status(cls, v):
        if v is None:
            return None
        return canonical_label(v)

    @field_validator("next_action_at")
    @classmethod
    def to_utc(cls, v):
        return _utc(v)


class LeadRead(BaseModel):
    """Schema for lead responses."""

    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    landlord_name: Optional[str] = None
    status: str
    next_action_at: Optional[datetime] = None
    created_at: datetime
    owner_id: int

    @field_validator("next_action_at", "created_at", mode="before")
    @classmethod
    def ensure_timezone(cls, v):
        if isinstance(v, datetime) and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    model_config = ConfigDict(from_attributes=True)
