"""Reminder schemas delivered to the presentation layer."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class ContactInfo(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class ReminderEvent(BaseModel):
    """A fired reminder: the lead's identifying fields plus its latest note."""

    lead_id: int
    lead_name: str
    contact_info: ContactInfo
    note_text: Optional[str] = None
    due_at: datetime
    fired_at: datetime

    model_config = ConfigDict(frozen=True)


class ArmedReminderRead(BaseModel):
    lead_id: int
    lead_name: str
    due_at: datetime
    clamped: bool


class ReminderSessionRead(BaseModel):
    armed: List[ArmedReminderRead]
    current: Optional[ReminderEvent] = None
    backlog: int = 0
