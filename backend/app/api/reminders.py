"""Reminder session endpoints for the signed-in viewer."""

from fastapi import APIRouter, Depends, HTTPException

from backend.app.core.records import read_field
from backend.app.dependencies.auth import get_current_user
from backend.app.dependencies.reminders import get_reminder_hub
from backend.app.models.user import User
from backend.app.schemas.reminder import ArmedReminderRead, ReminderEvent, ReminderSessionRead
from backend.app.services.reminder_hub import ReminderHub, ReminderSession

router = APIRouter(prefix="/reminders", tags=["reminders"])


def _session_read(session: ReminderSession) -> ReminderSessionRead:
    armed = [
        ArmedReminderRead(
            lead_id=entry.lead_id,
            lead_name=read_field(entry.lead, "name") or f"Lead {entry.lead_id}",
            due_at=entry.due_at,
            clamped=entry.clamped,
        )
        for entry in session.scheduler.armed_reminders()
    ]
    return ReminderSessionRead(armed=armed, current=session.inbox.current, backlog=session.inbox.backlog)


def _get_open_session(hub: ReminderHub, viewer: User) -> ReminderSession:
    session = hub.get_session(viewer.id)
    if session is None:
        raise HTTPException(status_code=404, detail="No reminder session")
    return session


@router.post("/session", response_model=ReminderSessionRead)
async def open_session(current_user: User = Depends(get_current_user), hub: ReminderHub = Depends(get_reminder_hub)):
    session = await hub.open_session(current_user.id)
    return _session_read(session)


@router.get("/session", response_model=ReminderSessionRead)
async def read_session(current_user: User = Depends(get_current_user), hub: ReminderHub = Depends(get_reminder_hub)):
    return _session_read(_get_open_session(hub, current_user))


@router.get("/current", response_model=ReminderEvent | None)
async def current_reminder(current_user: User = Depends(get_current_user), hub: ReminderHub = Depends(get_reminder_hub)):
    return _get_open_session(hub, current_user).inbox.current


@router.post("/acknowledge", response_model=ReminderEvent | None)
async def acknowledge_reminder(current_user: User = Depends(get_current_user), hub: ReminderHub = Depends(get_reminder_hub)):
    return _get_open_session(hub, current_user).inbox.acknowledge()


@router.delete("/session")
async def close_session(current_user: User = Depends(get_current_user), hub: ReminderHub = Depends(get_reminder_hub)):
    closed = await hub.close_session(current_user.id)
    return {"status": "closed" if closed else "not_open"}
