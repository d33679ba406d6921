"""Access to the application's reminder hub."""

from fastapi import HTTPException, Request

from backend.app.services.reminder_hub import ReminderHub


def get_reminder_hub(request: Request) -> ReminderHub:
    hub = getattr(request.app.state, "reminder_hub", None)
    if hub is None:
        raise HTTPException(status_code=503, detail="Reminder service is not running")
    return hub


async def notify_leads_changed(request: Request) -> None:
    """Re-reconcile open reminder sessions after a lead or note write."""
    hub = getattr(request.app.state, "reminder_hub", None)
    if hub is None:
        return
    await hub.leads_changed()
