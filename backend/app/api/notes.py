"""Lead notes endpoints. Notes are append-only."""

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from backend.app.dependencies.auth import get_current_user
from backend.app.dependencies.reminders import notify_leads_changed
from backend.app.db.session import get_db
from backend.app.models.lead import Lead
from backend.app.models.user import User
from backend.app.schemas.note import NoteCreate, NoteRead
from backend.app.services import lead_store
from backend.app.services.exceptions import StoreReadError, StoreWriteError

router = APIRouter(prefix="/leads", tags=["leads"])


def _get_visible_lead(db: Session, lead_id: int, viewer: User) -> Lead:
    try:
        lead = lead_store.get_visible_lead(db, viewer, lead_id)
    except StoreReadError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    if not lead:
        raise HTTPException(status_code=404, detail="Lead not found")
    return lead


@router.post("/{lead_id}/notes", response_model=NoteRead)
async def create_note(
    lead_id: int,
    note_in: NoteCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    lead = _get_visible_lead(db, lead_id, current_user)
    try:
        note = lead_store.insert_note(db, lead, current_user, note_in.content)
    except StoreWriteError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    await notify_leads_changed(request)
    return note


@router.get("/{lead_id}/notes", response_model=list[NoteRead])
async def list_notes(
    lead_id: int,
    limit: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _get_visible_lead(db, lead_id, current_user)
    try:
        return lead_store.list_notes(db, lead_id, limit=limit)
    except StoreReadError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
