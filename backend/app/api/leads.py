"""Lead management endpoints."""

import asyncio
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from backend.app.core.statuses import STATUS_OPTIONS
from backend.app.dependencies.auth import get_current_user
from backend.app.dependencies.clock import get_viewer_now
from backend.app.dependencies.reminders import notify_leads_changed
from backend.app.db.session import get_db
from backend.app.models.lead import Lead
from backend.app.models.user import User
from backend.app.schemas.lead import LeadCreate, LeadRead, LeadUpdate
from backend.app.services import lead_store
from backend.app.services.exceptions import SaveInProgressError, StoreReadError, StoreWriteError
from backend.app.services.lead_metrics import QUICK_FILTERS, matches_quick_filter
from backend.app.services.lead_store import LeadSnapshot
from backend.app.services.save_guard import lead_save_guard

router = APIRouter(prefix="/leads", tags=["leads"])

UPDATABLE_FIELDS = ("name", "email", "phone", "address", "landlord_name", "status", "next_action_at")


def _get_visible_lead(db: Session, lead_id: int, viewer: User) -> Lead:
    try:
        lead = lead_store.get_visible_lead(db, viewer, lead_id)
    except StoreReadError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    if not lead:
        raise HTTPException(status_code=404, detail="Lead not found")
    return lead


@router.get("/statuses", response_model=list[str])
async def list_statuses():
    return STATUS_OPTIONS


@router.post("/", response_model=LeadRead)
async def create_lead(
    lead_in: LeadCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    data = lead_in.model_dump(exclude={"note"})
    note = (lead_in.note or "").strip() or None
    try:
        lead = lead_store.insert_lead(db, current_user, data, note=note)
    except StoreWriteError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    await notify_leads_changed(request)
    return lead


@router.get("/", response_model=list[LeadRead])
async def list_leads(
    status: str | None = None,
    search: str | None = None,
    quick: str | None = None,
    skip: int = 0,
    limit: int = 50,
    now: datetime = Depends(get_viewer_now),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if quick is not None and quick not in QUICK_FILTERS:
        raise HTTPException(status_code=400, detail="Invalid quick filter")
    try:
        leads = lead_store.list_visible_leads(db, current_user, status=status, search=search)
    except StoreReadError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    if quick:
        leads = [lead for lead in leads if matches_quick_filter(LeadSnapshot.from_model(lead), quick, now)]
    return leads[skip : skip + limit]


@router.get("/{lead_id}", response_model=LeadRead)
async def get_lead(lead_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_visible_lead(db, lead_id, current_user)


@router.put("/{lead_id}", response_model=LeadRead)
async def update_lead(
    lead_id: int,
    lead_in: LeadUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    lead = _get_visible_lead(db, lead_id, current_user)
    changes = {
        field: value
        for field, value in lead_in.model_dump(include=set(UPDATABLE_FIELDS)).items()
        if value is not None
    }
    if lead_in.clear_next_action:
        changes["next_action_at"] = None
    try:
        with lead_save_guard.hold(lead.id):
            changed = await asyncio.to_thread(lead_store.update_lead, db, lead, changes)
    except SaveInProgressError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except StoreWriteError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if changed:
        await notify_leads_changed(request)
    return lead
