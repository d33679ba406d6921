"""Store access for leads, notes and accounts.

Every read and write the pages and the reminder hub need goes through here,
so viewer scoping and failure handling live in one place. Reads raise
``StoreReadError``; writes roll back and raise ``StoreWriteError``.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.core.statuses import canonical_label
from backend.app.models.lead import Lead
from backend.app.models.note import Note
from backend.app.models.user import ROLE_USER, User
from backend.app.services.exceptions import StoreReadError, StoreWriteError

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("name", "email", "phone", "address", "landlord_name")


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class LeadSnapshot:
    """Immutable copy of a lead handed to the aggregator and scheduler."""

    id: int
    name: str
    status: Optional[str]
    created_at: Optional[datetime]
    next_action_at: Optional[datetime]
    owner_id: Optional[int] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    landlord_name: Optional[str] = None

    @classmethod
    def from_model(cls, lead: Lead) -> "LeadSnapshot":
        return cls(
            id=lead.id,
            name=lead.name,
            status=lead.status,
            created_at=_as_utc(lead.created_at),
            next_action_at=_as_utc(lead.next_action_at),
            owner_id=lead.owner_id,
            email=lead.email,
            phone=lead.phone,
            address=lead.address,
            landlord_name=lead.landlord_name,
        )


def visible_leads_query(db: Session, viewer: User):
    query = db.query(Lead)
    if not viewer.can_see_all:
        query = query.filter(Lead.owner_id == viewer.id)
    return query


def get_visible_lead(db: Session, viewer: User, lead_id: int) -> Optional[Lead]:
    try:
        return visible_leads_query(db, viewer).filter(Lead.id == lead_id).first()
    except SQLAlchemyError as exc:
        logger.exception("Failed to load lead %s", lead_id)
        raise StoreReadError("Failed to load lead", cause=exc)


def list_visible_leads(
    db: Session,
    viewer: User,
    *,
    status: Optional[str] = None,
    search: Optional[str] = None,
) -> List[Lead]:
    query = visible_leads_query(db, viewer)
    if status:
        query = query.filter(func.lower(Lead.status) == canonical_label(status).lower())
    if search:
        for token in [t for t in search.split() if t]:
            pattern = f"%{token}%"
            query = query.filter(or_(*(getattr(Lead, field).ilike(pattern) for field in SEARCH_FIELDS)))
    try:
        return query.order_by(Lead.created_at.desc(), Lead.id.desc()).all()
    except SQLAlchemyError as exc:
        logger.exception("Failed to list leads for viewer %s", viewer.id)
        raise StoreReadError("Failed to load leads", cause=exc)


def load_lead_snapshots(db: Session, viewer: User) -> List[LeadSnapshot]:
    return [LeadSnapshot.from_model(lead) for lead in list_visible_leads(db, viewer)]


def list_notes(db: Session, lead_id: int, limit: Optional[int] = None) -> List[Note]:
    query = db.query(Note).filter(Note.lead_id == lead_id).order_by(Note.created_at.desc(), Note.id.desc())
    if limit is not None:
        query = query.limit(limit)
    try:
        return query.all()
    except SQLAlchemyError as exc:
        logger.exception("Failed to list notes for lead %s", lead_id)
        raise StoreReadError("Failed to load notes", cause=exc)


def latest_note(db: Session, lead_id: int) -> Optional[Note]:
    notes = list_notes(db, lead_id, limit=1)
    return notes[0] if notes else None


def count_ordinary_users(db: Session) -> int:
    try:
        return db.query(User).filter(User.role == ROLE_USER).count()
    except SQLAlchemyError as exc:
        logger.exception("Failed to count user accounts")
        raise StoreReadError("Failed to count users", cause=exc)


def insert_lead(db: Session, owner: User, data: dict, note: Optional[str] = None) -> Lead:
    """Insert a lead and its optional first note in a single transaction."""
    lead = Lead(owner_id=owner.id, **data)
    try:
        db.add(lead)
        db.flush()
        if note:
            db.add(Note(lead_id=lead.id, owner_id=owner.id, content=note))
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Lead insert rejected: %s", exc)
        raise StoreWriteError("Could not save lead", cause=exc)
    db.refresh(lead)
    logger.info("Lead %s created by user %s", lead.id, owner.id)
    return lead


def _same(current, value) -> bool:
    if isinstance(current, datetime) and isinstance(value, datetime):
        return _as_utc(current) == _as_utc(value)
    return current == value


def update_lead(db: Session, lead: Lead, changes: dict) -> List[str]:
    """Apply changed fields and commit; returns the names of fields that changed."""
    changed: List[str] = []
    for field, value in changes.items():
        if not _same(getattr(lead, field), value):
            setattr(lead, field, value)
            changed.append(field)
    if not changed:
        return changed
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Lead %s update rejected: %s", lead.id, exc)
        raise StoreWriteError("Could not save lead", cause=exc)
    db.refresh(lead)
    logger.info("Lead %s updated: %s", lead.id, ", ".join(changed))
    return changed


def insert_note(db: Session, lead: Lead, author: User, content: str) -> Note:
    note = Note(lead_id=lead.id, owner_id=author.id, content=content)
    try:
        db.add(note)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Note insert for lead %s rejected: %s", lead.id, exc)
        raise StoreWriteError("Could not save note", cause=exc)
    db.refresh(note)
    return note
