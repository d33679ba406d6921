"""Dashboard metrics endpoint."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.dependencies.auth import get_current_user
from backend.app.dependencies.clock import get_viewer_now
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.metrics import MetricsSnapshot
from backend.app.services import lead_store
from backend.app.services.exceptions import StoreReadError
from backend.app.services.lead_metrics import build_snapshot

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/metrics", response_model=MetricsSnapshot)
async def get_dashboard_metrics(
    now: datetime = Depends(get_viewer_now),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    load_error = None
    try:
        leads = lead_store.load_lead_snapshots(db, current_user)
    except StoreReadError as exc:
        # Keep the dashboard live with zeroed counts; the client shows the message.
        logger.warning("Dashboard for user %s served without leads: %s", current_user.id, exc)
        leads = []
        load_error = str(exc)

    team_size = 1
    if current_user.can_see_all:
        try:
            team_size = lead_store.count_ordinary_users(db)
        except StoreReadError as exc:
            load_error = load_error or str(exc)

    return build_snapshot(
        leads,
        role=current_user.role,
        team_size=team_size,
        now=now,
        load_error=load_error,
    )
