"""Viewer clock dependency: the current instant in the viewer's timezone."""

from datetime import datetime

from fastapi import HTTPException, Query

from backend.app.core.settings import get_settings
from backend.app.core.time import resolve_timezone, utc_now


def get_viewer_now(tz: str | None = Query(default=None, description="IANA timezone of the viewer")) -> datetime:
    try:
        zone = resolve_timezone(tz, default=get_settings().default_timezone)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return utc_now().astimezone(zone)
