"""Per-viewer reminder sessions for the API process.

A session owns one scheduler, its channel and the inbox that consumes it.
Sessions are refreshed from the store whenever leads change and on a
periodic sweep, and torn down on logout or application shutdown.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from backend.app.core.settings import get_settings
from backend.app.core.time import utc_now
from backend.app.db.session import SessionLocal
from backend.app.models.user import User
from backend.app.services import lead_store
from backend.app.services.exceptions import StoreError, StoreReadError
from backend.app.services.lead_store import LeadSnapshot
from backend.app.services.reminder_scheduler import (
    Cue,
    NoteSource,
    ReconcileResult,
    ReminderChannel,
    ReminderInbox,
    ReminderScheduler,
    TerminalBellCue,
)

logger = logging.getLogger(__name__)


class SqlNoteSource:
    """Reads the newest note for a lead from the CRM database."""

    def __init__(self, session_factory=SessionLocal) -> None:
        self._session_factory = session_factory

    async def latest_note(self, lead_id) -> Optional[str]:
        return await asyncio.to_thread(self._latest_note, lead_id)

    def _latest_note(self, lead_id) -> Optional[str]:
        with self._session_factory() as db:
            note = lead_store.latest_note(db, lead_id)
            return note.content if note else None


class ReminderSession:
    def __init__(self, viewer_id: int, scheduler: ReminderScheduler, channel: ReminderChannel) -> None:
        self.viewer_id = viewer_id
        self.scheduler = scheduler
        self.channel = channel
        self.inbox = ReminderInbox()
        self._pump = asyncio.get_running_loop().create_task(self.inbox.consume(channel))

    @property
    def closed(self) -> bool:
        return self.scheduler.closed

    async def close(self) -> None:
        await self.scheduler.close()
        self._pump.cancel()
        await asyncio.gather(self._pump, return_exceptions=True)


class ReminderHub:
    def __init__(
        self,
        *,
        session_factory=SessionLocal,
        notes: Optional[NoteSource] = None,
        cue: Optional[Cue] = None,
        clock: Callable[[], datetime] = utc_now,
        max_delay: Optional[timedelta] = None,
        sweep_seconds: Optional[float] = None,
    ) -> None:
        settings = get_settings()
        self._session_factory = session_factory
        self._notes = notes or SqlNoteSource(session_factory)
        self._cue = cue or TerminalBellCue(enabled=settings.reminder_bell)
        self._clock = clock
        self._max_delay = max_delay or timedelta(hours=settings.reminder_max_delay_hours)
        self._sweep_seconds = sweep_seconds if sweep_seconds is not None else settings.reminder_sweep_seconds
        self._sessions: Dict[int, ReminderSession] = {}
        self._sweeper: Optional[asyncio.Task] = None

    @property
    def viewer_ids(self) -> List[int]:
        return list(self._sessions)

    async def start(self) -> None:
        if self._sweeper is None and self._sweep_seconds > 0:
            self._sweeper = asyncio.get_running_loop().create_task(self._sweep())
        logger.info("Reminder hub started (sweep every %ss)", self._sweep_seconds)

    def get_session(self, viewer_id: int) -> Optional[ReminderSession]:
        return self._sessions.get(viewer_id)

    async def open_session(self, viewer_id: int) -> ReminderSession:
        session = self._sessions.get(viewer_id)
        if session is None:
            channel = ReminderChannel()
            scheduler = ReminderScheduler(
                self._notes,
                channel,
                cue=self._cue,
                clock=self._clock,
                max_delay=self._max_delay,
            )
            session = ReminderSession(viewer_id, scheduler, channel)
            self._sessions[viewer_id] = session
            logger.info("Reminder session opened for user %s", viewer_id)
        await self.refresh(viewer_id)
        return session

    async def refresh(self, viewer_id: int) -> Optional[ReconcileResult]:
        session = self._sessions.get(viewer_id)
        if session is None:
            return None
        try:
            leads = await asyncio.to_thread(self._load_snapshots, viewer_id)
        except StoreError as exc:
            logger.warning("Reminder refresh for user %s skipped: %s", viewer_id, exc)
            return None
        if session.closed or self._sessions.get(viewer_id) is not session:
            return None
        return session.scheduler.reconcile(leads, self._clock())

    async def refresh_all(self) -> None:
        for viewer_id in list(self._sessions):
            await self.refresh(viewer_id)

    async def leads_changed(self) -> None:
        await self.refresh_all()

    def _load_snapshots(self, viewer_id: int) -> List[LeadSnapshot]:
        with self._session_factory() as db:
            try:
                viewer = db.get(User, viewer_id)
            except SQLAlchemyError as exc:
                raise StoreReadError("Failed to load viewer", cause=exc)
            if viewer is None or not viewer.is_active:
                return []
            return lead_store.load_lead_snapshots(db, viewer)

    async def close_session(self, viewer_id: int) -> bool:
        session = self._sessions.pop(viewer_id, None)
        if session is None:
            return False
        await session.close()
        logger.info("Reminder session closed for user %s", viewer_id)
        return True

    async def _sweep(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_seconds)
            try:
                await self.refresh_all()
            except Exception:
                logger.exception("Reminder sweep failed")

    async def close(self) -> None:
        if self._sweeper is not None:
            self._sweeper.cancel()
            await asyncio.gather(self._sweeper, return_exceptions=True)
            self._sweeper = None
        for viewer_id in list(self._sessions):
            await self.close_session(viewer_id)
        logger.info("Reminder hub stopped")
