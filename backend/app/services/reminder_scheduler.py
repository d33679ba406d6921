"""In-process reminder timers for lead next-action dates.

``ReminderScheduler.reconcile`` derives the armed timer set from the current
lead snapshot: one asyncio timer per ``(lead_id, due_at)`` key, orphaned keys
cancelled, existing keys left alone. Fired reminders are published on a
``ReminderChannel``; a single consumer (``ReminderInbox``) turns them into
one visible surface at a time.

Timers are never scheduled further out than ``max_delay``. A longer delay is
armed for ``max_delay`` and, when that hop expires, re-evaluated against the
clock, so sleeps and clock jumps cannot push a reminder far off its time.
"""

import asyncio
import logging
import sys
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Deque, Dict, Hashable, Iterable, List, Optional, Protocol, Set, Tuple

from backend.app.core.records import read_field
from backend.app.core.time import coerce_datetime, seconds_until, utc_now
from backend.app.schemas.reminder import ContactInfo, ReminderEvent

logger = logging.getLogger(__name__)

ReminderKey = Tuple[Hashable, datetime]

DEFAULT_MAX_DELAY = timedelta(hours=24)


class NoteSource(Protocol):
    async def latest_note(self, lead_id: Any) -> Optional[str]:
        """Return the text of the newest note for the lead, or None."""


Cue = Callable[[ReminderEvent], None]


class TerminalBellCue:
    """Audible cue for a fired reminder: logs it and optionally rings BEL."""

    def __init__(self, enabled: bool = False, stream=None) -> None:
        self.enabled = enabled
        self.stream = stream

    def __call__(self, event: ReminderEvent) -> None:
        logger.info("Reminder chime for lead %s", event.lead_id)
        if self.enabled:
            stream = self.stream or sys.stderr
            stream.write("\a")
            stream.flush()


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _due_at(lead) -> Optional[datetime]:
    value = coerce_datetime(read_field(lead, "next_action_at"))
    if value is None:
        return None
    return _as_utc(value)


@dataclass
class ArmedReminder:
    key: ReminderKey
    lead: Any
    due_at: datetime
    handle: asyncio.TimerHandle
    clamped: bool = False

    @property
    def lead_id(self):
        return self.key[0]


@dataclass
class ReminderRegistry:
    """Timers currently armed, and keys that already fired in this lifetime."""

    armed: Dict[ReminderKey, ArmedReminder] = field(default_factory=dict)
    fired: Set[ReminderKey] = field(default_factory=set)

    def keys(self) -> Set[ReminderKey]:
        return set(self.armed)

    def __len__(self) -> int:
        return len(self.armed)


@dataclass(frozen=True)
class ReconcileResult:
    armed: List[ReminderKey]
    kept: List[ReminderKey]
    cancelled: List[ReminderKey]


class ReminderChannel:
    """Single-consumer queue of fired reminders."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue = asyncio.Queue()

    def publish(self, event: ReminderEvent) -> None:
        self._queue.put_nowait(event)

    async def receive(self) -> ReminderEvent:
        return await self._queue.get()

    def drain(self) -> List[ReminderEvent]:
        events = []
        while not self._queue.empty():
            events.append(self._queue.get_nowait())
        return events

    def __len__(self) -> int:
        return self._queue.qsize()


class ReminderInbox:
    """Shows one reminder at a time; later ones wait in arrival order."""

    def __init__(self) -> None:
        self.current: Optional[ReminderEvent] = None
        self._backlog: Deque[ReminderEvent] = deque()

    @property
    def backlog(self) -> int:
        return len(self._backlog)

    def deliver(self, event: ReminderEvent) -> None:
        if self.current is None:
            self.current = event
        else:
            self._backlog.append(event)

    def acknowledge(self) -> Optional[ReminderEvent]:
        """Dismiss the visible reminder and return the next one, if any."""
        self.current = self._backlog.popleft() if self._backlog else None
        return self.current

    async def consume(self, channel: ReminderChannel) -> None:
        while True:
            self.deliver(await channel.receive())


class ReminderScheduler:
    def __init__(
        self,
        notes: NoteSource,
        channel: ReminderChannel,
        *,
        cue: Optional[Cue] = None,
        clock: Callable[[], datetime] = utc_now,
        max_delay: timedelta = DEFAULT_MAX_DELAY,
        registry: Optional[ReminderRegistry] = None,
    ) -> None:
        if max_delay <= timedelta(0):
            raise ValueError("max_delay must be positive")
        self._notes = notes
        self._channel = channel
        self._cue = cue or TerminalBellCue()
        self._clock = clock
        self._max_delay_seconds = max_delay.total_seconds()
        self.registry = registry if registry is not None else ReminderRegistry()
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending_count(self) -> int:
        return len(self.registry.armed)

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def armed_reminders(self) -> List[ArmedReminder]:
        return sorted(self.registry.armed.values(), key=lambda r: (r.due_at, str(r.lead_id)))

    def reconcile(self, leads: Iterable, now: Optional[datetime] = None) -> ReconcileResult:
        """Bring the armed timers in line with ``leads``.

        Must run inside the event loop that will own the timers.
        """
        if self._closed:
            return ReconcileResult([], [], [])
        now = _as_utc(now or self._clock())

        desired: Dict[ReminderKey, Any] = {}
        due_now: List[ReminderKey] = []
        for lead in leads or ():
            lead_id = read_field(lead, "id")
            due = _due_at(lead) if lead is not None else None
            if lead_id is None or due is None:
                continue
            key = (lead_id, due)
            if due <= now:
                if key in self.registry.armed:
                    due_now.append(key)
                continue
            if key in self.registry.fired:
                continue
            desired[key] = lead

        cancelled: List[ReminderKey] = []
        for key in list(self.registry.armed):
            if key not in desired and key not in due_now:
                self._cancel(key)
                cancelled.append(key)

        armed: List[ReminderKey] = []
        kept: List[ReminderKey] = []
        for key, lead in desired.items():
            existing = self.registry.armed.get(key)
            if existing is not None:
                existing.lead = lead
                kept.append(key)
                continue
            self._arm(key, lead, now)
            armed.append(key)

        for key in due_now:
            self._on_deadline(key)

        horizon = now - timedelta(seconds=self._max_delay_seconds)
        self.registry.fired = {key for key in self.registry.fired if key[1] >= horizon}

        if armed or cancelled:
            logger.debug("Reconciled reminders: %d armed, %d kept, %d cancelled", len(armed), len(kept), len(cancelled))
        return ReconcileResult(armed=armed, kept=kept, cancelled=cancelled)

    def _schedule(self, key: ReminderKey, delay: float) -> Tuple[asyncio.TimerHandle, bool]:
        loop = asyncio.get_running_loop()
        clamped = delay > self._max_delay_seconds
        handle = loop.call_later(min(max(delay, 0.0), self._max_delay_seconds), self._on_deadline, key)
        return handle, clamped

    def _arm(self, key: ReminderKey, lead, now: datetime) -> None:
        due = key[1]
        handle, clamped = self._schedule(key, seconds_until(due, now))
        self.registry.armed[key] = ArmedReminder(key=key, lead=lead, due_at=due, handle=handle, clamped=clamped)

    def _cancel(self, key: ReminderKey) -> None:
        entry = self.registry.armed.pop(key, None)
        if entry is not None:
            entry.handle.cancel()

    def _on_deadline(self, key: ReminderKey) -> None:
        entry = self.registry.armed.get(key)
        if entry is None or self._closed:
            return
        now = _as_utc(self._clock())
        if now < entry.due_at:
            # Clamped hop or early wake-up: wait out the remainder.
            entry.handle.cancel()
            entry.handle, entry.clamped = self._schedule(key, seconds_until(entry.due_at, now))
            return

        del self.registry.armed[key]
        self.registry.fired.add(key)
        task = asyncio.get_running_loop().create_task(self._deliver(entry, now))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _deliver(self, entry: ArmedReminder, fired_at: datetime) -> None:
        note_text = None
        try:
            note_text = await self._notes.latest_note(entry.lead_id)
        except Exception:
            logger.exception("Note lookup failed for lead %s; reminding without a note", entry.lead_id)

        if self._closed:
            logger.debug("Dropping reminder for lead %s resolved after teardown", entry.lead_id)
            return

        lead = entry.lead
        event = ReminderEvent(
            lead_id=entry.lead_id,
            lead_name=read_field(lead, "name") or f"Lead {entry.lead_id}",
            contact_info=ContactInfo(
                email=read_field(lead, "email"),
                phone=read_field(lead, "phone"),
                address=read_field(lead, "address"),
            ),
            note_text=note_text,
            due_at=entry.due_at,
            fired_at=fired_at,
        )
        try:
            self._cue(event)
        except Exception:
            logger.exception("Reminder cue failed for lead %s", entry.lead_id)
        self._channel.publish(event)
        logger.info("Reminder fired for lead %s (due %s)", entry.lead_id, entry.due_at.isoformat())

    async def close(self) -> None:
        """Cancel every armed timer and in-flight delivery."""
        if self._closed:
            return
        self._closed = True
        for key in list(self.registry.armed):
            self._cancel(key)
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        logger.debug("Reminder scheduler closed")
