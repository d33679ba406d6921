"""Single-flight guard for record saves."""

import threading
from contextlib import contextmanager
from typing import Hashable

from backend.app.services.exceptions import SaveInProgressError


class SaveGuard:
    """Allow at most one outstanding save per key."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._in_flight: set[Hashable] = set()

    def is_busy(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._in_flight

    @contextmanager
    def hold(self, key: Hashable):
        with self._lock:
            if key in self._in_flight:
                raise SaveInProgressError(f"A save for {key!r} is already in progress")
            self._in_flight.add(key)
        try:
            yield
        finally:
            with self._lock:
                self._in_flight.discard(key)


lead_save_guard = SaveGuard()
