"""Session log and the activity state machine that appends to it."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Optional

from .models import Activity, TimeEntry

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def wall_clock_ms() -> int:
    """Milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


class SessionLog:
    """Append-only log of activity intervals with at most one open entry.

    The current activity is never stored on its own; it is read from the
    tail of the log so the two cannot disagree.
    """

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self._clock = clock or wall_clock_ms
        self._entries: list[TimeEntry] = []
        self._lock = threading.Lock()

    def now(self) -> int:
        return self._clock()

    def select(self, activity: object, now_ms: Optional[int] = None) -> Optional[Activity]:
        """Toggle ``activity`` and return the activity that is now active.

        Selecting the running activity stops it. Selecting another one closes
        the running entry and opens the new one at the same instant.
        """
        chosen = Activity.parse(activity)
        with self._lock:
            now = self._clock() if now_ms is None else now_ms
            if self._entries:
                # Keep timestamps non-decreasing if the wall clock steps back.
                now = max(now, self._last_timestamp_locked())

            current = self._open_entry_locked()
            if current is not None:
                self._entries[-1] = current.closed(now)
                logger.debug("Closed %s at %d", current.activity.value, now)
                if current.activity is chosen:
                    logger.info("Stopped %s", chosen.value)
                    return None

            self._entries.append(TimeEntry(activity=chosen, start_ms=now))
            logger.info("Started %s", chosen.value)
            return chosen

    @property
    def current_activity(self) -> Optional[Activity]:
        with self._lock:
            entry = self._open_entry_locked()
        return entry.activity if entry else None

    @property
    def open_entry(self) -> Optional[TimeEntry]:
        with self._lock:
            return self._open_entry_locked()

    @property
    def started_at_ms(self) -> Optional[int]:
        with self._lock:
            return self._entries[0].start_ms if self._entries else None

    def entries(self) -> tuple[TimeEntry, ...]:
        """Return a snapshot of the log."""
        with self._lock:
            return tuple(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _open_entry_locked(self) -> Optional[TimeEntry]:
        if self._entries and self._entries[-1].is_open:
            return self._entries[-1]
        return None

    def _last_timestamp_locked(self) -> int:
        last = self._entries[-1]
        return last.start_ms if last.end_ms is None else last.end_ms
