"""Live elapsed-time projection for the running activity."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import timedelta
from typing import Optional

from .session import SessionLog

logger = logging.getLogger(__name__)

IDLE_CLOCK = "00:00.000"


def format_clock(elapsed_ms: int) -> str:
    """Format milliseconds as ``MM:SS.mmm``."""
    elapsed_ms = max(0, int(elapsed_ms))
    minutes, remainder = divmod(elapsed_ms, 60_000)
    seconds, milliseconds = divmod(remainder, 1000)
    return f"{minutes:02d}:{seconds:02d}.{milliseconds:03d}"


def elapsed_text(session: SessionLog, now_ms: Optional[int] = None) -> str:
    entry = session.open_entry
    if entry is None:
        return IDLE_CLOCK
    now = session.now() if now_ms is None else now_ms
    return format_clock(now - entry.start_ms)


class LiveClock:
    """Push the elapsed time of the running activity to a callback.

    The ticker thread only runs while an activity is open; call :meth:`sync`
    after every selection and :meth:`stop` (or leave the ``with`` block) when
    the owner goes away.
    """

    def __init__(
        self,
        session: SessionLog,
        on_tick: Callable[[str], None],
        interval: timedelta = timedelta(milliseconds=10),
    ) -> None:
        self._session = session
        self._on_tick = on_tick
        self._interval = interval.total_seconds()
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

    def __enter__(self) -> "LiveClock":
        self.sync()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def sync(self) -> None:
        """Start or stop ticking to match the session state."""
        if self._session.current_activity is None:
            self.stop()
            self._on_tick(IDLE_CLOCK)
        else:
            self.start()

    def start(self) -> None:
        with self._lock:
            if self._thread and self._thread.is_alive():
                return
            stop_event = threading.Event()
            thread = threading.Thread(target=self._run, args=(stop_event,), daemon=True)
            self._thread = thread
            self._stop_event = stop_event
            thread.start()
            logger.debug("Live clock started.")

    def stop(self) -> None:
        thread: Optional[threading.Thread] = None
        with self._lock:
            if not self._thread or not self._stop_event:
                return
            self._stop_event.set()
            thread = self._thread
            self._thread = None
            self._stop_event = None
        if thread is not threading.current_thread():
            thread.join(timeout=5)
        logger.debug("Live clock stopped.")

    def is_running(self) -> bool:
        with self._lock:
            return bool(self._thread and self._thread.is_alive())

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            if self._session.open_entry is None:
                break
            try:
                self._on_tick(elapsed_text(self._session))
            except Exception:
                logger.exception("Live clock callback failed; stopping ticker.")
                break
            stop_event.wait(self._interval)
