"""Shared fixtures for the bus timer tests."""

import pytest

from bus_timer.session import SessionLog


class ManualClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, start_ms: int = 0) -> None:
        self.now_ms = start_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, milliseconds: int) -> int:
        self.now_ms += milliseconds
        return self.now_ms

    def set(self, now_ms: int) -> None:
        self.now_ms = now_ms


@pytest.fixture
def clock() -> ManualClock:
    # 2025-03-04 14:05:31 UTC
    return ManualClock(start_ms=1_741_097_131_000)


@pytest.fixture
def session(clock) -> SessionLog:
    return SessionLog(clock=clock)
