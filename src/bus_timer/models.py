"""Domain models for timed activities."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


class InvalidActivityError(ValueError):
    """Raised when a value is not one of the timed activities."""


class Activity(str, Enum):
    MOVING = "moving"
    TRAFFIC = "traffic"
    DWELLING = "dwelling"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @classmethod
    def parse(cls, value: object) -> "Activity":
        """Return the activity named by ``value``, ignoring case and padding."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidActivityError(f"Unknown activity: {value!r}")


@dataclass(frozen=True, slots=True)
class TimeEntry:
    """One contiguous span during which a single activity was active."""

    activity: Activity
    start_ms: int
    end_ms: Optional[int] = None

    @property
    def is_open(self) -> bool:
        return self.end_ms is None

    def effective_end(self, now_ms: int) -> int:
        return now_ms if self.end_ms is None else self.end_ms

    def duration_ms(self, now_ms: int) -> int:
        return max(0, self.effective_end(now_ms) - self.start_ms)

    def closed(self, at_ms: int) -> "TimeEntry":
        if self.end_ms is not None:
            raise ValueError(f"{self.activity.value} entry is already closed")
        if at_ms < self.start_ms:
            raise ValueError("end time must not precede start time")
        return replace(self, end_ms=at_ms)
