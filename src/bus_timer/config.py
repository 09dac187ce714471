"""Configuration models and helpers for the bus timer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Optional

from .export import TIME_FORMATS


@dataclass(slots=True)
class TimerSettings:
    """Runtime configuration shared by the CLI and the dashboard."""

    tick_interval: timedelta = timedelta(milliseconds=10)
    time_format: str = "12h"
    filename_prefix: str = "bus-timing"
    export_dir: Optional[Path] = None

    def __post_init__(self) -> None:
        if self.time_format not in TIME_FORMATS:
            raise ValueError(
                f"time_format must be one of {', '.join(TIME_FORMATS)}; got {self.time_format!r}"
            )
        if self.tick_interval <= timedelta(0):
            raise ValueError("tick_interval must be positive")

    @classmethod
    def from_options(
        cls,
        time_format: str = "12h",
        refresh_seconds: float | None = None,
        export_dir: Path | None = None,
    ) -> "TimerSettings":
        tick = (
            timedelta(seconds=refresh_seconds)
            if refresh_seconds is not None
            else timedelta(milliseconds=10)
        )
        return cls(
            tick_interval=tick,
            time_format=time_format.strip().lower(),
            export_dir=Path(export_dir) if export_dir else None,
        )
