"""Time split calculations and console summaries."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from .clock import IDLE_CLOCK, format_clock
from .models import Activity, TimeEntry
from .session import SessionLog

_ONE_DECIMAL = Decimal("0.1")


def compute_durations(entries: Iterable[TimeEntry], now_ms: int) -> dict[Activity, int]:
    """Total milliseconds per activity, measuring open entries up to ``now_ms``."""
    totals = {activity: 0 for activity in Activity}
    for entry in entries:
        totals[entry.activity] += entry.duration_ms(now_ms)
    return totals


def compute_shares(entries: Iterable[TimeEntry], now_ms: int) -> dict[Activity, float]:
    """Percentage of observed time per activity, rounded to one decimal.

    Ties round away from zero on the exact binary value, so ``0.25`` becomes
    ``0.3``. With no observed time every share is 0.0.
    """
    durations = compute_durations(entries, now_ms)
    total = sum(durations.values())
    if total <= 0:
        return {activity: 0.0 for activity in Activity}
    return {
        activity: _round_share(duration / total * 100)
        for activity, duration in durations.items()
    }


def _round_share(value: float) -> float:
    return float(Decimal(value).quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def format_share(value: float) -> str:
    return f"{value:.1f}%"


class SummaryPrinter:
    """Render the current time split in the console."""

    def __init__(self, session: SessionLog) -> None:
        self.session = session

    def print_summary(self) -> None:
        entries = self.session.entries()
        if not entries:
            print("No activity recorded yet.")
            return

        now = self.session.now()
        # Header and split both come from the same snapshot.
        current = entries[-1] if entries[-1].is_open else None
        durations = compute_durations(entries, now)
        shares = compute_shares(entries, now)

        if current is None:
            print(f"Current: none  {IDLE_CLOCK}")
        else:
            print(f"Current: {current.activity.label}  {format_clock(now - current.start_ms)}")
        print("-" * 40)
        for activity in Activity:
            print(
                f"  {activity.label + ':':<10} {format_share(shares[activity]):>7}"
                f"  {format_total(durations[activity])}"
            )


def format_total(milliseconds: int) -> str:
    total_seconds = int(round(milliseconds / 1000))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
