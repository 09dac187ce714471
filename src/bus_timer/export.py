"""CSV serialization of the session log."""

from __future__ import annotations

import csv
import io
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from pathlib import Path
from typing import Optional

from .models import Activity, InvalidActivityError, TimeEntry

logger = logging.getLogger(__name__)

HEADER = ("activity_type", "start_time", "end_time", "duration")
MEDIA_TYPE = "text/csv"
TIME_FORMATS = ("12h", "iso")

_DURATION_PATTERN = re.compile(r"^(\d+):(\d{2})\.(\d{3})$")


class ExportFormatError(ValueError):
    """Raised when CSV text does not follow the export layout."""


@dataclass(frozen=True, slots=True)
class CsvExport:
    """Finished export content plus the suggested file name."""

    filename: str
    content: bytes
    media_type: str = MEDIA_TYPE

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")


@dataclass(frozen=True, slots=True)
class ExportRow:
    activity: Activity
    start_time: str
    end_time: str
    duration_ms: int


def format_wall_time(
    timestamp_ms: int, style: str = "12h", tz: Optional[tzinfo] = None
) -> str:
    """Format an epoch timestamp as ``2:05:31 PM`` or as ISO-8601.

    ``tz`` defaults to the local timezone.
    """
    seconds, millis = divmod(int(timestamp_ms), 1000)
    moment = datetime.fromtimestamp(seconds, tz=tz) + timedelta(milliseconds=millis)
    if style == "iso":
        if moment.tzinfo is None:
            moment = moment.astimezone()
        return moment.isoformat(timespec="milliseconds")
    if style != "12h":
        raise ValueError(f"Unsupported time format: {style!r}")
    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    return f"{hour}:{moment.minute:02d}:{moment.second:02d} {suffix}"


def format_duration(milliseconds: int) -> str:
    """Format a duration as ``M:SS.mmm`` with unpadded minutes."""
    minutes, remainder = divmod(max(0, int(milliseconds)), 60_000)
    seconds, millis = divmod(remainder, 1000)
    return f"{minutes}:{seconds:02d}.{millis:03d}"


def parse_duration(value: str) -> int:
    match = _DURATION_PATTERN.match(value.strip())
    if not match:
        raise ExportFormatError(f"Invalid duration: {value!r}")
    minutes, seconds, millis = (int(part) for part in match.groups())
    if seconds >= 60:
        raise ExportFormatError(f"Invalid duration: {value!r}")
    return minutes * 60_000 + seconds * 1000 + millis


def export_filename(now_ms: int, prefix: str = "bus-timing") -> str:
    day = datetime.fromtimestamp(now_ms // 1000, tz=timezone.utc).date()
    return f"{prefix}-{day.isoformat()}.csv"


def serialize(
    entries: Iterable[TimeEntry],
    now_ms: int,
    *,
    time_format: str = "12h",
    tz: Optional[tzinfo] = None,
    filename_prefix: str = "bus-timing",
) -> CsvExport:
    """Render the log as CSV; open entries end at ``now_ms``."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(HEADER)
    for entry in entries:
        end = entry.effective_end(now_ms)
        writer.writerow(
            (
                entry.activity.value,
                format_wall_time(entry.start_ms, time_format, tz),
                format_wall_time(end, time_format, tz),
                format_duration(entry.duration_ms(now_ms)),
            )
        )
    # Rows are newline-joined without a trailing newline.
    content = buffer.getvalue().rstrip("\n")
    return CsvExport(
        filename=export_filename(now_ms, filename_prefix),
        content=content.encode("utf-8"),
    )


def parse_csv(text: str) -> list[ExportRow]:
    """Read rows back from exported CSV text."""
    reader = csv.reader(io.StringIO(text))
    header = next(reader, None)
    if header is None or tuple(header) != HEADER:
        raise ExportFormatError(f"Unexpected header: {header!r}")

    rows: list[ExportRow] = []
    for line_no, record in enumerate(reader, start=2):
        if not record:
            continue
        if len(record) != len(HEADER):
            raise ExportFormatError(
                f"Line {line_no}: expected {len(HEADER)} fields, got {len(record)}"
            )
        activity_name, start_time, end_time, duration = record
        try:
            activity = Activity.parse(activity_name)
        except InvalidActivityError as exc:
            raise ExportFormatError(f"Line {line_no}: {exc}") from exc
        rows.append(
            ExportRow(
                activity=activity,
                start_time=start_time,
                end_time=end_time,
                duration_ms=parse_duration(duration),
            )
        )
    return rows


def save_export(export: CsvExport, directory: Path) -> Path:
    """Write the export into ``directory`` and return the file path."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / export.filename
    path.write_bytes(export.content)
    logger.info("Wrote %d bytes to %s", len(export.content), path)
    return path
