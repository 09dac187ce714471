"""Tests for CSV serialization of the session log."""

from datetime import timedelta, timezone

import pytest

from bus_timer.export import (
    HEADER,
    ExportFormatError,
    export_filename,
    format_duration,
    format_wall_time,
    parse_csv,
    parse_duration,
    save_export,
    serialize,
)
from bus_timer.models import Activity, TimeEntry

# 2025-03-04 14:05:31.250 UTC
BASE_MS = 1_741_097_131_250


class TestFormatWallTime:
    def test_twelve_hour_afternoon(self):
        assert format_wall_time(BASE_MS, tz=timezone.utc) == "2:05:31 PM"

    def test_twelve_hour_midnight_and_noon(self):
        midnight = 1_741_046_400_000  # 2025-03-04 00:00:00 UTC
        assert format_wall_time(midnight, tz=timezone.utc) == "12:00:00 AM"
        assert format_wall_time(midnight + 12 * 3_600_000, tz=timezone.utc) == "12:00:00 PM"

    def test_respects_timezone(self):
        tz = timezone(timedelta(hours=-5))
        assert format_wall_time(BASE_MS, tz=tz) == "9:05:31 AM"

    def test_iso_style(self):
        assert (
            format_wall_time(BASE_MS, "iso", tz=timezone.utc)
            == "2025-03-04T14:05:31.250+00:00"
        )

    def test_unknown_style(self):
        with pytest.raises(ValueError):
            format_wall_time(BASE_MS, "24h")


class TestDurations:
    @pytest.mark.parametrize(
        "milliseconds, expected",
        [(0, "0:00.000"), (187_045, "3:07.045"), (3_600_000, "60:00.000")],
    )
    def test_format_duration(self, milliseconds, expected):
        assert format_duration(milliseconds) == expected

    def test_parse_duration(self):
        assert parse_duration("3:07.045") == 187_045

    @pytest.mark.parametrize("raw", ["3:7.045", "3:07", "x:07.045", "1:75.000"])
    def test_parse_duration_rejects_garbage(self, raw):
        with pytest.raises(ExportFormatError):
            parse_duration(raw)


class TestSerialize:
    def test_empty_log_is_header_only(self):
        export = serialize([], BASE_MS)
        assert export.text == ",".join(HEADER)
        assert export.media_type == "text/csv"

    def test_rows(self):
        entries = [
            TimeEntry(Activity.MOVING, BASE_MS, BASE_MS + 187_045),
            TimeEntry(Activity.DWELLING, BASE_MS + 187_045),
        ]
        export = serialize(entries, BASE_MS + 190_045, tz=timezone.utc)
        assert export.text.splitlines() == [
            "activity_type,start_time,end_time,duration",
            "moving,2:05:31 PM,2:08:38 PM,3:07.045",
            "dwelling,2:08:38 PM,2:08:41 PM,0:03.000",
        ]
        assert not export.text.endswith("\n")

    def test_filename_uses_utc_date(self):
        export = serialize([], BASE_MS)
        assert export.filename == "bus-timing-2025-03-04.csv"
        assert export_filename(BASE_MS, prefix="route-7") == "route-7-2025-03-04.csv"

    def test_round_trip_recovers_activity_and_duration(self):
        entries = [
            TimeEntry(Activity.MOVING, BASE_MS, BASE_MS + 61_001),
            TimeEntry(Activity.TRAFFIC, BASE_MS + 61_001, BASE_MS + 61_999),
            TimeEntry(Activity.DWELLING, BASE_MS + 61_999),
        ]
        now = BASE_MS + 700_123
        for time_format in ("12h", "iso"):
            rows = parse_csv(serialize(entries, now, time_format=time_format).text)
            assert [(row.activity, row.duration_ms) for row in rows] == [
                (entry.activity, entry.duration_ms(now)) for entry in entries
            ]


class TestParseCsv:
    def test_rejects_wrong_header(self):
        with pytest.raises(ExportFormatError, match="header"):
            parse_csv("kind,start,end,duration\n")

    def test_rejects_unknown_activity(self):
        text = "activity_type,start_time,end_time,duration\nflying,a,b,0:01.000"
        with pytest.raises(ExportFormatError, match="Line 2"):
            parse_csv(text)

    def test_rejects_short_row(self):
        text = "activity_type,start_time,end_time,duration\nmoving,a"
        with pytest.raises(ExportFormatError, match="expected 4 fields"):
            parse_csv(text)


class TestSaveExport:
    def test_writes_file(self, tmp_path):
        export = serialize([TimeEntry(Activity.MOVING, BASE_MS, BASE_MS + 1)], BASE_MS + 1)
        path = save_export(export, tmp_path / "nested")
        assert path.name == "bus-timing-2025-03-04.csv"
        assert path.read_bytes() == export.content

    def test_failure_leaves_export_reusable(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        export = serialize([], BASE_MS)
        with pytest.raises(OSError):
            save_export(export, blocker)
        assert save_export(export, tmp_path).read_bytes() == export.content
