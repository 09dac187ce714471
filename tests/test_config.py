"""Tests for runtime settings."""

from datetime import timedelta
from pathlib import Path

import pytest

from bus_timer.config import TimerSettings


def test_defaults():
    settings = TimerSettings()
    assert settings.tick_interval == timedelta(milliseconds=10)
    assert settings.time_format == "12h"
    assert settings.filename_prefix == "bus-timing"
    assert settings.export_dir is None


def test_from_options():
    settings = TimerSettings.from_options(time_format=" ISO ", refresh_seconds=0.5, export_dir="out")
    assert settings.time_format == "iso"
    assert settings.tick_interval == timedelta(seconds=0.5)
    assert settings.export_dir == Path("out")


@pytest.mark.parametrize("kwargs", [{"time_format": "24h"}, {"tick_interval": timedelta(0)}])
def test_rejects_invalid_values(kwargs):
    with pytest.raises(ValueError):
        TimerSettings(**kwargs)
