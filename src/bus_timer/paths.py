"""Helpers for locating application directories."""

from __future__ import annotations

from pathlib import Path

from platformdirs import PlatformDirs


APP_NAME = "BusTimer"
APP_AUTHOR = "BusTimer"


def _dirs() -> PlatformDirs:
    return PlatformDirs(appname=APP_NAME, appauthor=APP_AUTHOR, roaming=True)


def get_data_dir() -> Path:
    """Return the base directory for persistent data."""
    path = Path(_dirs().user_data_path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_export_dir() -> Path:
    return get_data_dir() / "exports"


def get_log_path() -> Path:
    return get_data_dir() / "bus-timer.log"
