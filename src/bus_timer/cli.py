"""Command-line interface for the bus timer."""

from __future__ import annotations

import contextlib
import logging
import sys
from pathlib import Path
from typing import Callable, Optional

import typer

from .clock import LiveClock
from .config import TimerSettings
from .export import save_export, serialize
from .models import Activity, InvalidActivityError
from .paths import get_export_dir, get_log_path
from .reporting import SummaryPrinter
from .session import SessionLog

logger = logging.getLogger(__name__)

app = typer.Typer(help="Manual activity timer for bus observation sessions.")

SHORTCUTS = {"m": Activity.MOVING, "t": Activity.TRAFFIC, "d": Activity.DWELLING}
USAGE = "Commands: m/t/d toggle moving/traffic/dwelling, s summary, e export, q quit."


@app.callback(no_args_is_help=True)
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs."),
    log_file: bool = typer.Option(
        False, "--log-file", help="Also write logs to the application data directory."
    ),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    if log_file:
        handler = logging.FileHandler(get_log_path(), encoding="utf-8")
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
        logging.getLogger().addHandler(handler)


@app.command()
def track(
    time_format: str = typer.Option(
        "12h", "--time-format", help="Exported time style: 12h or iso."
    ),
    export_dir: Optional[Path] = typer.Option(
        None,
        "--export-dir",
        path_type=Path,
        help="Directory for CSV exports (defaults to the application data directory).",
    ),
    refresh_seconds: float = typer.Option(
        0.1,
        "--refresh",
        min=0.01,
        help="Seconds between live clock redraws.",
    ),
    live: bool = typer.Option(
        True, "--live/--no-live", help="Redraw the elapsed time while an activity runs."
    ),
    export_on_quit: bool = typer.Option(
        True, "--export/--no-export", help="Export the log when the session ends."
    ),
) -> None:
    """Time activities interactively from the terminal."""
    settings = _build_settings(time_format, refresh_seconds, export_dir)
    session = SessionLog()
    printer = SummaryPrinter(session)

    typer.echo(USAGE)
    ticker: contextlib.AbstractContextManager = (
        LiveClock(session, _clock_writer(session), settings.tick_interval)
        if live
        else contextlib.nullcontext()
    )
    with ticker as clock:
        for raw in sys.stdin:
            command = raw.strip().lower()
            if not command:
                continue
            if command in ("q", "quit"):
                break
            if command in ("s", "status"):
                printer.print_summary()
                continue
            if command in ("e", "export"):
                _deliver_export(session, settings)
                continue
            try:
                current = session.select(SHORTCUTS.get(command, command))
            except InvalidActivityError as exc:
                typer.echo(f"{exc}. {USAGE}", err=True)
                continue
            if clock is not None:
                clock.sync()
            else:
                typer.echo(f"Now: {current.label if current else 'idle'}")

    if live:
        typer.echo()
    if export_on_quit and len(session):
        _deliver_export(session, settings)


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the dashboard."),
    port: int = typer.Option(
        8766, "--port", min=1, max=65535, help="TCP port for the dashboard."
    ),
    time_format: str = typer.Option(
        "12h", "--time-format", help="Exported time style: 12h or iso."
    ),
    open_browser: bool = typer.Option(
        True,
        "--open-browser/--no-open-browser",
        help="Automatically launch the dashboard in your default browser.",
    ),
) -> None:
    """Start the local dashboard."""
    from .server_runner import run_dashboard

    settings = _build_settings(time_format, None, None)
    run_dashboard(host=host, port=port, settings=settings, open_browser=open_browser)


def _build_settings(
    time_format: str, refresh_seconds: Optional[float], export_dir: Optional[Path]
) -> TimerSettings:
    try:
        return TimerSettings.from_options(
            time_format=time_format,
            refresh_seconds=refresh_seconds,
            export_dir=export_dir,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _clock_writer(session: SessionLog) -> Callable[[str], None]:
    def write(text: str) -> None:
        current = session.current_activity
        label = current.label if current else "Idle"
        typer.echo(f"\r{label:<9} {text}", nl=False)

    return write


def _deliver_export(session: SessionLog, settings: TimerSettings) -> None:
    export = serialize(
        session.entries(),
        session.now(),
        time_format=settings.time_format,
        filename_prefix=settings.filename_prefix,
    )
    directory = settings.export_dir or get_export_dir()
    try:
        path = save_export(export, directory)
    except OSError as exc:
        logger.warning(
            "Could not write %s to %s (%s); printing it instead.",
            export.filename,
            directory,
            exc,
        )
        typer.echo(export.text)
        return
    typer.echo(f"Exported {export.filename} to {path}")
