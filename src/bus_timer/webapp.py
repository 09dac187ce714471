"""FastAPI application that exposes a local web UI and API for the bus timer."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, Response
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, ConfigDict

from . import __version__
from .clock import IDLE_CLOCK, format_clock
from .config import TimerSettings
from .export import format_duration, format_wall_time, serialize
from .models import InvalidActivityError
from .reporting import compute_durations, compute_shares, format_share
from .session import Clock, SessionLog

logger = logging.getLogger(__name__)


class SelectPayload(BaseModel):
    activity: str

    model_config = ConfigDict(extra="forbid")


def create_app(
    *,
    settings: Optional[TimerSettings] = None,
    session: Optional[SessionLog] = None,
    clock: Optional[Clock] = None,
) -> FastAPI:
    """Instantiate the FastAPI application around one observation session.

    Pass either an existing ``session`` or a ``clock`` for a new one, not both.
    """
    if session is not None and clock is not None:
        raise ValueError("pass either session or clock, not both")
    resolved_settings = settings or TimerSettings()
    resolved_session = session if session is not None else SessionLog(clock=clock)

    app = FastAPI(title="Bus Activity Timer", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.session = resolved_session
    app.state.settings = resolved_settings

    static_dir = Path(__file__).parent / "static"
    if static_dir.exists():
        app.mount("/static", StaticFiles(directory=static_dir), name="static")

    @app.on_event("startup")
    async def _startup() -> None:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
        logger.info("Bus timer dashboard ready.")

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        return _status_payload(request.app.state.session)

    @app.post("/api/select")
    def select(payload: SelectPayload, request: Request) -> Dict[str, Any]:
        session: SessionLog = request.app.state.session
        try:
            session.select(payload.activity)
        except InvalidActivityError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _status_payload(session)

    @app.get("/api/entries")
    def entries(request: Request) -> Dict[str, Any]:
        session: SessionLog = request.app.state.session
        snapshot = session.entries()
        now = session.now()
        time_format = request.app.state.settings.time_format
        return {
            "entries": [
                {
                    "activity": entry.activity.value,
                    "start_ms": entry.start_ms,
                    "end_ms": entry.end_ms,
                    "start_time": format_wall_time(entry.start_ms, time_format),
                    "end_time": (
                        format_wall_time(entry.end_ms, time_format)
                        if entry.end_ms is not None
                        else None
                    ),
                    "duration": format_duration(entry.duration_ms(now)),
                    "is_open": entry.is_open,
                }
                for entry in snapshot
            ]
        }

    @app.get("/api/export")
    def export_csv(request: Request) -> Response:
        session: SessionLog = request.app.state.session
        current_settings: TimerSettings = request.app.state.settings
        export = serialize(
            session.entries(),
            session.now(),
            time_format=current_settings.time_format,
            filename_prefix=current_settings.filename_prefix,
        )
        logger.info("Exporting %s", export.filename)
        return Response(
            content=export.content,
            media_type=export.media_type,
            headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
        )

    @app.get("/")
    def index(request: Request):
        index_path = (Path(__file__).parent / "static" / "index.html").resolve()
        if not index_path.exists():
            raise HTTPException(status_code=404, detail="UI not found")
        return FileResponse(index_path)

    return app


def _status_payload(session: SessionLog) -> Dict[str, Any]:
    # Per-selection fields come from one snapshot; the start time never changes once set.
    snapshot = session.entries()
    now = session.now()
    open_entry = snapshot[-1] if snapshot and snapshot[-1].is_open else None
    shares = compute_shares(snapshot, now)
    durations = compute_durations(snapshot, now)
    return {
        "current_activity": open_entry.activity.value if open_entry else None,
        "elapsed": format_clock(now - open_entry.start_ms) if open_entry else IDLE_CLOCK,
        "started_at_ms": session.started_at_ms,
        "entry_count": len(snapshot),
        "shares": {activity.value: format_share(value) for activity, value in shares.items()},
        "durations_ms": {activity.value: value for activity, value in durations.items()},
    }
