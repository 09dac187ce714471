"""Helpers to launch the local web dashboard."""

from __future__ import annotations

import logging
import threading
import webbrowser
from typing import Optional

import uvicorn

from .config import TimerSettings
from .webapp import create_app

logger = logging.getLogger(__name__)

# uvicorn needs a moment to bind before the page can load.
BROWSER_DELAY_SECONDS = 1.0


def run_dashboard(
    *,
    host: str = "127.0.0.1",
    port: int = 8766,
    settings: Optional[TimerSettings] = None,
    open_browser: bool = True,
    log_level: str = "info",
) -> None:
    """Serve the timer dashboard until interrupted."""
    app = create_app(settings=settings or TimerSettings())

    if open_browser:
        timer = threading.Timer(
            BROWSER_DELAY_SECONDS, open_dashboard_tab, args=(dashboard_url(host, port),)
        )
        timer.daemon = True
        timer.start()

    logging.getLogger("uvicorn.error").setLevel(log_level.upper())
    logger.info("Serving bus timer on %s", dashboard_url(host, port))
    uvicorn.run(app, host=host, port=port, log_level=log_level)


def dashboard_url(host: str, port: int) -> str:
    # Browsers cannot reach the wildcard address itself.
    if host in ("0.0.0.0", "::"):
        host = "127.0.0.1"
    return f"http://{host}:{port}"


def open_dashboard_tab(url: str) -> bool:
    """Open the timer page in the default browser; return whether it worked."""
    try:
        opened = webbrowser.open(url)
    except webbrowser.Error:
        logger.exception("Could not open the timer dashboard at %s", url)
        return False
    if not opened:
        logger.warning("No browser available; open %s manually.", url)
    return opened
