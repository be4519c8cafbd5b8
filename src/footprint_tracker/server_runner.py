"""Helpers to launch the local tracking API."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import uvicorn

from .config import TrackerSettings
from .paths import get_db_path
from .webapp import create_app

logger = logging.getLogger(__name__)


def run_server(
    *,
    host: str = "127.0.0.1",
    port: int = 8765,
    db_path: Optional[Path] = None,
    settings: Optional[TrackerSettings] = None,
    log_level: str = "info",
) -> None:
    """Serve the API; the tracking worker lives as long as the app does."""
    resolved_settings = settings or TrackerSettings()
    resolved_db = Path(db_path or get_db_path())
    app = create_app(db_path=resolved_db, settings=resolved_settings)

    logger.info("Storing tracking data in %s", resolved_db)
    if resolved_settings.backend_url:
        logger.info("Forwarding completed intervals to %s", resolved_settings.backend_url)
    else:
        logger.info("No backend configured; all data stays local.")

    logging.getLogger("uvicorn.error").setLevel(log_level.upper())
    uvicorn.run(app, host=host, port=port, log_level=log_level)
