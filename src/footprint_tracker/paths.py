"""Where the tracker keeps its database and logs."""

from __future__ import annotations

import os
from pathlib import Path

from platformdirs import PlatformDirs

APP_NAME = "FootprintTracker"
APP_AUTHOR = "FootprintTracker"

DATA_DIR_ENV = "FOOTPRINT_TRACKER_HOME"
DB_FILENAME = "footprint.sqlite3"
LOG_FILENAME = "tracker.log"


def get_data_dir() -> Path:
    """Return (and create) the data directory.

    ``FOOTPRINT_TRACKER_HOME`` takes precedence over the per-user platform
    location.
    """
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        path = Path(override).expanduser()
    else:
        path = PlatformDirs(appname=APP_NAME, appauthor=APP_AUTHOR, roaming=True).user_data_path
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_db_path() -> Path:
    return get_data_dir() / DB_FILENAME


def get_log_path() -> Path:
    return get_data_dir() / LOG_FILENAME
