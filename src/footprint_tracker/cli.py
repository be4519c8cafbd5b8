"""Command-line interface for the footprint tracker."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer

from .config import MAX_RETENTION_DAYS, MIN_RETENTION_DAYS, TrackerSettings
from .paths import get_db_path, get_log_path
from .server_runner import run_server

app = typer.Typer(help="Local-first browsing footprint tracker.")


@app.callback(no_args_is_help=True)
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the API."),
    port: int = typer.Option(
        8765, "--port", min=1, max=65535, help="TCP port for the API."
    ),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the tracker SQLite database."
    ),
    flush_seconds: float = typer.Option(
        25.0,
        "--flush-interval",
        min=1.0,
        help="Seconds between background event flushes.",
    ),
    retention_days: float = typer.Option(
        float(MIN_RETENTION_DAYS),
        "--retention-days",
        min=MIN_RETENTION_DAYS,
        max=MAX_RETENTION_DAYS,
        help="Days of raw events to keep.",
    ),
    backend_url: Optional[str] = typer.Option(
        None,
        "--backend-url",
        help="Base URL of the ingestion API. Omit to keep everything local.",
    ),
    backend_timeout: float = typer.Option(
        8.0, "--backend-timeout", min=0.5, help="Seconds before a backend call is abandoned."
    ),
    user_id: Optional[str] = typer.Option(
        None, "--user-id", help="Identifier sent with ingested intervals."
    ),
    log_file: bool = typer.Option(
        False, "--log-file/--no-log-file", help="Also write logs to the data directory."
    ),
) -> None:
    """Start the local API with the background tracking worker."""
    if log_file:
        handler = logging.FileHandler(get_log_path(), encoding="utf-8")
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
        logging.getLogger().addHandler(handler)

    settings = TrackerSettings.from_options(
        flush_seconds=flush_seconds,
        retention_days=retention_days,
        backend_url=backend_url,
        backend_timeout=backend_timeout,
        user_id=user_id,
    )
    run_server(
        host=host,
        port=port,
        db_path=db_path or get_db_path(),
        settings=settings,
    )


@app.command()
def summary(
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the tracker SQLite database."
    ),
) -> None:
    """Print today's tracked time and top sites."""
    from .reporting import SummaryPrinter

    SummaryPrinter(db_path=db_path or get_db_path()).print_daily_summary(datetime.now())


@app.command()
def analytics(
    timeframe: str = typer.Option("7d", "--timeframe", "-t", help="One of 1d, 7d or 30d."),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the tracker SQLite database."
    ),
) -> None:
    """Print aggregated analytics and insights for a time window."""
    from .reporting import SummaryPrinter

    SummaryPrinter(db_path=db_path or get_db_path()).print_analytics(timeframe, datetime.now())


@app.command()
def export(
    output: Path = typer.Option(..., "--output", "-o", path_type=Path, help="JSON file to write."),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the tracker SQLite database."
    ),
) -> None:
    """Export settings and session history as JSON."""
    from .db import TrackerStore
    from .service import build_export

    store = TrackerStore(db_path or get_db_path())
    payload = build_export(store, store.load_current_session(), datetime.now())
    output.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    typer.echo(f"Exported {len(payload['sessions'])} sessions to {output}")


@app.command()
def exclude(
    pattern: str = typer.Argument(..., help="Substring of URLs that should never be tracked."),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the tracker SQLite database."
    ),
) -> None:
    """Add a pattern to the excluded-sites list."""
    from .db import TrackerStore

    store = TrackerStore(db_path or get_db_path())
    settings = store.load_settings()
    if pattern in settings.excluded_sites:
        typer.echo(f"{pattern!r} is already excluded.")
        return
    settings.excluded_sites.append(pattern)
    store.save_settings(settings)
    typer.echo(f"Excluded {pattern!r}.")


if __name__ == "__main__":
    app()
