"""SQLite persistence for events, sessions and settings."""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator, Optional

from .models import Session, TrackingEvent, UserSettings

logger = logging.getLogger(__name__)

DATETIME_FMT = "%Y-%m-%d %H:%M:%S.%f"

SETTINGS_KEY = "user_settings"


class StorageError(RuntimeError):
    """Raised when the durable store cannot be read or written."""


def open_database(path: Path, *, check_same_thread: bool = True) -> sqlite3.Connection:
    """Open (and initialize) the SQLite database."""
    conn = sqlite3.connect(
        path,
        isolation_level=None,
        check_same_thread=check_same_thread,
    )
    conn.row_factory = sqlite3.Row
    initialize_schema(conn)
    return conn


@contextmanager
def database_connection(
    path: Path, *, check_same_thread: bool = True
) -> Iterator[sqlite3.Connection]:
    conn = open_database(path, check_same_thread=check_same_thread)
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    conn.execute("BEGIN IMMEDIATE;")
    try:
        yield conn
    except BaseException:
        conn.execute("ROLLBACK;")
        raise
    conn.execute("COMMIT;")


def initialize_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS events (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            type TEXT NOT NULL,
            url TEXT NOT NULL,
            title TEXT,
            ts TEXT NOT NULL,
            payload TEXT NOT NULL DEFAULT '{}'
        );

        CREATE INDEX IF NOT EXISTS idx_events_ts
            ON events(ts);

        CREATE TABLE IF NOT EXISTS sessions (
            start_time TEXT PRIMARY KEY,
            payload TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS current_session (
            id INTEGER PRIMARY KEY CHECK (id = 1),
            payload TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS settings (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        );
        """
    )


def insert_events(conn: sqlite3.Connection, events: Iterable[TrackingEvent]) -> None:
    conn.executemany(
        """
        INSERT INTO events (type, url, title, ts, payload)
        VALUES (?, ?, ?, ?, ?)
        """,
        [
            (
                event.type.value,
                event.url,
                event.title,
                event.ts.strftime(DATETIME_FMT),
                json.dumps(event.payload()),
            )
            for event in events
        ],
    )


def prune_events_before(conn: sqlite3.Connection, cutoff: datetime) -> int:
    cur = conn.execute("DELETE FROM events WHERE ts < ?", (cutoff.strftime(DATETIME_FMT),))
    return cur.rowcount


def truncate_events(conn: sqlite3.Connection, max_events: int) -> int:
    """Drop the oldest rows (by insertion order) beyond ``max_events``."""
    cur = conn.execute(
        """
        DELETE FROM events
        WHERE id NOT IN (
            SELECT id FROM events ORDER BY id DESC LIMIT ?
        )
        """,
        (max_events,),
    )
    return cur.rowcount


def fetch_events(
    conn: sqlite3.Connection,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
) -> list[TrackingEvent]:
    clauses: list[str] = []
    params: list[object] = []
    if since is not None:
        clauses.append("ts >= ?")
        params.append(since.strftime(DATETIME_FMT))
    if until is not None:
        clauses.append("ts < ?")
        params.append(until.strftime(DATETIME_FMT))
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    rows = conn.execute(
        f"SELECT type, url, title, ts, payload FROM events {where} ORDER BY id",
        params,
    )
    return [_row_to_event(row) for row in rows]


def count_events(conn: sqlite3.Connection) -> int:
    return int(conn.execute("SELECT COUNT(*) FROM events").fetchone()[0])


def _row_to_event(row: sqlite3.Row) -> TrackingEvent:
    return TrackingEvent.from_parts(
        row["type"],
        row["url"],
        row["title"],
        datetime.strptime(row["ts"], DATETIME_FMT),
        json.loads(row["payload"] or "{}"),
    )


class TrackerStore:
    """Persistence port shared by the buffer, aggregator and service.

    Each call opens its own short-lived connection, so the store can be used
    from the worker and flush-timer threads alike. SQLite failures surface as
    :class:`StorageError`.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            with database_connection(self.db_path, check_same_thread=False) as conn:
                yield conn
        except sqlite3.Error as exc:
            raise StorageError(f"storage failure on {self.db_path}: {exc}") from exc

    # -------- events --------

    def merge_events(
        self,
        events: list[TrackingEvent],
        retention_cutoff: datetime,
        max_events: int,
    ) -> None:
        """Prune stale rows, append ``events`` in order and enforce the cap.

        Runs in one transaction: either everything lands or nothing does.
        """
        with self._connect() as conn, transaction(conn):
            pruned = prune_events_before(conn, retention_cutoff)
            insert_events(conn, events)
            dropped = truncate_events(conn, max_events)
        if pruned or dropped:
            logger.debug("Pruned %d expired and %d overflow events.", pruned, dropped)

    def load_events(
        self, since: Optional[datetime] = None, until: Optional[datetime] = None
    ) -> list[TrackingEvent]:
        with self._connect() as conn:
            return fetch_events(conn, since, until)

    def event_count(self) -> int:
        with self._connect() as conn:
            return count_events(conn)

    # -------- settings --------

    def load_settings(self) -> UserSettings:
        """Return stored settings, writing the defaults on first use."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM settings WHERE key = ?", (SETTINGS_KEY,)
            ).fetchone()
            if row is not None:
                return UserSettings.from_dict(json.loads(row["value"]))
            defaults = UserSettings()
            conn.execute(
                "INSERT OR IGNORE INTO settings (key, value) VALUES (?, ?)",
                (SETTINGS_KEY, json.dumps(defaults.to_dict())),
            )
            return defaults

    def save_settings(self, settings: UserSettings) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO settings (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (SETTINGS_KEY, json.dumps(settings.to_dict())),
            )

    # -------- sessions --------

    def load_current_session(self) -> Optional[Session]:
        with self._connect() as conn:
            row = conn.execute("SELECT payload FROM current_session WHERE id = 1").fetchone()
        return Session.from_dict(json.loads(row["payload"])) if row else None

    def save_session(self, session: Session, max_sessions: int) -> None:
        """Persist ``session`` as current and upsert its snapshot into history."""
        payload = json.dumps(session.to_dict())
        key = session.start_time.strftime(DATETIME_FMT)
        with self._connect() as conn, transaction(conn):
            conn.execute(
                """
                INSERT INTO current_session (id, payload) VALUES (1, ?)
                ON CONFLICT(id) DO UPDATE SET payload = excluded.payload
                """,
                (payload,),
            )
            conn.execute(
                """
                INSERT INTO sessions (start_time, payload) VALUES (?, ?)
                ON CONFLICT(start_time) DO UPDATE SET payload = excluded.payload
                """,
                (key, payload),
            )
            conn.execute(
                """
                DELETE FROM sessions
                WHERE start_time NOT IN (
                    SELECT start_time FROM sessions ORDER BY start_time DESC LIMIT ?
                )
                """,
                (max_sessions,),
            )

    def load_sessions(self, since: Optional[datetime] = None) -> list[Session]:
        with self._connect() as conn:
            if since is None:
                rows = conn.execute("SELECT payload FROM sessions ORDER BY start_time")
            else:
                rows = conn.execute(
                    "SELECT payload FROM sessions WHERE start_time >= ? ORDER BY start_time",
                    (since.strftime(DATETIME_FMT),),
                )
            return [Session.from_dict(json.loads(row["payload"])) for row in rows]

    def prune_sessions(self, cutoff: datetime) -> int:
        with self._connect() as conn:
            cur = conn.execute(
                "DELETE FROM sessions WHERE start_time <= ?",
                (cutoff.strftime(DATETIME_FMT),),
            )
            return cur.rowcount
