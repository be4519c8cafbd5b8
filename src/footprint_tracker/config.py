"""Configuration models and helpers for the tracker engine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

MIN_RETENTION_DAYS = 14
MAX_RETENTION_DAYS = 90


@dataclass(slots=True)
class TrackerSettings:
    """Runtime configuration for the tracking engine."""

    flush_interval: timedelta = timedelta(seconds=25)
    flush_threshold: int = 200
    max_events: int = 50_000
    event_retention: timedelta = timedelta(days=MIN_RETENTION_DAYS)
    max_sessions: int = 100
    session_retention: timedelta = timedelta(days=90)
    noise_floor: timedelta = timedelta(milliseconds=1000)
    checkpoint_interval: timedelta = timedelta(seconds=60)
    backend_url: Optional[str] = None
    backend_timeout: float = 8.0
    user_id: str = "local"

    def __post_init__(self) -> None:
        days = self.event_retention.total_seconds() / 86400
        if not MIN_RETENTION_DAYS <= days <= MAX_RETENTION_DAYS:
            raise ValueError(
                f"event retention must be between {MIN_RETENTION_DAYS} and "
                f"{MAX_RETENTION_DAYS} days, got {days:g}"
            )
        if self.flush_threshold < 1:
            raise ValueError("flush_threshold must be positive")
        if self.max_events < 1:
            raise ValueError("max_events must be positive")

    @classmethod
    def from_options(
        cls,
        flush_seconds: float = 25.0,
        retention_days: float = MIN_RETENTION_DAYS,
        max_events: int = 50_000,
        backend_url: str | None = None,
        backend_timeout: float = 8.0,
        user_id: str | None = None,
    ) -> "TrackerSettings":
        return cls(
            flush_interval=timedelta(seconds=flush_seconds),
            event_retention=timedelta(days=retention_days),
            max_events=max_events,
            backend_url=backend_url.rstrip("/") if backend_url else None,
            backend_timeout=backend_timeout,
            user_id=user_id or "local",
        )
