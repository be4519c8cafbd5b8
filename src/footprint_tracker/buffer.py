"""In-memory event buffer with periodic and size-triggered flushes."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from .config import TrackerSettings
from .db import StorageError, TrackerStore
from .models import TrackingEvent

logger = logging.getLogger(__name__)


class EventBuffer:
    """Coalesces events and merges them into the store.

    Flushes never overlap: each one takes the flush lock, swaps the pending list
    out, and writes that batch. Anything appended while a write is in flight
    waits for the next flush. A failed write puts its batch back in front of the
    pending list; while writes keep failing only the timer retries, and the
    pending list keeps just the newest ``max_events``.
    """

    def __init__(
        self,
        store: TrackerStore,
        settings: TrackerSettings,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self.settings = settings
        self._clock = clock
        self._pending: list[TrackingEvent] = []
        self._lock = threading.Lock()
        self._flush_lock = threading.Lock()
        self._failing = False
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)

    def pending(self) -> list[TrackingEvent]:
        with self._lock:
            return list(self._pending)

    def events_since(self, since: datetime) -> list[TrackingEvent]:
        """Stored plus pending events from ``since`` on, without gaps or repeats."""
        with self._flush_lock:
            stored = self._store.load_events(since=since)
            with self._lock:
                pending = [event for event in self._pending if event.ts >= since]
        return stored + pending

    def append(self, event: TrackingEvent) -> None:
        with self._lock:
            self._pending.append(event)
            self._trim_locked()
            should_flush = (
                not self._failing and len(self._pending) >= self.settings.flush_threshold
            )
        if should_flush:
            logger.debug("Buffer reached %d events; flushing.", self.settings.flush_threshold)
            self.flush()

    def flush(self) -> int:
        """Write pending events; return how many were persisted."""
        with self._flush_lock:
            with self._lock:
                batch = self._pending
                self._pending = []
            if not batch:
                return 0

            cutoff = self._clock() - self.settings.event_retention
            try:
                self._store.merge_events(batch, cutoff, self.settings.max_events)
            except StorageError:
                logger.warning(
                    "Flush of %d events failed; keeping them for retry.",
                    len(batch),
                    exc_info=True,
                )
                with self._lock:
                    self._pending = batch + self._pending
                    self._trim_locked()
                    self._failing = True
                return 0

            if self._failing:
                logger.info("Storage recovered; flushed %d held events.", len(batch))
            self._failing = False
            logger.debug("Flushed %d events.", len(batch))
            return len(batch)

    def _trim_locked(self) -> None:
        overflow = len(self._pending) - self.settings.max_events
        if overflow > 0:
            del self._pending[:overflow]
            logger.debug("Dropped %d oldest unflushed events over the cap.", overflow)

    def start(self) -> None:
        """Flush on a fixed interval in a background thread."""
        if self._thread and self._thread.is_alive():
            return
        stop_event = threading.Event()
        thread = threading.Thread(
            target=self._run_timer, args=(stop_event,), name="event-flush", daemon=True
        )
        self._stop_event = stop_event
        self._thread = thread
        thread.start()

    def stop(self) -> None:
        thread, stop_event = self._thread, self._stop_event
        self._thread = None
        self._stop_event = None
        if stop_event:
            stop_event.set()
        if thread:
            thread.join(timeout=10)
        self.flush()

    def _run_timer(self, stop_event: threading.Event) -> None:
        interval = self.settings.flush_interval.total_seconds()
        # Sleep in an interruptible manner.
        while not stop_event.wait(interval):
            self.flush()
