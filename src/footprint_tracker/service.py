"""Single-consumer service that wires the timer, buffer and aggregator together."""

from __future__ import annotations

import logging
import queue
import threading
from collections import OrderedDict
from concurrent.futures import Future
from datetime import datetime, timedelta
from typing import Any, Callable, Optional, Union, assert_never

from .aggregator import SessionAggregator, today_stats, window_start
from .backend import BackendClient, build_ingest_payload
from .buffer import EventBuffer
from .config import TrackerSettings
from .content_analysis import analyze_content
from .db import StorageError, TrackerStore
from .messages import (
    Command,
    ContentAnalysis,
    Engagement,
    ExportData,
    GetAnalytics,
    GetSessionData,
    GetStatus,
    GetTodayStats,
    IdleStateChanged,
    PageText,
    PauseTracking,
    ResetSession,
    ResumeTracking,
    Signal,
    TabActivated,
    TabUpdated,
    UpdateSettings,
    WindowFocusChanged,
)
from .models import EventType, Session, TimerState, TrackingEvent, UserSettings
from .timer import ActiveTabTimer, TabInfo, is_trackable

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0.0"
MAX_CONTENT_CHARS = 5000
MAX_SNIPPET_CHARS = 1000
MAX_CACHED_PAGES = 32

Message = Union[Command, Signal]
TabProvider = Callable[[], Optional[TabInfo]]


class ServiceStopped(RuntimeError):
    """Raised for messages still queued when the service shuts down."""


class TrackingService:
    """Processes browser signals and inbound messages one at a time.

    Every message goes through :meth:`handle`, which is serialized by a lock.
    The worker thread started by :meth:`run_until_stopped` drains a FIFO queue,
    so signals are applied in arrival order and no two handlers interleave.
    """

    def __init__(
        self,
        store: TrackerStore,
        settings: Optional[TrackerSettings] = None,
        *,
        clock: Callable[[], datetime] = datetime.now,
        backend: Optional[BackendClient] = None,
        tab_provider: Optional[TabProvider] = None,
    ) -> None:
        self.settings = settings or TrackerSettings()
        self._store = store
        self._clock = clock
        self._backend = backend
        self._tab_provider = tab_provider or self._focused_tab_info
        self.buffer = EventBuffer(store, self.settings, clock)
        self.aggregator = SessionAggregator(store, self.settings, clock)
        self.timer = ActiveTabTimer(
            emit=self._on_timer_event,
            settings_provider=self._user_settings,
            clock=clock,
            noise_floor=self.settings.noise_floor,
        )
        self._queue: queue.Queue[tuple[Message, Future]] = queue.Queue()
        self._handle_lock = threading.RLock()
        self._worker_running = threading.Event()
        self._focused_tab: Optional[TabInfo] = None
        self._active_tab_id: Optional[int] = None
        self._last_settings = UserSettings()
        self._interval_counters: dict[str, float] = {}
        self._page_text: OrderedDict[str, str] = OrderedDict()
        self._dirty = False
        self._last_checkpoint = clock()
        self._last_prune = clock()

    # -------- lifecycle --------

    def start(self) -> None:
        self._last_settings = self._user_settings()
        self.aggregator.prune_history()
        self.aggregator.checkpoint()
        self.buffer.start()
        logger.info("Tracking service started; writing to %s", self._store.db_path)

    def stop(self) -> None:
        with self._handle_lock:
            self.timer.shutdown()
            self.buffer.stop()
            self.aggregator.checkpoint()
        if self._backend is not None:
            self._backend.close()
        logger.info("Tracking service stopped.")

    def run_until_stopped(self, stop_event: threading.Event) -> None:
        """Consume the message queue until ``stop_event`` is set."""
        self.start()
        self._worker_running.set()
        try:
            while not stop_event.is_set():
                try:
                    message, future = self._queue.get(timeout=1.0)
                except queue.Empty:
                    self._run_maintenance()
                    continue
                self._process(message, future)
                self._run_maintenance()
        finally:
            self._worker_running.clear()
            self._drain_queue()
            self.stop()

    def submit(self, message: Message) -> Future:
        future: Future = Future()
        self._queue.put((message, future))
        return future

    def request(self, message: Message, timeout: float = 10.0) -> dict[str, Any]:
        """Route ``message`` through the worker when it runs, else handle inline."""
        if self._worker_running.is_set():
            return self.submit(message).result(timeout=timeout)
        return self.handle(message)

    def _process(self, message: Message, future: Future) -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            result = self.handle(message)
        except Exception as exc:
            logger.exception("Failed to handle %s message.", message.type)
            future.set_exception(exc)
        else:
            future.set_result(result)

    def _drain_queue(self) -> None:
        while True:
            try:
                _, future = self._queue.get_nowait()
            except queue.Empty:
                return
            if future.set_running_or_notify_cancel():
                future.set_exception(ServiceStopped("tracking service stopped"))

    # -------- dispatch --------

    def handle(self, message: Message) -> dict[str, Any]:
        with self._handle_lock:
            return self._dispatch(message)

    def _dispatch(self, message: Message) -> dict[str, Any]:
        match message:
            case TabActivated(url=url, title=title, tabId=tab_id):
                return self._activate(url, title, tab_id)
            case TabUpdated(url=url, title=title, status=status, tabId=tab_id, active=active):
                if status != "complete" or not active or not self._is_active_tab(tab_id):
                    return self._state_payload()
                return self._activate(url, title, tab_id)
            case WindowFocusChanged(focused=False):
                # Nothing is focused until the browser reports a tab again.
                self._focused_tab = None
                self.timer.deactivate("focus_lost")
                return self._state_payload()
            case WindowFocusChanged(url=url, title=title, tabId=tab_id):
                if not url:
                    return self._state_payload()
                return self._activate(url, title, tab_id)
            case IdleStateChanged(state="active"):
                if self._focused_tab is not None and self.timer.status() is TimerState.IDLE:
                    self.timer.activate(self._focused_tab.url, self._focused_tab.title)
                return self._state_payload()
            case IdleStateChanged(state=state):
                self.timer.deactivate(state)
                return self._state_payload()
            case PauseTracking():
                self.timer.pause()
                self.aggregator.set_paused(True)
                self._dirty = True
                logger.info("Tracking paused.")
                return {"paused": True}
            case ResumeTracking():
                self.timer.resume(self._tab_provider())
                self.aggregator.set_paused(False)
                self._dirty = True
                logger.info("Tracking resumed.")
                return {"paused": False}
            case GetStatus():
                state = self.timer.status()
                return {"paused": state is TimerState.PAUSED, "state": state.value}
            case GetTodayStats():
                return self._today_stats()
            case GetSessionData():
                return {
                    "session": self.aggregator.session.to_dict(),
                    "timestamp": self._clock().isoformat(),
                }
            case GetAnalytics(timeframe=timeframe):
                return self._analytics(timeframe)
            case Engagement(data=data, url=url, title=title):
                return self._record_engagement(data, url, title)
            case ContentAnalysis(content=content, title=title, url=url):
                return self._record_content(content, title, url)
            case PageText(text=text, url=url, title=title):
                return self._record_page_text(text, url, title)
            case UpdateSettings(settings=payload):
                return self._update_settings(payload.model_dump(exclude_none=True))
            case ExportData():
                return self.export()
            case ResetSession():
                return self._reset_session()
            case _:
                assert_never(message)

    # -------- handlers --------

    def _activate(self, url: str, title: str, tab_id: Optional[int] = None) -> dict[str, Any]:
        self._focused_tab = TabInfo(url=url, title=title) if url else None
        self._active_tab_id = tab_id
        self.timer.activate(url, title)
        return self._state_payload()

    def _state_payload(self) -> dict[str, Any]:
        return {"state": self.timer.status().value}

    def _is_active_tab(self, tab_id: Optional[int]) -> bool:
        if self._focused_tab is None:
            return False
        if tab_id is None or self._active_tab_id is None:
            return True
        return tab_id == self._active_tab_id

    def _record_engagement(self, data: dict[str, Any], url: str, title: str) -> dict[str, Any]:
        url = url or (self._focused_tab.url if self._focused_tab else "")
        if not is_trackable(url, self._user_settings()):
            return {"ok": False}
        event = TrackingEvent(
            type=EventType.ENGAGEMENT, url=url, title=title, ts=self._clock(), data=dict(data)
        )
        if url == self.timer.active_url:
            for key, value in event.data.items():
                if isinstance(value, (int, float)) and not isinstance(value, bool):
                    self._interval_counters[key] = self._interval_counters.get(key, 0) + value
        self._record(event)
        return {"ok": True}

    def _record_content(self, content: str, title: str, url: str) -> dict[str, Any]:
        settings = self._user_settings()
        if not content or not is_trackable(url, settings):
            return {"ok": False}

        now = self._clock()
        text = content[:MAX_CONTENT_CHARS]
        analysis = analyze_content(text, now)
        self._record(
            TrackingEvent(
                type=EventType.CONTENT_ANALYSIS,
                url=url,
                title=title,
                ts=now,
                analysis=analysis,
            )
        )
        if not settings.privacy_mode:
            self._remember_page_text(url, text)
            if self._backend is not None:
                future = self._backend.submit_analyze(text, url)
                future.add_done_callback(_log_backend_result("content analysis", url))
        return {"ok": True, "analysis": analysis.to_dict()}

    def _record_page_text(self, text: str, url: str, title: str) -> dict[str, Any]:
        settings = self._user_settings()
        if settings.privacy_mode or not text or not is_trackable(url, settings):
            return {"ok": False}
        snippet = text[:MAX_SNIPPET_CHARS]
        self._remember_page_text(url, snippet)
        self._record(
            TrackingEvent(
                type=EventType.PAGE_TEXT, url=url, title=title, ts=self._clock(), text=snippet
            )
        )
        return {"ok": True}

    def _update_settings(self, updates: dict[str, Any]) -> dict[str, Any]:
        updated = self._user_settings().merged(updates)
        self._store.save_settings(updated)
        self._last_settings = updated
        active = self.timer.active_url
        if active is not None and not is_trackable(active, updated):
            self.timer.deactivate("excluded")
        if updated.privacy_mode:
            self._page_text.clear()
        logger.info("Settings updated.")
        return {"settings": updated.to_dict()}

    def _reset_session(self) -> dict[str, Any]:
        was_tracking = self.timer.status() is TimerState.TRACKING
        self.timer.deactivate("session_reset")
        self.aggregator.start_new_session()
        if was_tracking and self._focused_tab is not None:
            self.timer.activate(self._focused_tab.url, self._focused_tab.title)
        return {"session": self.aggregator.session.to_dict()}

    def _today_stats(self) -> dict[str, Any]:
        now = self._clock()
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
        events = self.buffer.events_since(start_of_day)
        return today_stats(
            events,
            now,
            is_paused=self.timer.status() is TimerState.PAUSED,
            user_categories=self._user_settings().user_categories,
        )

    def _analytics(self, timeframe: str) -> dict[str, Any]:
        events = self.buffer.events_since(window_start(timeframe, self._clock()))
        return self.aggregator.analytics(
            timeframe, events, self._user_settings().user_categories
        )

    def export(self) -> dict[str, Any]:
        self.buffer.flush()
        self.aggregator.checkpoint()
        return build_export(self._store, self.aggregator.session, self._clock())

    # -------- pipeline --------

    def _on_timer_event(self, event: TrackingEvent) -> None:
        if event.type is EventType.SESSION_START:
            self._interval_counters = {}
        elif event.type is EventType.SESSION_END:
            self._send_interval(event)
            self._interval_counters = {}
        self._record(event)

    def _record(self, event: TrackingEvent) -> None:
        self.buffer.append(event)
        self.aggregator.apply(event, self._user_settings().user_categories)
        self._dirty = True

    def _send_interval(self, event: TrackingEvent) -> None:
        if self._backend is None:
            return
        duration = timedelta(milliseconds=event.duration_ms or 0)
        text = "" if self._user_settings().privacy_mode else self._page_text.get(event.url, "")
        payload = build_ingest_payload(
            user_id=self.settings.user_id,
            url=event.url,
            title=event.title,
            text=text,
            start_ts=event.ts - duration,
            end_ts=event.ts,
            counters=self._interval_counters,
        )
        future = self._backend.submit_ingest(payload)
        future.add_done_callback(_log_backend_result("ingest", event.url))

    def _remember_page_text(self, url: str, text: str) -> None:
        self._page_text[url] = text
        self._page_text.move_to_end(url)
        while len(self._page_text) > MAX_CACHED_PAGES:
            self._page_text.popitem(last=False)

    def _user_settings(self) -> UserSettings:
        """Re-read settings from the store; fall back to the last good copy."""
        try:
            self._last_settings = self._store.load_settings()
        except StorageError:
            logger.warning("Could not read settings; using last known values.", exc_info=True)
        return self._last_settings

    def _focused_tab_info(self) -> Optional[TabInfo]:
        return self._focused_tab

    def checkpoint(self) -> None:
        with self._handle_lock:
            if self.aggregator.checkpoint():
                self._dirty = False
            self._last_checkpoint = self._clock()

    def _run_maintenance(self) -> None:
        """Periodic upkeep between messages: history retention, then checkpoint."""
        if self._clock() - self._last_prune >= self.settings.checkpoint_interval:
            with self._handle_lock:
                self.aggregator.prune_history()
            self._last_prune = self._clock()
        self._checkpoint_if_due()

    def _checkpoint_if_due(self) -> None:
        if not self._dirty:
            return
        if self._clock() - self._last_checkpoint >= self.settings.checkpoint_interval:
            self.checkpoint()


def _log_backend_result(kind: str, url: str) -> Callable[[Future], None]:
    def _callback(future: Future) -> None:
        if future.cancelled():
            return
        if future.exception() is not None:
            logger.warning("Backend %s for %s raised.", kind, url, exc_info=future.exception())
        elif future.result() is None:
            logger.debug("Backend %s for %s was not accepted.", kind, url)

    return _callback


def build_export(
    store: TrackerStore, current: Optional[Session], now: datetime
) -> dict[str, Any]:
    """Everything a user needs to take their data elsewhere."""
    return {
        "settings": store.load_settings().to_dict(),
        "sessions": [session.to_dict() for session in store.load_sessions()],
        "currentSession": current.to_dict() if current else None,
        "exportedAt": now.isoformat(),
        "version": EXPORT_VERSION,
    }
