"""FastAPI application that receives browser signals and serves tracking data."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import TimeoutError as FutureTimeoutError
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, Optional

from fastapi import Body, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from .backend import BackendClient
from .config import TrackerSettings
from .db import StorageError, TrackerStore
from .messages import (
    ExportData,
    GetAnalytics,
    GetSessionData,
    GetStatus,
    GetTodayStats,
    SettingsPayload,
    UpdateSettings,
    parse_command,
    parse_signal,
)
from .paths import get_db_path
from .service import Message, ServiceStopped, TrackingService

logger = logging.getLogger(__name__)


class ServiceRunner:
    """Manage the tracking service worker in a background thread."""

    def __init__(self, service: TrackingService) -> None:
        self._service = service
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

    def start(self) -> None:
        with self._lock:
            if self._thread and self._thread.is_alive():
                return
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._service.run_until_stopped,
                args=(stop_event,),
                name="tracking-service",
                daemon=True,
            )
            self._thread = thread
            self._stop_event = stop_event
            thread.start()
            logger.info("Tracking service thread started.")

    def stop(self) -> None:
        thread: Optional[threading.Thread] = None
        with self._lock:
            if not self._thread or not self._thread.is_alive() or not self._stop_event:
                return
            self._stop_event.set()
            thread = self._thread
            self._thread = None
            self._stop_event = None
        if thread:
            thread.join(timeout=10)
            logger.info("Tracking service thread stopped.")

    def is_running(self) -> bool:
        with self._lock:
            return bool(self._thread and self._thread.is_alive())


def build_service(db_path: Path, settings: TrackerSettings) -> TrackingService:
    backend = (
        BackendClient(settings.backend_url, timeout=settings.backend_timeout)
        if settings.backend_url
        else None
    )
    return TrackingService(TrackerStore(db_path), settings, backend=backend)


def create_app(
    *,
    db_path: Optional[Path] = None,
    settings: Optional[TrackerSettings] = None,
    service: Optional[TrackingService] = None,
) -> FastAPI:
    """Instantiate the FastAPI application."""
    resolved_settings = settings or TrackerSettings()
    resolved_service = service or build_service(
        Path(db_path or get_db_path()), resolved_settings
    )
    runner = ServiceRunner(resolved_service)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        runner.start()
        try:
            yield
        finally:
            runner.stop()

    app = FastAPI(title="Footprint Tracker", version="1.0.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.service = resolved_service
    app.state.service_runner = runner

    @app.post("/api/messages")
    def post_message(
        request: Request, payload: Dict[str, Any] = Body(...)
    ) -> Dict[str, Any]:
        return _dispatch(request, _validated(parse_command, payload))

    @app.post("/api/signals")
    def post_signal(
        request: Request, payload: Dict[str, Any] = Body(...)
    ) -> Dict[str, Any]:
        return _dispatch(request, _validated(parse_signal, payload))

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        payload = _dispatch(request, GetStatus())
        payload["service_running"] = request.app.state.service_runner.is_running()
        return payload

    @app.get("/api/today")
    def today(request: Request) -> Dict[str, Any]:
        return _dispatch(request, GetTodayStats())

    @app.get("/api/session")
    def session(request: Request) -> Dict[str, Any]:
        return _dispatch(request, GetSessionData())

    @app.get("/api/analytics")
    def analytics(
        request: Request,
        timeframe: str = Query(default="7d", description="One of 1d, 7d or 30d."),
    ) -> Dict[str, Any]:
        return _dispatch(request, GetAnalytics(timeframe=timeframe))

    @app.get("/api/export")
    def export(request: Request) -> Dict[str, Any]:
        return _dispatch(request, ExportData())

    @app.put("/api/settings")
    def update_settings(payload: SettingsPayload, request: Request) -> Dict[str, Any]:
        return _dispatch(request, UpdateSettings(settings=payload))

    return app


def _dispatch(request: Request, message: Message) -> Dict[str, Any]:
    service: TrackingService = request.app.state.service
    try:
        return service.request(message)
    except StorageError as exc:
        logger.warning("Storage unavailable while handling %s: %s", message.type, exc)
        raise HTTPException(status_code=503, detail="Storage unavailable") from exc
    except (FutureTimeoutError, ServiceStopped) as exc:
        raise HTTPException(status_code=503, detail="Tracking service unavailable") from exc


def _validated(parser: Callable[[Any], Message], payload: Dict[str, Any]) -> Message:
    try:
        return parser(payload)
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail=exc.errors(include_url=False, include_context=False, include_input=False),
        ) from exc
