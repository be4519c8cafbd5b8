"""Active-tab timer: the single owner of "which site is active now"."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from .models import ActiveTabState, EventType, TimerState, TrackingEvent, UserSettings
from .normalization import is_internal_url, matches_excluded, normalize_title

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
EmitFn = Callable[[TrackingEvent], None]
SettingsProvider = Callable[[], UserSettings]

NOISE_FLOOR = timedelta(milliseconds=1000)


@dataclass(slots=True, frozen=True)
class TabInfo:
    url: str
    title: str = ""


def is_trackable(url: Optional[str], settings: UserSettings) -> bool:
    if not url or not settings.tracking_enabled:
        return False
    if is_internal_url(url):
        return False
    return not matches_excluded(url, settings.excluded_sites)


class ActiveTabTimer:
    """Turns tab, window and idle signals into session start/end events.

    At most one interval is open at a time. Closing an interval captures the
    start timestamp and clears the state before anything is emitted, so a
    re-entrant signal can never observe (and re-count) the same interval.
    """

    def __init__(
        self,
        emit: EmitFn,
        settings_provider: SettingsProvider,
        clock: Clock = datetime.now,
        noise_floor: timedelta = NOISE_FLOOR,
    ) -> None:
        self._emit = emit
        self._settings_provider = settings_provider
        self._clock = clock
        self._noise_floor = noise_floor
        self._state = ActiveTabState()

    @property
    def active_url(self) -> Optional[str]:
        return self._state.active_url

    @property
    def last_url(self) -> Optional[str]:
        return self._state.last_url

    def status(self) -> TimerState:
        if self._state.paused:
            return TimerState.PAUSED
        if self._state.active_url is not None:
            return TimerState.TRACKING
        return TimerState.IDLE

    def activate(self, url: Optional[str], title: str = "") -> TimerState:
        """Handle tab activation, window focus gained or a URL change."""
        if self._state.paused:
            logger.debug("Ignoring activation of %s while paused.", url)
            return TimerState.PAUSED
        self._close_interval()
        self._open_interval(url, title)
        return self.status()

    def deactivate(self, reason: str = "focus_lost") -> TimerState:
        """Handle focus loss or an idle/locked browser."""
        if self._close_interval():
            logger.debug("Tracking stopped: %s", reason)
        return self.status()

    def pause(self) -> TimerState:
        self._close_interval()
        self._state.paused = True
        return TimerState.PAUSED

    def resume(self, tab: Optional[TabInfo]) -> TimerState:
        """Leave the paused state and start timing ``tab`` if it is trackable."""
        self._state.paused = False
        self._close_interval()
        if tab is None:
            return TimerState.IDLE
        self._open_interval(tab.url, tab.title)
        return self.status()

    def shutdown(self) -> None:
        self._close_interval()

    def _open_interval(self, url: Optional[str], title: str) -> None:
        settings = self._settings_provider()
        if not is_trackable(url, settings):
            logger.debug("Not tracking %s (excluded, internal or disabled).", url)
            return

        now = self._clock()
        self._state.active_url = url
        self._state.active_title = normalize_title(title)
        self._state.active_start = now
        self._state.last_url = url
        self._emit(
            TrackingEvent(
                type=EventType.SESSION_START,
                url=url,  # type: ignore[arg-type]
                title=self._state.active_title,
                ts=now,
            )
        )

    def _close_interval(self) -> bool:
        url = self._state.active_url
        title = self._state.active_title
        start = self._state.active_start
        self._state.active_url = None
        self._state.active_title = ""
        self._state.active_start = None
        if url is None or start is None:
            return False

        now = self._clock()
        duration = now - start
        if duration < self._noise_floor:
            logger.debug("Dropping %.0f ms interval on %s as noise.", duration / timedelta(milliseconds=1), url)
            return True

        self._emit(
            TrackingEvent(
                type=EventType.SESSION_END,
                url=url,
                title=title,
                ts=now,
                duration_ms=int(duration / timedelta(milliseconds=1)),
            )
        )
        return True
