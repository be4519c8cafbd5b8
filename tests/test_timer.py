from dataclasses import replace

import pytest

from footprint_tracker.models import EventType, TimerState, UserSettings
from footprint_tracker.timer import ActiveTabTimer, TabInfo, is_trackable


@pytest.fixture
def user_settings():
    return UserSettings()


@pytest.fixture
def emitted():
    return []


@pytest.fixture
def timer(clock, emitted, user_settings):
    holder = {"settings": user_settings}
    t = ActiveTabTimer(emit=emitted.append, settings_provider=lambda: holder["settings"], clock=clock)
    t.holder = holder
    return t


def _types(events):
    return [(event.type, event.url) for event in events]


def test_switching_tabs_closes_previous_interval(timer, clock, emitted):
    assert timer.activate("https://github.com/a", "Repo") is TimerState.TRACKING
    clock.advance(seconds=5)
    timer.activate("https://youtube.com/watch", "Video")

    assert _types(emitted) == [
        (EventType.SESSION_START, "https://github.com/a"),
        (EventType.SESSION_END, "https://github.com/a"),
        (EventType.SESSION_START, "https://youtube.com/watch"),
    ]
    assert emitted[1].duration_ms == 5000
    assert timer.active_url == "https://youtube.com/watch"


def test_short_intervals_are_dropped_as_noise(timer, clock, emitted):
    timer.activate("https://github.com/a")
    clock.advance(milliseconds=999)
    timer.activate("https://github.com/b")

    assert [e.type for e in emitted] == [EventType.SESSION_START, EventType.SESSION_START]


def test_excluded_site_never_produces_events(timer, clock, emitted, user_settings):
    timer.holder["settings"] = replace(
        user_settings, excluded_sites=[*user_settings.excluded_sites, "youtube.com"]
    )
    assert timer.activate("https://www.youtube.com/watch?v=1") is TimerState.IDLE
    clock.advance(minutes=10)
    timer.deactivate("focus_lost")

    assert emitted == []
    assert timer.status() is TimerState.IDLE


def test_internal_and_empty_urls_are_not_tracked(timer, emitted):
    assert timer.activate("chrome://newtab/") is TimerState.IDLE
    assert timer.activate("about:blank") is TimerState.IDLE
    assert timer.activate("") is TimerState.IDLE
    assert timer.activate(None) is TimerState.IDLE
    assert emitted == []


def test_disabled_tracking(timer, emitted, user_settings):
    timer.holder["settings"] = replace(user_settings, tracking_enabled=False)
    assert timer.activate("https://github.com") is TimerState.IDLE
    assert emitted == []


def test_pause_and_resume(timer, clock, emitted):
    timer.activate("https://github.com/a")
    clock.advance(seconds=10)
    assert timer.pause() is TimerState.PAUSED
    assert emitted[-1].type is EventType.SESSION_END
    assert emitted[-1].duration_ms == 10_000

    clock.advance(seconds=30)
    assert timer.activate("https://youtube.com") is TimerState.PAUSED
    assert len(emitted) == 2
    assert timer.last_url == "https://github.com/a"

    assert timer.resume(TabInfo(url="https://github.com/b")) is TimerState.TRACKING
    assert emitted[-1].type is EventType.SESSION_START
    assert emitted[-1].ts == clock.now


def test_resume_without_a_tab_goes_idle(timer):
    timer.pause()
    assert timer.resume(None) is TimerState.IDLE
    assert timer.status() is TimerState.IDLE


def test_status_has_no_side_effects(timer, emitted):
    timer.activate("https://github.com")
    for _ in range(3):
        assert timer.status() is TimerState.TRACKING
    assert len(emitted) == 1


def test_time_is_conserved_across_transitions(timer, clock, emitted):
    start = clock.now
    urls = ["https://github.com", "https://docs.python.org", "https://github.com", "https://news.ycombinator.com"]
    gaps = [3.0, 12.5, 1.0, 45.25]
    for url, gap in zip(urls, gaps):
        timer.activate(url)
        clock.advance(seconds=gap)
    timer.deactivate("idle")

    ends = [e for e in emitted if e.type is EventType.SESSION_END]
    assert len(ends) == len(urls)
    assert sum(e.duration_ms for e in ends) == int((clock.now - start).total_seconds() * 1000)

    github_ms = sum(e.duration_ms for e in ends if "github.com" in e.url)
    assert github_ms == 4000


def test_reentrant_deactivate_cannot_double_count(clock, emitted):
    holder = {}

    def emit(event):
        emitted.append(event)
        if event.type is EventType.SESSION_END:
            holder["timer"].deactivate("reentrant")

    timer = ActiveTabTimer(emit=emit, settings_provider=UserSettings, clock=clock)
    holder["timer"] = timer
    timer.activate("https://github.com")
    clock.advance(seconds=5)
    timer.deactivate("focus_lost")
    timer.shutdown()

    assert [e.type for e in emitted].count(EventType.SESSION_END) == 1


def test_titles_are_normalized(timer, emitted):
    timer.activate("https://github.com", "Pull requests - Google Chrome")
    assert emitted[0].title == "Pull requests"


def test_is_trackable():
    settings = UserSettings(excluded_sites=["bank"])
    assert is_trackable("https://github.com", settings)
    assert not is_trackable("https://mybank.example", settings)
    assert not is_trackable("chrome-extension://abc/popup.html", settings)
    assert not is_trackable(None, settings)
