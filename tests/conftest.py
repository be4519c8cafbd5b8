"""Shared fixtures: a controllable clock and a throwaway SQLite store."""

from datetime import datetime, timedelta

import pytest

from footprint_tracker.db import TrackerStore
from footprint_tracker.models import EventType, TrackingEvent


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 5, 1, 9, 0, 0))


@pytest.fixture
def store(tmp_path):
    return TrackerStore(tmp_path / "footprint.sqlite3")


def make_event(type_, url, ts, **kwargs):
    return TrackingEvent(type=EventType(type_), url=url, ts=ts, **kwargs)
