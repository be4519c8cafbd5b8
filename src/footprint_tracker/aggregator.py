"""Folds tracking events into sessions and time-windowed analytics."""

from __future__ import annotations

import copy
import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Callable, Iterable, Mapping, Optional

from .categories import categorize
from .config import TrackerSettings
from .content_analysis import analyze_content, detect_content_bubbles, round_half_up
from .db import StorageError, TrackerStore
from .insights import generate_insights
from .lexicon import DISTRACTING_CATEGORIES, PRODUCTIVE_CATEGORIES
from .models import (
    ContentAnalysisResult,
    EmotionalTally,
    MAX_INTERACTIONS_PER_SITE,
    EventType,
    Session,
    SiteRecord,
    TrackingEvent,
)
from .normalization import extract_domain

logger = logging.getLogger(__name__)

UserCategories = Optional[Mapping[str, Iterable[str]]]

TIMEFRAMES: dict[str, timedelta] = {
    "1d": timedelta(days=1),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}
DEFAULT_TIMEFRAME = "7d"
TOP_SITES_LIMIT = 5

WEEKDAYS: tuple[str, ...] = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)
TRENDED_CATEGORIES: tuple[str, ...] = ("productivity", "entertainment", "social")


def productivity_score(sites: Iterable[SiteRecord]) -> int:
    """Score 0..100 from productive versus distracting time; 50 when empty."""
    productive = 0.0
    distracting = 0.0
    total = 0.0
    for site in sites:
        total += site.time_spent
        if site.category in PRODUCTIVE_CATEGORIES:
            productive += site.time_spent
        elif site.category in DISTRACTING_CATEGORIES:
            distracting += site.time_spent

    if total <= 0:
        return 50
    score = round_half_up(100 * productive / total - 30 * distracting / total)
    return max(0, min(100, score))


def emotional_balance(tally: EmotionalTally) -> dict[str, int]:
    total = tally.total
    if total == 0:
        return {"positive": 0, "negative": 0, "neutral": 0, "score": 50}

    positive_ratio = tally.positive / total
    negative_ratio = tally.negative / total
    score = round_half_up(50 + (positive_ratio - negative_ratio) * 50)
    return {
        "positive": round_half_up(positive_ratio * 100),
        "negative": round_half_up(negative_ratio * 100),
        "neutral": round_half_up(tally.neutral / total * 100),
        "score": max(0, min(100, score)),
    }


def apply_event(
    session: Session, event: TrackingEvent, user_categories: UserCategories = None
) -> Session:
    """Return a new session with ``event`` applied; ``session`` is untouched."""
    updated = copy.deepcopy(session)
    reduce_event(updated, event, user_categories)
    return updated


def reduce_event(
    session: Session, event: TrackingEvent, user_categories: UserCategories = None
) -> None:
    """Apply ``event`` to ``session`` in place.

    Events that reference a site the session has never seen started are
    ignored: the event source is racy and an unmatched end is not an error.
    """
    if session.end_time is None or event.ts > session.end_time:
        session.end_time = event.ts

    domain = extract_domain(event.url)
    if domain is None:
        logger.debug("Ignoring %s event without a domain: %r", event.type.value, event.url)
        return

    if event.type is EventType.SESSION_START:
        _record_visit(session, domain, event, user_categories)
        _refresh_derived(session)
    elif event.type is EventType.SESSION_END:
        site = session.sites.get(domain)
        if site is None:
            logger.debug("session_end for %s without a matching start; ignoring.", domain)
            return
        seconds = max(event.duration_ms or 0, 0) / 1000
        site.time_spent += seconds
        session.total_time += seconds
        _refresh_derived(session)
    elif event.type is EventType.ENGAGEMENT:
        _record_engagement(session, domain, event)
    elif event.type is EventType.PAGE_TEXT:
        _attach_analysis(session, domain, analyze_content(event.text, event.ts))
    elif event.type is EventType.CONTENT_ANALYSIS:
        analysis = event.analysis or analyze_content(event.text, event.ts)
        _attach_analysis(session, domain, analysis)


def _record_visit(
    session: Session, domain: str, event: TrackingEvent, user_categories: UserCategories
) -> None:
    site = session.sites.get(domain)
    if site is None:
        site = SiteRecord(domain=domain, url=event.url, title=event.title)
        session.sites[domain] = site

    site.visits += 1
    site.last_visit = event.ts
    site.url = event.url
    if event.title:
        site.title = event.title
    site.category = categorize(event.url, user_categories)
    session.category_tally[site.category] = session.category_tally.get(site.category, 0) + 1


def _record_engagement(session: Session, domain: str, event: TrackingEvent) -> None:
    site = session.sites.get(domain)
    if site is None:
        return

    counters = {
        key: value
        for key, value in event.data.items()
        if isinstance(value, (int, float)) and not isinstance(value, bool)
    }
    for key, value in counters.items():
        site.engagement[key] = site.engagement.get(key, 0) + value
    site.interactions.append({"timestamp": event.ts.isoformat(), "details": counters})
    del site.interactions[:-MAX_INTERACTIONS_PER_SITE]

    focus_ms = counters.get("focusTime", 0)
    if focus_ms > 0:
        session.active_time += focus_ms / 1000


def _attach_analysis(session: Session, domain: str, analysis: ContentAnalysisResult) -> None:
    site = session.sites.get(domain)
    if site is not None:
        site.content_analysis = analysis
    session.emotional_tally.bump(analysis.sentiment)
    _refresh_derived(session)


def _refresh_derived(session: Session) -> None:
    session.productivity_score = productivity_score(session.sites.values())
    session.insights = generate_insights(session)


def aggregate_window(
    history: Iterable[Session],
    current: Optional[Session],
    timeframe: str,
    now: datetime,
    events: Iterable[TrackingEvent] = (),
    user_categories: UserCategories = None,
) -> dict[str, Any]:
    """Combine the sessions that started within ``timeframe`` of ``now``.

    ``events`` feeds the weekday trends; only those inside the window count.
    """
    if timeframe not in TIMEFRAMES:
        timeframe = DEFAULT_TIMEFRAME
    cutoff = now - TIMEFRAMES[timeframe]

    current_key = current.start_time if current is not None else None
    selected = [
        session
        for session in history
        if session.start_time >= cutoff and session.start_time != current_key
    ]
    if current is not None and current.start_time >= cutoff:
        selected.append(current)

    domains: set[str] = set()
    categories: defaultdict[str, int] = defaultdict(int)
    tally = EmotionalTally()
    analyses: list[ContentAnalysisResult] = []
    insights: list[dict[str, str]] = []
    total_time = 0.0
    active_time = 0.0

    for session in selected:
        total_time += session.total_time
        active_time += session.active_time
        domains.update(session.sites)
        for category, count in session.category_tally.items():
            categories[category] += count
        tally.positive += session.emotional_tally.positive
        tally.negative += session.emotional_tally.negative
        tally.neutral += session.emotional_tally.neutral
        analyses.extend(
            site.content_analysis for site in session.sites.values() if site.content_analysis
        )
        insights.extend(insight.to_dict() for insight in session.insights)

    avg_productivity = (
        sum(session.productivity_score for session in selected) / len(selected)
        if selected
        else 0.0
    )

    return {
        "timeframe": timeframe,
        "totalTime": total_time,
        "activeTime": active_time,
        "sitesVisited": len(domains),
        "categories": dict(categories),
        "emotionalBalance": {**tally.to_dict(), "score": emotional_balance(tally)["score"]},
        "avgProductivityScore": avg_productivity,
        "contentBubbles": detect_content_bubbles(analyses),
        "trends": weekly_trends(
            (event for event in events if event.ts >= cutoff), user_categories
        ),
        "insights": insights,
        "sessionCount": len(selected),
    }


def window_start(timeframe: str, now: datetime) -> datetime:
    return now - TIMEFRAMES.get(timeframe, TIMEFRAMES[DEFAULT_TIMEFRAME])


def weekly_trends(
    events: Iterable[TrackingEvent], user_categories: UserCategories = None
) -> dict[str, dict[str, float]]:
    """Bucket completed intervals by weekday, Sunday first.

    Each day carries tracked seconds, interval count and seconds spent in the
    productivity, entertainment and social categories.
    """
    trends: dict[str, dict[str, float]] = {
        day: {"totalTime": 0.0, "sessions": 0, **{name: 0.0 for name in TRENDED_CATEGORIES}}
        for day in WEEKDAYS
    }
    for event in events:
        if event.type is not EventType.SESSION_END:
            continue
        # datetime.weekday() counts from Monday.
        bucket = trends[WEEKDAYS[(event.ts.weekday() + 1) % 7]]
        seconds = max(event.duration_ms or 0, 0) / 1000
        bucket["totalTime"] += seconds
        bucket["sessions"] += 1
        category = categorize(event.url, user_categories)
        if category in bucket:
            bucket[category] += seconds
    return trends


def today_stats(
    events: Iterable[TrackingEvent],
    now: datetime,
    is_paused: bool,
    user_categories: UserCategories = None,
) -> dict[str, Any]:
    """Summarize today's completed intervals for the popup."""
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    totals: dict[str, dict[str, Any]] = {}
    total_time = 0.0
    session_count = 0

    for event in events:
        if event.type is not EventType.SESSION_END or event.ts < start_of_day:
            continue
        seconds = max(event.duration_ms or 0, 0) / 1000
        session_count += 1
        total_time += seconds
        domain = extract_domain(event.url)
        if domain is None:
            continue
        entry = totals.setdefault(
            domain,
            {
                "domain": domain,
                "totalTime": 0.0,
                "sessions": 0,
                "category": categorize(event.url, user_categories),
            },
        )
        entry["totalTime"] += seconds
        entry["sessions"] += 1

    top_sites = sorted(totals.values(), key=lambda item: item["totalTime"], reverse=True)
    return {
        "totalTime": total_time,
        "topSites": top_sites[:TOP_SITES_LIMIT],
        "isPaused": is_paused,
        "sessionCount": session_count,
    }


class SessionAggregator:
    """Owns the in-progress session and its persisted history."""

    def __init__(
        self,
        store: TrackerStore,
        settings: TrackerSettings,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self.settings = settings
        self._clock = clock
        self._session = Session(start_time=clock())

    @property
    def session(self) -> Session:
        return self._session

    def apply(self, event: TrackingEvent, user_categories: UserCategories = None) -> None:
        reduce_event(self._session, event, user_categories)

    def set_paused(self, paused: bool) -> None:
        self._session.is_paused = paused

    def checkpoint(self) -> bool:
        """Persist the current session and its history snapshot."""
        try:
            self._store.save_session(self._session, self.settings.max_sessions)
        except StorageError:
            logger.warning("Could not persist the current session.", exc_info=True)
            return False
        return True

    def start_new_session(self) -> Session:
        """Archive the current session and begin a fresh one."""
        self._session.end_time = self._session.end_time or self._clock()
        self.checkpoint()
        self._session = Session(start_time=self._clock())
        self.checkpoint()
        logger.info("Started new session at %s", self._session.start_time.isoformat())
        return self._session

    def prune_history(self) -> int:
        cutoff = self._clock() - self.settings.session_retention
        try:
            removed = self._store.prune_sessions(cutoff)
        except StorageError:
            logger.warning("Could not prune session history.", exc_info=True)
            return 0
        if removed:
            logger.info("Cleaned up %d old sessions.", removed)
        return removed

    def analytics(
        self,
        timeframe: str = DEFAULT_TIMEFRAME,
        events: Iterable[TrackingEvent] = (),
        user_categories: UserCategories = None,
    ) -> dict[str, Any]:
        now = self._clock()
        history = self._store.load_sessions(since=window_start(timeframe, now))
        return aggregate_window(
            history, self._session, timeframe, now, events, user_categories
        )
