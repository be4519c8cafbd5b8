from datetime import datetime, timedelta

from footprint_tracker.aggregator import (
    SessionAggregator,
    aggregate_window,
    apply_event,
    emotional_balance,
    productivity_score,
    today_stats,
    weekly_trends,
)
from footprint_tracker.config import TrackerSettings
from footprint_tracker.content_analysis import analyze_content
from footprint_tracker.models import EmotionalTally, Session, SiteRecord

from conftest import make_event


def _site(category, seconds):
    return SiteRecord(domain=f"{category}.test", url="", category=category, time_spent=seconds)


def _replay(start, events):
    session = Session(start_time=start)
    for event in events:
        session = apply_event(session, event)
    return session


def _browsing_log(clock):
    t0 = clock.now
    return [
        make_event("session_start", "https://github.com/a", t0, title="Repo"),
        make_event("engagement", "https://github.com/a", t0 + timedelta(seconds=5),
                   data={"clicks": 2, "focusTime": 4000}),
        make_event("content_analysis", "https://github.com/a", t0 + timedelta(seconds=6),
                   analysis=analyze_content("An amazing and great project.", t0)),
        make_event("session_end", "https://github.com/a", t0 + timedelta(seconds=30),
                   duration_ms=30_000),
        make_event("session_start", "https://www.youtube.com/watch", t0 + timedelta(seconds=30)),
        make_event("session_end", "https://www.youtube.com/watch", t0 + timedelta(seconds=40),
                   duration_ms=10_000),
    ]


def test_productivity_mixed_work_and_entertainment():
    assert productivity_score([_site("work", 3600), _site("entertainment", 3600)]) == 35


def test_productivity_bounds():
    assert productivity_score([]) == 50
    assert productivity_score([_site("news", 0)]) == 50
    assert productivity_score([_site("education", 10)]) == 100
    assert productivity_score([_site("social", 10)]) == 0
    assert productivity_score([_site("shopping", 10)]) == 0


def test_emotional_balance_bounds():
    assert emotional_balance(EmotionalTally())["score"] == 50
    assert emotional_balance(EmotionalTally(negative=4))["score"] == 0
    assert emotional_balance(EmotionalTally(positive=4))["score"] == 100
    balanced = emotional_balance(EmotionalTally(positive=1, negative=1, neutral=2))
    assert balanced == {"positive": 25, "negative": 25, "neutral": 50, "score": 50}


def test_replay_yields_identical_sessions(clock):
    log = _browsing_log(clock)
    assert _replay(clock.now, log).to_dict() == _replay(clock.now, log).to_dict()


def test_apply_event_leaves_input_untouched(clock):
    session = Session(start_time=clock.now)
    updated = apply_event(session, _browsing_log(clock)[0])
    assert session.sites == {}
    assert updated.sites["github.com"].visits == 1


def test_reducer_accumulates_time_and_engagement(clock):
    session = _replay(clock.now, _browsing_log(clock))

    github = session.sites["github.com"]
    assert github.visits == 1
    assert github.time_spent == 30.0
    assert github.category == "productivity"
    assert github.engagement == {"clicks": 2, "focusTime": 4000}
    assert github.content_analysis is not None
    assert session.sites["www.youtube.com"].time_spent == 10.0

    assert session.total_time == 40.0
    assert session.active_time == 4.0
    assert session.category_tally == {"productivity": 1, "entertainment": 1}
    assert session.emotional_tally.positive == 1
    # 100*30/40 - 30*10/40 = 67.5 -> 68
    assert session.productivity_score == 68
    assert session.end_time == clock.now + timedelta(seconds=40)


def test_unmatched_session_end_is_ignored(clock):
    session = apply_event(
        Session(start_time=clock.now),
        make_event("session_end", "https://github.com", clock.now, duration_ms=5000),
    )
    assert session.sites == {}
    assert session.total_time == 0.0


def test_interactions_are_capped(clock):
    session = Session(start_time=clock.now)
    session = apply_event(session, make_event("session_start", "https://github.com", clock.now))
    for i in range(60):
        session = apply_event(
            session,
            make_event("engagement", "https://github.com", clock.now, data={"clicks": 1, "seq": i}),
        )
    site = session.sites["github.com"]
    assert len(site.interactions) == 50
    assert site.interactions[-1]["details"]["seq"] == 59
    assert site.engagement["clicks"] == 60
    assert site.time_spent == 0.0


def test_page_text_is_analyzed_when_applied(clock):
    session = Session(start_time=clock.now)
    session = apply_event(session, make_event("session_start", "https://github.com", clock.now))
    session = apply_event(
        session,
        make_event("page_text", "https://github.com", clock.now, text="A terrible awful crisis."),
    )
    assert session.emotional_tally.negative == 1
    assert session.sites["github.com"].content_analysis.sentiment.value == "negative"


def test_window_excludes_old_sessions_and_current_snapshot(clock):
    now = clock.now
    current = _replay(now - timedelta(hours=1), _browsing_log(clock))
    recent = Session(start_time=now - timedelta(days=2), total_time=100.0, productivity_score=90)
    recent.sites["docs.python.org"] = SiteRecord(domain="docs.python.org", url="")
    stale = Session(start_time=now - timedelta(days=10), total_time=500.0)

    result = aggregate_window([stale, recent, current], current, "7d", now)

    assert result["timeframe"] == "7d"
    assert result["sessionCount"] == 2
    assert result["totalTime"] == 140.0
    assert result["sitesVisited"] == 3
    assert result["avgProductivityScore"] == (90 + 68) / 2
    assert result["emotionalBalance"]["positive"] == 1
    assert result["contentBubbles"]["diversity"] >= 0

    month = aggregate_window([stale, recent], current, "30d", now)
    assert month["sessionCount"] == 3
    assert aggregate_window([], None, "2w", now)["timeframe"] == "7d"
    assert aggregate_window([], None, "1d", now)["avgProductivityScore"] == 0.0


def test_today_stats(clock):
    now = clock.now
    events = [
        make_event("session_end", "https://github.com/a", now - timedelta(hours=2), duration_ms=60_000),
        make_event("session_end", "https://github.com/b", now - timedelta(hours=1), duration_ms=60_000),
        make_event("session_end", "https://youtube.com", now, duration_ms=30_000),
        make_event("session_end", "https://reddit.com", now - timedelta(days=1), duration_ms=90_000),
        make_event("session_start", "https://reddit.com", now),
    ]
    stats = today_stats(events, now, is_paused=True)

    assert stats["totalTime"] == 150.0
    assert stats["sessionCount"] == 3
    assert stats["isPaused"] is True
    assert stats["topSites"][0] == {
        "domain": "github.com",
        "totalTime": 120.0,
        "sessions": 2,
        "category": "productivity",
    }
    assert [site["domain"] for site in stats["topSites"]] == ["github.com", "youtube.com"]


def test_aggregator_checkpoint_and_new_session(store, clock):
    aggregator = SessionAggregator(store, TrackerSettings(), clock)
    for event in _browsing_log(clock):
        aggregator.apply(event)
    assert aggregator.checkpoint() is True

    restored = store.load_current_session()
    assert restored.total_time == 40.0
    assert set(restored.sites) == {"github.com", "www.youtube.com"}

    clock.advance(minutes=5)
    fresh = aggregator.start_new_session()
    assert fresh.start_time == clock.now
    assert fresh.sites == {}
    assert len(store.load_sessions()) == 2

    analytics = aggregator.analytics("1d")
    assert analytics["sessionCount"] == 2
    assert analytics["totalTime"] == 40.0


def test_prune_history_drops_old_sessions(store, clock):
    store.save_session(Session(start_time=clock.now - timedelta(days=120)), 100)
    aggregator = SessionAggregator(store, TrackerSettings(), clock)
    assert aggregator.prune_history() == 1
    assert store.load_sessions() == []


def test_weekly_trends_bucket_by_weekday():
    wednesday = datetime(2024, 5, 1, 10, 0)
    sunday = datetime(2024, 5, 5, 22, 30)
    events = [
        make_event("session_end", "https://github.com", wednesday, duration_ms=60_000),
        make_event("session_end", "https://youtube.com", wednesday, duration_ms=30_000),
        make_event("session_end", "https://reddit.com", sunday, duration_ms=20_000),
        make_event("session_end", "https://example.org", sunday, duration_ms=5_000),
        make_event("session_start", "https://github.com", sunday),
    ]
    trends = weekly_trends(events)

    assert list(trends)[0] == "Sunday"
    assert trends["Wednesday"] == {
        "totalTime": 90.0,
        "sessions": 2,
        "productivity": 60.0,
        "entertainment": 30.0,
        "social": 0.0,
    }
    assert trends["Sunday"]["social"] == 20.0
    assert trends["Sunday"]["totalTime"] == 25.0
    assert trends["Monday"]["sessions"] == 0


def test_window_trends_ignore_events_before_the_window(clock):
    events = [
        make_event("session_end", "https://github.com", clock.now - timedelta(days=3), duration_ms=9_000),
        make_event("session_end", "https://github.com", clock.now, duration_ms=4_000),
    ]
    trends = aggregate_window([], None, "1d", clock.now, events)["trends"]
    assert sum(day["totalTime"] for day in trends.values()) == 4.0


def test_new_categories_refresh_insights_on_visit(clock):
    urls = [
        "https://github.com",
        "https://youtube.com",
        "https://reddit.com",
        "https://cnn.com",
        "https://amazon.com",
        "https://coursera.org",
        "https://webmd.com",
    ]
    session = _replay(clock.now, [make_event("session_start", url, clock.now) for url in urls])

    assert len(session.category_tally) == 7
    assert [insight.type for insight in session.insights] == ["diversity_high"]
