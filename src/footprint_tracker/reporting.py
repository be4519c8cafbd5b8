"""Simple reporting utilities for CLI output."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Mapping

from .aggregator import aggregate_window, today_stats, window_start
from .categories import display_name
from .db import TrackerStore


class SummaryPrinter:
    """Render human-readable summaries in the console."""

    def __init__(self, db_path: Path) -> None:
        self.store = TrackerStore(Path(db_path))

    def print_daily_summary(self, now: datetime) -> None:
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
        settings = self.store.load_settings()
        stats = today_stats(
            self.store.load_events(since=start_of_day),
            now,
            is_paused=False,
            user_categories=settings.user_categories,
        )
        if not stats["sessionCount"]:
            print("No browsing recorded for today.")
            return

        print(f"Summary for {now.strftime('%Y-%m-%d')}")
        print("-" * 40)
        print(f"Tracked time: {format_duration(stats['totalTime'])}")
        print(f"Intervals:    {stats['sessionCount']}")
        print()
        print("Top sites:")
        for site in stats["topSites"]:
            label = f"{site['domain']} ({display_name(site['category'])})"
            print(f"  {label[:45]:<45} {format_duration(site['totalTime'])}")

    def print_analytics(self, timeframe: str, now: datetime) -> None:
        settings = self.store.load_settings()
        analytics = aggregate_window(
            self.store.load_sessions(),
            self.store.load_current_session(),
            timeframe,
            now,
            self.store.load_events(since=window_start(timeframe, now)),
            settings.user_categories,
        )
        print(f"Analytics for the last {analytics['timeframe']}")
        print("-" * 40)
        print(f"Sessions:       {analytics['sessionCount']}")
        print(f"Tracked time:   {format_duration(analytics['totalTime'])}")
        print(f"Active time:    {format_duration(analytics['activeTime'])}")
        print(f"Sites visited:  {analytics['sitesVisited']}")
        print(f"Productivity:   {analytics['avgProductivityScore']:.0f}/100")
        print(f"Emotional mood: {analytics['emotionalBalance']['score']}/100")

        categories = sorted(
            analytics["categories"].items(), key=lambda item: item[1], reverse=True
        )
        if categories:
            print()
            print("Visits by category:")
            for category, count in categories:
                print(f"  {display_name(category):<20} {count}")

        busy_days = [(day, data) for day, data in analytics["trends"].items() if data["sessions"]]
        if busy_days:
            print()
            print("By weekday:")
            for day, data in busy_days:
                print(f"  {day:<10} {format_duration(data['totalTime'])}  ({data['sessions']} intervals)")

        _print_insights(analytics["insights"])


def _print_insights(insights: list[Mapping[str, Any]]) -> None:
    unique: dict[str, Mapping[str, Any]] = {}
    for insight in insights:
        unique.setdefault(insight["type"], insight)
    if not unique:
        return
    print()
    print("Insights:")
    for insight in unique.values():
        print(f"  [{insight['priority']}] {insight['title']}")


def format_duration(seconds: float) -> str:
    total_seconds = int(round(seconds))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
