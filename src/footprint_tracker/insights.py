"""Human-readable observations derived from a session."""

from __future__ import annotations

from .models import Insight, Session

HIGH = "high"
MEDIUM = "medium"
LOW = "low"

SKEW_RATIO = 0.6
LOW_PRODUCTIVITY = 30
HIGH_PRODUCTIVITY = 80
DIVERSE_CATEGORY_COUNT = 6


def generate_insights(session: Session) -> list[Insight]:
    """Evaluate every rule independently and return all that apply."""
    insights: list[Insight] = []

    tally = session.emotional_tally
    if tally.total > 0:
        if tally.negative / tally.total > SKEW_RATIO:
            insights.append(
                Insight(
                    type="emotional_warning",
                    title="High Negative Content Exposure",
                    description=(
                        "You've encountered a lot of negative content today. "
                        "Consider taking breaks or visiting more positive content."
                    ),
                    priority=HIGH,
                )
            )
        elif tally.positive / tally.total > SKEW_RATIO:
            insights.append(
                Insight(
                    type="emotional_positive",
                    title="Positive Content Day",
                    description="Great job! You've been consuming mostly positive content today.",
                    priority=LOW,
                )
            )

    tracked_time = sum(site.time_spent for site in session.sites.values())
    if tracked_time > 0:
        if session.productivity_score < LOW_PRODUCTIVITY:
            insights.append(
                Insight(
                    type="productivity_warning",
                    title="Low Productivity Score",
                    description=(
                        "Your focus seems scattered today. Try using website blockers "
                        "or taking focused work sessions."
                    ),
                    priority=MEDIUM,
                )
            )
        elif session.productivity_score > HIGH_PRODUCTIVITY:
            insights.append(
                Insight(
                    type="productivity_praise",
                    title="Highly Productive Session",
                    description="Excellent! You've maintained great focus on productive activities.",
                    priority=LOW,
                )
            )

    if len(session.category_tally) > DIVERSE_CATEGORY_COUNT:
        insights.append(
            Insight(
                type="diversity_high",
                title="Diverse Content Consumption",
                description=(
                    "You've explored many different types of content today. "
                    "This shows good curiosity!"
                ),
                priority=LOW,
            )
        )

    return insights
