"""Domain models for tracked browsing activity."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional

from .lexicon import LEXICON_VERSION, OTHER

DEFAULT_EXCLUDED_SITES: tuple[str, ...] = ("chrome://", "chrome-extension://", "about:")
MAX_INTERACTIONS_PER_SITE = 50


class EventType(str, Enum):
    SESSION_START = "session_start"
    SESSION_END = "session_end"
    ENGAGEMENT = "engagement"
    PAGE_TEXT = "page_text"
    CONTENT_ANALYSIS = "content_analysis"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class ContentQuality(str, Enum):
    NEUTRAL = "neutral"
    BIASED = "biased"
    INFORMATIVE = "informative"
    HARMFUL = "harmful"


class TimerState(str, Enum):
    IDLE = "idle"
    TRACKING = "tracking"
    PAUSED = "paused"


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


@dataclass(slots=True, frozen=True)
class ContentAnalysisResult:
    """Heuristic analysis of one page's text. Replaced, never merged."""

    sentiment: Sentiment
    quality: ContentQuality
    topics: tuple[str, ...]
    readability: int
    analyzed_at: datetime
    lexicon_version: str = LEXICON_VERSION

    def to_dict(self) -> dict[str, Any]:
        return {
            "sentiment": self.sentiment.value,
            "quality": self.quality.value,
            "topics": list(self.topics),
            "readability": self.readability,
            "analyzedAt": format_timestamp(self.analyzed_at),
            "lexiconVersion": self.lexicon_version,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ContentAnalysisResult":
        return cls(
            sentiment=Sentiment(data.get("sentiment", Sentiment.NEUTRAL.value)),
            quality=ContentQuality(data.get("quality", ContentQuality.NEUTRAL.value)),
            topics=tuple(data.get("topics") or ()),
            readability=int(data.get("readability", 0)),
            analyzed_at=parse_timestamp(data.get("analyzedAt")) or datetime.now(),
            lexicon_version=data.get("lexiconVersion", LEXICON_VERSION),
        )


@dataclass(slots=True)
class TrackingEvent:
    """A persisted, append-only record emitted by the tracking pipeline."""

    type: EventType
    url: str
    ts: datetime
    title: str = ""
    duration_ms: Optional[int] = None
    data: dict[str, Any] = field(default_factory=dict)
    text: Optional[str] = None
    analysis: Optional[ContentAnalysisResult] = None

    def payload(self) -> dict[str, Any]:
        """Variant-specific fields, stored alongside the common columns."""
        payload: dict[str, Any] = {}
        if self.duration_ms is not None:
            payload["duration"] = self.duration_ms
        if self.data:
            payload["data"] = self.data
        if self.text is not None:
            payload["textSnippet"] = self.text
        if self.analysis is not None:
            payload["analysis"] = self.analysis.to_dict()
        return payload

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "url": self.url,
            "title": self.title,
            "ts": format_timestamp(self.ts),
            **self.payload(),
        }

    @classmethod
    def from_parts(
        cls,
        type_: str,
        url: str,
        title: Optional[str],
        ts: datetime,
        payload: Mapping[str, Any],
    ) -> "TrackingEvent":
        analysis = payload.get("analysis")
        return cls(
            type=EventType(type_),
            url=url,
            ts=ts,
            title=title or "",
            duration_ms=payload.get("duration"),
            data=dict(payload.get("data") or {}),
            text=payload.get("textSnippet"),
            analysis=ContentAnalysisResult.from_dict(analysis) if analysis else None,
        )


@dataclass(slots=True)
class EmotionalTally:
    positive: int = 0
    negative: int = 0
    neutral: int = 0

    @property
    def total(self) -> int:
        return self.positive + self.negative + self.neutral

    def bump(self, sentiment: Sentiment) -> None:
        if sentiment is Sentiment.POSITIVE:
            self.positive += 1
        elif sentiment is Sentiment.NEGATIVE:
            self.negative += 1
        else:
            self.neutral += 1

    def to_dict(self) -> dict[str, int]:
        return {"positive": self.positive, "negative": self.negative, "neutral": self.neutral}

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "EmotionalTally":
        data = data or {}
        return cls(
            positive=int(data.get("positive", 0)),
            negative=int(data.get("negative", 0)),
            neutral=int(data.get("neutral", 0)),
        )


@dataclass(slots=True)
class Insight:
    type: str
    title: str
    description: str
    priority: str

    def to_dict(self) -> dict[str, str]:
        return {
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "priority": self.priority,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Insight":
        return cls(
            type=data["type"],
            title=data.get("title", ""),
            description=data.get("description", ""),
            priority=data.get("priority", "low"),
        )


@dataclass(slots=True)
class SiteRecord:
    """Per-domain accumulator within a session."""

    domain: str
    url: str
    title: str = ""
    visits: int = 0
    time_spent: float = 0.0
    last_visit: Optional[datetime] = None
    category: str = OTHER
    content_analysis: Optional[ContentAnalysisResult] = None
    engagement: dict[str, float] = field(default_factory=dict)
    interactions: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "domain": self.domain,
            "url": self.url,
            "title": self.title,
            "visits": self.visits,
            "timeSpent": self.time_spent,
            "lastVisit": format_timestamp(self.last_visit),
            "category": self.category,
            "contentAnalysis": (
                self.content_analysis.to_dict() if self.content_analysis else None
            ),
            "engagement": dict(self.engagement),
            "interactions": list(self.interactions),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SiteRecord":
        analysis = data.get("contentAnalysis")
        return cls(
            domain=data["domain"],
            url=data.get("url", ""),
            title=data.get("title", ""),
            visits=int(data.get("visits", 0)),
            time_spent=float(data.get("timeSpent", 0.0)),
            last_visit=parse_timestamp(data.get("lastVisit")),
            category=data.get("category", OTHER),
            content_analysis=ContentAnalysisResult.from_dict(analysis) if analysis else None,
            engagement=dict(data.get("engagement") or {}),
            interactions=list(data.get("interactions") or []),
        )


@dataclass(slots=True)
class Session:
    """One continuous tracking period."""

    start_time: datetime
    end_time: Optional[datetime] = None
    total_time: float = 0.0
    active_time: float = 0.0
    is_paused: bool = False
    sites: dict[str, SiteRecord] = field(default_factory=dict)
    category_tally: dict[str, int] = field(default_factory=dict)
    emotional_tally: EmotionalTally = field(default_factory=EmotionalTally)
    productivity_score: int = 50
    insights: list[Insight] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "startTime": format_timestamp(self.start_time),
            "endTime": format_timestamp(self.end_time),
            "totalTime": self.total_time,
            "activeTime": self.active_time,
            "isPaused": self.is_paused,
            "sites": {domain: site.to_dict() for domain, site in self.sites.items()},
            "categories": dict(self.category_tally),
            "emotionalBalance": self.emotional_tally.to_dict(),
            "productivityScore": self.productivity_score,
            "insights": [insight.to_dict() for insight in self.insights],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Session":
        return cls(
            start_time=parse_timestamp(data["startTime"]),  # type: ignore[arg-type]
            end_time=parse_timestamp(data.get("endTime")),
            total_time=float(data.get("totalTime", 0.0)),
            active_time=float(data.get("activeTime", 0.0)),
            is_paused=bool(data.get("isPaused", False)),
            sites={
                domain: SiteRecord.from_dict(site)
                for domain, site in (data.get("sites") or {}).items()
            },
            category_tally={k: int(v) for k, v in (data.get("categories") or {}).items()},
            emotional_tally=EmotionalTally.from_dict(data.get("emotionalBalance")),
            productivity_score=int(data.get("productivityScore", 50)),
            insights=[Insight.from_dict(item) for item in data.get("insights") or []],
        )


@dataclass(slots=True)
class UserSettings:
    """User preferences consulted on every tracking decision."""

    tracking_enabled: bool = True
    excluded_sites: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDED_SITES))
    user_categories: dict[str, list[str]] = field(default_factory=dict)
    privacy_mode: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "trackingEnabled": self.tracking_enabled,
            "excludedSites": list(self.excluded_sites),
            "userCategories": {k: list(v) for k, v in self.user_categories.items()},
            "privacyMode": self.privacy_mode,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UserSettings":
        defaults = cls()
        return cls(
            tracking_enabled=bool(data.get("trackingEnabled", defaults.tracking_enabled)),
            excluded_sites=list(data.get("excludedSites", defaults.excluded_sites)),
            user_categories={
                k: list(v) for k, v in (data.get("userCategories") or {}).items()
            },
            privacy_mode=bool(data.get("privacyMode", defaults.privacy_mode)),
        )

    def merged(self, updates: Mapping[str, Any]) -> "UserSettings":
        """Return a copy with the camelCase keys in ``updates`` applied."""
        current = self.to_dict()
        current.update({k: v for k, v in updates.items() if k in current})
        return UserSettings.from_dict(current)


@dataclass(slots=True)
class ActiveTabState:
    active_url: Optional[str] = None
    active_title: str = ""
    active_start: Optional[datetime] = None
    paused: bool = False
    last_url: Optional[str] = None
