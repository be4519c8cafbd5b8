"""Keyword heuristics over raw page text.

Every function here is pure and tolerant of empty or non-string input: it
returns a neutral default instead of raising.
"""

from __future__ import annotations

import math
import re
from collections import Counter
from datetime import datetime
from functools import lru_cache
from typing import Any, Iterable, Optional

from .lexicon import (
    BIAS_INDICATORS,
    HARM_INDICATORS,
    INFORMATIVE_PHRASES,
    NEGATIVE_WORDS,
    POSITIVE_WORDS,
    TOPIC_KEYWORDS,
)
from .models import ContentAnalysisResult, ContentQuality, Sentiment

MAX_TOPICS = 5

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_WHITESPACE_SPLIT = re.compile(r"\s+")
_SILENT_SUFFIX = re.compile(r"(?:[^laeiouy]es|ed|[^laeiouy]e)$")
_VOWEL_GROUP = re.compile(r"[aeiouy]{1,2}")


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives, matching browser-side scores."""
    return int(math.floor(value + 0.5))


@lru_cache(maxsize=None)
def _word_pattern(word: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(word)}\b", re.ASCII)


def count_matches(lowered: str, words: Iterable[str]) -> int:
    return sum(len(_word_pattern(word).findall(lowered)) for word in words)


def _is_text(text: Any) -> bool:
    return isinstance(text, str) and bool(text)


def analyze_sentiment(text: Any) -> Sentiment:
    if not _is_text(text):
        return Sentiment.NEUTRAL

    lowered = text.lower()
    positive = count_matches(lowered, POSITIVE_WORDS)
    negative = count_matches(lowered, NEGATIVE_WORDS)

    if positive > negative:
        return Sentiment.POSITIVE
    if negative > positive:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL


def analyze_content_quality(text: Any) -> ContentQuality:
    """Flag harmful, biased or informative text.

    Indicator counts are normalized per hundred words. Harm is checked before
    bias; informative phrases only matter when neither threshold is crossed.
    """
    if not _is_text(text):
        return ContentQuality.NEUTRAL

    lowered = text.lower()
    bias_score = count_matches(lowered, BIAS_INDICATORS)
    harm_score = count_matches(lowered, HARM_INDICATORS)

    word_count = len(_WHITESPACE_SPLIT.split(text))
    normalized_bias = bias_score / word_count * 100
    normalized_harm = harm_score / word_count * 100

    if normalized_harm > 0.5:
        return ContentQuality.HARMFUL
    if normalized_bias > 2:
        return ContentQuality.BIASED

    if any(phrase in lowered for phrase in INFORMATIVE_PHRASES):
        return ContentQuality.INFORMATIVE
    return ContentQuality.NEUTRAL


def extract_topics(text: Any, max_topics: int = MAX_TOPICS) -> list[str]:
    if not _is_text(text):
        return []

    lowered = text.lower()
    scores: dict[str, int] = {}
    for topic, keywords in TOPIC_KEYWORDS.items():
        score = count_matches(lowered, keywords)
        if score > 0:
            scores[topic] = score

    ranked = sorted(scores.items(), key=lambda item: item[1], reverse=True)
    return [topic for topic, _ in ranked[: max(max_topics, 0)]]


def count_syllables(word: str) -> int:
    word = word.lower()
    if len(word) <= 3:
        return 1
    word = _SILENT_SUFFIX.sub("", word, count=1)
    word = re.sub(r"^y", "", word)
    groups = _VOWEL_GROUP.findall(word)
    return len(groups) if groups else 1


def calculate_readability(text: Any) -> int:
    """Simplified Flesch reading ease, clamped to 0..100."""
    if not _is_text(text):
        return 0

    sentences = [s for s in _SENTENCE_SPLIT.split(text) if s.strip()]
    words = text.split()
    if not sentences or not words:
        return 0

    syllables = sum(count_syllables(word) for word in words)
    avg_words = len(words) / len(sentences)
    avg_syllables = syllables / len(words)

    score = 206.835 - 1.015 * avg_words - 84.6 * avg_syllables
    return max(0, min(100, round_half_up(score)))


def analyze_content(text: Any, analyzed_at: Optional[datetime] = None) -> ContentAnalysisResult:
    return ContentAnalysisResult(
        sentiment=analyze_sentiment(text),
        quality=analyze_content_quality(text),
        topics=tuple(extract_topics(text)),
        readability=calculate_readability(text),
        analyzed_at=analyzed_at or datetime.now(),
    )


def detect_content_bubbles(analyses: Iterable[ContentAnalysisResult]) -> dict[str, Any]:
    """Summarize how varied the analyzed topics are.

    ``diversity`` grows with the number of distinct topics and shrinks as the
    same topics repeat; it is capped at 100.
    """
    counts: Counter[str] = Counter()
    for analysis in analyses:
        counts.update(analysis.topics)

    if not counts:
        return {"diversity": 0, "topTopics": []}

    unique = len(counts)
    total = sum(counts.values())
    diversity = round_half_up(unique / max(total / unique, 1) * 100)
    top = sorted(counts.items(), key=lambda item: item[1], reverse=True)[:MAX_TOPICS]
    return {
        "diversity": min(100, diversity),
        "topTopics": [{"topic": topic, "count": count} for topic, count in top],
    }
