"""Utilities to normalize URLs and page titles."""

from __future__ import annotations

import re
from typing import Iterable, Optional
from urllib.parse import urlsplit

INTERNAL_SCHEMES: tuple[str, ...] = (
    "chrome://",
    "chrome-extension://",
    "edge://",
    "about:",
    "moz-extension://",
    "devtools://",
    "view-source:",
)

_BROWSER_SUFFIXES: tuple[str, ...] = (
    " - Microsoft Edge",
    " - Google Chrome",
    " - Mozilla Firefox",
    " - Brave",
    " - Opera",
)


def extract_domain(url: Optional[str]) -> Optional[str]:
    """Return the lowercased hostname of ``url`` or None when it has none."""
    if not url or not isinstance(url, str):
        return None
    try:
        hostname = urlsplit(url.strip()).hostname
    except ValueError:
        return None
    return hostname or None


def is_internal_url(url: Optional[str]) -> bool:
    if not url:
        return False
    lowered = url.strip().lower()
    return lowered.startswith(INTERNAL_SCHEMES)


def matches_excluded(url: Optional[str], patterns: Iterable[str]) -> bool:
    """True when any non-empty pattern is a literal substring of ``url``."""
    if not url:
        return False
    return any(pattern and pattern in url for pattern in patterns)


def normalize_title(title: Optional[str]) -> str:
    """Remove common browser suffixes and tab counters from a page title."""
    if not title:
        return ""
    normalized = title.strip()
    for suffix in _BROWSER_SUFFIXES:
        if normalized.endswith(suffix):
            normalized = normalized[: -len(suffix)].rstrip(" -")
            break

    normalized = _strip_tab_count(normalized)
    return re.sub(r"\s{2,}", " ", normalized).strip()


_EXTRA_TAB_COUNT_PATTERN = re.compile(r"\s+and\s+\d+\s+more\s+pages?", re.IGNORECASE)


def _strip_tab_count(value: str) -> str:
    cleaned = _EXTRA_TAB_COUNT_PATTERN.sub("", value)
    return cleaned.strip(" -|")
