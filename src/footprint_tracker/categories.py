"""Website categorization by domain pattern."""

from __future__ import annotations

from typing import Iterable, Mapping, Optional

from .lexicon import DEFAULT_CATEGORY_PATTERNS, OTHER
from .normalization import extract_domain

CATEGORIES: tuple[str, ...] = (*DEFAULT_CATEGORY_PATTERNS.keys(), OTHER)


def categorize(
    url: Optional[str],
    user_patterns: Optional[Mapping[str, Iterable[str]]] = None,
) -> str:
    """Map ``url`` to a category label.

    User-defined categories are consulted before the built-in table. Within
    each table the first category (in insertion order) with a pattern that is a
    case-insensitive substring of the hostname wins. Malformed URLs map to
    ``other``.
    """
    domain = extract_domain(url)
    if not domain:
        return OTHER

    if user_patterns:
        match = _first_match(domain, user_patterns)
        if match:
            return match

    return _first_match(domain, DEFAULT_CATEGORY_PATTERNS) or OTHER


def _first_match(domain: str, table: Mapping[str, Iterable[str]]) -> Optional[str]:
    for category, patterns in table.items():
        for pattern in patterns:
            if pattern and isinstance(pattern, str) and pattern.lower() in domain:
                return category
    return None


def display_name(category: str) -> str:
    return category[:1].upper() + category[1:]
