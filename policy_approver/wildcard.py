"""Wildcard matching used by policy constraints and selectors.

A pattern is a literal string where ``*`` matches any run of characters
(including none). Matching is anchored at both ends.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


def _compile(pattern: str) -> re.Pattern[str]:
    return re.compile(".*".join(re.escape(part) for part in pattern.split("*")), re.DOTALL)


def matches(pattern: str, value: str) -> bool:
    """Return True if ``value`` matches the wildcard ``pattern``."""
    return _compile(pattern).fullmatch(value) is not None


def matches_any(patterns: Iterable[str], value: str) -> bool:
    """Return True if ``value`` matches at least one of ``patterns``."""
    return any(matches(p, value) for p in patterns)


def subset(patterns: Iterable[str], values: Iterable[str]) -> bool:
    """Return True if every value matches at least one pattern.

    An empty ``values`` is always a subset.
    """
    patterns = list(patterns)
    return all(matches_any(patterns, v) for v in values)
