"""Frequency ranking: count keys, order by count descending, ties keep first-seen order."""

from collections import Counter
from collections.abc import Hashable, Iterable
from typing import Any

from .config import NO_ENTRY


def rank(keys: Any) -> list[tuple[Hashable, int]]:
    """Return [(key, count), ...] sorted by count descending.

    Counter keeps insertion order and most_common() sorts stably, so equal
    counts stay in the order their key was first seen. None keys are skipped.
    """
    if isinstance(keys, (str, bytes)) or not isinstance(keys, Iterable):
        return []
    counts = Counter(k for k in keys if k is not None)
    return counts.most_common()


def most_frequent(keys: Any, default: str = NO_ENTRY) -> Hashable:
    ranked = rank(keys)
    if not ranked:
        return default
    return ranked[0][0]


def top_n(keys: Any, n: int) -> list[tuple[Hashable, int]]:
    """First n ranked entries; all of them when fewer than n distinct keys exist."""
    try:
        n = int(n)
    except (TypeError, ValueError):
        return []
    if n <= 0:
        return []
    return rank(keys)[:n]
