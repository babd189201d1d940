"""Threshold filtering and deterministic ordering of scores."""

from __future__ import annotations

import math
from typing import Iterable, List

from cheat_check.comparator import Score


def validate_threshold(threshold: float) -> float:
    threshold = float(threshold)
    if math.isnan(threshold) or not 0.0 <= threshold <= 1.0:
        raise ValueError(f"threshold must be between 0 and 1, got {threshold!r}")
    return threshold


def rank_key(item: Score):
    """Descending score, then the pair's identities in lexicographic order."""
    return (-item.value, item.pair.first, item.pair.second)


def rank(scores: Iterable[Score], threshold: float) -> List[Score]:
    """Keep scores at or above ``threshold``, best first.

    The result depends only on the set of scores, never on the order they
    were produced in, so it is the same for any worker count. Ranking a
    ranked list again returns it unchanged.
    """
    threshold = validate_threshold(threshold)
    return sorted((s for s in scores if s.value >= threshold), key=rank_key)
