"""Normalized edit-distance similarity between two documents.

Every score here is ``1 - distance / max(len(a), len(b))`` over Unicode code
points, so 1.0 means identical text and 0.0 means nothing in common. Two
empty strings are identical; an empty string against anything else scores
0.0. All functions are pure and safe to call from any number of workers.
"""

from __future__ import annotations

from typing import Callable, Dict, List

from cheat_check.documents import Document
from cheat_check.models import Metric

DistanceFn = Callable[[str, str], int]


def levenshtein(a: str, b: str) -> int:
    """Minimum number of insertions, deletions and substitutions."""
    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    # Two rows of the DP matrix; prev[j] = distance(a[:i-1], b[:j])
    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        curr = [i]
        for j, cb in enumerate(b, 1):
            curr.append(min(
                prev[j] + 1,  # deletion
                curr[j - 1] + 1,  # insertion
                prev[j - 1] + (ca != cb),  # substitution or match
            ))
        prev = curr
    return prev[-1]


def damerau_levenshtein(a: str, b: str) -> int:
    """Levenshtein distance that also counts adjacent transpositions as one edit.

    This is the unrestricted variant: a substring may be edited again after a
    transposition. Roughly an order of magnitude slower than levenshtein().
    """
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    len_a, len_b = len(a), len(b)
    max_dist = len_a + len_b
    last_row: Dict[str, int] = {}

    # Matrix is offset by two so row/column 0 hold the max_dist sentinel
    d: List[List[int]] = [[0] * (len_b + 2) for _ in range(len_a + 2)]
    d[0][0] = max_dist
    for i in range(len_a + 1):
        d[i + 1][0] = max_dist
        d[i + 1][1] = i
    for j in range(len_b + 1):
        d[0][j + 1] = max_dist
        d[1][j + 1] = j

    for i in range(1, len_a + 1):
        last_match_col = 0
        for j in range(1, len_b + 1):
            k = last_row.get(b[j - 1], 0)
            col = last_match_col
            if a[i - 1] == b[j - 1]:
                cost = 0
                last_match_col = j
            else:
                cost = 1
            d[i + 1][j + 1] = min(
                d[i][j] + cost,
                d[i + 1][j] + 1,
                d[i][j + 1] + 1,
                d[k][col] + (i - k - 1) + 1 + (j - col - 1),
            )
        last_row[a[i - 1]] = i
    return d[len_a + 1][len_b + 1]


_DISTANCES: Dict[Metric, DistanceFn] = {
    Metric.levenshtein: levenshtein,
    Metric.damerau: damerau_levenshtein,
}


def get_metric(metric: Metric | str) -> DistanceFn:
    """Resolve a metric name to its distance function."""
    try:
        return _DISTANCES[Metric(metric)]
    except ValueError:
        known = ", ".join(m.value for m in Metric)
        raise ValueError(f"Unknown metric {metric!r} (expected one of: {known})") from None


def normalized_similarity(a: str, b: str, metric: Metric | str = Metric.levenshtein) -> float:
    """Similarity in [0, 1] derived from the edit distance."""
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    distance = get_metric(metric)(a, b)
    similarity = 1.0 - distance / max(len(a), len(b))
    return min(1.0, max(0.0, similarity))


def score(a: Document, b: Document, metric: Metric | str = Metric.levenshtein) -> float:
    """Score two documents. Raises UnreadableDocument for unreadable input."""
    return normalized_similarity(a.text(), b.text(), metric)
