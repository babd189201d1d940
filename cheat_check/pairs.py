"""Enumeration of the unordered document pairs to compare."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from cheat_check.documents import Document
from cheat_check.errors import DuplicateIdentity


@dataclass(frozen=True, order=True)
class Pair:
    """Two distinct document identities, stored in lexicographic order.

    ``Pair.of(a, b) == Pair.of(b, a)``; field order makes sorting pairs the
    canonical tie-break order.
    """
    first: str
    second: str

    def __post_init__(self):
        if self.first == self.second:
            raise ValueError(f"A pair needs two distinct documents, got {self.first!r} twice")
        if self.first > self.second:
            raise ValueError(f"Pair identities out of order: {self.first!r} > {self.second!r}; use Pair.of()")

    @classmethod
    def of(cls, a: str, b: str) -> "Pair":
        return cls(a, b) if a < b else cls(b, a)

    def __str__(self) -> str:
        return f"{self.first} <-> {self.second}"


def pair_count(n: int) -> int:
    return n * (n - 1) // 2 if n > 1 else 0


def enumerate_pairs(docs: Sequence[Document]) -> List[Pair]:
    """Every unordered pair of ``docs`` exactly once.

    Ordered ascending by the index of the first document, then the second,
    so a given corpus always produces the same work list.
    """
    identities = [doc.identity for doc in docs]
    seen = set()
    for identity in identities:
        if identity in seen:
            raise DuplicateIdentity(identity)
        seen.add(identity)

    return [
        Pair.of(identities[i], identities[j])
        for i in range(len(identities))
        for j in range(i + 1, len(identities))
    ]


def chunk_pairs(pairs: Sequence[Pair], chunks: int) -> List[List[Pair]]:
    """Split ``pairs`` into at most ``chunks`` contiguous, near-equal slices.

    Slice sizes differ by at most one and no slice is empty.
    """
    if chunks < 1:
        raise ValueError(f"chunks must be >= 1, got {chunks}")
    if not pairs:
        return []
    chunks = min(chunks, len(pairs))
    size, extra = divmod(len(pairs), chunks)
    result = []
    start = 0
    for index in range(chunks):
        end = start + size + (1 if index < extra else 0)
        result.append(list(pairs[start:end]))
        start = end
    return result
