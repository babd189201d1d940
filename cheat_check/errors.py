"""Exceptions raised by the similarity engine."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from cheat_check.comparator import ComparisonOutcome
    from cheat_check.pairs import Pair


class CheatCheckError(Exception):
    """Base class for every error raised by cheat_check."""


class DuplicateIdentity(CheatCheckError, KeyError):
    """A document identity was loaded twice."""

    def __init__(self, identity: str):
        self.identity = identity
        super().__init__(identity)

    def __str__(self) -> str:
        return f"Duplicate document identity: {self.identity!r}"

    def __reduce__(self):
        return (type(self), (self.identity,))


class UnreadableDocument(CheatCheckError):
    """A document has no usable text content."""

    def __init__(self, identity: str, reason: str):
        self.identity = identity
        self.reason = reason
        super().__init__(f"{identity}: {reason}")

    def __reduce__(self):
        return (type(self), (self.identity, self.reason))


class ComparisonError(CheatCheckError):
    """Base class for failures while comparing documents."""


class ComparisonFailed(ComparisonError):
    """The similarity metric failed for one specific pair.

    Carries the pair and the underlying exception so the caller can report
    which comparison broke and why.
    """

    def __init__(self, pair: "Pair", cause: BaseException, attempts: int = 1):
        self.pair = pair
        self.cause = cause
        self.attempts = attempts
        super().__init__(pair, cause, attempts)

    def __str__(self) -> str:
        tries = "" if self.attempts == 1 else f" after {self.attempts} attempts"
        return (
            f"Comparison {self.pair.first} <-> {self.pair.second} failed{tries}: "
            f"{type(self.cause).__name__}: {self.cause}"
        )

    def __reduce__(self):
        return (type(self), (self.pair, self.cause, self.attempts))

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, ComparisonFailed):
            return NotImplemented
        return (
            self.pair == other.pair
            and type(self.cause) is type(other.cause)
            and str(self.cause) == str(other.cause)
            and self.attempts == other.attempts
        )

    def __hash__(self) -> int:
        return hash((self.pair, type(self.cause), str(self.cause), self.attempts))


class ComparisonTimeout(ComparisonError):
    """The comparison run exceeded its deadline.

    ``partial`` holds every score and failure from chunks that finished
    before the deadline.
    """

    def __init__(self, timeout: float, partial: Optional["ComparisonOutcome"] = None):
        self.timeout = timeout
        self.partial = partial
        super().__init__(timeout)

    def __str__(self) -> str:
        done = len(self.partial.scores) if self.partial is not None else 0
        return f"Comparison timed out after {self.timeout:g}s ({done} pairs scored)"
