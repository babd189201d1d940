"""Pairwise similarity checking for sets of submitted files."""

__version__ = "0.3.0"

from cheat_check.comparator import ComparisonOutcome, Score, compare
from cheat_check.documents import Document, DocumentStore, load_documents
from cheat_check.errors import (
    CheatCheckError,
    ComparisonError,
    ComparisonFailed,
    ComparisonTimeout,
    DuplicateIdentity,
    UnreadableDocument,
)
from cheat_check.models import CheckSettings, ExecutorKind, Metric
from cheat_check.pairs import Pair, enumerate_pairs
from cheat_check.pipeline import check
from cheat_check.ranking import rank

__all__ = [
    "CheatCheckError",
    "CheckSettings",
    "ComparisonError",
    "ComparisonFailed",
    "ComparisonOutcome",
    "ComparisonTimeout",
    "Document",
    "DocumentStore",
    "DuplicateIdentity",
    "ExecutorKind",
    "Metric",
    "Pair",
    "Score",
    "UnreadableDocument",
    "check",
    "compare",
    "enumerate_pairs",
    "load_documents",
    "rank",
]
