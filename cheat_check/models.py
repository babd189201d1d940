"""
Pydantic models for run configuration and similarity reports.

These models validate the knobs the engine accepts and give the report
writers one consistent, serializable shape.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

DEFAULT_CHUNKS_PER_WORKER = 4


class Metric(str, Enum):
    """Edit-distance family used to score a pair."""
    levenshtein = "levenshtein"
    damerau = "damerau"


class ExecutorKind(str, Enum):
    """Worker pool flavour."""
    process = "process"
    thread = "thread"


# =============================================================================
# Run configuration
# =============================================================================

class CheckSettings(BaseModel):
    """Everything the engine needs to know for one run.

    ``threshold`` has no default on purpose: a silent default would drop
    legitimate matches.
    """
    threshold: float = Field(..., ge=0, le=1, description="Minimum score for a pair to be reported")
    workers: int = Field(default=0, ge=0, description="Worker count, 0 = one per CPU")
    fail_fast: bool = Field(default=False, description="Abort on the first failed comparison")
    timeout: Optional[float] = Field(default=None, gt=0, description="Global deadline in seconds")
    metric: Metric = Field(default=Metric.levenshtein, description="Edit distance flavour")
    executor: ExecutorKind = Field(default=ExecutorKind.process, description="Process or thread pool")
    chunks_per_worker: int = Field(default=DEFAULT_CHUNKS_PER_WORKER, ge=1, description="Work units queued per worker")
    retries: int = Field(default=0, ge=0, description="Extra attempts for a failing pair")
    case_fold: bool = Field(default=False, description="Compare case-insensitively")
    collapse_whitespace: bool = Field(default=False, description="Collapse whitespace runs to one space")
    template: Optional[str] = Field(default=None, description="Starter text; identical submissions are skipped")
    progress: bool = Field(default=False, description="Show a progress bar")

    @field_validator("threshold")
    def validate_threshold(cls, v: float) -> float:
        """Reject NaN, which slips through ge/le."""
        if v != v:
            raise ValueError("threshold must be a number")
        return float(v)


# =============================================================================
# Report models
# =============================================================================

class PairEntry(BaseModel):
    """One ranked pair."""
    rank: int = Field(..., ge=1)
    first: str
    second: str
    score: float = Field(..., ge=0, le=1)


class FailureEntry(BaseModel):
    """A comparison that could not be scored."""
    first: str
    second: str
    error: str = Field(..., description="Exception type name")
    message: str
    attempts: int = Field(default=1, ge=1)


class ReportSummary(BaseModel):
    """Run-level counters."""
    documents: int = Field(..., ge=0)
    pairs_compared: int = Field(..., ge=0)
    pairs_flagged: int = Field(..., ge=0)
    pairs_failed: int = Field(..., ge=0)
    threshold: float = Field(..., ge=0, le=1)
    metric: Metric
    workers: int = Field(..., ge=0)
    elapsed_seconds: float = Field(..., ge=0)
    timed_out: bool = False

    @field_validator("elapsed_seconds")
    def round_elapsed(cls, v: float) -> float:
        return round(float(v), 3)


class SimilarityReport(BaseModel):
    """Complete output of one run."""
    summary: ReportSummary
    pairs: List[PairEntry] = Field(default_factory=list)
    failures: List[FailureEntry] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list, description="Identities matching the template")


def get_json_schema() -> dict:
    """Get JSON schema of the report."""
    return SimilarityReport.model_json_schema()
