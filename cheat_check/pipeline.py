"""Load, compare and rank with one set of settings."""

from __future__ import annotations

import logging
from typing import List, Mapping, Tuple

from cheat_check.comparator import ComparisonOutcome, Score, compare
from cheat_check.documents import DocumentStore, RawText, load_documents
from cheat_check.errors import ComparisonTimeout
from cheat_check.models import CheckSettings
from cheat_check.ranking import rank

logger = logging.getLogger(__name__)


def compare_store(store: DocumentStore, settings: CheckSettings) -> ComparisonOutcome:
    """Drop template copies from ``store`` and compare the rest.

    The skipped identities are recorded on the outcome, including the partial
    outcome carried by a ComparisonTimeout.
    """
    skipped: List[str] = []
    if settings.template is not None:
        store, skipped = store.without_template(settings.template)

    try:
        outcome = compare(
            store,
            settings.workers,
            settings.fail_fast,
            metric=settings.metric,
            timeout=settings.timeout,
            executor=settings.executor,
            chunks_per_worker=settings.chunks_per_worker,
            retries=settings.retries,
            progress=settings.progress,
        )
    except ComparisonTimeout as e:
        if e.partial is not None:
            e.partial.skipped = skipped
        raise
    outcome.skipped = skipped
    return outcome


def check(sources: Mapping[str, RawText], settings: CheckSettings) -> Tuple[List[Score], ComparisonOutcome]:
    """Run the whole engine over ``sources`` with ``settings``.

    Returns the ranked report and the raw comparison outcome (which holds
    any failed pairs and the identities skipped as template copies).
    """
    store = load_documents(sources, settings)
    outcome = compare_store(store, settings)
    ranked = rank(outcome.scores, settings.threshold)
    logger.info(f"{len(ranked)} pair(s) at or above {settings.threshold:g}")
    return ranked, outcome
