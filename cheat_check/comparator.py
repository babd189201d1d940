"""Parallel pairwise comparison of a document set.

The pair list is cut into contiguous chunks which are queued on a
``concurrent.futures`` pool; idle workers pull the next chunk. Each chunk is
scored into its own local buffer and the buffers are merged in the calling
thread, so there is no shared mutable result collection.
"""

from __future__ import annotations

import concurrent.futures
import logging
import os
import time
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple, Union

from tqdm import tqdm

from cheat_check.documents import Document, DocumentStore
from cheat_check.errors import ComparisonFailed, ComparisonTimeout
from cheat_check.models import DEFAULT_CHUNKS_PER_WORKER, ExecutorKind, Metric
from cheat_check.pairs import Pair, chunk_pairs, enumerate_pairs
from cheat_check.similarity import score

logger = logging.getLogger(__name__)
# Every individual comparison goes here; the CLI routes it to --log FILE.
comparison_log = logging.getLogger("cheat_check.comparisons")


@dataclass(frozen=True)
class Score:
    """Similarity of one pair."""
    pair: Pair
    value: float

    def __post_init__(self):
        if not 0.0 <= self.value <= 1.0:
            raise ValueError(f"Score for {self.pair} out of range: {self.value!r}")


@dataclass
class ComparisonOutcome:
    """Everything one compare() run produced.

    ``scores`` and ``failures`` are kept in enumeration order, but callers
    must rank rather than rely on that.
    """
    scores: List[Score] = field(default_factory=list)
    failures: List[ComparisonFailed] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    documents: int = 0
    pairs_total: int = 0
    workers: int = 0
    elapsed: float = 0.0

    @property
    def complete(self) -> bool:
        return len(self.scores) + len(self.failures) == self.pairs_total

    @property
    def ok(self) -> bool:
        return self.complete and not self.failures


ChunkResult = Tuple[List[Score], List[ComparisonFailed]]


def resolve_workers(workers: int) -> int:
    """Turn the configured worker count into a concrete one (0 = per CPU)."""
    if workers < 0:
        raise ValueError(f"workers must be >= 0, got {workers}")
    if workers == 0:
        return os.cpu_count() or 1
    return workers


def _score_chunk(
    chunk: List[Pair],
    documents: Dict[str, Document],
    metric: Metric,
    fail_fast: bool,
    retries: int,
) -> ChunkResult:
    """Score one chunk. Runs inside a worker."""
    scores: List[Score] = []
    failures: List[ComparisonFailed] = []
    for pair in chunk:
        attempts = 0
        while True:
            attempts += 1
            try:
                value = score(documents[pair.first], documents[pair.second], metric)
            except Exception as e:
                if attempts <= retries:
                    continue
                failures.append(ComparisonFailed(pair, e, attempts))
            else:
                scores.append(Score(pair, value))
            break
        if failures and fail_fast:
            break
    return scores, failures


def _documents_for(chunk: List[Pair], documents: Dict[str, Document]) -> Dict[str, Document]:
    """The slice of the corpus a chunk needs, so each task ships only that."""
    needed = {}
    for pair in chunk:
        needed[pair.first] = documents[pair.first]
        needed[pair.second] = documents[pair.second]
    return needed


def _make_executor(kind: ExecutorKind, workers: int) -> concurrent.futures.Executor:
    if ExecutorKind(kind) is ExecutorKind.thread:
        return concurrent.futures.ThreadPoolExecutor(max_workers=workers, thread_name_prefix="cheat-check")
    return concurrent.futures.ProcessPoolExecutor(max_workers=workers)


def _terminate(pool: concurrent.futures.Executor) -> None:
    """Stop a pool without waiting for the chunks it is still running.

    Threads cannot be killed, so a thread pool only drops its queued chunks.
    Worker processes are terminated outright so an abandoned run does not
    keep the interpreter alive at exit.
    """
    if not isinstance(pool, concurrent.futures.ProcessPoolExecutor):
        pool.shutdown(wait=False, cancel_futures=True)
        return
    if hasattr(pool, "terminate_workers"):  # Python 3.14+
        pool.terminate_workers()
        return
    processes = list((pool._processes or {}).values())
    pool.shutdown(wait=False, cancel_futures=True)
    for process in processes:
        process.terminate()
    for process in processes:
        process.join(5)
    logger.debug(f"Terminated {len(processes)} worker process(es)")


def _collect(future: concurrent.futures.Future, chunk: List[Pair]) -> ChunkResult:
    """Unwrap a finished chunk. A crashed task fails every pair it carried."""
    try:
        return future.result()
    except Exception as e:
        logger.error(f"Worker task for {len(chunk)} pairs crashed: {type(e).__name__}: {e}")
        return [], [ComparisonFailed(pair, e) for pair in chunk]


def compare(
    docs: Union[DocumentStore, Iterable[Document]],
    workers: int = 0,
    fail_fast: bool = False,
    *,
    metric: Metric = Metric.levenshtein,
    timeout: Optional[float] = None,
    executor: ExecutorKind = ExecutorKind.process,
    chunks_per_worker: int = DEFAULT_CHUNKS_PER_WORKER,
    retries: int = 0,
    progress: bool = False,
) -> ComparisonOutcome:
    """Score every unordered pair of ``docs`` exactly once on a worker pool.

    Args:
        docs: Loaded documents, in the order pairs should be enumerated.
        workers: Pool size; 0 uses one worker per CPU.
        fail_fast: Raise the first ComparisonFailed instead of collecting.
        metric: Edit-distance flavour.
        timeout: Seconds before the run is abandoned with ComparisonTimeout.
        executor: Process pool (default, CPU bound) or thread pool.
        chunks_per_worker: Work units queued per worker.
        retries: Extra attempts for a pair whose comparison raises.
        progress: Show a tqdm progress bar.

    Returns:
        ComparisonOutcome with one Score or ComparisonFailed per pair.

    Raises:
        ComparisonFailed: fail_fast is set and a comparison failed.
        ComparisonTimeout: the deadline passed; ``partial`` holds what finished.
    """
    if chunks_per_worker < 1:
        raise ValueError(f"chunks_per_worker must be >= 1, got {chunks_per_worker}")
    if retries < 0:
        raise ValueError(f"retries must be >= 0, got {retries}")
    if timeout is not None and timeout <= 0:
        raise ValueError(f"timeout must be positive, got {timeout}")
    metric = Metric(metric)

    documents = list(docs)
    pairs = enumerate_pairs(documents)
    workers = resolve_workers(workers)
    outcome = ComparisonOutcome(documents=len(documents), pairs_total=len(pairs), workers=workers)
    if not pairs:
        logger.info(f"{len(documents)} document(s), nothing to compare")
        return outcome

    by_identity = {doc.identity: doc for doc in documents}
    order = {pair: index for index, pair in enumerate(pairs)}
    chunks = chunk_pairs(pairs, workers * chunks_per_worker)
    pool_size = min(workers, len(chunks))
    outcome.workers = pool_size
    logger.info(
        f"Comparing {len(pairs)} pairs of {len(documents)} documents "
        f"with {pool_size} {ExecutorKind(executor).value} worker(s), {len(chunks)} chunks"
    )

    started = time.monotonic()
    deadline = None if timeout is None else started + timeout
    pool = _make_executor(executor, pool_size)
    bar = tqdm(total=len(pairs), desc="Comparing", unit="pair", disable=not progress)
    aborted = False
    try:
        pending = {
            pool.submit(_score_chunk, chunk, _documents_for(chunk, by_identity), metric, fail_fast, retries): chunk
            for chunk in chunks
        }
        while pending:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            done, _ = concurrent.futures.wait(
                pending, timeout=remaining, return_when=concurrent.futures.FIRST_COMPLETED
            )
            if not done:
                aborted = True
                _finish(outcome, order, started)
                logger.error(
                    f"Timed out after {timeout:g}s with {len(pending)} chunk(s) unfinished; "
                    f"{len(outcome.scores)} of {len(pairs)} pairs scored"
                )
                raise ComparisonTimeout(timeout, outcome)

            for future in done:
                chunk = pending.pop(future)
                scores, failures = _collect(future, chunk)
                for item in scores:
                    comparison_log.debug(f"{item.pair.first}\t{item.pair.second}\t{item.value:.6f}")
                for failure in failures:
                    logger.warning(str(failure))
                outcome.scores.extend(scores)
                outcome.failures.extend(failures)
                bar.update(len(scores) + len(failures))

            if fail_fast and outcome.failures:
                aborted = True
                first = min(outcome.failures, key=lambda f: order[f.pair])
                logger.error(f"Aborting remaining comparisons: {first}")
                raise first
    finally:
        bar.close()
        if aborted:
            _terminate(pool)
        else:
            pool.shutdown(wait=True)

    _finish(outcome, order, started)
    logger.info(
        f"Compared {len(outcome.scores)} pairs in {outcome.elapsed:.2f}s"
        + (f", {len(outcome.failures)} failed" if outcome.failures else "")
    )
    return outcome


def _finish(outcome: ComparisonOutcome, order: Dict[Pair, int], started: float) -> None:
    outcome.scores.sort(key=lambda s: order[s.pair])
    outcome.failures.sort(key=lambda f: order[f.pair])
    outcome.elapsed = time.monotonic() - started
