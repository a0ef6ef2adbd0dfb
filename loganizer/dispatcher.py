"""Fixed-size worker pool fanning sources out over the source analyzer."""

from __future__ import annotations

import logging
import queue
import threading
from typing import Callable, Sequence

from .analyzer import SourceAnalyzer
from .errors import SourceAccessError
from .models import SourceResult, SourceSpec

logger = logging.getLogger(__name__)

AnalyzeFn = Callable[[SourceSpec], SourceResult]

# Closes the work queue; one per worker.
_DONE = None


def _worker(
    work: "queue.Queue[SourceSpec | None]",
    results: "queue.Queue[SourceResult]",
    analyze: AnalyzeFn,
    on_result: Callable[[SourceResult], None] | None,
) -> None:
    while True:
        spec = work.get()
        if spec is _DONE:
            return
        try:
            result = analyze(spec)
        except Exception as exc:
            logger.exception("Unexpected failure while analysing %s", spec.id)
            result = SourceResult(
                source_id=spec.id,
                source_type=spec.type,
                source_path=spec.path,
                error=SourceAccessError(spec.id, spec.path, f"unexpected failure: {exc}"),
            )
        results.put(result)
        if on_result is not None:
            try:
                on_result(result)
            except Exception:
                logger.exception("Result callback failed for %s", spec.id)


def run_workers(
    specs: Sequence[SourceSpec],
    concurrency: int,
    level_filter: str | None = None,
    *,
    analyze: AnalyzeFn | None = None,
    on_result: Callable[[SourceResult], None] | None = None,
) -> list[SourceResult]:
    """Analyse every spec on at most ``concurrency`` threads.

    Returns exactly one result per spec once every worker has exited. The
    order of the returned list follows completion, not input order.
    ``analyze`` defaults to a :class:`SourceAnalyzer` built from
    ``level_filter``.
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be a positive integer, got {concurrency}")
    if not specs:
        return []

    if analyze is None:
        analyze = SourceAnalyzer(level_filter).analyze

    workers = min(concurrency, len(specs))
    work: queue.Queue[SourceSpec | None] = queue.Queue()
    results: queue.Queue[SourceResult] = queue.Queue()

    for spec in specs:
        work.put(spec)
    for _ in range(workers):
        work.put(_DONE)

    logger.debug("Starting %d worker(s) for %d source(s)", workers, len(specs))
    threads = [
        threading.Thread(
            target=_worker,
            args=(work, results, analyze, on_result),
            name=f"loganizer-worker-{index}",
            daemon=True,
        )
        for index in range(workers)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    collected: list[SourceResult] = []
    while True:
        try:
            collected.append(results.get_nowait())
        except queue.Empty:
            break
    return collected
