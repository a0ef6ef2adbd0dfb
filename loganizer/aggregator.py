"""Fold per-source results into one global, ranked summary."""

from __future__ import annotations

import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from .models import ErrorStat, GlobalResult, SourceResult

TOP_ERRORS = 10


def _summed(left: Counter[str], right: Counter[str]) -> Counter[str]:
    # Counter.__add__ drops zero counts; a source type with no lines must survive.
    total: Counter[str] = Counter()
    total.update(left)
    total.update(right)
    return total


@dataclass
class Accumulator:
    """Mutable fold state over source results.

    ``add`` and ``merge`` are commutative and associative: the final summary
    does not depend on the order in which results arrive.
    """

    started: float = field(default_factory=time.monotonic)
    start_time: datetime = field(default_factory=datetime.now)
    successful_sources: int = 0
    error_sources: int = 0
    total_lines: int = 0
    level_stats: Counter[str] = field(default_factory=Counter)
    type_stats: Counter[str] = field(default_factory=Counter)
    # (source_id, rank within source) -> stat
    errors: dict[tuple[str, int], ErrorStat] = field(default_factory=dict)
    results: dict[str, SourceResult] = field(default_factory=dict)

    def add(self, result: SourceResult) -> "Accumulator":
        if result.source_id in self.results:
            raise ValueError(f"duplicate result for source {result.source_id}")
        self.results[result.source_id] = result

        if result.failed:
            self.error_sources += 1
            return self

        self.successful_sources += 1
        self.total_lines += result.total_lines
        self.level_stats.update(result.level_stats)
        self.type_stats[result.source_type] += result.total_lines
        for rank, stat in enumerate(result.errors):
            self.errors[(result.source_id, rank)] = stat
        return self

    def merge(self, other: "Accumulator") -> "Accumulator":
        """Combine two partial folds; the earlier start wins."""
        overlap = self.results.keys() & other.results.keys()
        if overlap:
            raise ValueError(f"duplicate results for sources {sorted(overlap)}")

        return Accumulator(
            started=min(self.started, other.started),
            start_time=min(self.start_time, other.start_time),
            successful_sources=self.successful_sources + other.successful_sources,
            error_sources=self.error_sources + other.error_sources,
            total_lines=self.total_lines + other.total_lines,
            level_stats=_summed(self.level_stats, other.level_stats),
            type_stats=_summed(self.type_stats, other.type_stats),
            errors={**self.errors, **other.errors},
            results={**self.results, **other.results},
        )

    def ranked_errors(self) -> list[ErrorStat]:
        # Counts descending; ties by source id then the source's own first-seen order.
        keys = sorted(self.errors, key=lambda key: (-self.errors[key].count, key))
        return [self.errors[key] for key in keys]

    def finalize(self) -> GlobalResult:
        return GlobalResult(
            total_sources=self.successful_sources + self.error_sources,
            successful_sources=self.successful_sources,
            error_sources=self.error_sources,
            total_lines=self.total_lines,
            level_stats=dict(self.level_stats),
            type_stats=dict(self.type_stats),
            top_errors=tuple(self.ranked_errors()[:TOP_ERRORS]),
            source_results=tuple(self.results[key] for key in sorted(self.results)),
            analysis_duration=time.monotonic() - self.started,
            start_time=self.start_time,
        )


def reduce_results(results: Iterable[SourceResult], accumulator: Accumulator | None = None) -> GlobalResult:
    """Fold ``results`` into ``accumulator`` (a fresh one by default) and finalize."""
    accumulator = accumulator if accumulator is not None else Accumulator()
    for result in results:
        accumulator.add(result)
    return accumulator.finalize()
