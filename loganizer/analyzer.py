"""Per-source analysis: drive a dialect parser over one file and collect statistics."""

from __future__ import annotations

import logging
import time
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import IO

from .errors import MidReadError, ParseFailure, SourceAccessError, SourceTimeoutError
from .models import ERROR_LEVELS, ErrorStat, SourceResult, SourceSpec
from .parsers import LogParser, ParseStats, TimestampPolicy, get_parser

logger = logging.getLogger(__name__)


def hour_of(timestamp: datetime, use_utc: bool) -> int:
    """Hour-of-day bucket for a record, under the run-wide UTC/local policy.

    Naive timestamps, and aware ones that cannot be converted because the
    shift would leave the supported date range, keep their own hour.
    """
    if timestamp.tzinfo is None:
        return timestamp.hour
    try:
        converted = timestamp.astimezone(timezone.utc) if use_utc else timestamp.astimezone()
    except (OverflowError, ValueError, OSError):
        return timestamp.hour
    return converted.hour


def rank_errors(tally: dict[str, list], source_id: str) -> list[ErrorStat]:
    """Turn an insertion-ordered ``message -> [count, level]`` tally into a ranked list.

    ``sorted`` is stable, so equal counts keep first-seen order.
    """
    stats = [ErrorStat(message=message, count=count, level=level, source_id=source_id)
             for message, (count, level) in tally.items()]
    return sorted(stats, key=lambda stat: stat.count, reverse=True)


def _open_source(path: Path) -> IO[str]:
    return path.open("r", encoding="utf-8", errors="ignore")


class SourceAnalyzer:
    """Analyse sources one at a time with a fixed run-wide configuration.

    The instance holds no per-source state and may be shared by every worker
    thread of a run.
    """

    def __init__(
        self,
        level_filter: str | None = None,
        *,
        policy: TimestampPolicy = TimestampPolicy.LENIENT,
        use_utc: bool = False,
        deadline: float | None = None,
    ) -> None:
        self.level_filter = level_filter.strip().upper() if level_filter else None
        self.policy = policy
        self.use_utc = use_utc
        self.deadline = deadline

    def analyze(self, spec: SourceSpec) -> SourceResult:
        started = time.monotonic()
        result = SourceResult(source_id=spec.id, source_type=spec.type, source_path=spec.path)
        path = Path(spec.path)

        try:
            handle = self._open(spec, path)
        except SourceAccessError as exc:
            result.error = exc
            result.duration = time.monotonic() - started
            logger.warning("Skipping %s: %s", spec.id, exc.reason)
            return result

        parser = get_parser(spec.type, self.policy)
        stats = ParseStats()
        tally: dict[str, list] = {}
        levels: Counter[str] = Counter()
        hours: Counter[int] = Counter()

        with handle:
            try:
                self._scan(spec, handle, parser, stats, tally, levels, hours, started)
            except OSError as exc:
                result.error = MidReadError(spec.id, spec.path, stats.total_lines, exc.strerror or str(exc))
                logger.warning("Read error on %s: %s", spec.id, result.error)
            except SourceTimeoutError as exc:
                result.error = exc
                logger.warning("Timed out on %s after %d lines", spec.id, stats.total_lines)

        result.total_lines = stats.total_lines
        result.parsed_lines = stats.parsed
        result.error_lines = stats.failed
        result.filtered_lines = stats.filtered
        result.rejected = dict(stats.rejected)
        result.level_stats = dict(levels)
        result.hourly_stats = dict(hours)
        result.errors = rank_errors(tally, spec.id)
        result.duration = time.monotonic() - started

        logger.debug(
            "Analysed %s (%s): %d lines, %d parsed, %d failed in %.3fs",
            spec.id,
            parser.name,
            result.total_lines,
            result.parsed_lines,
            result.error_lines,
            result.duration,
        )
        return result

    __call__ = analyze

    def _open(self, spec: SourceSpec, path: Path) -> IO[str]:
        if not path.exists():
            raise SourceAccessError(spec.id, spec.path, f"file not found: {spec.path}")
        if path.is_dir():
            raise SourceAccessError(spec.id, spec.path, f"is a directory: {spec.path}")
        if not path.is_file():
            raise SourceAccessError(spec.id, spec.path, f"not a regular file: {spec.path}")
        try:
            return _open_source(path)
        except OSError as exc:
            raise SourceAccessError(spec.id, spec.path, f"cannot open: {exc.strerror or exc}") from exc

    def _scan(
        self,
        spec: SourceSpec,
        handle: IO[str],
        parser: LogParser,
        stats: ParseStats,
        tally: dict[str, list],
        levels: Counter[str],
        hours: Counter[int],
        started: float,
    ) -> None:
        expires = started + self.deadline if self.deadline is not None else None

        for line_number, raw_line in enumerate(handle, start=1):
            if expires is not None and time.monotonic() > expires:
                raise SourceTimeoutError(spec.id, spec.path, f"deadline of {self.deadline}s exceeded")

            line = raw_line.rstrip("\r\n")
            if not line.strip():
                stats.note_failure("empty")
                continue

            try:
                record = parser.parse(line, line_number)
            except ParseFailure as exc:
                stats.note_failure(exc.reason)
                continue

            if self.level_filter is not None and record.level != self.level_filter:
                stats.note_filtered()
                continue

            stats.note_success()
            levels[record.level] += 1
            hours[hour_of(record.timestamp, self.use_utc)] += 1

            if record.level in ERROR_LEVELS:
                entry = tally.get(record.message)
                if entry is None:
                    tally[record.message] = [1, record.level]
                else:
                    entry[0] += 1


def analyze_source(
    spec: SourceSpec,
    level_filter: str | None = None,
    *,
    policy: TimestampPolicy = TimestampPolicy.LENIENT,
    use_utc: bool = False,
    deadline: float | None = None,
) -> SourceResult:
    """Analyse a single source. Source-level failures are recorded on the result, never raised."""
    analyzer = SourceAnalyzer(level_filter, policy=policy, use_utc=use_utc, deadline=deadline)
    return analyzer.analyze(spec)
