"""Data model shared by the parsers, the analyzer and the aggregator."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class Dialect(str, Enum):
    """Known log line formats."""

    GENERIC = "generic"
    NGINX_ACCESS = "nginx-access"
    NGINX_ERROR = "nginx-error"
    APACHE_ACCESS = "apache-access"
    APACHE_ERROR = "apache-error"
    MYSQL_ERROR = "mysql-error"
    CUSTOM_APP = "custom-app"
    JSON = "json"
    UNKNOWN = "unknown"

    @classmethod
    def from_type(cls, value: str) -> "Dialect":
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.UNKNOWN


ERROR_LEVELS = frozenset({"ERROR", "FATAL"})


@dataclass(frozen=True, slots=True)
class SourceSpec:
    """One configured log file."""

    id: str
    path: str
    type: str = Dialect.GENERIC.value

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "path": self.path, "type": self.type}


@dataclass(frozen=True, slots=True)
class LogRecord:
    timestamp: datetime
    level: str
    message: str
    dialect: str
    fields: dict[str, str] = field(default_factory=dict)
    line_number: int = 1


@dataclass(slots=True)
class ErrorStat:
    message: str
    count: int
    level: str
    source_id: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "count": self.count,
            "level": self.level,
            "source_id": self.source_id,
        }


@dataclass(slots=True)
class SourceResult:
    """Outcome of analysing one source.

    ``total_lines`` counts every line read, including lines that failed to
    parse or were excluded by the level filter. ``error`` holds the terminal
    error when the source could not be read (completely or partially).
    """

    source_id: str
    source_type: str
    source_path: str
    total_lines: int = 0
    parsed_lines: int = 0
    error_lines: int = 0
    filtered_lines: int = 0
    rejected: dict[str, int] = field(default_factory=dict)
    level_stats: dict[str, int] = field(default_factory=dict)
    hourly_stats: dict[int, int] = field(default_factory=dict)
    errors: list[ErrorStat] = field(default_factory=list)
    duration: float = 0.0
    error: Exception | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_id": self.source_id,
            "source_type": self.source_type,
            "source_path": self.source_path,
            "total_lines": self.total_lines,
            "parsed_lines": self.parsed_lines,
            "error_lines": self.error_lines,
            "filtered_lines": self.filtered_lines,
            "rejected": dict(self.rejected),
            "level_stats": dict(self.level_stats),
            "hourly_stats": {str(hour): count for hour, count in sorted(self.hourly_stats.items())},
            "errors": [stat.to_dict() for stat in self.errors],
            "duration": round(self.duration, 6),
            "error": str(self.error) if self.error is not None else None,
        }


@dataclass(frozen=True, slots=True)
class GlobalResult:
    """Finalized reduction over every source result of a run."""

    total_sources: int
    successful_sources: int
    error_sources: int
    total_lines: int
    level_stats: dict[str, int]
    type_stats: dict[str, int]
    top_errors: tuple[ErrorStat, ...]
    source_results: tuple[SourceResult, ...]
    analysis_duration: float
    start_time: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_sources": self.total_sources,
            "successful_sources": self.successful_sources,
            "error_sources": self.error_sources,
            "total_lines": self.total_lines,
            "level_stats": dict(self.level_stats),
            "type_stats": dict(self.type_stats),
            "top_errors": [stat.to_dict() for stat in self.top_errors],
            "source_results": [result.to_dict() for result in self.source_results],
            "analysis_duration": round(self.analysis_duration, 6),
            "start_time": self.start_time.isoformat(),
        }
