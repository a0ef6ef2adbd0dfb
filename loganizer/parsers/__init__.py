"""Parser modules for the supported log dialects."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from ..errors import ParseFailure
from ..models import Dialect, LogRecord

# Order matters: the first token found in the upper-cased line wins.
KNOWN_LEVELS = ("FATAL", "ERROR", "WARN", "WARNING", "INFO", "DEBUG", "TRACE")


class TimestampPolicy(str, Enum):
    """What to do with a timestamp that does not match the dialect layout."""

    LENIENT = "lenient"
    STRICT = "strict"


@dataclass(slots=True)
class ParseStats:
    """Statistics about parsing operations."""
    total_lines: int = 0
    parsed: int = 0
    filtered: int = 0
    rejected: dict[str, int] = field(default_factory=dict)

    @property
    def failed(self) -> int:
        return sum(self.rejected.values())

    def note_success(self) -> None:
        self.total_lines += 1
        self.parsed += 1

    def note_filtered(self) -> None:
        self.total_lines += 1
        self.filtered += 1

    def note_failure(self, reason: str) -> None:
        self.total_lines += 1
        if reason not in self.rejected:
            self.rejected[reason] = 0
        self.rejected[reason] += 1


def extract_log_level(line: str) -> str:
    """Guess a level by scanning for known level tokens, defaulting to INFO."""
    upper = line.upper()
    for level in KNOWN_LEVELS:
        if level in upper:
            return level
    return "INFO"


def normalize_level(token: str) -> str:
    # Apache 2.4 prefixes the level with the module name, e.g. "core:error".
    return token.rsplit(":", 1)[-1].strip().upper()


def level_from_status(status: int) -> str:
    if status >= 500:
        return "ERROR"
    if status >= 400:
        return "WARN"
    return "INFO"


class LogParser(ABC):
    """Base class for log parsers.

    A parser turns one raw line into a :class:`LogRecord` or raises
    :class:`ParseFailure`. Parsers hold no state besides their timestamp
    policy, so one instance can be shared by every line of a source.
    """

    dialect: Dialect = Dialect.GENERIC

    def __init__(self, policy: TimestampPolicy = TimestampPolicy.LENIENT) -> None:
        self.policy = policy

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the parser name."""
        pass

    @abstractmethod
    def parse(self, line: str, line_number: int) -> LogRecord:
        """Parse a single line."""
        pass

    def parse_timestamp(self, value: str, layout: str, line_number: int, *, assume_utc: bool = False) -> datetime:
        """Parse ``value`` with ``layout``, applying the timestamp policy on mismatch."""
        try:
            parsed = datetime.strptime(value, layout)
        except ValueError:
            return self.fallback_timestamp(value, line_number)
        if assume_utc and parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def fallback_timestamp(self, value: str | None, line_number: int) -> datetime:
        if self.policy is TimestampPolicy.STRICT:
            raise ParseFailure("bad-timestamp", line_number)
        return datetime.now(timezone.utc)

    def record(
        self,
        line_number: int,
        *,
        timestamp: datetime,
        level: str,
        message: str,
        fields: dict[str, str] | None = None,
    ) -> LogRecord:
        return LogRecord(
            timestamp=timestamp,
            level=level.upper(),
            message=message,
            dialect=self.dialect.value,
            fields=fields or {},
            line_number=line_number,
        )

    def best_effort(self, line: str, line_number: int) -> LogRecord:
        """Record for a line matching no layout: sniffed level, raw message."""
        if self.policy is TimestampPolicy.STRICT:
            raise ParseFailure("format-mismatch", line_number)
        return self.record(
            line_number,
            timestamp=self.fallback_timestamp(None, line_number),
            level=extract_log_level(line),
            message=line,
        )


from .generic import CustomAppParser, GenericParser  # noqa: E402
from .json_lines import JSONParser  # noqa: E402
from .mysql import MySQLErrorParser  # noqa: E402
from .web import ApacheAccessParser, ApacheErrorParser, NginxAccessParser, NginxErrorParser  # noqa: E402

PARSERS: dict[Dialect, type[LogParser]] = {
    Dialect.GENERIC: GenericParser,
    Dialect.NGINX_ACCESS: NginxAccessParser,
    Dialect.NGINX_ERROR: NginxErrorParser,
    Dialect.APACHE_ACCESS: ApacheAccessParser,
    Dialect.APACHE_ERROR: ApacheErrorParser,
    Dialect.MYSQL_ERROR: MySQLErrorParser,
    Dialect.CUSTOM_APP: CustomAppParser,
    Dialect.JSON: JSONParser,
}


def get_parser(source_type: str | Dialect, policy: TimestampPolicy = TimestampPolicy.LENIENT) -> LogParser:
    """Select the parser for a declared source type, falling back to the generic one."""
    dialect = source_type if isinstance(source_type, Dialect) else Dialect.from_type(source_type)
    return PARSERS.get(dialect, GenericParser)(policy)


__all__ = [
    "KNOWN_LEVELS",
    "PARSERS",
    "ApacheAccessParser",
    "ApacheErrorParser",
    "CustomAppParser",
    "GenericParser",
    "JSONParser",
    "LogParser",
    "MySQLErrorParser",
    "NginxAccessParser",
    "NginxErrorParser",
    "ParseStats",
    "TimestampPolicy",
    "extract_log_level",
    "get_parser",
    "level_from_status",
    "normalize_level",
]
