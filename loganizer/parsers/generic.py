"""Generic and custom application log parsers."""

from __future__ import annotations

import re

from ..errors import ParseFailure
from ..models import Dialect, LogRecord
from . import LogParser

# 2024-01-01 10:00:00 ERROR disk full
# 2024-01-01 10:00:00 [ERROR] disk full
GENERIC_PATTERN = re.compile(
    r"^(?P<timestamp>\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}:\d{2})\s+"
    r"\[?(?P<level>\w+)\]?\s+"
    r"(?P<message>.+)$"
)

# [2024-01-01 10:00:00] ERROR payments: card declined
CUSTOM_APP_PATTERN = re.compile(
    r"^\[(?P<timestamp>[^\]]+)\]\s+"
    r"(?P<level>\w+)\s+"
    r"(?P<component>[^:]+):\s+"
    r"(?P<message>.+)$"
)

# 2024-01-01 10:00:00 ERROR card declined
CUSTOM_APP_SIMPLE_PATTERN = re.compile(
    r"^(?P<timestamp>\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}:\d{2})\s+"
    r"(?P<level>\w+)\s+"
    r"(?P<message>.+)$"
)

TIMESTAMP_LAYOUT = "%Y-%m-%d %H:%M:%S"


def _collapse_spaces(value: str) -> str:
    # The patterns accept any run of whitespace between date and time.
    return " ".join(value.split())


class GenericParser(LogParser):
    """Parser for ``timestamp level message`` lines.

    Lines that do not follow the layout still produce a record with a sniffed
    level and the raw line as message.
    """

    dialect = Dialect.GENERIC

    @property
    def name(self) -> str:
        return "Generic"

    def parse(self, line: str, line_number: int) -> LogRecord:
        if not line.strip():
            raise ParseFailure("empty", line_number)

        match = GENERIC_PATTERN.match(line)
        if not match:
            return self.best_effort(line, line_number)

        return self.record(
            line_number,
            timestamp=self.parse_timestamp(_collapse_spaces(match["timestamp"]), TIMESTAMP_LAYOUT, line_number),
            level=match["level"],
            message=match["message"],
        )


class CustomAppParser(LogParser):
    """Parser for application logs with an optional component prefix."""

    dialect = Dialect.CUSTOM_APP

    @property
    def name(self) -> str:
        return "Custom application"

    def parse(self, line: str, line_number: int) -> LogRecord:
        if not line.strip():
            raise ParseFailure("empty", line_number)

        match = CUSTOM_APP_PATTERN.match(line)
        if match:
            return self.record(
                line_number,
                timestamp=self.parse_timestamp(match["timestamp"], TIMESTAMP_LAYOUT, line_number),
                level=match["level"],
                message=match["message"],
                fields={"component": match["component"]},
            )

        match = CUSTOM_APP_SIMPLE_PATTERN.match(line)
        if match:
            return self.record(
                line_number,
                timestamp=self.parse_timestamp(_collapse_spaces(match["timestamp"]), TIMESTAMP_LAYOUT, line_number),
                level=match["level"],
                message=match["message"],
            )

        return self.best_effort(line, line_number)
