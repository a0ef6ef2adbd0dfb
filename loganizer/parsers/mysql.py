"""MySQL error log parser."""

from __future__ import annotations

import re

from ..errors import ParseFailure
from ..models import Dialect, LogRecord
from . import LogParser, normalize_level

# MySQL 8 format:
# 2024-10-10T13:55:36.123456Z 12 [ERROR] [MY-010584] [Repl] Slave SQL: error
MYSQL_PATTERN = re.compile(
    r"^(?P<timestamp>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d+Z)\s+"
    r"(?P<thread>\d+)\s+"
    r"\[(?P<level>\w+)\]\s+"
    r"(?P<message>.+)$"
)

# Older format without thread id:
# 2024-10-10 13:55:36 [ERROR] InnoDB: Unable to lock ./ibdata1
MYSQL_SIMPLE_PATTERN = re.compile(
    r"^(?P<timestamp>\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}:\d{2})\s+"
    r"\[(?P<level>\w+)\]\s+"
    r"(?P<message>.+)$"
)

TIMESTAMP_LAYOUT = "%Y-%m-%dT%H:%M:%S.%fZ"
SIMPLE_TIMESTAMP_LAYOUT = "%Y-%m-%d %H:%M:%S"


class MySQLErrorParser(LogParser):
    """Parser for MySQL server error logs."""

    dialect = Dialect.MYSQL_ERROR

    @property
    def name(self) -> str:
        return "MySQL error"

    def parse(self, line: str, line_number: int) -> LogRecord:
        match = MYSQL_PATTERN.match(line)
        if match:
            return self.record(
                line_number,
                # The trailing Z marks UTC.
                timestamp=self.parse_timestamp(match["timestamp"], TIMESTAMP_LAYOUT, line_number, assume_utc=True),
                level=normalize_level(match["level"]),
                message=match["message"],
                fields={"thread": match["thread"]},
            )

        match = MYSQL_SIMPLE_PATTERN.match(line)
        if not match:
            raise ParseFailure("format-mismatch", line_number)

        return self.record(
            line_number,
            timestamp=self.parse_timestamp(" ".join(match["timestamp"].split()), SIMPLE_TIMESTAMP_LAYOUT, line_number),
            level=normalize_level(match["level"]),
            message=match["message"],
        )
