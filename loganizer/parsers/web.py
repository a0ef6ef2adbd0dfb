"""Nginx and Apache access/error log parsers."""

from __future__ import annotations

import re

from ..errors import ParseFailure
from ..models import Dialect, LogRecord
from . import LogParser, level_from_status, normalize_level

# Nginx combined format:
# 203.0.113.9 - - [10/Oct/2024:13:55:36 +0000] "GET /index.html HTTP/1.1" 200 612 "-" "curl/8.4.0"
NGINX_ACCESS_PATTERN = re.compile(
    r'^(?P<ip>\S+) \S+ \S+ \[(?P<timestamp>[^\]]+)\] "(?P<request>[^"]*)" '
    r'(?P<status>\d+) (?P<size>\S+) "(?P<referer>[^"]*)" "(?P<user_agent>[^"]*)"'
)

# Apache common format:
# 203.0.113.9 - frank [10/Oct/2024:13:55:36 -0700] "GET /apache_pb.gif HTTP/1.0" 200 2326
APACHE_ACCESS_PATTERN = re.compile(
    r'^(?P<ip>\S+) \S+ \S+ \[(?P<timestamp>[^\]]+)\] "(?P<request>[^"]*)" '
    r"(?P<status>\d+) (?P<size>\S+)"
)

# 2024/10/10 13:55:36 [error] 1234#5678: *1 open() "/var/www/x" failed
NGINX_ERROR_PATTERN = re.compile(
    r"^(?P<timestamp>\d{4}/\d{2}/\d{2} \d{2}:\d{2}:\d{2}) "
    r"\[(?P<level>\w+)\] (?P<pid>\d+)#(?P<tid>\d+): (?P<message>.+)$"
)

# [Thu Oct 10 13:55:36.123456 2024] [core:error] [pid 1234:tid 5678] message
APACHE_ERROR_PATTERN = re.compile(
    r"^\[(?P<timestamp>[^\]]+)\] \[(?P<level>[^\]]+)\] \[(?P<process>[^\]]+)\] (?P<message>.+)$"
)

ACCESS_TIMESTAMP_LAYOUT = "%d/%b/%Y:%H:%M:%S %z"
NGINX_ERROR_TIMESTAMP_LAYOUT = "%Y/%m/%d %H:%M:%S"
APACHE_ERROR_TIMESTAMP_LAYOUT = "%a %b %d %H:%M:%S.%f %Y"


class _AccessParser(LogParser):
    """Shared logic for access logs, which carry a status code instead of a level."""

    pattern: re.Pattern[str]
    field_names: tuple[str, ...] = ("ip", "request", "status", "size")

    def parse(self, line: str, line_number: int) -> LogRecord:
        match = self.pattern.match(line)
        if not match:
            raise ParseFailure("format-mismatch", line_number)

        status = match["status"]
        return self.record(
            line_number,
            timestamp=self.parse_timestamp(match["timestamp"], ACCESS_TIMESTAMP_LAYOUT, line_number),
            level=level_from_status(int(status)),
            message=f"{match['ip']} {match['request']} -> {status}",
            fields={name: match[name] for name in self.field_names},
        )


class NginxAccessParser(_AccessParser):
    dialect = Dialect.NGINX_ACCESS
    pattern = NGINX_ACCESS_PATTERN
    field_names = ("ip", "request", "status", "size", "referer", "user_agent")

    @property
    def name(self) -> str:
        return "Nginx access"


class ApacheAccessParser(_AccessParser):
    dialect = Dialect.APACHE_ACCESS
    pattern = APACHE_ACCESS_PATTERN

    @property
    def name(self) -> str:
        return "Apache access"


class NginxErrorParser(LogParser):
    dialect = Dialect.NGINX_ERROR

    @property
    def name(self) -> str:
        return "Nginx error"

    def parse(self, line: str, line_number: int) -> LogRecord:
        match = NGINX_ERROR_PATTERN.match(line)
        if not match:
            raise ParseFailure("format-mismatch", line_number)

        return self.record(
            line_number,
            timestamp=self.parse_timestamp(match["timestamp"], NGINX_ERROR_TIMESTAMP_LAYOUT, line_number),
            level=normalize_level(match["level"]),
            message=match["message"],
            fields={"pid": match["pid"], "tid": match["tid"]},
        )


class ApacheErrorParser(LogParser):
    dialect = Dialect.APACHE_ERROR

    @property
    def name(self) -> str:
        return "Apache error"

    def parse(self, line: str, line_number: int) -> LogRecord:
        match = APACHE_ERROR_PATTERN.match(line)
        if not match:
            raise ParseFailure("format-mismatch", line_number)

        return self.record(
            line_number,
            timestamp=self.parse_timestamp(match["timestamp"], APACHE_ERROR_TIMESTAMP_LAYOUT, line_number),
            level=normalize_level(match["level"]),
            message=match["message"],
            fields={"process": match["process"]},
        )
