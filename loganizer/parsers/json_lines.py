"""JSON-structured (one object per line) log parser."""

from __future__ import annotations

import json
import re
from datetime import datetime
from typing import Any

from ..errors import ParseFailure
from ..models import Dialect, LogRecord
from . import LogParser

RESERVED_KEYS = frozenset({"timestamp", "level", "message", "msg"})

# fromisoformat before 3.11 only takes 3 or 6 fractional digits
FRACTION = re.compile(r"(\d{2}:\d{2}:\d{2})\.(\d+)")


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, sort_keys=True)


class JSONParser(LogParser):
    """Parser for JSON lines.

    ``timestamp`` (RFC 3339), ``level`` and ``message``/``msg`` are lifted
    into the record, every other key ends up stringified in ``fields``.
    """

    dialect = Dialect.JSON

    @property
    def name(self) -> str:
        return "JSON"

    def parse(self, line: str, line_number: int) -> LogRecord:
        try:
            payload = json.loads(line)
        except json.JSONDecodeError as exc:
            raise ParseFailure(f"invalid-json: {exc.msg}", line_number) from None
        except RecursionError:
            raise ParseFailure("invalid-json: nested too deeply", line_number) from None
        if not isinstance(payload, dict):
            raise ParseFailure("not-an-object", line_number)

        level = payload.get("level")
        message = payload.get("message")
        if not isinstance(message, str):
            message = payload.get("msg")

        return self.record(
            line_number,
            timestamp=self._timestamp(payload.get("timestamp"), line_number),
            level=level if isinstance(level, str) and level else "INFO",
            message=message if isinstance(message, str) else "",
            fields={key: _stringify(value) for key, value in payload.items() if key not in RESERVED_KEYS},
        )

    def _timestamp(self, value: Any, line_number: int) -> datetime:
        if isinstance(value, str):
            # fromisoformat only learnt the Z suffix in 3.11
            text = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
            text = FRACTION.sub(lambda match: f"{match[1]}.{match[2][:6]:0<6}", text, count=1)
            try:
                return datetime.fromisoformat(text)
            except ValueError:
                pass
        return self.fallback_timestamp(value, line_number)
