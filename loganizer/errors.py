"""Error taxonomy for the analysis pipeline."""

from __future__ import annotations

from pathlib import Path


class LoganizerError(Exception):
    """Base class for every error raised by loganizer."""


class ConfigError(LoganizerError):
    """The source configuration could not be loaded. Aborts the run."""


class ConfigReadError(ConfigError):
    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"cannot read config {self.path}: {reason}")


class ConfigParseError(ConfigError):
    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"cannot parse config {self.path}: {reason}")


class NoSourcesError(ConfigError):
    """No source is left to analyse."""


class SourceAccessError(LoganizerError):
    """A single source could not be read. Recorded on its result, never raised past the analyzer."""

    def __init__(self, source_id: str, path: str, reason: str) -> None:
        self.source_id = source_id
        self.path = path
        self.reason = reason
        super().__init__(f"source {source_id} ({path}): {reason}")


class SourceTimeoutError(SourceAccessError):
    """The per-source deadline expired during the scan."""


class MidReadError(LoganizerError):
    """I/O failure after the scan started; partial statistics are kept."""

    def __init__(self, source_id: str, path: str, line_number: int, reason: str) -> None:
        self.source_id = source_id
        self.path = path
        self.line_number = line_number
        self.reason = reason
        super().__init__(f"source {source_id} ({path}): read failed after line {line_number}: {reason}")


class ParseFailure(LoganizerError):
    """A single line does not match the selected dialect."""

    def __init__(self, reason: str, line_number: int | None = None) -> None:
        self.reason = reason
        self.line_number = line_number
        if line_number is None:
            super().__init__(reason)
        else:
            super().__init__(f"line {line_number}: {reason}")
