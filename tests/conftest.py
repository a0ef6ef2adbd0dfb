import json
from pathlib import Path

import pytest

from loganizer.models import SourceSpec

DISK_FULL_LINES = [
    "2024-01-01 10:00:00 ERROR disk full",
    "2024-01-01 10:00:00 INFO ok",
    "2024-01-01 10:00:00 ERROR disk full",
]


@pytest.fixture
def disk_full_lines() -> list[str]:
    return list(DISK_FULL_LINES)


@pytest.fixture
def write_log(tmp_path: Path):
    def _write(name: str, lines: list[str]) -> Path:
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def two_source_specs(tmp_path: Path, write_log) -> list[SourceSpec]:
    app_log = write_log("app.log", DISK_FULL_LINES)
    return [
        SourceSpec(id="app", path=str(app_log), type="generic"),
        SourceSpec(id="missing", path=str(tmp_path / "does-not-exist.log"), type="generic"),
    ]


@pytest.fixture
def two_source_config(tmp_path: Path, two_source_specs) -> Path:
    config = tmp_path / "sources.json"
    config.write_text(json.dumps([spec.to_dict() for spec in two_source_specs]), encoding="utf-8")
    return config
