"""Load the list of log sources from a JSON config file."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable

from .errors import ConfigParseError, ConfigReadError
from .models import Dialect, SourceSpec

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ("id", "path", "type")


def _resolve_path(raw: str, base_dir: Path) -> str:
    # Prefer the path as given; fall back to the config file's directory.
    candidate = Path(raw).expanduser()
    if candidate.is_absolute() or candidate.exists():
        return str(candidate)
    relative = base_dir / candidate
    if relative.exists():
        return str(relative)
    return str(candidate)


def _build_spec(entry: Any, index: int, config_path: Path) -> SourceSpec:
    if not isinstance(entry, dict):
        raise ConfigParseError(config_path, f"entry {index} is not an object")

    values: dict[str, str] = {}
    for key in REQUIRED_KEYS:
        value = entry.get(key)
        if not isinstance(value, str):
            raise ConfigParseError(config_path, f"entry {index}: '{key}' must be a string")
        if not value.strip():
            raise ConfigParseError(config_path, f"entry {index}: '{key}' is empty")
        values[key] = value.strip()

    source_type = values["type"].lower()
    if Dialect.from_type(source_type) is Dialect.UNKNOWN:
        if source_type != Dialect.UNKNOWN.value:
            logger.warning(
                "Source %s has unknown type %r, falling back to the generic parser", values["id"], values["type"]
            )
        source_type = Dialect.UNKNOWN.value

    return SourceSpec(
        id=values["id"],
        path=_resolve_path(values["path"], config_path.parent),
        type=source_type,
    )


def load_sources(path: Path | str) -> list[SourceSpec]:
    """Read a JSON array of ``{"id", "path", "type"}`` objects.

    Raises :class:`ConfigReadError` when the file cannot be read and
    :class:`ConfigParseError` when its content is not a valid source list.
    """
    config_path = Path(path)
    try:
        text = config_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigReadError(config_path, getattr(exc, "strerror", None) or str(exc)) from exc

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigParseError(config_path, f"invalid JSON: {exc}") from exc

    if not isinstance(payload, list):
        raise ConfigParseError(config_path, "expected a JSON array of sources")

    specs = [_build_spec(entry, index, config_path) for index, entry in enumerate(payload)]

    seen: set[str] = set()
    for spec in specs:
        if spec.id in seen:
            raise ConfigParseError(config_path, f"duplicate source id '{spec.id}'")
        seen.add(spec.id)

    logger.debug("Loaded %d source(s) from %s", len(specs), config_path)
    return specs


def filter_sources(
    specs: Iterable[SourceSpec],
    types: Iterable[str] | None = None,
    ids: Iterable[str] | None = None,
) -> list[SourceSpec]:
    """Keep the sources matching every given criterion; ``None`` or empty means no restriction."""
    wanted_types = {value.strip().lower() for value in types} if types else None
    wanted_ids = set(ids) if ids else None
    return [
        spec
        for spec in specs
        if (wanted_types is None or spec.type in wanted_types) and (wanted_ids is None or spec.id in wanted_ids)
    ]
