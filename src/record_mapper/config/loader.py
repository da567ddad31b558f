"""
record-mapper runtime settings loader.

File: src/record_mapper/config/loader.py

Purpose
- Load effective settings from defaults, a TOML file, env vars, and overrides.

What should be included in this file
- Precedence logic: overrides > env (RECORD_MAPPER_) > file > defaults.
- TOML loading via ``tomllib``; ``pyproject.toml`` is read from ``[tool.record_mapper]``.
- Deterministic environment variable mapping and coercion.
"""

from __future__ import annotations

import json
import logging
import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from record_mapper.config.schema import (
    DEFAULT_SETTINGS,
    MapperSettings,
    assert_valid_settings,
)

DEFAULT_CONFIG_FILE: Final[str] = "record_mapper.toml"
PYPROJECT_FILE: Final[str] = "pyproject.toml"
ENV_PREFIX: Final[str] = "RECORD_MAPPER_"

_BOOLEAN_TRUE: Final[frozenset[str]] = frozenset({"1", "true", "t", "yes", "y", "on"})
_BOOLEAN_FALSE: Final[frozenset[str]] = frozenset({"0", "false", "f", "no", "n", "off"})

_LOGGER = logging.getLogger(__name__)


class ConfigLoadError(ValueError):
    """Raised when settings cannot be loaded or env values cannot be coerced."""


def load_settings(
    path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, object] | None = None,
    search_dir: str | Path | None = None,
) -> MapperSettings:
    """Load effective settings with precedence: overrides > env > file > defaults.

    Without ``path``, ``record_mapper.toml`` and then the ``[tool.record_mapper]``
    table of ``pyproject.toml`` are looked up in ``search_dir`` (the working
    directory by default); neither being present is not an error. An explicit
    ``path`` must exist.
    """

    env_map = dict(os.environ if environ is None else environ)
    resolved = _resolve_config_path(path, search_dir)
    file_payload = _load_file_payload(resolved, required=path is not None)

    merged: dict[str, Any] = {}
    merged.update(file_payload)
    merged.update(_collect_env_overrides(env_map))
    merged.update({key: value for key, value in (overrides or {}).items() if value is not None})

    settings = assert_valid_settings(merged)
    _LOGGER.debug(
        "loaded mapper settings",
        extra={"config_path": str(resolved) if resolved else None, "settings": settings.to_dict()},
    )
    return settings


def dump_effective_settings(settings: MapperSettings) -> str:
    """Return a deterministic JSON dump of ``settings``."""

    return json.dumps(settings.to_dict(), sort_keys=True, separators=(",", ":"))


def _resolve_config_path(path: str | Path | None, search_dir: str | Path | None) -> Path | None:
    if path is not None:
        return Path(path).expanduser().resolve()
    base = Path(search_dir) if search_dir is not None else Path.cwd()
    for candidate in (base / DEFAULT_CONFIG_FILE, base / PYPROJECT_FILE):
        if candidate.is_file():
            return candidate.resolve()
    return None


def _load_file_payload(path: Path | None, *, required: bool) -> dict[str, Any]:
    if path is None:
        return {}
    if not path.exists():
        if required:
            raise ConfigLoadError(f"config file not found: {path}")
        return {}

    try:
        with path.open("rb") as handle:
            parsed = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigLoadError(f"invalid TOML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigLoadError(f"unable to read config file {path}: {exc}") from exc

    if path.name == PYPROJECT_FILE:
        tool = parsed.get("tool")
        section = tool.get("record_mapper") if isinstance(tool, dict) else None
        if section is None:
            return {}
        if not isinstance(section, dict):
            raise ConfigLoadError(f"[tool.record_mapper] must be a table: {path}")
        return dict(section)
    return parsed


def _collect_env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for key, default in sorted(DEFAULT_SETTINGS.to_dict().items()):
        env_name = _env_name_for_key(key)
        raw = environ.get(env_name)
        if raw is None:
            continue
        overrides[key] = _coerce_env(raw, default, env_name)
    return overrides


def _coerce_env(raw: str, default: object, env_name: str) -> object:
    if not isinstance(default, bool):
        # separators may legitimately be whitespace
        return raw if isinstance(default, str) and not raw.strip() else raw.strip()

    lowered = raw.strip().lower()
    if lowered in _BOOLEAN_TRUE:
        return True
    if lowered in _BOOLEAN_FALSE:
        return False
    raise ConfigLoadError(f"{env_name} must be a boolean (true/false/1/0/yes/no/on/off)")


def _env_name_for_key(key: str) -> str:
    return ENV_PREFIX + key.upper()


__all__ = [
    "ConfigLoadError",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "PYPROJECT_FILE",
    "dump_effective_settings",
    "load_settings",
]
