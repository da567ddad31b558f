"""
record-mapper settings schema and validation.

File: src/record_mapper/config/schema.py

Purpose
- Define ``MapperSettings`` and its built-in defaults.
- Validate raw mappings (file, env, overrides merged) into settings.

Functional requirements
- Collect every validation issue with a deterministic dotted path.
- Reject unknown keys so typos do not silently fall back to defaults.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass
from typing import Any, Final

from record_mapper.formatters import parse_timezone
from record_mapper.numbers import NumberFormat

_LOG_LEVELS: Final[frozenset[str]] = frozenset(
    {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}
)


@dataclass(frozen=True, slots=True)
class MapperSettings:
    """Effective mapper settings.

    ``date_format`` is a ``strftime`` pattern; empty selects ISO-8601.
    ``date_timezone`` is ``"UTC"``, a fixed ``+HH:MM`` offset, or empty to
    leave naive values naive.
    """

    include_nulls: bool = False
    strict: bool = False
    date_format: str = ""
    date_timezone: str = ""
    grouping_separator: str = ","
    decimal_separator: str = "."
    log_level: str = "WARNING"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


DEFAULT_SETTINGS: Final[MapperSettings] = MapperSettings()

_BOOL_KEYS: Final[tuple[str, ...]] = ("include_nulls", "strict")
_STR_KEYS: Final[tuple[str, ...]] = (
    "date_format",
    "date_timezone",
    "grouping_separator",
    "decimal_separator",
    "log_level",
)
SETTING_KEYS: Final[frozenset[str]] = frozenset((*_BOOL_KEYS, *_STR_KEYS))


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


@dataclass(frozen=True, slots=True)
class ConfigValidationResult:
    """Validation result with settings when no issues were found."""

    settings: MapperSettings | None
    issues: tuple[ConfigValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return self.settings is not None and not self.issues


class ConfigValidationError(ValueError):
    """Raised when settings validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        if not self.issues:
            rendered = "unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid settings:\n{rendered}")


class _IssueCollector:
    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[ConfigValidationIssue] = []

    def add(self, path: str, message: str) -> None:
        self._items.append(ConfigValidationIssue(path=path, message=message))

    def items(self) -> tuple[ConfigValidationIssue, ...]:
        return tuple(self._items)

    @property
    def has_issues(self) -> bool:
        return bool(self._items)


def validate_settings(payload: Mapping[str, object] | object) -> ConfigValidationResult:
    """Validate a flat settings mapping layered over the defaults."""

    issues = _IssueCollector()
    if not isinstance(payload, Mapping):
        issues.add("<root>", f"expected table, got {type(payload).__name__}")
        return ConfigValidationResult(settings=None, issues=issues.items())

    for key in sorted(str(item) for item in payload):
        if key not in SETTING_KEYS:
            issues.add(key, "unknown setting")

    values: dict[str, Any] = DEFAULT_SETTINGS.to_dict()
    for key in _BOOL_KEYS:
        if key not in payload:
            continue
        value = payload[key]
        if not isinstance(value, bool):
            issues.add(key, f"expected boolean, got {type(value).__name__}")
            continue
        values[key] = value
    for key in _STR_KEYS:
        if key not in payload:
            continue
        value = payload[key]
        if not isinstance(value, str):
            issues.add(key, f"expected string, got {type(value).__name__}")
            continue
        values[key] = value

    _check_date_settings(values, issues)
    _check_number_settings(values, issues)
    level = values["log_level"].strip().upper()
    if level not in _LOG_LEVELS:
        issues.add("log_level", f"unknown level {values['log_level']!r}")
    values["log_level"] = level

    if issues.has_issues:
        return ConfigValidationResult(settings=None, issues=issues.items())
    return ConfigValidationResult(settings=MapperSettings(**values), issues=())


def assert_valid_settings(payload: Mapping[str, object] | object) -> MapperSettings:
    """Validate settings and raise ``ConfigValidationError`` on failure."""

    result = validate_settings(payload)
    if result.settings is None:
        raise ConfigValidationError(result.issues)
    return result.settings


def _check_date_settings(values: Mapping[str, Any], issues: _IssueCollector) -> None:
    date_format = values["date_format"]
    if date_format and "%" not in date_format:
        issues.add("date_format", "expected a strftime pattern containing % directives")
    try:
        parse_timezone(values["date_timezone"])
    except ValueError as exc:
        issues.add("date_timezone", str(exc))


def _check_number_settings(values: Mapping[str, Any], issues: _IssueCollector) -> None:
    try:
        NumberFormat(
            grouping_separator=values["grouping_separator"],
            decimal_separator=values["decimal_separator"],
        )
    except ValueError as exc:
        issues.add("grouping_separator", str(exc))


__all__ = [
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_SETTINGS",
    "MapperSettings",
    "SETTING_KEYS",
    "assert_valid_settings",
    "validate_settings",
]
