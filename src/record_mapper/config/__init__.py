"""
record-mapper settings package public API.

Loads ``MapperSettings`` from ``record_mapper.toml`` (or ``[tool.record_mapper]``
in ``pyproject.toml``) plus ``RECORD_MAPPER_`` env overrides, failing with
structured validation errors.
"""

from record_mapper.config.loader import (
    DEFAULT_CONFIG_FILE,
    ENV_PREFIX,
    PYPROJECT_FILE,
    ConfigLoadError,
    dump_effective_settings,
    load_settings,
)
from record_mapper.config.schema import (
    DEFAULT_SETTINGS,
    SETTING_KEYS,
    ConfigValidationError,
    ConfigValidationIssue,
    ConfigValidationResult,
    MapperSettings,
    assert_valid_settings,
    validate_settings,
)

__all__ = [
    "ConfigLoadError",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG_FILE",
    "DEFAULT_SETTINGS",
    "ENV_PREFIX",
    "MapperSettings",
    "PYPROJECT_FILE",
    "SETTING_KEYS",
    "assert_valid_settings",
    "dump_effective_settings",
    "load_settings",
    "validate_settings",
]
