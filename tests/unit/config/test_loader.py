"""
record-mapper unit tests for the settings loader

File: tests/unit/config/test_loader.py

Purpose
- Validate deterministic settings loading from defaults, TOML, env overrides, and call overrides.

What this test file should cover
- Precedence: overrides > env > file > defaults.
- Config discovery (record_mapper.toml, then [tool.record_mapper] in pyproject.toml).
- Env var coercion and its failure modes.
- Deterministic effective settings dumps.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from record_mapper.config import (
    DEFAULT_SETTINGS,
    ConfigLoadError,
    ConfigValidationError,
    MapperSettings,
    dump_effective_settings,
    load_settings,
)


def _write_config(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_defaults_without_any_source(tmp_path: Path) -> None:
    settings = load_settings(environ={}, search_dir=tmp_path)

    assert settings == DEFAULT_SETTINGS


def test_loader_precedence_file_env_overrides(tmp_path: Path) -> None:
    config_path = tmp_path / "mapper.toml"
    _write_config(
        config_path,
        """
strict = true
date_format = "%Y-%m-%d"
grouping_separator = "."
decimal_separator = ","
""".strip(),
    )

    file_loaded = load_settings(config_path, environ={})
    env_loaded = load_settings(config_path, environ={"RECORD_MAPPER_STRICT": "off"})
    override_loaded = load_settings(
        config_path,
        environ={"RECORD_MAPPER_STRICT": "off"},
        overrides={"strict": True, "include_nulls": None},
    )

    assert file_loaded.strict is True
    assert file_loaded.date_format == "%Y-%m-%d"
    assert file_loaded.decimal_separator == ","
    assert env_loaded.strict is False
    assert override_loaded.strict is True
    assert override_loaded.include_nulls is False


def test_discovers_record_mapper_toml_before_pyproject(tmp_path: Path) -> None:
    _write_config(tmp_path / "pyproject.toml", "[tool.record_mapper]\nstrict = true\n")
    from_pyproject = load_settings(environ={}, search_dir=tmp_path)

    _write_config(tmp_path / "record_mapper.toml", 'log_level = "debug"\n')
    from_dedicated = load_settings(environ={}, search_dir=tmp_path)

    assert from_pyproject.strict is True
    assert from_dedicated.strict is False
    assert from_dedicated.log_level == "DEBUG"


def test_pyproject_without_tool_table_is_ignored(tmp_path: Path) -> None:
    _write_config(tmp_path / "pyproject.toml", '[project]\nname = "demo"\n')

    assert load_settings(environ={}, search_dir=tmp_path) == DEFAULT_SETTINGS


def test_pyproject_tool_entry_must_be_a_table(tmp_path: Path) -> None:
    _write_config(tmp_path / "pyproject.toml", '[tool]\nrecord_mapper = "strict"\n')

    with pytest.raises(ConfigLoadError, match="must be a table"):
        load_settings(environ={}, search_dir=tmp_path)


def test_explicit_missing_path_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigLoadError, match="config file not found"):
        load_settings(tmp_path / "absent.toml", environ={})


def test_invalid_toml_is_reported(tmp_path: Path) -> None:
    config_path = tmp_path / "broken.toml"
    _write_config(config_path, "strict = \n")

    with pytest.raises(ConfigLoadError, match="invalid TOML"):
        load_settings(config_path, environ={})


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("1", True), ("YES", True), (" on ", True), ("0", False), ("False", False), ("n", False)],
)
def test_env_booleans_are_coerced(tmp_path: Path, raw: str, expected: bool) -> None:
    settings = load_settings(environ={"RECORD_MAPPER_INCLUDE_NULLS": raw}, search_dir=tmp_path)

    assert settings.include_nulls is expected


def test_env_boolean_rejects_unknown_token(tmp_path: Path) -> None:
    with pytest.raises(ConfigLoadError, match="RECORD_MAPPER_STRICT must be a boolean"):
        load_settings(environ={"RECORD_MAPPER_STRICT": "sometimes"}, search_dir=tmp_path)


def test_env_strings_are_stripped_but_whitespace_separators_survive(tmp_path: Path) -> None:
    settings = load_settings(
        environ={
            "RECORD_MAPPER_DATE_TIMEZONE": " +09:00 ",
            "RECORD_MAPPER_GROUPING_SEPARATOR": " ",
        },
        search_dir=tmp_path,
    )

    assert settings.date_timezone == "+09:00"
    assert settings.grouping_separator == " "


def test_unrelated_env_vars_are_ignored(tmp_path: Path) -> None:
    settings = load_settings(
        environ={"RECORD_MAPPER_UNKNOWN": "x", "STRICT": "true"},
        search_dir=tmp_path,
    )

    assert settings == DEFAULT_SETTINGS


def test_validation_failures_surface_all_paths(tmp_path: Path) -> None:
    config_path = tmp_path / "mapper.toml"
    _write_config(
        config_path,
        """
strict = "yes"
date_timezone = "Mars/Olympus"
colour = "red"
""".strip(),
    )

    with pytest.raises(ConfigValidationError) as excinfo:
        load_settings(config_path, environ={})

    paths = [issue.path for issue in excinfo.value.issues]
    assert paths == ["colour", "strict", "date_timezone"]


def test_dump_effective_settings_is_deterministic(tmp_path: Path) -> None:
    settings = load_settings(
        environ={"RECORD_MAPPER_STRICT": "true"},
        overrides={"date_format": "%d/%m/%Y"},
        search_dir=tmp_path,
    )

    first = dump_effective_settings(settings)
    second = dump_effective_settings(MapperSettings(**json.loads(first)))

    assert first == second
    assert list(json.loads(first)) == sorted(DEFAULT_SETTINGS.to_dict())
    assert json.loads(first)["strict"] is True
