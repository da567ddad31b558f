"""
record-mapper unit tests for settings validation

File: tests/unit/config/test_schema.py

Purpose
- Validate the settings schema, its structured issues, and normalization.
"""

from __future__ import annotations

import pytest

from record_mapper.config import (
    DEFAULT_SETTINGS,
    SETTING_KEYS,
    ConfigValidationError,
    ConfigValidationIssue,
    MapperSettings,
    assert_valid_settings,
    validate_settings,
)


def test_empty_payload_yields_defaults() -> None:
    result = validate_settings({})

    assert result.is_valid
    assert result.settings == DEFAULT_SETTINGS
    assert set(DEFAULT_SETTINGS.to_dict()) == SETTING_KEYS


def test_valid_payload_is_normalized() -> None:
    settings = assert_valid_settings(
        {
            "include_nulls": True,
            "date_format": "%Y-%m-%d %H:%M",
            "date_timezone": "utc",
            "grouping_separator": "",
            "log_level": " info ",
        }
    )

    assert settings == MapperSettings(
        include_nulls=True,
        date_format="%Y-%m-%d %H:%M",
        date_timezone="utc",
        grouping_separator="",
        log_level="INFO",
    )


def test_non_mapping_payload_is_rejected() -> None:
    result = validate_settings(["strict"])

    assert not result.is_valid
    assert result.issues == (ConfigValidationIssue("<root>", "expected table, got list"),)


@pytest.mark.parametrize(
    ("payload", "path", "fragment"),
    [
        ({"strict": 1}, "strict", "expected boolean, got int"),
        ({"date_format": 5}, "date_format", "expected string, got int"),
        ({"date_format": "yyyy-MM-dd"}, "date_format", "strftime pattern"),
        ({"date_timezone": "+25:00"}, "date_timezone", "out of range"),
        ({"decimal_separator": ","}, "grouping_separator", "must differ"),
        ({"decimal_separator": "7"}, "grouping_separator", "single non-digit"),
        ({"log_level": "loud"}, "log_level", "unknown level"),
        ({"strictness": True}, "strictness", "unknown setting"),
    ],
)
def test_invalid_values_report_paths(payload: dict[str, object], path: str, fragment: str) -> None:
    result = validate_settings(payload)

    assert result.settings is None
    assert [issue.path for issue in result.issues] == [path]
    assert fragment in result.issues[0].message


def test_validation_error_renders_every_issue() -> None:
    with pytest.raises(ConfigValidationError) as excinfo:
        assert_valid_settings({"strict": "no", "include_nulls": "yes"})

    error = excinfo.value
    assert isinstance(error, ValueError)
    assert [issue.path for issue in error.issues] == ["include_nulls", "strict"]
    assert str(error).splitlines() == [
        "invalid settings:",
        "- include_nulls: expected boolean, got str",
        "- strict: expected boolean, got str",
    ]
