"""Grouping-tolerant number grammar and canonical formatting."""

from __future__ import annotations

import math

import pytest

from record_mapper.numbers import DEFAULT_NUMBER_FORMAT, NumberFormat, format_number


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("1,300.123", 1300.123),
        ("1,300", 1300),
        ("1300", 1300),
        ("-42", -42),
        ("+7", 7),
        (" 12 ", 12),
        ("0.5", 0.5),
        (".5", 0.5),
        ("1e3", 1000.0),
        ("2.", 2.0),
    ],
)
def test_parse_accepts_decimal_grammar(text: str, expected: float) -> None:
    parsed = DEFAULT_NUMBER_FORMAT.parse(text)
    assert parsed == expected
    assert type(parsed) is type(expected)


@pytest.mark.parametrize(
    "text", ["", "abc", "1,30", "1,,300", "12a", "0x10", "1.2.3", "nan", "inf"]
)
def test_parse_rejects_malformed_text(text: str) -> None:
    assert DEFAULT_NUMBER_FORMAT.parse(text) is None


def test_parse_rejects_overflowing_float() -> None:
    assert DEFAULT_NUMBER_FORMAT.parse("1e400") is None


@pytest.mark.parametrize(
    "text",
    ["1" * 5000, "-" + "9" * 5000, "1" * 5000 + ".5", "1" * 4000 + "e5", "1e400", "-1e999"],
)
def test_parse_rejects_well_formed_but_unconvertible_text(text: str) -> None:
    assert DEFAULT_NUMBER_FORMAT.parse(text) is None
    assert DEFAULT_NUMBER_FORMAT.parse_bool(text) is None


def test_custom_separators() -> None:
    european = NumberFormat(grouping_separator=".", decimal_separator=",")
    assert european.parse("1.300,5") == 1300.5
    assert european.parse("1,300.5") is None

    no_grouping = NumberFormat(grouping_separator="")
    assert no_grouping.parse("1300.5") == 1300.5
    assert no_grouping.parse("1,300") is None


@pytest.mark.parametrize(
    ("grouping", "decimal"),
    [(",", ","), ("", ""), ("1", "."), (",", "ab")],
)
def test_invalid_separators_raise(grouping: str, decimal: str) -> None:
    with pytest.raises(ValueError):
        NumberFormat(grouping_separator=grouping, decimal_separator=decimal)


def test_parse_bool_tokens_and_numbers() -> None:
    assert DEFAULT_NUMBER_FORMAT.parse_bool("YES") is True
    assert DEFAULT_NUMBER_FORMAT.parse_bool("off") is False
    assert DEFAULT_NUMBER_FORMAT.parse_bool("0") is False
    assert DEFAULT_NUMBER_FORMAT.parse_bool("2.5") is True
    assert DEFAULT_NUMBER_FORMAT.parse_bool("maybe") is None


def test_format_number_is_canonical() -> None:
    assert format_number(132) == "132"
    assert format_number(2.0) == "2"
    assert format_number(1.5) == "1.5"
    assert format_number(True) == "true"
    assert format_number(1e20) == "1e+20"
    assert format_number(math.inf) is None
