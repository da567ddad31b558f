"""Decimal number grammar tolerant of grouping separators."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Final

_BOOLEAN_TRUE: Final[frozenset[str]] = frozenset({"true", "t", "yes", "y", "on"})
_BOOLEAN_FALSE: Final[frozenset[str]] = frozenset({"false", "f", "no", "n", "off"})

# Integral floats up to this magnitude are rendered without a fraction.
_MAX_EXACT_INTEGRAL: Final[float] = 2.0**53


@dataclass(frozen=True, slots=True)
class NumberFormat:
    """Separators used when numbers arrive as strings.

    ``NumberFormat().parse("1,300.123")`` is ``1300.123``. Grouping must be in
    runs of three digits; ``"1,30"`` is rejected.
    """

    grouping_separator: str = ","
    decimal_separator: str = "."
    _pattern: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if len(self.decimal_separator) != 1 or self.decimal_separator.isdigit():
            raise ValueError("decimal_separator must be a single non-digit character")
        if len(self.grouping_separator) > 1 or self.grouping_separator.isdigit():
            raise ValueError("grouping_separator must be empty or a single non-digit character")
        if self.grouping_separator == self.decimal_separator:
            raise ValueError("grouping_separator and decimal_separator must differ")

        group = re.escape(self.grouping_separator)
        decimal = re.escape(self.decimal_separator)
        integral = rf"(?:\d{{1,3}}(?:{group}\d{{3}})+|\d+)" if group else r"\d+"
        pattern = (
            rf"^(?P<sign>[+-]?)"
            rf"(?:(?P<int>{integral})(?:{decimal}(?P<frac>\d*))?|{decimal}(?P<only>\d+))"
            rf"(?:[eE](?P<exp>[+-]?\d+))?$"
        )
        object.__setattr__(self, "_pattern", re.compile(pattern))

    def parse(self, text: str) -> int | float | None:
        """Parse ``text``; integral input without fraction or exponent yields ``int``."""
        match = self._pattern.fullmatch(text.strip())
        if match is None:
            return None
        sign = match.group("sign")
        integral = match.group("int") or "0"
        if self.grouping_separator:
            integral = integral.replace(self.grouping_separator, "")
        fraction = match.group("frac")
        only = match.group("only")
        exponent = match.group("exp")

        # int() and float() refuse digit strings beyond sys.get_int_max_str_digits().
        try:
            if only is None and fraction is None and exponent is None:
                return int(sign + integral)

            literal = f"{sign}{integral}.{only if only is not None else fraction or '0'}"
            if exponent is not None:
                literal += f"e{exponent}"
            parsed = float(literal)
        except ValueError:
            return None
        if not math.isfinite(parsed):
            return None
        return parsed

    def parse_bool(self, text: str) -> bool | None:
        lowered = text.strip().lower()
        if lowered in _BOOLEAN_TRUE:
            return True
        if lowered in _BOOLEAN_FALSE:
            return False
        number = self.parse(text)
        if number is None:
            return None
        return number != 0


DEFAULT_NUMBER_FORMAT = NumberFormat()


def format_number(value: bool | int | float) -> str | None:
    """Canonical decimal string for a number, ``None`` for non-finite floats."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if not math.isfinite(value):
        return None
    if value.is_integer() and abs(value) < _MAX_EXACT_INTEGRAL:
        return str(int(value))
    return repr(value)


__all__ = ["DEFAULT_NUMBER_FORMAT", "NumberFormat", "format_number"]
