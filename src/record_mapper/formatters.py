"""Date formatters and the process-wide default formatter setting."""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta, timezone, tzinfo
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from record_mapper.descriptors import TypeDescriptor

_OFFSET_RE = re.compile(r"^([+-])(\d{2}):?(\d{2})$")


@runtime_checkable
class DateFormatter(Protocol):
    """Converts between date strings and ``datetime`` values."""

    def parse(self, text: str) -> datetime | None: ...

    def format(self, value: datetime) -> str: ...


@dataclass(frozen=True, slots=True)
class PatternDateFormatter:
    """``strptime``/``strftime`` pattern formatter.

    ``timezone`` is attached to parsed values that carry no offset, and
    aware values are converted to it before formatting.
    """

    pattern: str
    timezone: tzinfo | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.pattern, str) or not self.pattern:
            raise ValueError("pattern must be a non-empty string")

    def parse(self, text: str) -> datetime | None:
        try:
            parsed = datetime.strptime(text, self.pattern)
        except ValueError:
            return None
        if parsed.tzinfo is None and self.timezone is not None:
            parsed = parsed.replace(tzinfo=self.timezone)
        return parsed

    def format(self, value: datetime) -> str:
        if self.timezone is not None and value.tzinfo is not None:
            value = value.astimezone(self.timezone)
        return value.strftime(self.pattern)


@dataclass(frozen=True, slots=True)
class IsoDateFormatter:
    """ISO-8601 formatter accepting a trailing ``Z`` for UTC."""

    timezone: tzinfo | None = None

    def parse(self, text: str) -> datetime | None:
        normalized = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
        try:
            parsed = datetime.fromisoformat(normalized)
        except ValueError:
            return None
        if parsed.tzinfo is None and self.timezone is not None:
            parsed = parsed.replace(tzinfo=self.timezone)
        return parsed

    def format(self, value: datetime) -> str:
        if self.timezone is not None and value.tzinfo is not None:
            value = value.astimezone(self.timezone)
        rendered = value.isoformat()
        if value.tzinfo is not None and value.utcoffset() == timedelta(0):
            rendered = rendered.replace("+00:00", "Z")
        return rendered


ISO_8601 = IsoDateFormatter()


class DateFormatterSettings:
    """Holder of the default date formatter shared by mappers.

    Mappers keep a reference to one of these and resolve formatters through
    :meth:`resolve` on every date conversion, so changing the default is
    observed immediately. :meth:`reset` restores the initial formatter.
    """

    def __init__(self, default: DateFormatter | None = None) -> None:
        self._initial: DateFormatter = default if default is not None else ISO_8601
        self._default = self._initial
        self._lock = threading.Lock()

    @property
    def default(self) -> DateFormatter:
        with self._lock:
            return self._default

    def set_default(self, formatter: DateFormatter) -> None:
        if not isinstance(formatter, DateFormatter):
            raise TypeError(f"expected a DateFormatter, got {type(formatter).__name__}")
        with self._lock:
            self._default = formatter

    def reset(self) -> None:
        with self._lock:
            self._default = self._initial

    def resolve(self, descriptor: TypeDescriptor, field_name: str) -> DateFormatter:
        field_formatter = descriptor.date_formatters.get(field_name)
        if field_formatter is not None:
            return field_formatter
        if descriptor.date_formatter is not None:
            return descriptor.date_formatter
        return self.default


_PROCESS_SETTINGS = DateFormatterSettings()


def default_date_settings() -> DateFormatterSettings:
    """Return the process-wide settings used by mappers built without their own."""
    return _PROCESS_SETTINGS


def parse_timezone(value: str) -> tzinfo | None:
    """Parse ``""``, ``"UTC"``/``"Z"`` or a fixed ``+HH:MM`` offset."""
    text = value.strip()
    if not text:
        return None
    if text.upper() in {"UTC", "Z"}:
        return UTC
    match = _OFFSET_RE.fullmatch(text)
    if match is None:
        raise ValueError(f"unsupported timezone {value!r}; expected UTC or +HH:MM")
    sign, hours, minutes = match.groups()
    offset = timedelta(hours=int(hours), minutes=int(minutes))
    if offset >= timedelta(hours=24):
        raise ValueError(f"timezone offset out of range: {value!r}")
    return timezone(-offset if sign == "-" else offset)


__all__ = [
    "DateFormatter",
    "DateFormatterSettings",
    "ISO_8601",
    "IsoDateFormatter",
    "PatternDateFormatter",
    "default_date_settings",
    "parse_timezone",
]
