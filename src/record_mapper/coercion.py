"""Type-directed conversion between decoded values and field values.

Decoding never raises on bad data. A value whose shape does not fit the
field's kind is discarded: the coercer returns ``MISSING``, records a
:class:`CoercionIssue` on the :class:`DecodeContext`, and logs at DEBUG. JSON
``null`` is treated as absent and produces no issue.

Encoding is the mirror image and returns ``MISSING`` for values that cannot
be represented (for example a string enum raw value outside its table).
"""

from __future__ import annotations

import logging
import struct
from collections.abc import Callable
from dataclasses import dataclass, is_dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Final

from record_mapper.descriptors import KindTag
from record_mapper.numbers import DEFAULT_NUMBER_FORMAT, NumberFormat, format_number
from record_mapper.urls import Url
from record_mapper.values import (
    MISSING,
    JSONValue,
    describe_value,
    is_mapping,
    is_number,
    is_sequence,
    preview_value,
)

if TYPE_CHECKING:
    from record_mapper.descriptors import FieldDescriptor, FieldKind, TypeDescriptor
    from record_mapper.formatters import DateFormatterSettings

_LOGGER = logging.getLogger(__name__)

_FLOAT32: Final[struct.Struct] = struct.Struct("<f")

RecordDecoder = Callable[[type, object, "DecodeContext"], object]
RecordEncoder = Callable[[object, bool], dict[str, JSONValue]]


@dataclass(frozen=True, slots=True)
class CoercionIssue:
    """A source value that was discarded during decoding."""

    path: str
    kind: str
    message: str
    source_value: JSONValue = None

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "path": self.path,
            "kind": self.kind,
            "message": self.message,
            "source_value": self.source_value,
        }


class DecodeContext:
    """Location of the value being decoded plus the issue sink for one call."""

    __slots__ = ("_issues", "path")

    def __init__(self, path: str, issues: list[CoercionIssue] | None = None) -> None:
        self.path = path
        self._issues: list[CoercionIssue] = [] if issues is None else issues

    def child(self, name: str) -> DecodeContext:
        return DecodeContext(f"{self.path}.{name}", self._issues)

    def item(self, index: int) -> DecodeContext:
        return DecodeContext(f"{self.path}[{index}]", self._issues)

    @property
    def issues(self) -> tuple[CoercionIssue, ...]:
        return tuple(self._issues)

    def reject(self, kind: str, value: object, message: str) -> object:
        issue = CoercionIssue(
            path=self.path,
            kind=kind,
            message=message,
            source_value=preview_value(value),
        )
        self._issues.append(issue)
        _LOGGER.debug(
            "discarded source value",
            extra={"field_path": self.path, "kind": kind, "reason": message},
        )
        return MISSING


_Decoder = Callable[["FieldDescriptor", object, "TypeDescriptor", DecodeContext], object]
_Encoder = Callable[["FieldDescriptor", object, "TypeDescriptor", bool], object]


class Coercer:
    """Per-kind decode/encode dispatch.

    Nested records are delegated back to the owning mapper through
    ``decode_record`` and ``encode_record``.
    """

    def __init__(
        self,
        *,
        decode_record: RecordDecoder,
        encode_record: RecordEncoder,
        date_settings: DateFormatterSettings,
        number_format: NumberFormat = DEFAULT_NUMBER_FORMAT,
    ) -> None:
        self._decode_record = decode_record
        self._encode_record = encode_record
        self._date_settings = date_settings
        self._number_format = number_format
        self._decoders: dict[KindTag, _Decoder] = {
            KindTag.BOOL: self._decode_bool,
            KindTag.INTEGER: self._decode_integer,
            KindTag.FLOAT: self._decode_float,
            KindTag.STRING: self._decode_string,
            KindTag.DATE: self._decode_date,
            KindTag.URL: self._decode_url,
            KindTag.INTEGER_ENUM: self._decode_integer_enum,
            KindTag.STRING_ENUM: self._decode_string_enum,
            KindTag.NESTED_RECORD: self._decode_nested,
            KindTag.NESTED_RECORD_LIST: self._decode_nested_list,
        }
        self._encoders: dict[KindTag, _Encoder] = {
            KindTag.BOOL: self._encode_bool,
            KindTag.INTEGER: self._encode_integer,
            KindTag.FLOAT: self._encode_float,
            KindTag.STRING: self._encode_string,
            KindTag.DATE: self._encode_date,
            KindTag.URL: self._encode_url,
            KindTag.INTEGER_ENUM: self._encode_integer_enum,
            KindTag.STRING_ENUM: self._encode_string_enum,
            KindTag.NESTED_RECORD: self._encode_nested,
            KindTag.NESTED_RECORD_LIST: self._encode_nested_list,
        }

    @property
    def number_format(self) -> NumberFormat:
        return self._number_format

    @property
    def date_settings(self) -> DateFormatterSettings:
        return self._date_settings

    def decode(
        self,
        field: FieldDescriptor,
        value: object,
        owner: TypeDescriptor,
        context: DecodeContext,
    ) -> object:
        if value is None or value is MISSING:
            return MISSING
        return self._decoders[field.kind.tag](field, value, owner, context)

    def encode(
        self,
        field: FieldDescriptor,
        value: object,
        owner: TypeDescriptor,
        *,
        include_nulls: bool = False,
    ) -> object:
        if value is None or value is MISSING:
            return MISSING
        return self._encoders[field.kind.tag](field, value, owner, include_nulls)

    # -- decode ---------------------------------------------------------------

    def _decode_bool(
        self, field: FieldDescriptor, value: object, owner: TypeDescriptor, context: DecodeContext
    ) -> object:
        if isinstance(value, bool):
            return value
        if is_number(value):
            return value != 0
        if isinstance(value, str):
            parsed = self._number_format.parse_bool(value)
            if parsed is not None:
                return parsed
            return context.reject(field.kind.describe(), value, "unparsable boolean string")
        return _mismatch(field.kind, value, context)

    def _decode_integer(
        self, field: FieldDescriptor, value: object, owner: TypeDescriptor, context: DecodeContext
    ) -> object:
        number = self._number_from(value)
        if number is None:
            return _mismatch(field.kind, value, context)
        if isinstance(number, float):
            if not number.is_integer():
                return context.reject(field.kind.describe(), value, "number is not integral")
            number = int(number)
        low, high = field.kind.integer_bounds
        if not low <= number <= high:
            return context.reject(
                field.kind.describe(), value, f"out of range [{low}, {high}]"
            )
        return number

    def _decode_float(
        self, field: FieldDescriptor, value: object, owner: TypeDescriptor, context: DecodeContext
    ) -> object:
        number = self._number_from(value)
        if number is None:
            return _mismatch(field.kind, value, context)
        try:
            parsed = float(number)
        except OverflowError:
            return context.reject(field.kind.describe(), value, "out of range for float64")
        if field.kind.width == 32:
            try:
                (parsed,) = _FLOAT32.unpack(_FLOAT32.pack(parsed))
            except OverflowError:
                return context.reject(field.kind.describe(), value, "out of range for float32")
        return parsed

    def _decode_string(
        self, field: FieldDescriptor, value: object, owner: TypeDescriptor, context: DecodeContext
    ) -> object:
        if isinstance(value, str):
            return value
        if isinstance(value, (bool, int, float)):
            rendered = format_number(value)
            if rendered is not None:
                return rendered
        return _mismatch(field.kind, value, context)

    def _decode_date(
        self, field: FieldDescriptor, value: object, owner: TypeDescriptor, context: DecodeContext
    ) -> object:
        if isinstance(value, datetime):
            return value
        if not isinstance(value, str):
            return _mismatch(field.kind, value, context)
        formatter = self._date_settings.resolve(owner, field.name)
        parsed = formatter.parse(value)
        if parsed is None:
            return context.reject(field.kind.describe(), value, "unparsable date string")
        return parsed

    def _decode_url(
        self, field: FieldDescriptor, value: object, owner: TypeDescriptor, context: DecodeContext
    ) -> object:
        if isinstance(value, Url):
            return value
        if not isinstance(value, str):
            return _mismatch(field.kind, value, context)
        parsed = Url.parse(value)
        if parsed is None:
            return context.reject(field.kind.describe(), value, "invalid URL")
        return parsed

    def _decode_integer_enum(
        self, field: FieldDescriptor, value: object, owner: TypeDescriptor, context: DecodeContext
    ) -> object:
        number = self._number_from(value)
        if number is None:
            return _mismatch(field.kind, value, context)
        if isinstance(number, float):
            if not number.is_integer():
                return context.reject(field.kind.describe(), value, "raw value is not integral")
            number = int(number)
        enum_type = field.kind.enum_type
        if enum_type is None:
            return number
        try:
            return enum_type(number)
        except ValueError:
            # Undeclared raw values are kept as plain integers.
            return number

    def _decode_string_enum(
        self, field: FieldDescriptor, value: object, owner: TypeDescriptor, context: DecodeContext
    ) -> object:
        if isinstance(value, str):
            text: str | None = value
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            text = format_number(value)
        else:
            return _mismatch(field.kind, value, context)
        raw = None if text is None or field.raw_values is None else field.raw_values.raw_for(text)
        if raw is None:
            return context.reject(field.kind.describe(), value, "unrecognized enum string")
        enum_type = field.kind.enum_type
        return raw if enum_type is None else enum_type(raw)

    def _decode_nested(
        self, field: FieldDescriptor, value: object, owner: TypeDescriptor, context: DecodeContext
    ) -> object:
        record_type = field.kind.record_type
        if record_type is None or not is_mapping(value):
            return _mismatch(field.kind, value, context)
        return self._decode_record(record_type, value, context)

    def _decode_nested_list(
        self, field: FieldDescriptor, value: object, owner: TypeDescriptor, context: DecodeContext
    ) -> object:
        record_type = field.kind.record_type
        if record_type is None or not is_sequence(value):
            return _mismatch(field.kind, value, context)
        decoded = [
            self._decode_record(record_type, item, context.item(index))
            for index, item in enumerate(value)
        ]
        return field.kind.container(decoded)

    def _number_from(self, value: object) -> int | float | None:
        if is_number(value):
            return value
        if isinstance(value, str):
            return self._number_format.parse(value)
        return None

    # -- encode ---------------------------------------------------------------

    def _encode_bool(
        self, field: FieldDescriptor, value: object, owner: TypeDescriptor, include_nulls: bool
    ) -> object:
        if isinstance(value, bool):
            return value
        return _unencodable(owner, field, value)

    def _encode_integer(
        self, field: FieldDescriptor, value: object, owner: TypeDescriptor, include_nulls: bool
    ) -> object:
        if isinstance(value, int) and not isinstance(value, bool):
            return int(value)
        return _unencodable(owner, field, value)

    def _encode_float(
        self, field: FieldDescriptor, value: object, owner: TypeDescriptor, include_nulls: bool
    ) -> object:
        if is_number(value):
            try:
                return float(value)
            except OverflowError:
                return _unencodable(owner, field, value)
        return _unencodable(owner, field, value)

    def _encode_string(
        self, field: FieldDescriptor, value: object, owner: TypeDescriptor, include_nulls: bool
    ) -> object:
        if isinstance(value, str):
            return str(value)
        return _unencodable(owner, field, value)

    def _encode_date(
        self, field: FieldDescriptor, value: object, owner: TypeDescriptor, include_nulls: bool
    ) -> object:
        if not isinstance(value, datetime):
            return _unencodable(owner, field, value)
        return self._date_settings.resolve(owner, field.name).format(value)

    def _encode_url(
        self, field: FieldDescriptor, value: object, owner: TypeDescriptor, include_nulls: bool
    ) -> object:
        if isinstance(value, Url):
            return str(value)
        return _unencodable(owner, field, value)

    def _encode_integer_enum(
        self, field: FieldDescriptor, value: object, owner: TypeDescriptor, include_nulls: bool
    ) -> object:
        if isinstance(value, int) and not isinstance(value, bool):
            return int(value)
        return _unencodable(owner, field, value)

    def _encode_string_enum(
        self, field: FieldDescriptor, value: object, owner: TypeDescriptor, include_nulls: bool
    ) -> object:
        if isinstance(value, bool) or not isinstance(value, int) or field.raw_values is None:
            return _unencodable(owner, field, value)
        text = field.raw_values.string_for(int(value))
        if text is None:
            return _unencodable(owner, field, value)
        return text

    def _encode_nested(
        self, field: FieldDescriptor, value: object, owner: TypeDescriptor, include_nulls: bool
    ) -> object:
        if not _is_record(value):
            return _unencodable(owner, field, value)
        return self._encode_record(value, include_nulls)

    def _encode_nested_list(
        self, field: FieldDescriptor, value: object, owner: TypeDescriptor, include_nulls: bool
    ) -> object:
        if not is_sequence(value):
            return _unencodable(owner, field, value)
        encoded: list[JSONValue] = []
        for item in value:
            if _is_record(item):
                encoded.append(self._encode_record(item, include_nulls))
            elif item is None and include_nulls:
                encoded.append(None)
            else:
                _unencodable(owner, field, item)
        return encoded


def _is_record(value: object) -> bool:
    return is_dataclass(value) and not isinstance(value, type)


def _mismatch(kind: FieldKind, value: object, context: DecodeContext) -> object:
    return context.reject(kind.describe(), value, f"unexpected {describe_value(value)} value")


def _unencodable(owner: TypeDescriptor, field: FieldDescriptor, value: object) -> object:
    _LOGGER.warning(
        "skipped unencodable field value",
        extra={
            "field_path": f"{owner.type_id}.{field.name}",
            "kind": field.kind.describe(),
            "value_type": type(value).__name__,
        },
    )
    return MISSING


__all__ = ["Coercer", "CoercionIssue", "DecodeContext"]
