"""Static field and type metadata consumed by the coercion engine."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, is_dataclass
from enum import IntEnum, StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Annotated, Final

from record_mapper.enums import RawValueTable
from record_mapper.errors import RecordDefinitionError

if TYPE_CHECKING:
    from record_mapper.formatters import DateFormatter
    from record_mapper.values import JSONValue

_INTEGER_WIDTHS: Final[frozenset[int]] = frozenset({8, 16, 32, 64})
_FLOAT_WIDTHS: Final[frozenset[int]] = frozenset({32, 64})


class KindTag(StrEnum):
    BOOL = "bool"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    DATE = "date"
    URL = "url"
    INTEGER_ENUM = "integer_enum"
    STRING_ENUM = "string_enum"
    NESTED_RECORD = "nested_record"
    NESTED_RECORD_LIST = "nested_record_list"


_ENUM_TAGS: Final[frozenset[KindTag]] = frozenset({KindTag.INTEGER_ENUM, KindTag.STRING_ENUM})
_RECORD_TAGS: Final[frozenset[KindTag]] = frozenset(
    {KindTag.NESTED_RECORD, KindTag.NESTED_RECORD_LIST}
)


@dataclass(frozen=True, slots=True)
class FieldKind:
    """Declared kind of a field.

    Use the constructors (``FieldKind.integer(8, signed=False)`` and friends)
    rather than the raw initializer; they fill the parameters each tag needs.
    """

    tag: KindTag
    width: int | None = None
    signed: bool = True
    record_type: type | None = None
    enum_type: type[IntEnum] | None = None
    container: type = list

    def __post_init__(self) -> None:
        tag = KindTag(self.tag)
        object.__setattr__(self, "tag", tag)
        if tag is KindTag.INTEGER:
            if self.width not in _INTEGER_WIDTHS:
                raise RecordDefinitionError(
                    f"integer width must be one of 8/16/32/64, got {self.width}"
                )
        elif tag is KindTag.FLOAT:
            if self.width not in _FLOAT_WIDTHS:
                raise RecordDefinitionError(f"float width must be 32 or 64, got {self.width}")
        elif self.width is not None:
            raise RecordDefinitionError(f"{tag} kind does not take a width")

        if tag in _ENUM_TAGS:
            if not (isinstance(self.enum_type, type) and issubclass(self.enum_type, IntEnum)):
                raise RecordDefinitionError(f"{tag} kind requires an IntEnum type")
        elif self.enum_type is not None:
            raise RecordDefinitionError(f"{tag} kind does not take an enum type")

        if tag in _RECORD_TAGS:
            if not (isinstance(self.record_type, type) and is_dataclass(self.record_type)):
                raise RecordDefinitionError(f"{tag} kind requires a dataclass record type")
        elif self.record_type is not None:
            raise RecordDefinitionError(f"{tag} kind does not take a record type")

        if self.container not in (list, tuple):
            raise RecordDefinitionError("record list container must be list or tuple")

    @classmethod
    def boolean(cls) -> FieldKind:
        return cls(KindTag.BOOL)

    @classmethod
    def integer(cls, width: int = 64, *, signed: bool = True) -> FieldKind:
        return cls(KindTag.INTEGER, width=width, signed=signed)

    @classmethod
    def floating(cls, width: int = 64) -> FieldKind:
        return cls(KindTag.FLOAT, width=width)

    @classmethod
    def string(cls) -> FieldKind:
        return cls(KindTag.STRING)

    @classmethod
    def date(cls) -> FieldKind:
        return cls(KindTag.DATE)

    @classmethod
    def url(cls) -> FieldKind:
        return cls(KindTag.URL)

    @classmethod
    def integer_enum(cls, enum_type: type[IntEnum]) -> FieldKind:
        return cls(KindTag.INTEGER_ENUM, enum_type=enum_type)

    @classmethod
    def string_enum(cls, enum_type: type[IntEnum]) -> FieldKind:
        return cls(KindTag.STRING_ENUM, enum_type=enum_type)

    @classmethod
    def nested(cls, record_type: type) -> FieldKind:
        return cls(KindTag.NESTED_RECORD, record_type=record_type)

    @classmethod
    def nested_list(cls, record_type: type, *, container: type = list) -> FieldKind:
        return cls(KindTag.NESTED_RECORD_LIST, record_type=record_type, container=container)

    @property
    def integer_bounds(self) -> tuple[int, int]:
        if self.tag is not KindTag.INTEGER or self.width is None:
            raise TypeError(f"{self.tag} kind has no integer bounds")
        if self.signed:
            return -(1 << (self.width - 1)), (1 << (self.width - 1)) - 1
        return 0, (1 << self.width) - 1

    def describe(self) -> str:
        """Human-readable kind label, e.g. ``uint8`` or ``list[Post]``."""
        if self.tag is KindTag.INTEGER:
            return f"{'int' if self.signed else 'uint'}{self.width}"
        if self.tag is KindTag.FLOAT:
            return f"float{self.width}"
        if self.tag in _ENUM_TAGS and self.enum_type is not None:
            return f"{self.tag}[{self.enum_type.__qualname__}]"
        if self.tag is KindTag.NESTED_RECORD and self.record_type is not None:
            return self.record_type.__qualname__
        if self.tag is KindTag.NESTED_RECORD_LIST and self.record_type is not None:
            return f"{self.container.__name__}[{self.record_type.__qualname__}]"
        return str(self.tag)


Int8 = Annotated[int, FieldKind.integer(8)]
Int16 = Annotated[int, FieldKind.integer(16)]
Int32 = Annotated[int, FieldKind.integer(32)]
Int64 = Annotated[int, FieldKind.integer(64)]
UInt8 = Annotated[int, FieldKind.integer(8, signed=False)]
UInt16 = Annotated[int, FieldKind.integer(16, signed=False)]
UInt32 = Annotated[int, FieldKind.integer(32, signed=False)]
UInt64 = Annotated[int, FieldKind.integer(64, signed=False)]
Float32 = Annotated[float, FieldKind.floating(32)]
Float64 = Annotated[float, FieldKind.floating(64)]


@dataclass(frozen=True, slots=True)
class FieldDescriptor:
    name: str
    kind: FieldKind
    optional: bool = False
    raw_values: RawValueTable | None = None
    has_default: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.isidentifier():
            raise RecordDefinitionError(f"field name must be an identifier, got {self.name!r}")
        is_enum = self.kind.tag in _ENUM_TAGS
        if is_enum and self.raw_values is None:
            raise RecordDefinitionError(f"{self.name}: enum fields require a raw-value table")
        if not is_enum and self.raw_values is not None:
            raise RecordDefinitionError(f"{self.name}: only enum fields carry a raw-value table")
        if is_enum and self.raw_values is not None and self.kind.enum_type is not None:
            if not self.raw_values.covers(self.kind.enum_type):
                raise RecordDefinitionError(
                    f"{self.name}: raw-value table does not cover every "
                    f"{self.kind.enum_type.__qualname__} member"
                )

    def to_dict(self) -> dict[str, JSONValue]:
        payload: dict[str, JSONValue] = {
            "name": self.name,
            "kind": self.kind.describe(),
            "optional": self.optional,
            "has_default": self.has_default,
        }
        if self.raw_values is not None:
            payload["raw_values"] = self.raw_values.to_dict()
        return payload


@dataclass(frozen=True, slots=True)
class TypeDescriptor:
    """Ordered field metadata and decode options for one record type."""

    type_id: str
    record_type: type
    fields: tuple[FieldDescriptor, ...]
    key_paths: Mapping[str, str] = field(default_factory=dict)
    date_formatters: Mapping[str, DateFormatter] = field(default_factory=dict)
    date_formatter: DateFormatter | None = None
    _by_name: Mapping[str, FieldDescriptor] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        fields_tuple = tuple(self.fields)
        by_name: dict[str, FieldDescriptor] = {}
        for item in fields_tuple:
            if item.name in by_name:
                raise RecordDefinitionError(f"{self.type_id}: duplicate field {item.name!r}")
            by_name[item.name] = item

        key_paths = dict(self.key_paths)
        for name, path in key_paths.items():
            if name not in by_name:
                raise RecordDefinitionError(
                    f"{self.type_id}: key path declared for unknown field {name!r}"
                )
            if not isinstance(path, str) or not path:
                raise RecordDefinitionError(
                    f"{self.type_id}.{name}: key path must be a non-empty string"
                )

        formatters = dict(self.date_formatters)
        for name in formatters:
            if name not in by_name:
                raise RecordDefinitionError(
                    f"{self.type_id}: date formatter declared for unknown field {name!r}"
                )

        object.__setattr__(self, "fields", fields_tuple)
        object.__setattr__(self, "key_paths", MappingProxyType(key_paths))
        object.__setattr__(self, "date_formatters", MappingProxyType(formatters))
        object.__setattr__(self, "_by_name", MappingProxyType(by_name))

    def __hash__(self) -> int:
        return hash((self.type_id, self.record_type))

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(item.name for item in self.fields)

    def get_field(self, name: str) -> FieldDescriptor | None:
        return self._by_name.get(name)

    def source_path(self, name: str) -> str:
        """Decode path for ``name``: its key-path override or the name itself."""
        return self.key_paths.get(name, name)

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "type_id": self.type_id,
            "fields": [
                {**item.to_dict(), "source_path": self.source_path(item.name)}
                for item in self.fields
            ],
        }


def type_id_for(record_type: type) -> str:
    return f"{record_type.__module__}.{record_type.__qualname__}"


__all__ = [
    "FieldDescriptor",
    "FieldKind",
    "Float32",
    "Float64",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "KindTag",
    "TypeDescriptor",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "type_id_for",
]
