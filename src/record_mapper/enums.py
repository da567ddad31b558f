"""Raw-value tables: the bijection between an enum's integer and string forms."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import IntEnum
from types import MappingProxyType
from typing import TypeVar, overload

from record_mapper.errors import EnumDefinitionError

TIntEnum = TypeVar("TIntEnum", bound=IntEnum)

_TABLE_ATTR = "__raw_value_table__"


@dataclass(frozen=True, slots=True)
class RawValueTable:
    """Total bijection ``int -> str`` with a reverse index."""

    strings: Mapping[int, str]
    _raws: Mapping[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.strings, Mapping):
            raise EnumDefinitionError(
                f"raw-value table must be a mapping, got {type(self.strings).__name__}"
            )
        forward: dict[int, str] = {}
        reverse: dict[str, int] = {}
        for raw, text in self.strings.items():
            if isinstance(raw, bool) or not isinstance(raw, int):
                raise EnumDefinitionError(f"raw value {raw!r} must be an integer")
            if not isinstance(text, str) or not text:
                raise EnumDefinitionError(f"raw value {raw} must map to a non-empty string")
            if text in reverse:
                raise EnumDefinitionError(
                    f"string {text!r} is mapped from both {reverse[text]} and {raw}"
                )
            forward[raw] = text
            reverse[text] = raw
        object.__setattr__(self, "strings", MappingProxyType(forward))
        object.__setattr__(self, "_raws", MappingProxyType(reverse))

    def __hash__(self) -> int:
        return hash(tuple(sorted(self.strings.items())))

    def string_for(self, raw: int) -> str | None:
        return self.strings.get(raw)

    def raw_for(self, text: str) -> int | None:
        return self._raws.get(text)

    def __len__(self) -> int:
        return len(self.strings)

    def to_dict(self) -> dict[str, str]:
        return {str(raw): text for raw, text in sorted(self.strings.items())}

    def covers(self, enum_type: type[IntEnum]) -> bool:
        return set(self.strings) == {int(member) for member in enum_type}


@overload
def string_enum(enum_type: type[TIntEnum], /) -> type[TIntEnum]: ...


@overload
def string_enum(
    *, strings: Mapping[int, str] | None = None
) -> Callable[[type[TIntEnum]], type[TIntEnum]]: ...


def string_enum(
    enum_type: type[TIntEnum] | None = None,
    /,
    *,
    strings: Mapping[int, str] | None = None,
) -> type[TIntEnum] | Callable[[type[TIntEnum]], type[TIntEnum]]:
    """Mark an ``IntEnum`` as exchanged by its canonical string form.

    Without ``strings`` the lower-cased member names are used::

        @string_enum
        class Gender(IntEnum):
            UNKNOWN = 0
            MALE = 1
            FEMALE = 2

    The table must cover every member exactly once; a malformed declaration
    fails here rather than at decode time.
    """

    def decorate(cls: type[TIntEnum]) -> type[TIntEnum]:
        if not isinstance(cls, type) or not issubclass(cls, IntEnum):
            raise EnumDefinitionError(f"{cls!r}: string_enum requires an IntEnum subclass")
        table = RawValueTable(strings if strings is not None else _names_table(cls))
        if not table.covers(cls):
            raise EnumDefinitionError(
                f"{cls.__qualname__}: raw-value table keys {sorted(table.strings)} do not "
                f"match members {sorted(int(member) for member in cls)}"
            )
        setattr(cls, _TABLE_ATTR, table)
        return cls

    if enum_type is not None:
        return decorate(enum_type)
    return decorate


def is_string_enum(enum_type: type[IntEnum]) -> bool:
    return isinstance(enum_type.__dict__.get(_TABLE_ATTR), RawValueTable)


def raw_value_table(enum_type: type[IntEnum]) -> RawValueTable:
    """Return the declared table, or one derived from member names."""
    declared = enum_type.__dict__.get(_TABLE_ATTR)
    if isinstance(declared, RawValueTable):
        return declared
    return RawValueTable(_names_table(enum_type))


def _names_table(enum_type: type[IntEnum]) -> dict[int, str]:
    # Aliases share a value with their canonical member and are not iterated.
    return {int(member): member.name.lower() for member in enum_type}


__all__ = [
    "RawValueTable",
    "is_string_enum",
    "raw_value_table",
    "string_enum",
]
