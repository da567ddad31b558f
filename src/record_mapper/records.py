"""Record declaration: dataclasses plus per-type mapping options."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, is_dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, TypeVar, overload

from record_mapper.errors import RecordDefinitionError

if TYPE_CHECKING:
    from record_mapper.formatters import DateFormatter

TRecord = TypeVar("TRecord")

_OPTIONS_ATTR = "__record_options__"


@dataclass(frozen=True, slots=True)
class RecordOptions:
    """Decode options attached to a record type by :func:`record`."""

    key_paths: Mapping[str, str] = field(default_factory=dict)
    date_formatters: Mapping[str, DateFormatter] = field(default_factory=dict)
    date_formatter: DateFormatter | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "key_paths", MappingProxyType(dict(self.key_paths)))
        object.__setattr__(self, "date_formatters", MappingProxyType(dict(self.date_formatters)))

    def __hash__(self) -> int:
        return hash(tuple(sorted(self.key_paths.items())))


_EMPTY_OPTIONS = RecordOptions()


@overload
def record(cls: type[TRecord], /) -> type[TRecord]: ...


@overload
def record(
    *,
    key_paths: Mapping[str, str] | None = None,
    date_formatters: Mapping[str, DateFormatter] | None = None,
    date_formatter: DateFormatter | None = None,
    **dataclass_options: Any,
) -> Callable[[type[TRecord]], type[TRecord]]: ...


def record(
    cls: type[TRecord] | None = None,
    /,
    *,
    key_paths: Mapping[str, str] | None = None,
    date_formatters: Mapping[str, DateFormatter] | None = None,
    date_formatter: DateFormatter | None = None,
    **dataclass_options: Any,
) -> type[TRecord] | Callable[[type[TRecord]], type[TRecord]]:
    """Declare a mappable record type.

    The class is turned into a dataclass (unless it already is one; extra
    ``dataclass_options`` are passed through) and the mapping options are
    attached to it::

        @record(key_paths={"place_name": "place.name"})
        class Post:
            id: int | None = None
            place_name: str | None = None

    ``key_paths`` maps field names to dotted source paths used when decoding.
    ``date_formatters`` maps field names to formatters; ``date_formatter`` is
    the type's fallback before the process-wide default.
    A decorator call without mapping options keeps those inherited from a
    base record.
    """

    options: RecordOptions | None = None
    if key_paths or date_formatters or date_formatter is not None:
        options = RecordOptions(
            key_paths=key_paths or {},
            date_formatters=date_formatters or {},
            date_formatter=date_formatter,
        )

    def decorate(target: type[TRecord]) -> type[TRecord]:
        if not isinstance(target, type):
            raise RecordDefinitionError(f"@record expects a class, got {target!r}")
        built: type[TRecord]
        if is_dataclass(target) and "__dataclass_fields__" in target.__dict__:
            if dataclass_options:
                raise RecordDefinitionError(
                    f"{target.__qualname__}: dataclass options given for an existing dataclass"
                )
            built = target
        else:
            built = dataclass(**dataclass_options)(target)
        if options is not None:
            setattr(built, _OPTIONS_ATTR, options)
        return built

    if cls is not None:
        return decorate(cls)
    return decorate


def options_for(record_type: type) -> RecordOptions:
    """Options declared on ``record_type`` itself, or inherited from a base record."""
    for klass in record_type.__mro__:
        declared = klass.__dict__.get(_OPTIONS_ATTR)
        if isinstance(declared, RecordOptions):
            return declared
    return _EMPTY_OPTIONS


__all__ = ["RecordOptions", "options_for", "record"]
