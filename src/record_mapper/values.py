"""Generic decoded-value shapes and the ``MISSING`` sentinel."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Final, TypeGuard

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]


class _Missing:
    """Marker for a value that is absent, as opposed to JSON ``null``."""

    __slots__ = ()
    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "MISSING"


MISSING: Final[_Missing] = _Missing()


def is_missing(value: object) -> bool:
    return value is MISSING


def is_mapping(value: object) -> TypeGuard[Mapping[str, object]]:
    return isinstance(value, Mapping)


def is_sequence(value: object) -> TypeGuard[list[object] | tuple[object, ...]]:
    # Strings and bytes are scalars in decoded trees.
    return isinstance(value, (list, tuple))


def is_number(value: object) -> TypeGuard[int | float]:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def describe_value(value: object) -> str:
    """Short type name used in issue messages."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if is_sequence(value):
        return "array"
    if is_mapping(value):
        return "object"
    return type(value).__name__


def preview_value(value: object, *, max_len: int = 80) -> JSONValue:
    """Return a JSON-safe, size-bounded rendering of ``value`` for diagnostics."""
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return value if len(value) <= max_len else value[: max_len - 3] + "..."
    if is_sequence(value):
        return f"<array of {len(value)}>"
    if is_mapping(value):
        return f"<object with {len(value)} keys>"
    text = repr(value)
    return text if len(text) <= max_len else text[: max_len - 3] + "..."


__all__ = [
    "JSONScalar",
    "JSONValue",
    "MISSING",
    "describe_value",
    "is_mapping",
    "is_missing",
    "is_number",
    "is_sequence",
    "preview_value",
]
