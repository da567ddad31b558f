"""Dotted key-path resolution against nested mappings."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Final

from record_mapper.values import MISSING

SEPARATOR: Final[str] = "."


def split_key_path(path: str) -> tuple[str, ...]:
    if not isinstance(path, str):
        raise TypeError(f"key path must be a string, got {type(path).__name__}")
    return tuple(path.split(SEPARATOR))


def resolve(path: str, root: Mapping[str, object]) -> object:
    """Return the value at ``path`` inside ``root``, or ``MISSING``.

    ``resolve("a.b.c", {"a": {"b": {"c": 5}}})`` is ``5``. A missing segment,
    or a non-mapping value before the last segment, yields ``MISSING``; there
    are no partial results. A single-segment path is a plain key lookup.
    """
    current: object = root
    for segment in split_key_path(path):
        if not isinstance(current, Mapping) or segment not in current:
            return MISSING
        current = current[segment]
    return current


def contains(path: str, root: Mapping[str, object]) -> bool:
    return resolve(path, root) is not MISSING


__all__ = ["SEPARATOR", "contains", "resolve", "split_key_path"]
