"""Exception taxonomy for the mapping engine.

Data-level problems (missing keys, malformed values) are never raised in the
default lenient mode; they are recorded as coercion issues instead. The
exceptions here signal programming-level misuse, or a strict-mode decode that
found issues.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from record_mapper.coercion import CoercionIssue


class RecordMapperError(Exception):
    """Base class for every error raised by ``record_mapper``."""


class RecordDefinitionError(RecordMapperError, TypeError):
    """Raised when a record type cannot be described (bad annotation or options)."""


class UnregisteredTypeError(RecordDefinitionError):
    """Raised when metadata for a type is requested but cannot be obtained."""


class EnumDefinitionError(RecordDefinitionError):
    """Raised when an enum's raw-value table is not a total bijection."""


class DescriptorConflictError(RecordMapperError):
    """Raised when a different descriptor is already registered for a type."""


class StrictDecodeError(RecordMapperError, ValueError):
    """Raised by strict-mode decoding when any coercion issue was recorded."""

    def __init__(self, type_id: str, issues: Sequence[CoercionIssue]) -> None:
        self.type_id = type_id
        self.issues = tuple(issues)
        if self.issues:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        else:
            rendered = "- unknown coercion failure"
        super().__init__(f"{type_id}: strict decode failed:\n{rendered}")


__all__ = [
    "DescriptorConflictError",
    "EnumDefinitionError",
    "RecordDefinitionError",
    "RecordMapperError",
    "StrictDecodeError",
    "UnregisteredTypeError",
]
