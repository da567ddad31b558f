"""Process-wide TypeDescriptor registry and dataclass metadata extraction."""

from __future__ import annotations

import logging
import threading
import types
from collections.abc import Sequence
from dataclasses import MISSING as _DATACLASS_MISSING
from dataclasses import fields, is_dataclass
from datetime import datetime
from enum import IntEnum
from typing import Annotated, Final, Union, get_args, get_origin, get_type_hints

from record_mapper.descriptors import (
    FieldDescriptor,
    FieldKind,
    KindTag,
    TypeDescriptor,
    type_id_for,
)
from record_mapper.enums import is_string_enum, raw_value_table
from record_mapper.errors import (
    DescriptorConflictError,
    RecordDefinitionError,
    UnregisteredTypeError,
)
from record_mapper.records import options_for
from record_mapper.urls import Url

_LOGGER = logging.getLogger(__name__)

_SCALAR_KINDS: Final[dict[type, FieldKind]] = {
    bool: FieldKind.boolean(),
    int: FieldKind.integer(64),
    float: FieldKind.floating(64),
    str: FieldKind.string(),
    datetime: FieldKind.date(),
    Url: FieldKind.url(),
}


class TypeRegistry:
    """Memoizes one :class:`TypeDescriptor` per record type.

    Descriptors are never invalidated. The first ``describe`` of a type builds
    under a per-type lock so concurrent first access yields one instance.
    """

    def __init__(self) -> None:
        self._descriptors: dict[type, TypeDescriptor] = {}
        self._build_locks: dict[type, threading.Lock] = {}
        self._lock = threading.Lock()
        self._builds = 0

    @property
    def build_count(self) -> int:
        with self._lock:
            return self._builds

    def describe(self, record_type: type) -> TypeDescriptor:
        cached = self._descriptors.get(record_type)
        if cached is not None:
            return cached

        with self._build_lock_for(record_type):
            cached = self._descriptors.get(record_type)
            if cached is not None:
                return cached
            try:
                descriptor = build_type_descriptor(record_type)
                with self._lock:
                    self._descriptors[record_type] = descriptor
                    self._builds += 1
            finally:
                with self._lock:
                    self._build_locks.pop(record_type, None)

        _LOGGER.debug(
            "described record type",
            extra={"type_id": descriptor.type_id, "field_count": len(descriptor.fields)},
        )
        return descriptor

    def register(self, descriptor: TypeDescriptor) -> TypeDescriptor:
        """Install a manually built descriptor for ``descriptor.record_type``."""
        if not isinstance(descriptor, TypeDescriptor):
            raise TypeError(f"expected TypeDescriptor, got {type(descriptor).__name__}")
        record_type = descriptor.record_type
        with self._build_lock_for(record_type):
            with self._lock:
                existing = self._descriptors.get(record_type)
                if existing is not None and existing != descriptor:
                    raise DescriptorConflictError(
                        f"{descriptor.type_id}: a different descriptor is already registered"
                    )
                if existing is None:
                    self._descriptors[record_type] = descriptor
                    self._build_locks.pop(record_type, None)
                return self._descriptors[record_type]

    def is_registered(self, record_type: type) -> bool:
        with self._lock:
            return record_type in self._descriptors

    def registered_types(self) -> tuple[type, ...]:
        with self._lock:
            return tuple(self._descriptors)

    def _build_lock_for(self, record_type: type) -> threading.Lock:
        with self._lock:
            lock = self._build_locks.get(record_type)
            if lock is None:
                lock = threading.Lock()
                self._build_locks[record_type] = lock
            return lock


_PROCESS_REGISTRY = TypeRegistry()


def default_registry() -> TypeRegistry:
    return _PROCESS_REGISTRY


def describe(record_type: type) -> TypeDescriptor:
    """Describe ``record_type`` through the process-wide registry."""
    return _PROCESS_REGISTRY.describe(record_type)


def build_type_descriptor(record_type: type) -> TypeDescriptor:
    """Extract a descriptor from a dataclass declaration."""
    if not isinstance(record_type, type):
        raise UnregisteredTypeError(f"expected a record class, got {record_type!r}")
    type_id = type_id_for(record_type)
    if not is_dataclass(record_type):
        raise UnregisteredTypeError(
            f"{type_id}: not a record type; declare it with @record or register a descriptor"
        )

    try:
        hints = get_type_hints(record_type, include_extras=True)
    except (NameError, TypeError) as exc:
        raise RecordDefinitionError(f"{type_id}: cannot resolve annotations: {exc}") from exc

    descriptors: list[FieldDescriptor] = []
    for dataclass_field in fields(record_type):
        if not dataclass_field.init:
            continue
        path = f"{type_id}.{dataclass_field.name}"
        kind, optional = _kind_for_annotation(hints.get(dataclass_field.name), path)
        raw_values = None
        if kind.tag in (KindTag.INTEGER_ENUM, KindTag.STRING_ENUM) and kind.enum_type is not None:
            raw_values = raw_value_table(kind.enum_type)
        has_default = (
            dataclass_field.default is not _DATACLASS_MISSING
            or dataclass_field.default_factory is not _DATACLASS_MISSING
        )
        descriptors.append(
            FieldDescriptor(
                name=dataclass_field.name,
                kind=kind,
                optional=optional,
                raw_values=raw_values,
                has_default=has_default,
            )
        )

    options = options_for(record_type)
    return TypeDescriptor(
        type_id=type_id,
        record_type=record_type,
        fields=tuple(descriptors),
        key_paths=options.key_paths,
        date_formatters=options.date_formatters,
        date_formatter=options.date_formatter,
    )


def _kind_for_annotation(annotation: object, path: str) -> tuple[FieldKind, bool]:
    if annotation is None:
        raise RecordDefinitionError(f"{path}: missing type annotation")

    optional = False
    base, declared = _unwrap_annotated(annotation)

    if _is_union(base):
        members = [arg for arg in get_args(base) if arg is not type(None)]
        optional = len(members) != len(get_args(base))
        if len(members) != 1:
            raise RecordDefinitionError(f"{path}: unions other than Optional[X] are not supported")
        base, inner_declared = _unwrap_annotated(members[0])
        declared = declared or inner_declared

    if declared is not None:
        return declared, optional
    return _infer_kind(base, path), optional


def _unwrap_annotated(annotation: object) -> tuple[object, FieldKind | None]:
    if get_origin(annotation) is not Annotated:
        return annotation, None
    base, *metadata = get_args(annotation)
    declared = next((item for item in metadata if isinstance(item, FieldKind)), None)
    return base, declared


def _is_union(annotation: object) -> bool:
    origin = get_origin(annotation)
    return origin is Union or origin is types.UnionType


def _infer_kind(annotation: object, path: str) -> FieldKind:
    if isinstance(annotation, type):
        scalar = _SCALAR_KINDS.get(annotation)
        if scalar is not None:
            return scalar
        if issubclass(annotation, IntEnum):
            if is_string_enum(annotation):
                return FieldKind.string_enum(annotation)
            return FieldKind.integer_enum(annotation)
        if is_dataclass(annotation):
            return FieldKind.nested(annotation)

    origin = get_origin(annotation)
    if origin in (list, tuple, Sequence):
        args = get_args(annotation)
        if origin is tuple:
            if len(args) != 2 or args[1] is not Ellipsis:
                raise RecordDefinitionError(f"{path}: only tuple[Record, ...] is supported")
            args = args[:1]
        element = args[0] if args else None
        if isinstance(element, type) and is_dataclass(element):
            container = tuple if origin is tuple else list
            return FieldKind.nested_list(element, container=container)
        raise RecordDefinitionError(
            f"{path}: sequence fields must hold record types, got {element!r}"
        )

    raise RecordDefinitionError(f"{path}: unsupported field type {annotation!r}")


__all__ = [
    "TypeRegistry",
    "build_type_descriptor",
    "default_registry",
    "describe",
]
