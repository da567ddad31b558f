"""Record-level decode/encode orchestration."""

from __future__ import annotations

import dataclasses
import logging
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar, cast

from record_mapper.coercion import Coercer, CoercionIssue, DecodeContext
from record_mapper.errors import StrictDecodeError, UnregisteredTypeError
from record_mapper.formatters import (
    DateFormatterSettings,
    IsoDateFormatter,
    PatternDateFormatter,
    default_date_settings,
    parse_timezone,
)
from record_mapper.keypath import resolve
from record_mapper.numbers import DEFAULT_NUMBER_FORMAT, NumberFormat
from record_mapper.observability.logging import correlation_scope
from record_mapper.registry import TypeRegistry, default_registry
from record_mapper.values import MISSING, JSONValue, describe_value, is_mapping

if TYPE_CHECKING:
    from record_mapper.config.schema import MapperSettings
    from record_mapper.descriptors import TypeDescriptor

_LOGGER = logging.getLogger(__name__)

R = TypeVar("R")


@dataclass(frozen=True, slots=True)
class DecodeReport(Generic[R]):
    """Result of a lenient decode together with every discarded value."""

    record: R
    issues: tuple[CoercionIssue, ...]

    @property
    def ok(self) -> bool:
        return not self.issues


class Mapper:
    """Decodes mappings into records and encodes records back into mappings.

    A mapper holds configuration only; decode and encode keep their state on
    the call stack, so one instance can serve many threads.
    """

    def __init__(
        self,
        *,
        registry: TypeRegistry | None = None,
        date_settings: DateFormatterSettings | None = None,
        number_format: NumberFormat | None = None,
        include_nulls: bool = False,
        strict: bool = False,
    ) -> None:
        self._registry = registry if registry is not None else default_registry()
        self._date_settings = (
            date_settings if date_settings is not None else default_date_settings()
        )
        self._include_nulls = include_nulls
        self._strict = strict
        self._coercer = Coercer(
            decode_record=self._decode_record,
            encode_record=self._encode_record,
            date_settings=self._date_settings,
            number_format=number_format if number_format is not None else DEFAULT_NUMBER_FORMAT,
        )

    @classmethod
    def from_settings(
        cls,
        settings: MapperSettings,
        *,
        registry: TypeRegistry | None = None,
    ) -> Mapper:
        """Build a mapper with its own date settings derived from ``settings``."""
        zone = parse_timezone(settings.date_timezone)
        if settings.date_format:
            formatter = PatternDateFormatter(settings.date_format, timezone=zone)
        else:
            formatter = IsoDateFormatter(timezone=zone)
        return cls(
            registry=registry,
            date_settings=DateFormatterSettings(formatter),
            number_format=NumberFormat(
                grouping_separator=settings.grouping_separator,
                decimal_separator=settings.decimal_separator,
            ),
            include_nulls=settings.include_nulls,
            strict=settings.strict,
        )

    @property
    def registry(self) -> TypeRegistry:
        return self._registry

    @property
    def date_settings(self) -> DateFormatterSettings:
        return self._date_settings

    @property
    def include_nulls(self) -> bool:
        return self._include_nulls

    @property
    def strict(self) -> bool:
        return self._strict

    def describe(self, record_type: type) -> TypeDescriptor:
        return self._registry.describe(record_type)

    # -- decode ---------------------------------------------------------------

    def decode(self, record_type: type[R], source: object, *, strict: bool | None = None) -> R:
        """Decode ``source`` into a new ``record_type`` instance.

        Absent or malformed values leave fields at their declared defaults
        (``None`` for fields without one). In strict mode any discarded value
        raises :class:`StrictDecodeError` instead.
        """
        report = self.decode_report(record_type, source)
        self._raise_if_strict(record_type, report.issues, strict)
        return report.record

    def decode_report(self, record_type: type[R], source: object) -> DecodeReport[R]:
        descriptor = self._registry.describe(record_type)
        context = DecodeContext(record_type.__qualname__)
        with correlation_scope(record_type=descriptor.type_id):
            record = self._decode_record(record_type, source, context)
        return DecodeReport(record=cast("R", record), issues=context.issues)

    def decode_list(
        self,
        record_type: type[R],
        sources: Iterable[object],
        *,
        strict: bool | None = None,
    ) -> list[R]:
        """Decode each source in order; invalid entries become default-valued records."""
        report = self.decode_list_report(record_type, sources)
        self._raise_if_strict(record_type, report.issues, strict)
        return report.record

    def decode_list_report(
        self,
        record_type: type[R],
        sources: Iterable[object],
    ) -> DecodeReport[list[R]]:
        if isinstance(sources, (str, bytes)) or is_mapping(sources):
            raise TypeError(f"expected a sequence of mappings, got {describe_value(sources)}")
        descriptor = self._registry.describe(record_type)
        context = DecodeContext(record_type.__qualname__)
        with correlation_scope(record_type=descriptor.type_id):
            records = [
                cast("R", self._decode_record(record_type, source, context.item(index)))
                for index, source in enumerate(sources)
            ]
        return DecodeReport(record=records, issues=context.issues)

    def update(self, record: R, source: Mapping[str, object], *, strict: bool | None = None) -> R:
        """Return a copy of ``record`` with the fields present in ``source`` replaced."""
        record_type = type(record)
        descriptor = self._registry.describe(record_type)
        context = DecodeContext(record_type.__qualname__)
        with correlation_scope(record_type=descriptor.type_id):
            changes = self._decode_object(descriptor, source, context)
        self._raise_if_strict(record_type, context.issues, strict)
        return cast("R", dataclasses.replace(cast("object", record), **changes))

    def _decode_record(self, record_type: type, source: object, context: DecodeContext) -> object:
        descriptor = self._registry.describe(record_type)
        values = self._decode_object(descriptor, source, context)
        for field in descriptor.fields:
            if field.name not in values and not field.has_default:
                values[field.name] = None
        return record_type(**values)

    def _decode_object(
        self, descriptor: TypeDescriptor, source: object, context: DecodeContext
    ) -> dict[str, object]:
        if is_mapping(source):
            return self._decode_values(descriptor, source, context)
        message = f"expected object, got {describe_value(source)}"
        context.reject(descriptor.type_id, source, message)
        return {}

    def _decode_values(
        self,
        descriptor: TypeDescriptor,
        source: Mapping[str, object],
        context: DecodeContext,
    ) -> dict[str, object]:
        values: dict[str, object] = {}
        for field in descriptor.fields:
            raw = resolve(descriptor.source_path(field.name), source)
            if raw is MISSING:
                continue
            coerced = self._coercer.decode(field, raw, descriptor, context.child(field.name))
            if coerced is not MISSING:
                values[field.name] = coerced
        return values

    def _raise_if_strict(
        self,
        record_type: type,
        issues: tuple[CoercionIssue, ...],
        strict: bool | None,
    ) -> None:
        effective = self._strict if strict is None else strict
        if effective and issues:
            _LOGGER.info(
                "strict decode rejected input",
                extra={"record_type": record_type.__qualname__, "issue_count": len(issues)},
            )
            raise StrictDecodeError(record_type.__qualname__, issues)

    # -- encode ---------------------------------------------------------------

    def encode(self, record: object, *, include_nulls: bool | None = None) -> dict[str, JSONValue]:
        """Encode ``record`` into a mapping keyed by declared field names.

        Key-path overrides are not applied; nested values are not re-nested.
        Unset fields are omitted unless ``include_nulls`` is set.
        """
        nulls = self._include_nulls if include_nulls is None else include_nulls
        descriptor = self._describe_instance(record)
        with correlation_scope(record_type=descriptor.type_id):
            return self._encode_record(record, nulls)

    def encode_list(
        self,
        records: Iterable[object],
        *,
        include_nulls: bool | None = None,
    ) -> list[dict[str, JSONValue]]:
        return [self.encode(item, include_nulls=include_nulls) for item in records]

    def _encode_record(self, record: object, include_nulls: bool) -> dict[str, JSONValue]:
        descriptor = self._describe_instance(record)
        payload: dict[str, JSONValue] = {}
        for field in descriptor.fields:
            value = getattr(record, field.name, None)
            encoded = self._coercer.encode(field, value, descriptor, include_nulls=include_nulls)
            if encoded is MISSING:
                if include_nulls:
                    payload[field.name] = None
                continue
            payload[field.name] = cast("JSONValue", encoded)
        return payload

    def _describe_instance(self, record: object) -> TypeDescriptor:
        if isinstance(record, type):
            raise UnregisteredTypeError(f"expected a record instance, got class {record!r}")
        return self._registry.describe(type(record))


_DEFAULT_MAPPER: Mapper | None = None
_DEFAULT_MAPPER_LOCK = threading.Lock()


def default_mapper() -> Mapper:
    """Process-wide lenient mapper over the default registry and date settings."""
    global _DEFAULT_MAPPER
    with _DEFAULT_MAPPER_LOCK:
        if _DEFAULT_MAPPER is None:
            _DEFAULT_MAPPER = Mapper()
        return _DEFAULT_MAPPER


def decode(record_type: type[R], source: object) -> R:
    return default_mapper().decode(record_type, source)


def decode_list(record_type: type[R], sources: Iterable[object]) -> list[R]:
    return default_mapper().decode_list(record_type, sources)


def encode(record: object, *, include_nulls: bool = False) -> dict[str, JSONValue]:
    return default_mapper().encode(record, include_nulls=include_nulls)


__all__ = [
    "DecodeReport",
    "Mapper",
    "decode",
    "decode_list",
    "default_mapper",
    "encode",
]
