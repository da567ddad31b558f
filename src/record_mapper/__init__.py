"""
record-mapper: type-directed mapping between JSON-like trees and records.

Purpose
- Package root. Exposes the declaration helpers (``record``, ``string_enum``,
  the fixed-width integer aliases) and the ``Mapper`` entry points.

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).
"""

from record_mapper.descriptors import (
    FieldDescriptor,
    FieldKind,
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    KindTag,
    TypeDescriptor,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
)
from record_mapper.enums import RawValueTable, raw_value_table, string_enum
from record_mapper.errors import (
    DescriptorConflictError,
    EnumDefinitionError,
    RecordDefinitionError,
    RecordMapperError,
    StrictDecodeError,
    UnregisteredTypeError,
)
from record_mapper.formatters import (
    ISO_8601,
    DateFormatter,
    DateFormatterSettings,
    IsoDateFormatter,
    PatternDateFormatter,
    default_date_settings,
)
from record_mapper.mapper import DecodeReport, Mapper, decode, decode_list, default_mapper, encode
from record_mapper.records import record
from record_mapper.registry import TypeRegistry, default_registry, describe
from record_mapper.urls import Url
from record_mapper.values import MISSING, JSONValue

__version__ = "0.1.0"

__all__ = [
    "DateFormatter",
    "DateFormatterSettings",
    "DecodeReport",
    "DescriptorConflictError",
    "EnumDefinitionError",
    "FieldDescriptor",
    "FieldKind",
    "Float32",
    "Float64",
    "ISO_8601",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "IsoDateFormatter",
    "JSONValue",
    "KindTag",
    "MISSING",
    "Mapper",
    "PatternDateFormatter",
    "RawValueTable",
    "RecordDefinitionError",
    "RecordMapperError",
    "StrictDecodeError",
    "TypeDescriptor",
    "TypeRegistry",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "UnregisteredTypeError",
    "Url",
    "__version__",
    "decode",
    "decode_list",
    "default_date_settings",
    "default_mapper",
    "default_registry",
    "describe",
    "encode",
    "raw_value_table",
    "record",
    "string_enum",
]
