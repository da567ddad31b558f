"""Command-line interface router for record-mapper."""

from __future__ import annotations

import argparse
import importlib
import json
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final

import yaml

from record_mapper.config import (
    ConfigLoadError,
    ConfigValidationError,
    MapperSettings,
    load_settings,
)
from record_mapper.errors import RecordDefinitionError
from record_mapper.mapper import DecodeReport, Mapper
from record_mapper.observability.logging import (
    LoggingConfig,
    setup_structured_logging,
    shutdown_logging,
)
from record_mapper.ui.render import CLIRenderer, create_renderer
from record_mapper.values import is_mapping, is_sequence

_YAML_SUFFIXES: Final[frozenset[str]] = frozenset({".yaml", ".yml"})
_TIMESTAMP_TAG: Final[str] = "tag:yaml.org,2002:timestamp"


class _JsonCompatibleLoader(yaml.SafeLoader):
    """Safe loader that keeps YAML timestamps as strings, as in JSON input."""


_JsonCompatibleLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


@dataclass(frozen=True, slots=True)
class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    message: str
    exit_code: int = 2

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router."""

    parser = argparse.ArgumentParser(
        prog="record-mapper",
        description=(
            "Type-directed mapping between JSON documents and record types.\n\n"
            "Common workflows:\n"
            "  record-mapper describe app.models:User         Show the field table\n"
            "  record-mapper decode app.models:User user.json Decode and re-encode\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to a settings TOML file (default: ./record_mapper.toml if present).",
    )
    common.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=False,
        help="Show detailed output.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    describe_parser = subparsers.add_parser(
        "describe",
        parents=[common],
        help="Print the descriptor of a record type",
        description=(
            "Describe the fields of a record type.\n\n"
            "Examples:\n"
            "  record-mapper describe app.models:Post\n"
            "  record-mapper describe app.models:Post --json\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    describe_parser.add_argument("target", help="Record type as MODULE:QUALNAME")
    describe_parser.add_argument(
        "--json", action="store_true", help="Emit deterministic JSON output"
    )
    describe_parser.set_defaults(handler=_cmd_describe)

    decode_parser = subparsers.add_parser(
        "decode",
        parents=[common],
        help="Decode a JSON or YAML document into records and print the encoding",
        description=(
            "Decode a document (an object or a list of objects) into the given record type\n"
            "and print the re-encoded canonical JSON. Discarded values are reported on stderr.\n\n"
            "Examples:\n"
            "  record-mapper decode app.models:User user.json\n"
            "  cat users.yaml | record-mapper decode app.models:User - --format yaml --strict\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    decode_parser.add_argument("target", help="Record type as MODULE:QUALNAME")
    decode_parser.add_argument("input", help="Input document path, or '-' for stdin")
    decode_parser.add_argument(
        "--format",
        dest="input_format",
        choices=("auto", "json", "yaml"),
        default="auto",
        help="Input format (default: from the file suffix, JSON otherwise).",
    )
    decode_parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Fail with exit code 1 when any value is discarded.",
    )
    decode_parser.add_argument(
        "--include-nulls",
        action="store_true",
        default=None,
        help="Emit unset fields as null in the output.",
    )
    decode_parser.set_defaults(handler=_cmd_decode)

    return parser


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return 2

    try:
        result = handler(namespace)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    return int(result)


def main(argv: Sequence[str] | None = None) -> int:
    return run_cli(argv)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_describe(args: argparse.Namespace) -> int:
    settings = _load_settings(args)
    mapper = Mapper.from_settings(settings)
    record_type = _resolve_target(args.target)
    try:
        descriptor = mapper.describe(record_type)
    except RecordDefinitionError as exc:
        raise CLIError(str(exc)) from exc

    if _flag(args, "json"):
        _emit_json(descriptor.to_dict())
        return 0

    renderer = _get_renderer(args)
    renderer.heading(descriptor.type_id)
    rows = [
        [
            item.name,
            item.kind.describe(),
            descriptor.source_path(item.name),
            "yes" if item.optional else "no",
            "yes" if item.has_default else "no",
        ]
        for item in descriptor.fields
    ]
    renderer.table(["Field", "Kind", "Source path", "Optional", "Default"], rows)
    if renderer.verbose:
        for item in descriptor.fields:
            if item.raw_values is not None:
                renderer.section(f"{item.name} raw values:")
                for raw, text in sorted(item.raw_values.to_dict().items()):
                    renderer.text(f"  {raw} = {text}")
    return 0


def _cmd_decode(args: argparse.Namespace) -> int:
    settings = _load_settings(
        args,
        overrides={"strict": args.strict, "include_nulls": args.include_nulls},
    )
    mapper = Mapper.from_settings(settings)
    record_type = _resolve_target(args.target)
    document = _read_document(args.input, args.input_format)
    renderer = _get_renderer(args)

    setup_structured_logging(LoggingConfig(level=settings.log_level, stream=renderer.err))
    try:
        report = _decode_document(mapper, record_type, document)
    except RecordDefinitionError as exc:
        raise CLIError(str(exc)) from exc
    finally:
        shutdown_logging()

    entries = [(issue.path, issue.message) for issue in report.issues]
    if settings.strict and entries:
        renderer.warning(f"{len(entries)} value(s) rejected in strict mode")
        renderer.issues(entries)
        return 1

    if isinstance(report.record, list):
        payload: object = mapper.encode_list(report.record)
    else:
        payload = mapper.encode(report.record)
    renderer.text(json.dumps(payload, sort_keys=True, indent=2, ensure_ascii=False))
    if entries:
        renderer.warning(f"{len(entries)} value(s) discarded")
        renderer.issues(entries)
    return 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _decode_document(mapper: Mapper, record_type: type, document: object) -> DecodeReport[object]:
    if is_mapping(document):
        return mapper.decode_report(record_type, document)
    if is_sequence(document):
        report = mapper.decode_list_report(record_type, document)
        return DecodeReport(record=report.record, issues=report.issues)
    raise CLIError(f"input document must be an object or a list of objects, got {document!r}")


def _resolve_target(target: str) -> type:
    module_name, sep, qualname = target.partition(":")
    if not sep or not module_name or not qualname:
        raise CLIError(f"target must look like MODULE:TYPE, got {target!r}")
    try:
        resolved: object = importlib.import_module(module_name)
    except ImportError as exc:
        raise CLIError(f"cannot import module {module_name!r}: {exc}") from exc
    for part in qualname.split("."):
        try:
            resolved = getattr(resolved, part)
        except AttributeError as exc:
            raise CLIError(f"{module_name!r} has no attribute {qualname!r}") from exc
    if not isinstance(resolved, type):
        raise CLIError(f"{target} is not a class")
    return resolved


def _read_document(source: str, input_format: str) -> object:
    try:
        if source == "-":
            text = sys.stdin.read()
            suffix = ""
        else:
            path = Path(source)
            text = path.read_text(encoding="utf-8")
            suffix = path.suffix.lower()
    except OSError as exc:
        raise CLIError(f"cannot read input {source}: {exc}") from exc

    use_yaml = input_format == "yaml" or (input_format == "auto" and suffix in _YAML_SUFFIXES)
    try:
        if use_yaml:
            return yaml.load(text, Loader=_JsonCompatibleLoader)  # noqa: S506
        return json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise CLIError(f"invalid {'YAML' if use_yaml else 'JSON'} input {source}: {exc}") from exc


def _load_settings(
    args: argparse.Namespace,
    *,
    overrides: Mapping[str, object] | None = None,
) -> MapperSettings:
    try:
        return load_settings(getattr(args, "config_path", None), overrides=overrides)
    except (ConfigLoadError, ConfigValidationError) as exc:
        raise CLIError(str(exc)) from exc


def _emit_json(payload: Mapping[str, object]) -> None:
    """Emit a JSON payload to stdout with deterministic formatting."""

    print(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


def _get_renderer(args: argparse.Namespace) -> CLIRenderer:
    return create_renderer(verbose=_flag(args, "verbose"))


def _flag(args: argparse.Namespace, name: str) -> bool:
    return bool(getattr(args, name, False))


__all__ = ["CLIError", "build_parser", "main", "run_cli"]
