"""CLI router and plain-text rendering."""

from record_mapper.ui.cli import CLIError, build_parser, main, run_cli
from record_mapper.ui.render import CLIRenderer, create_renderer

__all__ = [
    "CLIError",
    "CLIRenderer",
    "build_parser",
    "create_renderer",
    "main",
    "run_cli",
]
