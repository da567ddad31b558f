"""Plain-text output rendering for the record-mapper CLI.

Purpose
- Provide a thin rendering layer so command handlers never format tables
  or issue lists inline.

Functional requirements
- Deterministic plain-text output with no dependencies beyond the standard library.
- Diagnostics go to stderr; command results go to stdout.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from collections.abc import Sequence


class CLIRenderer:
    """Thin CLI output renderer."""

    def __init__(
        self,
        *,
        verbose: bool = False,
        out: TextIO | None = None,
        err: TextIO | None = None,
    ) -> None:
        self.verbose = verbose
        self._out = out
        self._err = err

    @property
    def out(self) -> TextIO:
        return self._out if self._out is not None else sys.stdout

    @property
    def err(self) -> TextIO:
        return self._err if self._err is not None else sys.stderr

    def heading(self, text: str) -> None:
        print(text, file=self.out)

    def kv(self, key: str, value: object) -> None:
        """Print a key: value pair."""

        print(f"{key}: {value}", file=self.out)

    def text(self, line: str) -> None:
        print(line, file=self.out)

    def section(self, title: str) -> None:
        """Print a section header with a preceding blank line."""

        print(f"\n{title}", file=self.out)

    def warning(self, text: str) -> None:
        print(f"warning: {text}", file=self.err)

    def issues(self, entries: Sequence[tuple[str, str]]) -> None:
        """Print ``path: message`` diagnostics to stderr."""

        for path, message in entries:
            print(f"  - {path}: {message}", file=self.err)

    def table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
        *,
        title: str | None = None,
    ) -> None:
        """Print a formatted ASCII table."""

        if not rows:
            return

        col_count = len(headers)
        widths = [len(h) for h in headers]
        for row in rows:
            for i in range(min(len(row), col_count)):
                widths[i] = max(widths[i], len(str(row[i])))

        def _pad(cells: Sequence[str]) -> str:
            parts: list[str] = []
            for i in range(col_count):
                cell = str(cells[i]) if i < len(cells) else ""
                parts.append(cell.ljust(widths[i]))
            return "  ".join(parts).rstrip()

        if title:
            self.section(title)
        print(f"  {_pad(list(headers))}", file=self.out)
        print(f"  {'  '.join('-' * w for w in widths)}", file=self.out)
        for row in rows:
            print(f"  {_pad(list(row))}", file=self.out)


def create_renderer(
    *,
    verbose: bool = False,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> CLIRenderer:
    """Create a CLI renderer with the given settings."""

    return CLIRenderer(verbose=verbose, out=out, err=err)


__all__ = ["CLIRenderer", "create_renderer"]
