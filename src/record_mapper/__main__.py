"""Module entrypoint for ``python -m record_mapper``."""

from __future__ import annotations

from record_mapper.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
