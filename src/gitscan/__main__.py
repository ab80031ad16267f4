"""Module entrypoint for ``python -m gitscan``."""

from __future__ import annotations

from gitscan.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
