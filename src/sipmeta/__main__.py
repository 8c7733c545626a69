"""Module entrypoint for ``python -m sipmeta``."""

from __future__ import annotations

from sipmeta.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
