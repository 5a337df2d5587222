"""Module entrypoint for ``python -m warden``."""

from __future__ import annotations

from warden.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
