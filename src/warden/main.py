"""Process entrypoint: run the CLI and turn every outcome into a documented exit code."""

from __future__ import annotations

import sys
import traceback
from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence


class ExitCode(IntEnum):
    SUCCESS = 0
    DENIED = 1
    CONFIG_ERROR = 2
    CONFIRMATION_REQUIRED = 3
    INTERNAL_ERROR = 4


# Anywhere in the cause/context chain, these mean the user must fix input or config.
_USAGE_ERRORS: tuple[type[BaseException], ...] = (
    ValueError,
    FileNotFoundError,
    NotADirectoryError,
    PermissionError,
)


def cli_entrypoint(argv: Sequence[str] | None = None) -> int:
    """Used by ``python -m warden`` and the ``warden`` console script."""

    from warden.errors import EmptyEvalCatalogError
    from warden.ui.cli import run_cli

    try:
        return _as_exit_code(run_cli(argv))
    except SystemExit as exc:
        return _as_exit_code(exc.code)
    except Exception as exc:  # noqa: BLE001 - last-resort boundary for the process.
        usage_errors = (*_USAGE_ERRORS, EmptyEvalCatalogError)
        if any(isinstance(item, usage_errors) for item in _exception_chain(exc)):
            sys.stderr.write(f"error: {str(exc).strip() or type(exc).__name__}\n")
            return int(ExitCode.CONFIG_ERROR)
        traceback.print_exception(type(exc), exc, exc.__traceback__, file=sys.stderr)
        return int(ExitCode.INTERNAL_ERROR)


def _as_exit_code(raw: object) -> int:
    if raw is None:
        return int(ExitCode.SUCCESS)
    if isinstance(raw, int) and raw in ExitCode._value2member_map_:
        return raw
    if isinstance(raw, str) and raw.strip():
        sys.stderr.write(f"{raw.strip()}\n")
    return int(ExitCode.INTERNAL_ERROR)


def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        if current.__cause__ is not None:
            current = current.__cause__
        elif not current.__suppress_context__:
            current = current.__context__
        else:
            current = None


def main() -> None:
    raise SystemExit(cli_entrypoint())


if __name__ == "__main__":
    main()


__all__ = ["ExitCode", "cli_entrypoint", "main"]
