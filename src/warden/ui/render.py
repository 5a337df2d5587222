"""Plain-text output for the warden CLI.

File: src/warden/ui/render.py

Purpose
- Print verdicts, key/value summaries and tables to stdout.
- Color only verdict-style lines, only on a TTY, and never when ``--no-color`` or
  ``NO_COLOR`` is set, so piped output stays byte-stable.
"""

from __future__ import annotations

import os
import sys
from enum import Enum
from typing import TYPE_CHECKING, Final, TextIO

if TYPE_CHECKING:
    from collections.abc import Sequence

_RESET: Final[str] = "\033[0m"


class Tone(str, Enum):
    GOOD = "\033[32m"
    BAD = "\033[31m"
    CAUTION = "\033[33m"


class CLIRenderer:
    """Writes human-readable CLI output to ``stream`` (stdout by default)."""

    def __init__(
        self, *, no_color: bool = False, verbose: bool = False, stream: TextIO | None = None
    ) -> None:
        self.verbose = verbose
        self._stream = stream if stream is not None else sys.stdout
        self._color = (
            not no_color
            and not os.environ.get("NO_COLOR")
            and bool(getattr(self._stream, "isatty", lambda: False)())
        )

    def text(self, line: str) -> None:
        self._stream.write(f"{line}\n")

    def lines(self, entries: Sequence[str]) -> None:
        for entry in entries:
            self.text(entry)

    def kv(self, key: str, value: object) -> None:
        self.text(f"{key}: {value}")

    def section(self, title: str) -> None:
        self.text(f"\n{title}")

    def items(self, entries: Sequence[str]) -> None:
        for entry in entries:
            self.text(f"  - {entry}")

    def verdict(self, label: str, tone: Tone) -> None:
        self.text(self._paint(label, tone))

    def ok(self, label: str) -> None:
        self.text(self._paint(f"  OK  {label}", Tone.GOOD))

    def warning(self, message: str) -> None:
        self.text(self._paint(f"  Warning: {message}", Tone.CAUTION))

    def table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
        *,
        title: str | None = None,
    ) -> None:
        """Left-aligned columns separated by two spaces; prints nothing for no rows."""

        if not rows:
            return
        widths = [
            max(len(str(cell)) for cell in column)
            for column in zip(headers, *rows)
        ]

        def render(cells: Sequence[object]) -> str:
            return "  ".join(str(cell).ljust(width) for cell, width in zip(cells, widths)).rstrip()

        if title:
            self.section(title)
        self.text(f"  {render(headers)}")
        self.text(f"  {render(['-' * width for width in widths])}")
        for row in rows:
            self.text(f"  {render(row)}")

    def _paint(self, text: str, tone: Tone) -> str:
        return f"{tone.value}{text}{_RESET}" if self._color else text


def create_renderer(*, no_color: bool = False, verbose: bool = False) -> CLIRenderer:
    return CLIRenderer(no_color=no_color, verbose=verbose)


__all__ = ["CLIRenderer", "Tone", "create_renderer"]
