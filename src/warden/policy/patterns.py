"""Command pattern primitives: hard-block list, classification, and custom regex compilation."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Final

from warden.policy.models import ConfirmTarget

HARD_BLOCK_TAG: Final[str] = "hard-block"
CUSTOM_BLOCK_TAG: Final[str] = "custom-block"

# Matched case-insensitively against the raw command text.
HARD_BLOCK_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"\brm\s+-rf\s+/(?:\w|\*|\s|$)", re.IGNORECASE),
    re.compile(r"\brm\s+-rf\s+--no-preserve-root\b", re.IGNORECASE),
    re.compile(r"\bmkfs(\.\w+)?\b", re.IGNORECASE),
    re.compile(r"\bwipefs\b", re.IGNORECASE),
    re.compile(r"\bdd\s+if=", re.IGNORECASE),
    re.compile(r"\bshutdown\b", re.IGNORECASE),
    re.compile(r"\breboot\b", re.IGNORECASE),
    re.compile(r"\bpoweroff\b", re.IGNORECASE),
    re.compile(r"\bcurl\b.*\|\s*(bash|sh)\b", re.IGNORECASE),
    re.compile(r"\bwget\b.*\|\s*(bash|sh)\b", re.IGNORECASE),
)

# Matched against the lower-cased command; order defines tag order.
_CLASSIFIERS: Final[tuple[tuple[ConfirmTarget, re.Pattern[str]], ...]] = (
    (ConfirmTarget.DOWNLOAD, re.compile(r"\bcurl\b|\bwget\b|\bgit\s+clone\b")),
    (
        ConfirmTarget.INSTALL,
        re.compile(
            r"\bnpm\s+install\b|\bpnpm\s+add\b|\bbun\s+add\b|\byarn\s+add\b"
            r"|\bpip(?:3)?\s+install\b|\bapt(?:-get)?\s+install\b"
        ),
    ),
    (
        ConfirmTarget.DEPLOY,
        re.compile(
            r"\bdeploy\b|\bvercel\b|\bwrangler\s+deploy\b|\bkubectl\s+apply\b|\bterraform\s+apply\b"
        ),
    ),
    (ConfirmTarget.WORKSPACE_WRITE, re.compile(r"\b(mkdir|touch|mv|cp|rm|truncate|sed\s+-i)\b")),
)

PERMISSION_HINTS: Final[dict[ConfirmTarget, str]] = {
    ConfirmTarget.DOWNLOAD: "allow download",
    ConfirmTarget.INSTALL: "allow install",
    ConfirmTarget.DEPLOY: "allow deploy",
    ConfirmTarget.WORKSPACE_WRITE: "allow workspace write",
}


@dataclass(frozen=True, slots=True)
class PatternDiagnostic:
    """A custom pattern that failed to compile and was skipped."""

    pattern: str
    error: str


@dataclass(frozen=True, slots=True)
class CompiledPatternSet:
    """Compiled custom block patterns plus diagnostics for the ones that were skipped."""

    matchers: tuple[tuple[str, re.Pattern[str]], ...]
    diagnostics: tuple[PatternDiagnostic, ...] = ()

    def first_match(self, command: str) -> str | None:
        """Return the source of the first pattern matching ``command``, if any."""
        for source, matcher in self.matchers:
            if matcher.search(command):
                return source
        return None


def compile_blocked_patterns(patterns: Iterable[str]) -> CompiledPatternSet:
    """Compile custom regex sources case-insensitively; invalid ones become diagnostics."""

    matchers: list[tuple[str, re.Pattern[str]]] = []
    diagnostics: list[PatternDiagnostic] = []
    for source in patterns:
        if not isinstance(source, str) or not source.strip():
            continue
        try:
            matchers.append((source, re.compile(source, re.IGNORECASE)))
        except re.error as exc:
            diagnostics.append(PatternDiagnostic(pattern=source, error=str(exc)))
    return CompiledPatternSet(matchers=tuple(matchers), diagnostics=tuple(diagnostics))


def is_hard_blocked(command: str) -> bool:
    return any(pattern.search(command) for pattern in HARD_BLOCK_PATTERNS)


def classify_command_tags(command: str) -> tuple[str, ...]:
    """Return the confirmation categories a command falls into, in evaluation order."""

    lowered = command.lower()
    return tuple(target.value for target, pattern in _CLASSIFIERS if pattern.search(lowered))


def includes_permission_phrase(message: str, target: ConfirmTarget) -> bool:
    return PERMISSION_HINTS[target] in message.lower()


__all__ = [
    "CUSTOM_BLOCK_TAG",
    "HARD_BLOCK_PATTERNS",
    "HARD_BLOCK_TAG",
    "PERMISSION_HINTS",
    "CompiledPatternSet",
    "PatternDiagnostic",
    "classify_command_tags",
    "compile_blocked_patterns",
    "includes_permission_phrase",
    "is_hard_blocked",
]
