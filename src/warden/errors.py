"""Typed errors raised by the policy engine and eval harness."""

from __future__ import annotations

from pathlib import Path


class WardenError(Exception):
    """Base class for warden runtime failures."""


class EmptyEvalCatalogError(WardenError):
    """Raised when a harness run finds no eval cases to execute."""

    def __init__(self, cases_path: Path | str) -> None:
        self.cases_path = str(cases_path)
        super().__init__(f"No eval cases configured. Add cases to {self.cases_path}")


class EvalCaseValidationError(WardenError, ValueError):
    """Raised when an eval case payload is malformed or ids collide."""


__all__ = ["EmptyEvalCatalogError", "EvalCaseValidationError", "WardenError"]
