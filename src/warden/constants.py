"""Stable constants shared by the policy engine and the eval harness."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Final

# Schema versions for persisted contracts.
CONFIG_SCHEMA_VERSION: Final[int] = 1

# Default runtime locations.
DEFAULT_STORE_DIR: Final[str] = "~/.warden/store"
DEFAULT_LOG_DIR: Final[str] = "~/.warden/logs"

# Store layout, relative to the store directory.
POLICY_FILENAME: Final[str] = "policy-engine.json"
EVAL_DIRNAME: Final[PurePosixPath] = PurePosixPath("eval-harness")
EVAL_CASES_FILENAME: Final[str] = "cases.json"
EVAL_RUNS_FILENAME: Final[str] = "runs.jsonl"
EVAL_GATE_FILENAME: Final[str] = "gate.json"

# Eval harness defaults.
DEFAULT_REGRESSION_THRESHOLD: Final[float] = 0.08
DEFAULT_LEADERBOARD_WINDOW: Final[int] = 120
DEFAULT_LEADERBOARD_LIMIT: Final[int] = 8
DEFAULT_TREND_LIMIT: Final[int] = 6

__all__ = [
    "CONFIG_SCHEMA_VERSION",
    "DEFAULT_LEADERBOARD_LIMIT",
    "DEFAULT_LEADERBOARD_WINDOW",
    "DEFAULT_LOG_DIR",
    "DEFAULT_REGRESSION_THRESHOLD",
    "DEFAULT_STORE_DIR",
    "DEFAULT_TREND_LIMIT",
    "EVAL_CASES_FILENAME",
    "EVAL_DIRNAME",
    "EVAL_GATE_FILENAME",
    "EVAL_RUNS_FILENAME",
    "POLICY_FILENAME",
]
