"""Leaderboard, trend, and summary views over the eval run log."""

from __future__ import annotations

from warden.constants import DEFAULT_LEADERBOARD_LIMIT, DEFAULT_LEADERBOARD_WINDOW, DEFAULT_TREND_LIMIT
from warden.evaluation.gate import build_leaderboard
from warden.evaluation.models import EvalModelLeaderboard, EvalRun
from warden.evaluation.store import EvalStore


def load_eval_leaderboard(
    store: EvalStore,
    limit: int = DEFAULT_LEADERBOARD_LIMIT,
    *,
    window: int = DEFAULT_LEADERBOARD_WINDOW,
) -> list[EvalModelLeaderboard]:
    """Rank ``provider:model`` pairs over the last ``window`` runs."""
    return build_leaderboard(store.read_recent_runs(window), limit)


def load_eval_trend(store: EvalStore, limit: int = DEFAULT_TREND_LIMIT) -> list[EvalRun]:
    """Return the last ``limit`` runs in chronological order."""
    return store.read_recent_runs(limit)


def format_eval_run_summary(run: EvalRun) -> list[str]:
    return [
        f"Eval run: {run.id}",
        f"Total: {run.total} | Passed: {run.passed} | Failed: {run.failed}",
        f"Pass rate: {_percent(run.pass_rate)}",
        (
            f"Regression delta vs previous: {_percent(run.regression_delta)} "
            f"(threshold {_percent(run.threshold)})"
        ),
        f"Regression gate: {'BLOCKED' if run.blocked else 'clear'}",
    ]


def _percent(value: float) -> str:
    return f"{value * 100:.1f}%"


__all__ = ["format_eval_run_summary", "load_eval_leaderboard", "load_eval_trend"]
