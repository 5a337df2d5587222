"""
warden — run aggregation and regression gate derivation.

File: src/warden/evaluation/gate.py

Purpose
- Pure functions that turn case results into run totals, decide regression,
  derive gate state from the run log, and fold results into a leaderboard.

Functional requirements
- First run never regresses; comparison is inclusive (``delta >= threshold``).
- Gate state is reproducible from the last two runs alone.
- Leaderboard uses running averages keyed by ``provider:model``.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from warden.domain.timestamps import format_timestamp
from warden.evaluation.models import EvalCaseResult, EvalGateState, EvalModelLeaderboard, EvalRun


@dataclass(frozen=True, slots=True)
class RunTotals:
    total: int
    passed: int
    failed: int
    pass_rate: float


@dataclass(frozen=True, slots=True)
class RegressionVerdict:
    previous_pass_rate: float
    regression_delta: float
    regressed: bool


def aggregate_results(results: Sequence[EvalCaseResult]) -> RunTotals:
    total = len(results)
    passed = sum(1 for result in results if result.passed)
    return RunTotals(
        total=total,
        passed=passed,
        failed=total - passed,
        pass_rate=passed / total if total else 0.0,
    )


def resolve_threshold(explicit: float | None, gate_threshold: float | None, default: float) -> float:
    """Pick the first finite positive value among ``explicit``, ``gate_threshold``, ``default``."""

    for candidate in (explicit, gate_threshold):
        if _is_positive_finite(candidate):
            return float(candidate)  # type: ignore[arg-type]
    return default


def compute_regression(
    pass_rate: float,
    previous_pass_rate: float | None,
    threshold: float,
) -> RegressionVerdict:
    """Compare ``pass_rate`` with the previous run's; ``None`` means no previous run."""

    if previous_pass_rate is None:
        return RegressionVerdict(
            previous_pass_rate=pass_rate, regression_delta=0.0, regressed=False
        )
    delta = previous_pass_rate - pass_rate
    return RegressionVerdict(
        previous_pass_rate=previous_pass_rate,
        regression_delta=delta,
        regressed=delta >= threshold,
    )


def gate_state_from_runs(runs: Sequence[EvalRun], default_threshold: float) -> EvalGateState:
    """Recompute gate state from the run log (oldest first)."""

    if not runs:
        return EvalGateState(blocked=False, threshold=default_threshold)

    latest = runs[-1]
    previous = runs[-2] if len(runs) > 1 else None
    threshold = resolve_threshold(latest.threshold, None, default_threshold)
    verdict = compute_regression(
        latest.pass_rate,
        previous.pass_rate if previous is not None else None,
        threshold,
    )
    return EvalGateState(
        blocked=verdict.regressed,
        threshold=threshold,
        last_run_id=latest.id,
        pass_rate=latest.pass_rate,
        previous_pass_rate=verdict.previous_pass_rate,
        regression_delta=verdict.regression_delta,
        updated_at=format_timestamp(),
    )


def build_leaderboard(runs: Iterable[EvalRun], limit: int) -> list[EvalModelLeaderboard]:
    """Fold per-case results into per-model rows; best pass rate first, then fastest."""

    rows: dict[str, EvalModelLeaderboard] = {}
    for run in runs:
        for result in run.results:
            key = f"{result.provider}:{result.model}"
            score = 1.0 if result.passed else 0.0
            existing = rows.get(key)
            if existing is None:
                rows[key] = EvalModelLeaderboard(
                    provider=result.provider,
                    model=result.model,
                    runs=1,
                    pass_rate=score,
                    avg_latency_ms=float(result.latency_ms),
                )
                continue
            count = existing.runs
            rows[key] = EvalModelLeaderboard(
                provider=existing.provider,
                model=existing.model,
                runs=count + 1,
                pass_rate=(existing.pass_rate * count + score) / (count + 1),
                avg_latency_ms=(existing.avg_latency_ms * count + result.latency_ms) / (count + 1),
            )

    ordered = sorted(rows.values(), key=lambda row: (-row.pass_rate, row.avg_latency_ms))
    return ordered[: max(limit, 0)]


def _is_positive_finite(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0


__all__ = [
    "RegressionVerdict",
    "RunTotals",
    "aggregate_results",
    "build_leaderboard",
    "compute_regression",
    "gate_state_from_runs",
    "resolve_threshold",
]
