from __future__ import annotations

import pytest

from warden.evaluation import (
    EvalCase,
    ExecutionResult,
    InMemoryEvalStore,
    format_eval_run_summary,
    load_eval_leaderboard,
    load_eval_trend,
    run_eval_harness,
)


def _run_with(store: InMemoryEvalStore, model: str, output: str, latency_ms: float):
    def execute(case: EvalCase) -> ExecutionResult:
        return ExecutionResult(output=output, provider="openrouter", model=model, latency_ms=latency_ms)

    return run_eval_harness(execute, store=store)


def test_summary_lines_render_percentages_and_gate() -> None:
    store = InMemoryEvalStore([EvalCase(id="a", prompt="p", must_include=("yes",))])
    _run_with(store, "m1", "yes", 10.0)
    run = _run_with(store, "m1", "no", 10.0)

    lines = format_eval_run_summary(run)

    assert lines == [
        f"Eval run: {run.id}",
        "Total: 1 | Passed: 0 | Failed: 1",
        "Pass rate: 0.0%",
        "Regression delta vs previous: 100.0% (threshold 8.0%)",
        "Regression gate: BLOCKED",
    ]


def test_trend_returns_last_runs_oldest_first() -> None:
    store = InMemoryEvalStore([EvalCase(id="a", prompt="p")])
    ids = [_run_with(store, "m", "x", 1.0).id for _ in range(8)]

    trend = load_eval_trend(store)

    assert [run.id for run in trend] == ids[-6:]
    assert [run.id for run in load_eval_trend(store, 2)] == ids[-2:]
    assert load_eval_trend(store, 0) == []


def test_leaderboard_over_recent_window() -> None:
    store = InMemoryEvalStore([EvalCase(id="a", prompt="p", must_include=("ok",))])
    _run_with(store, "old", "ok", 5.0)
    _run_with(store, "fast", "ok", 20.0)
    _run_with(store, "slow", "ok", 80.0)
    _run_with(store, "broken", "fail", 1.0)

    rows = load_eval_leaderboard(store, window=3)

    assert [row.model for row in rows] == ["fast", "slow", "broken"]
    assert rows[-1].pass_rate == 0.0
    assert rows[0].to_dict() == {
        "provider": "openrouter",
        "model": "fast",
        "runs": 1,
        "passRate": 1.0,
        "avgLatencyMs": pytest.approx(20.0),
    }
    assert [row.model for row in load_eval_leaderboard(store, 1)] == ["old"]
