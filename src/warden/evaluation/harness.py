"""
warden — eval harness runner and gate operations.

File: src/warden/evaluation/harness.py

Purpose
- Execute the case catalog through an injected executor, score each output,
  detect regressions against the previous run, and persist run + gate state.

What should be included in this file
- ``run_eval_harness`` with sequential execution in catalog order.
- Gate load / clear / rebuild operations.
- Catalog maintenance helpers (ensure, load, save, import).

Functional requirements
- Empty catalog is fatal and names the catalog location.
- Executor latency falls back to measured wall time when missing or zero.
- ``blocked`` always equals ``regressed`` for a fresh run.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import replace
from pathlib import Path
from typing import Any

import structlog

from warden.domain.ids import generate_eval_run_id
from warden.domain.timestamps import format_timestamp
from warden.errors import EmptyEvalCatalogError
from warden.evaluation.gate import (
    aggregate_results,
    compute_regression,
    gate_state_from_runs,
    resolve_threshold,
)
from warden.evaluation.models import (
    EvalCase,
    EvalCaseResult,
    EvalGateState,
    EvalRun,
    ExecutionResult,
    coerce_execution_result,
    whole_milliseconds,
)
from warden.evaluation.scoring import evaluate_case_result
from warden.evaluation.store import EvalStore, load_eval_cases_file, parse_eval_cases

Executor = Callable[[EvalCase], ExecutionResult | Mapping[str, Any]]


def run_eval_harness(
    execute: Executor,
    threshold: float | None = None,
    *,
    store: EvalStore,
    logger: Any | None = None,
    clock: Callable[[], float] = time.monotonic,
    id_factory: Callable[[], str] = generate_eval_run_id,
) -> EvalRun:
    """Run every catalog case once and persist the resulting run and gate state.

    ``threshold`` overrides the gate's stored threshold when it is a positive
    finite number. Executor exceptions propagate; nothing is persisted in that case.
    """

    log = _resolve_logger(logger)
    cases = store.read_cases()
    if not cases:
        raise EmptyEvalCatalogError(store.cases_location)

    recent = store.read_recent_runs(2)
    previous = recent[-1] if recent else None
    gate = store.read_gate()
    effective_threshold = resolve_threshold(threshold, gate.threshold, store.default_threshold)

    run_id = id_factory()
    with structlog.contextvars.bound_contextvars(eval_run_id=run_id):
        results: list[EvalCaseResult] = []
        for case in cases:
            started = clock()
            execution = coerce_execution_result(execute(case))
            elapsed_ms = (clock() - started) * 1000.0
            latency_ms = whole_milliseconds(execution.latency_ms or elapsed_ms)
            score = evaluate_case_result(case, execution.output)
            result = EvalCaseResult(
                id=case.id,
                passed=score.passed,
                provider=execution.provider,
                model=execution.model,
                latency_ms=latency_ms,
                response_length=len(execution.output or ""),
                reasons=score.reasons,
            )
            results.append(result)
            log.info(
                "eval_case_scored",
                case_id=case.id,
                passed=result.passed,
                provider=result.provider,
                model=result.model,
                latency_ms=result.latency_ms,
                reasons=list(result.reasons),
            )

        totals = aggregate_results(results)
        verdict = compute_regression(
            totals.pass_rate,
            previous.pass_rate if previous is not None else None,
            effective_threshold,
        )
        run = EvalRun(
            id=run_id,
            at=format_timestamp(),
            total=totals.total,
            passed=totals.passed,
            failed=totals.failed,
            pass_rate=totals.pass_rate,
            threshold=effective_threshold,
            regression_delta=verdict.regression_delta,
            regressed=verdict.regressed,
            blocked=verdict.regressed,
            results=tuple(results),
        )

        store.append_run(run)
        store.write_gate(
            EvalGateState(
                blocked=run.blocked,
                threshold=effective_threshold,
                last_run_id=run.id,
                pass_rate=run.pass_rate,
                previous_pass_rate=verdict.previous_pass_rate,
                regression_delta=verdict.regression_delta,
                updated_at=format_timestamp(),
            )
        )
        log.info(
            "eval_run_completed",
            total=run.total,
            passed=run.passed,
            failed=run.failed,
            pass_rate=run.pass_rate,
            previous_pass_rate=verdict.previous_pass_rate,
            regression_delta=run.regression_delta,
            threshold=run.threshold,
            regressed=run.regressed,
            blocked=run.blocked,
        )
    return run


def load_eval_gate_state(store: EvalStore) -> EvalGateState:
    return store.read_gate()


def clear_eval_gate_block(store: EvalStore, *, logger: Any | None = None) -> EvalGateState:
    """Unblock the gate without running anything; other fields are kept."""

    current = store.read_gate()
    cleared = replace(current, blocked=False, updated_at=format_timestamp())
    store.write_gate(cleared)
    _resolve_logger(logger).info(
        "eval_gate_cleared",
        was_blocked=current.blocked,
        last_run_id=current.last_run_id,
    )
    return cleared


def rebuild_eval_gate_state(store: EvalStore) -> EvalGateState:
    """Recompute the gate from the run log and persist it. A manual clear is not preserved."""

    state = gate_state_from_runs(store.read_recent_runs(2), store.default_threshold)
    store.write_gate(state)
    return state


def ensure_eval_harness_files(store: EvalStore) -> None:
    store.ensure_files()


def load_eval_cases(store: EvalStore) -> list[EvalCase]:
    return store.read_cases()


def save_eval_cases(store: EvalStore, cases: Sequence[EvalCase | Mapping[str, object]]) -> list[EvalCase]:
    """Replace the catalog after validating every entry and rejecting duplicate ids."""

    payload = [case.to_dict() if isinstance(case, EvalCase) else case for case in cases]
    validated = parse_eval_cases(payload, source=store.cases_location)
    store.write_cases(validated)
    return validated


def import_eval_cases(store: EvalStore, path: Path | str) -> list[EvalCase]:
    cases = load_eval_cases_file(path)
    store.write_cases(cases)
    return cases


def eval_cases_file_path(store: EvalStore) -> str:
    return store.cases_location


def _resolve_logger(logger: Any | None) -> Any:
    return logger if logger is not None else structlog.get_logger(__name__)


__all__ = [
    "Executor",
    "clear_eval_gate_block",
    "ensure_eval_harness_files",
    "eval_cases_file_path",
    "import_eval_cases",
    "load_eval_cases",
    "load_eval_gate_state",
    "rebuild_eval_gate_state",
    "run_eval_harness",
    "save_eval_cases",
]
