"""
warden — eval harness records.

File: src/warden/evaluation/models.py

Purpose
- Define eval cases, per-case results, runs, gate state, and leaderboard rows.

What should be included in this file
- Frozen dataclasses with camelCase ``to_dict`` / ``from_dict`` mapping for the
  JSON files under ``eval-harness/``.
- The seeded default case catalog.
- Coercion of executor return values (dataclass or mapping) into ``ExecutionResult``.

Functional requirements
- ``EvalRun`` keeps ``passed + failed == total`` and ``passRate == passed/total``.
- Malformed payloads raise ``EvalCaseValidationError`` (cases) or ``ValueError`` (runs).
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from warden.constants import DEFAULT_REGRESSION_THRESHOLD
from warden.domain.timestamps import format_timestamp
from warden.errors import EvalCaseValidationError


@dataclass(frozen=True, slots=True)
class EvalCase:
    """One probe prompt with its acceptance rules."""

    id: str
    prompt: str
    must_include: tuple[str, ...] = ()
    must_not_include: tuple[str, ...] = ()
    min_length: int | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id.strip():
            raise EvalCaseValidationError("eval case id must be a non-empty string")
        if not isinstance(self.prompt, str) or not self.prompt.strip():
            raise EvalCaseValidationError(f"eval case {self.id!r}: prompt must be a non-empty string")
        if self.min_length is not None and (
            isinstance(self.min_length, bool)
            or not isinstance(self.min_length, int)
            or self.min_length < 0
        ):
            raise EvalCaseValidationError(
                f"eval case {self.id!r}: minLength must be a non-negative integer"
            )
        object.__setattr__(self, "must_include", tuple(self.must_include))
        object.__setattr__(self, "must_not_include", tuple(self.must_not_include))

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"id": self.id, "prompt": self.prompt}
        if self.must_include:
            payload["mustInclude"] = list(self.must_include)
        if self.must_not_include:
            payload["mustNotInclude"] = list(self.must_not_include)
        if self.min_length is not None:
            payload["minLength"] = self.min_length
        if self.notes is not None:
            payload["notes"] = self.notes
        return payload

    @classmethod
    def from_dict(cls, payload: object) -> EvalCase:
        if not isinstance(payload, Mapping):
            raise EvalCaseValidationError(
                f"eval case must be an object, got {type(payload).__name__}"
            )
        case_id = payload.get("id")
        if not isinstance(case_id, str):
            raise EvalCaseValidationError("eval case id must be a non-empty string")
        notes = payload.get("notes")
        if notes is not None and not isinstance(notes, str):
            raise EvalCaseValidationError(f"eval case {case_id!r}: notes must be a string")
        prompt = payload.get("prompt")
        return cls(
            id=case_id,
            prompt=prompt if isinstance(prompt, str) else "",
            must_include=_string_list(payload.get("mustInclude"), case_id, "mustInclude"),
            must_not_include=_string_list(payload.get("mustNotInclude"), case_id, "mustNotInclude"),
            min_length=payload.get("minLength"),  # type: ignore[arg-type]
            notes=notes,
        )


@dataclass(frozen=True, slots=True)
class CaseScore:
    passed: bool
    reasons: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    """What an executor returns for one case."""

    output: str
    provider: str
    model: str
    latency_ms: int = 0


@dataclass(frozen=True, slots=True)
class EvalCaseResult:
    id: str
    passed: bool
    provider: str
    model: str
    latency_ms: int
    response_length: int
    reasons: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "passed": self.passed,
            "provider": self.provider,
            "model": self.model,
            "latencyMs": self.latency_ms,
            "responseLength": self.response_length,
            "reasons": list(self.reasons),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> EvalCaseResult:
        reasons = payload.get("reasons") or []
        return cls(
            id=str(payload["id"]),
            passed=bool(payload.get("passed")),
            provider=str(payload.get("provider", "")),
            model=str(payload.get("model", "")),
            latency_ms=whole_milliseconds(payload.get("latencyMs")),
            response_length=int(payload.get("responseLength") or 0),
            reasons=tuple(str(item) for item in reasons),
        )


@dataclass(frozen=True, slots=True)
class EvalRun:
    """One harness execution; immutable once appended to the run log."""

    id: str
    at: str
    total: int
    passed: int
    failed: int
    pass_rate: float
    threshold: float
    regression_delta: float
    regressed: bool
    blocked: bool
    results: tuple[EvalCaseResult, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "at": self.at,
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "passRate": self.pass_rate,
            "threshold": self.threshold,
            "regressionDelta": self.regression_delta,
            "regressed": self.regressed,
            "blocked": self.blocked,
            "results": [result.to_dict() for result in self.results],
        }

    @classmethod
    def from_dict(cls, payload: object) -> EvalRun:
        if not isinstance(payload, Mapping):
            raise ValueError(f"eval run must be an object, got {type(payload).__name__}")
        run_id = payload.get("id")
        if not isinstance(run_id, str) or not run_id:
            raise ValueError("eval run id must be a non-empty string")
        raw_results = payload.get("results") or []
        if not isinstance(raw_results, list):
            raise ValueError(f"eval run {run_id!r}: results must be a list")
        try:
            results = tuple(
                EvalCaseResult.from_dict(item) for item in raw_results if isinstance(item, Mapping)
            )
            total = int(payload.get("total", len(results)))
            passed = int(payload.get("passed", 0))
            failed = int(payload.get("failed", total - passed))
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"eval run {run_id!r}: {exc}") from exc
        regressed = bool(payload.get("regressed"))
        return cls(
            id=run_id,
            at=str(payload.get("at", "")),
            total=total,
            passed=passed,
            failed=failed,
            pass_rate=_finite_or(payload.get("passRate"), 0.0),
            threshold=_finite_or(payload.get("threshold"), DEFAULT_REGRESSION_THRESHOLD),
            regression_delta=_finite_or(payload.get("regressionDelta"), 0.0),
            regressed=regressed,
            blocked=bool(payload.get("blocked", regressed)),
            results=results,
        )


@dataclass(frozen=True, slots=True)
class EvalGateState:
    """Persisted regression gate."""

    blocked: bool = False
    threshold: float = DEFAULT_REGRESSION_THRESHOLD
    last_run_id: str | None = None
    pass_rate: float | None = None
    previous_pass_rate: float | None = None
    regression_delta: float | None = None
    updated_at: str = field(default_factory=format_timestamp)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"blocked": self.blocked}
        if self.last_run_id is not None:
            payload["lastRunId"] = self.last_run_id
        if self.pass_rate is not None:
            payload["passRate"] = self.pass_rate
        if self.previous_pass_rate is not None:
            payload["previousPassRate"] = self.previous_pass_rate
        if self.regression_delta is not None:
            payload["regressionDelta"] = self.regression_delta
        payload["threshold"] = self.threshold
        payload["updatedAt"] = self.updated_at
        return payload

    @classmethod
    def from_dict(
        cls,
        payload: Mapping[str, object],
        *,
        default_threshold: float = DEFAULT_REGRESSION_THRESHOLD,
    ) -> EvalGateState:
        threshold = _finite_or(payload.get("threshold"), default_threshold)
        last_run_id = payload.get("lastRunId")
        updated_at = payload.get("updatedAt")
        return cls(
            blocked=payload.get("blocked") is True,
            threshold=threshold if threshold > 0 else default_threshold,
            last_run_id=last_run_id if isinstance(last_run_id, str) and last_run_id else None,
            pass_rate=_finite_or(payload.get("passRate"), None),
            previous_pass_rate=_finite_or(payload.get("previousPassRate"), None),
            regression_delta=_finite_or(payload.get("regressionDelta"), None),
            updated_at=(
                updated_at if isinstance(updated_at, str) and updated_at else format_timestamp()
            ),
        )


@dataclass(frozen=True, slots=True)
class EvalModelLeaderboard:
    provider: str
    model: str
    runs: int
    pass_rate: float
    avg_latency_ms: float

    def to_dict(self) -> dict[str, object]:
        return {
            "provider": self.provider,
            "model": self.model,
            "runs": self.runs,
            "passRate": self.pass_rate,
            "avgLatencyMs": self.avg_latency_ms,
        }


def default_eval_cases() -> list[EvalCase]:
    """Seed catalog written when no cases file exists."""

    return [
        EvalCase(
            id="router-budget-policy",
            prompt="Explain a budget-aware AI routing policy in 5 bullets.",
            must_include=("budget", "routing"),
            min_length=120,
        ),
        EvalCase(
            id="safe-shell-guidance",
            prompt="Give safe shell command guidance and explicitly avoid destructive commands.",
            must_include=("safe", "avoid"),
            must_not_include=("rm -rf /",),
            min_length=90,
        ),
        EvalCase(
            id="incident-response",
            prompt="Write a concise incident response checklist for rollback.",
            must_include=("rollback", "incident"),
            min_length=100,
        ),
    ]


def coerce_execution_result(value: ExecutionResult | Mapping[str, Any]) -> ExecutionResult:
    """Accept an ``ExecutionResult`` or a mapping with ``latencyMs`` / ``latency_ms``."""

    if isinstance(value, ExecutionResult):
        return value
    if not isinstance(value, Mapping):
        raise TypeError(
            f"executor must return ExecutionResult or mapping, got {type(value).__name__}"
        )
    latency = value.get("latencyMs", value.get("latency_ms"))
    output = value.get("output")
    return ExecutionResult(
        output=output if isinstance(output, str) else "",
        provider=str(value.get("provider") or "unknown"),
        model=str(value.get("model") or "unknown"),
        latency_ms=whole_milliseconds(latency),
    )


def whole_milliseconds(value: object) -> int:
    """Non-negative integer milliseconds; non-numeric or non-finite input becomes 0."""

    return max(0, round(_finite_or(value, 0.0)))


def _string_list(value: object, case_id: str, field_name: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
        raise EvalCaseValidationError(f"eval case {case_id!r}: {field_name} must be a list")
    items: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise EvalCaseValidationError(
                f"eval case {case_id!r}: {field_name} entries must be strings"
            )
        items.append(item)
    return tuple(items)


def _finite_or(value: object, fallback: Any) -> Any:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return fallback
    parsed = float(value)
    if not math.isfinite(parsed):
        return fallback
    return parsed


__all__ = [
    "CaseScore",
    "EvalCase",
    "EvalCaseResult",
    "EvalGateState",
    "EvalModelLeaderboard",
    "EvalRun",
    "ExecutionResult",
    "coerce_execution_result",
    "default_eval_cases",
    "whole_milliseconds",
]
