"""
warden — offline executors for the eval harness.

File: src/warden/evaluation/executors.py

Purpose
- Provide an ``execute(case)`` implementation that replays recorded model outputs
  so the harness can run without network access (CI, local regression checks).

Responses file format (JSON or YAML by suffix)::

    provider: replay          # optional defaults for every entry
    model: recorded
    responses:
      router-budget-policy: "plain output text"
      incident-response:
        output: "..."
        provider: openrouter
        model: qwen-2.5
        latencyMs: 840

A bare mapping of ``case id -> response`` is accepted as well. A case with no
recorded response replays an empty output, which fails scoring.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

import yaml

from warden.evaluation.models import EvalCase, ExecutionResult, coerce_execution_result

DEFAULT_REPLAY_PROVIDER: Final[str] = "replay"
DEFAULT_REPLAY_MODEL: Final[str] = "recorded"

_YAML_SUFFIXES: Final[frozenset[str]] = frozenset({".yaml", ".yml"})


@dataclass(slots=True)
class ReplayExecutor:
    """Callable executor returning recorded outputs keyed by case id."""

    responses: Mapping[str, ExecutionResult]
    provider: str = DEFAULT_REPLAY_PROVIDER
    model: str = DEFAULT_REPLAY_MODEL
    calls: list[str] = field(default_factory=list)

    def __call__(self, case: EvalCase) -> ExecutionResult:
        self.calls.append(case.id)
        recorded = self.responses.get(case.id)
        if recorded is None:
            return ExecutionResult(output="", provider=self.provider, model=self.model)
        return recorded

    @classmethod
    def from_payload(cls, payload: object) -> ReplayExecutor:
        if not isinstance(payload, Mapping):
            raise ValueError("responses payload must be an object keyed by case id")

        provider = DEFAULT_REPLAY_PROVIDER
        model = DEFAULT_REPLAY_MODEL
        entries: Mapping[object, object] = payload
        nested = payload.get("responses")
        if isinstance(nested, Mapping):
            entries = nested
            provider = str(payload.get("provider") or provider)
            model = str(payload.get("model") or model)

        responses: dict[str, ExecutionResult] = {}
        for case_id, entry in entries.items():
            if isinstance(entry, str):
                responses[str(case_id)] = ExecutionResult(
                    output=entry, provider=provider, model=model
                )
            elif isinstance(entry, Mapping):
                merged = {"provider": provider, "model": model, **entry}
                responses[str(case_id)] = coerce_execution_result(merged)
            else:
                raise ValueError(
                    f"response for case {case_id!r} must be a string or object, "
                    f"got {type(entry).__name__}"
                )
        return cls(responses=responses, provider=provider, model=model)


def load_replay_executor(path: Path | str) -> ReplayExecutor:
    """Build a ``ReplayExecutor`` from a JSON or YAML responses file."""

    source = Path(path)
    with source.open("r", encoding="utf-8") as handle:
        if source.suffix.lower() in _YAML_SUFFIXES:
            try:
                payload = yaml.safe_load(handle)
            except yaml.YAMLError as exc:
                raise ValueError(f"invalid YAML in {source.as_posix()}: {exc}") from exc
        else:
            try:
                payload = json.load(handle)
            except json.JSONDecodeError as exc:
                raise ValueError(f"invalid JSON in {source.as_posix()}: {exc}") from exc
    return ReplayExecutor.from_payload(payload)


__all__ = ["ReplayExecutor", "load_replay_executor"]
