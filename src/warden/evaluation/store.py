"""
warden — eval harness persistence.

File: src/warden/evaluation/store.py

Purpose
- Persist the case catalog, the append-only run log, and the gate state.

What should be included in this file
- ``EvalStore`` protocol with JSON-file and in-memory implementations.
- Seeding of the default catalog and gate on first access.
- Tolerant reads: corrupt gate files fall back to defaults (persisted), corrupt
  run-log lines are skipped, a corrupt catalog reads as empty.
- Catalog import/export from JSON or YAML files.

Non-functional requirements
- Single writer per store directory; no locking.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Protocol

import structlog
import yaml

from warden.constants import (
    DEFAULT_REGRESSION_THRESHOLD,
    EVAL_CASES_FILENAME,
    EVAL_DIRNAME,
    EVAL_GATE_FILENAME,
    EVAL_RUNS_FILENAME,
)
from warden.errors import EvalCaseValidationError
from warden.evaluation.models import EvalCase, EvalGateState, EvalRun, default_eval_cases
from warden.utils.fs import append_line, atomic_write, ensure_directory, read_text_if_exists

_YAML_SUFFIXES = frozenset({".yaml", ".yml"})


class EvalStore(Protocol):
    """Persistence contract used by the harness and reporting functions."""

    @property
    def cases_location(self) -> str: ...

    @property
    def default_threshold(self) -> float: ...

    def ensure_files(self) -> None: ...

    def read_cases(self) -> list[EvalCase]: ...

    def write_cases(self, cases: Sequence[EvalCase]) -> None: ...

    def read_recent_runs(self, limit: int) -> list[EvalRun]:
        """Return at most ``limit`` most recent runs, oldest first."""
        ...

    def append_run(self, run: EvalRun) -> None: ...

    def read_gate(self) -> EvalGateState: ...

    def write_gate(self, state: EvalGateState) -> None: ...


class JsonEvalStore:
    """``eval-harness/`` directory with ``cases.json``, ``runs.jsonl`` and ``gate.json``."""

    def __init__(
        self,
        eval_dir: Path | str,
        *,
        default_threshold: float = DEFAULT_REGRESSION_THRESHOLD,
        logger: Any | None = None,
    ) -> None:
        self.eval_dir = Path(eval_dir)
        self.cases_path = self.eval_dir / EVAL_CASES_FILENAME
        self.runs_path = self.eval_dir / EVAL_RUNS_FILENAME
        self.gate_path = self.eval_dir / EVAL_GATE_FILENAME
        self._default_threshold = default_threshold
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    @classmethod
    def in_store_dir(
        cls,
        store_dir: Path | str,
        *,
        default_threshold: float = DEFAULT_REGRESSION_THRESHOLD,
        logger: Any | None = None,
    ) -> JsonEvalStore:
        return cls(
            Path(store_dir) / EVAL_DIRNAME,
            default_threshold=default_threshold,
            logger=logger,
        )

    @property
    def cases_location(self) -> str:
        return str(self.cases_path)

    @property
    def default_threshold(self) -> float:
        return self._default_threshold

    def ensure_files(self) -> None:
        ensure_directory(self.eval_dir)
        if not self.cases_path.exists():
            self.write_cases(default_eval_cases())
        if not self.gate_path.exists():
            self.write_gate(EvalGateState(threshold=self._default_threshold))

    def read_cases(self) -> list[EvalCase]:
        self.ensure_files()
        text = self._read_text(self.cases_path)
        if text is None:
            return []
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            self._corrupt(self.cases_path, str(exc))
            return []
        if not isinstance(payload, list):
            self._corrupt(self.cases_path, f"expected list, got {type(payload).__name__}")
            return []

        cases: list[EvalCase] = []
        for index, item in enumerate(payload):
            try:
                cases.append(EvalCase.from_dict(item))
            except EvalCaseValidationError as exc:
                self._logger.warning(
                    "eval_case_skipped", path=str(self.cases_path), index=index, error=str(exc)
                )
        return cases

    def write_cases(self, cases: Sequence[EvalCase]) -> None:
        rendered = json.dumps([case.to_dict() for case in cases], indent=2, ensure_ascii=False)
        atomic_write(self.cases_path, rendered + "\n")

    def read_recent_runs(self, limit: int) -> list[EvalRun]:
        if limit <= 0:
            return []
        text = self._read_text(self.runs_path)
        if text is None:
            return []
        lines = [line.strip() for line in text.splitlines() if line.strip()][-limit:]
        runs: list[EvalRun] = []
        for line in lines:
            try:
                runs.append(EvalRun.from_dict(json.loads(line)))
            except ValueError as exc:
                # json.JSONDecodeError is a ValueError subclass.
                self._corrupt(self.runs_path, str(exc))
        return runs

    def append_run(self, run: EvalRun) -> None:
        line = json.dumps(run.to_dict(), separators=(",", ":"), ensure_ascii=False)
        append_line(self.runs_path, line)

    def read_gate(self) -> EvalGateState:
        self.ensure_files()
        text = self._read_text(self.gate_path)
        payload: object = None
        if text is not None:
            try:
                payload = json.loads(text)
            except json.JSONDecodeError as exc:
                self._corrupt(self.gate_path, str(exc))
            else:
                if not isinstance(payload, Mapping):
                    self._corrupt(self.gate_path, f"expected object, got {type(payload).__name__}")
        if not isinstance(payload, Mapping):
            state = EvalGateState(threshold=self._default_threshold)
            self.write_gate(state)
            return state
        return EvalGateState.from_dict(payload, default_threshold=self._default_threshold)

    def write_gate(self, state: EvalGateState) -> None:
        atomic_write(self.gate_path, json.dumps(state.to_dict(), indent=2) + "\n")

    def _read_text(self, path: Path) -> str | None:
        """File text; an undecodable file reads as absent."""

        try:
            return read_text_if_exists(path)
        except UnicodeDecodeError as exc:
            self._corrupt(path, str(exc))
            return None

    def _corrupt(self, path: Path, error: str) -> None:
        self._logger.warning("eval_store_corrupt", path=str(path), error=error)


class InMemoryEvalStore:
    """List-backed store for tests and embedding."""

    def __init__(
        self,
        cases: Sequence[EvalCase] | None = None,
        *,
        runs: Sequence[EvalRun] = (),
        gate: EvalGateState | None = None,
        default_threshold: float = DEFAULT_REGRESSION_THRESHOLD,
    ) -> None:
        self._cases = list(default_eval_cases() if cases is None else cases)
        self.runs: list[EvalRun] = list(runs)
        self._gate = gate if gate is not None else EvalGateState(threshold=default_threshold)
        self._default_threshold = default_threshold

    @property
    def cases_location(self) -> str:
        return "<memory>"

    @property
    def default_threshold(self) -> float:
        return self._default_threshold

    def ensure_files(self) -> None:
        return None

    def read_cases(self) -> list[EvalCase]:
        return list(self._cases)

    def write_cases(self, cases: Sequence[EvalCase]) -> None:
        self._cases = list(cases)

    def read_recent_runs(self, limit: int) -> list[EvalRun]:
        if limit <= 0:
            return []
        return list(self.runs[-limit:])

    def append_run(self, run: EvalRun) -> None:
        self.runs.append(run)

    def read_gate(self) -> EvalGateState:
        return self._gate

    def write_gate(self, state: EvalGateState) -> None:
        self._gate = state


def parse_eval_cases(payload: object, *, source: str = "<payload>") -> list[EvalCase]:
    """Strictly validate a catalog payload: a list, or an object with a ``cases`` list."""

    records: object = payload
    if isinstance(payload, Mapping):
        records = payload.get("cases")
    if not isinstance(records, list):
        raise EvalCaseValidationError(f"{source}: expected a list of eval cases")
    if not records:
        raise EvalCaseValidationError(f"{source}: eval case list is empty")

    cases: list[EvalCase] = []
    seen: set[str] = set()
    for index, item in enumerate(records):
        try:
            case = EvalCase.from_dict(item)
        except EvalCaseValidationError as exc:
            raise EvalCaseValidationError(f"{source}: case #{index}: {exc}") from exc
        if case.id in seen:
            raise EvalCaseValidationError(f"{source}: duplicate eval case id {case.id!r}")
        seen.add(case.id)
        cases.append(case)
    return cases


def load_eval_cases_file(path: Path | str) -> list[EvalCase]:
    """Read a JSON or YAML (by suffix) catalog file and validate it."""

    source = Path(path)
    with source.open("r", encoding="utf-8") as handle:
        if source.suffix.lower() in _YAML_SUFFIXES:
            try:
                payload = yaml.safe_load(handle)
            except yaml.YAMLError as exc:
                raise EvalCaseValidationError(f"invalid YAML in {source.as_posix()}: {exc}") from exc
        else:
            try:
                payload = json.load(handle)
            except json.JSONDecodeError as exc:
                raise EvalCaseValidationError(f"invalid JSON in {source.as_posix()}: {exc}") from exc
    return parse_eval_cases(payload, source=source.as_posix())


def dump_eval_cases_yaml(cases: Sequence[EvalCase]) -> str:
    rendered = yaml.safe_dump(
        [case.to_dict() for case in cases],
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
        width=120,
    )
    if not rendered.endswith("\n"):
        rendered = rendered + "\n"
    return rendered


__all__ = [
    "EvalStore",
    "InMemoryEvalStore",
    "JsonEvalStore",
    "dump_eval_cases_yaml",
    "load_eval_cases_file",
    "parse_eval_cases",
]
