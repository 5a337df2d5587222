"""Quality-regression eval harness: scoring, gate derivation, persistence, and reporting."""

from warden.evaluation.executors import ReplayExecutor, load_replay_executor
from warden.evaluation.gate import (
    RegressionVerdict,
    build_leaderboard,
    compute_regression,
    gate_state_from_runs,
)
from warden.evaluation.harness import (
    Executor,
    clear_eval_gate_block,
    ensure_eval_harness_files,
    eval_cases_file_path,
    import_eval_cases,
    load_eval_cases,
    load_eval_gate_state,
    rebuild_eval_gate_state,
    run_eval_harness,
    save_eval_cases,
)
from warden.evaluation.models import (
    CaseScore,
    EvalCase,
    EvalCaseResult,
    EvalGateState,
    EvalModelLeaderboard,
    EvalRun,
    ExecutionResult,
    default_eval_cases,
)
from warden.evaluation.reporting import (
    format_eval_run_summary,
    load_eval_leaderboard,
    load_eval_trend,
)
from warden.evaluation.scoring import evaluate_case_result
from warden.evaluation.store import EvalStore, InMemoryEvalStore, JsonEvalStore

__all__ = [
    "CaseScore",
    "EvalCase",
    "EvalCaseResult",
    "EvalGateState",
    "EvalModelLeaderboard",
    "EvalRun",
    "EvalStore",
    "ExecutionResult",
    "Executor",
    "InMemoryEvalStore",
    "JsonEvalStore",
    "RegressionVerdict",
    "ReplayExecutor",
    "build_leaderboard",
    "clear_eval_gate_block",
    "compute_regression",
    "default_eval_cases",
    "ensure_eval_harness_files",
    "eval_cases_file_path",
    "evaluate_case_result",
    "format_eval_run_summary",
    "gate_state_from_runs",
    "import_eval_cases",
    "load_eval_cases",
    "load_eval_gate_state",
    "load_eval_leaderboard",
    "load_eval_trend",
    "load_replay_executor",
    "rebuild_eval_gate_state",
    "run_eval_harness",
    "save_eval_cases",
]
