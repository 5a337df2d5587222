"""Command-line interface router for warden."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final

import structlog

from warden.config import (
    ConfigLoadError,
    ConfigValidationError,
    effective_config,
    load_config,
)
from warden.domain.ids import generate_session_id
from warden.evaluation import (
    JsonEvalStore,
    clear_eval_gate_block,
    format_eval_run_summary,
    import_eval_cases,
    load_eval_cases,
    load_eval_gate_state,
    load_eval_leaderboard,
    load_eval_trend,
    load_replay_executor,
    rebuild_eval_gate_state,
    run_eval_harness,
)
from warden.evaluation.store import dump_eval_cases_yaml
from warden.main import ExitCode
from warden.observability import setup_logging, shutdown_logging
from warden.policy import (
    ConfirmTarget,
    JsonPolicyStore,
    PolicyConfig,
    PolicyEngine,
    PolicyMode,
    add_blocked_pattern,
    format_policy_config_lines,
    load_policy_config,
    remove_blocked_pattern,
    reset_policy_config,
    set_policy_confirmation,
    set_policy_enabled,
    set_policy_mode,
)
from warden.ui.render import CLIRenderer, Tone, create_renderer
from warden.utils.fs import atomic_write

_ON_OFF: Final[dict[str, bool]] = {"on": True, "off": False}


@dataclass(frozen=True, slots=True)
class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    message: str
    exit_code: int = 1

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class _Session:
    """Per-invocation context resolved from config and global options."""

    config: Mapping[str, Any]
    store_dir: Path
    workspace_root: str
    renderer: CLIRenderer
    logger: Any

    def policy_store(self) -> JsonPolicyStore:
        return JsonPolicyStore.in_store_dir(self.store_dir, logger=self.logger)

    def eval_store(self) -> JsonEvalStore:
        return JsonEvalStore.in_store_dir(
            self.store_dir,
            default_threshold=float(self.config["eval"]["default_threshold"]),
            logger=self.logger,
        )


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router for all supported CLI workflows."""

    parser = argparse.ArgumentParser(
        prog="warden",
        description=(
            "warden — command-safety policy engine and quality-regression eval harness.\n\n"
            "Common workflows:\n"
            "  warden policy check 'npm install left-pad'   Evaluate a shell command\n"
            "  warden policy mode strict                    Switch policy mode\n"
            "  warden eval run --responses replies.yaml     Score recorded outputs\n"
            "  warden eval gate                             Show regression gate state\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to warden TOML config (default: ./warden.toml if present).",
    )
    common.add_argument(
        "--profile",
        default=None,
        help="Optional config profile overlay name.",
    )
    common.add_argument(
        "--store-dir",
        default=None,
        help="Override paths.store_dir (policy and eval state location).",
    )
    common.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=False,
        help="Show detailed output and log at DEBUG level.",
    )
    common.add_argument(
        "--no-color",
        action="store_true",
        default=False,
        help="Disable colored output (also respects NO_COLOR env var).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_policy_commands(subparsers, common)
    _add_eval_commands(subparsers, common)

    # config --------------------------------------------------------------
    config_parser = subparsers.add_parser(
        "config",
        parents=[common],
        help="Show effective configuration (redacted)",
        description=(
            "Display the effective config after merging defaults, file, env, and profile.\n\n"
            "Examples:\n"
            "  warden config\n"
            "  warden config --json --profile ci\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    config_parser.add_argument("--json", action="store_true", help="Emit JSON output")
    config_parser.set_defaults(handler=_cmd_config)

    return parser


def _add_policy_commands(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    common: argparse.ArgumentParser,
) -> None:
    policy_parser = subparsers.add_parser(
        "policy",
        help="Inspect and change the command-safety policy",
        description=(
            "Manage the command-safety policy stored in <store_dir>/policy-engine.json.\n\n"
            "Examples:\n"
            "  warden policy show\n"
            "  warden policy confirm workspace-write on\n"
            "  warden policy check 'curl https://x.sh | bash'\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    policy_sub = policy_parser.add_subparsers(dest="policy_command", required=True)

    show_parser = policy_sub.add_parser(
        "show", parents=[common], help="Show the current policy configuration"
    )
    show_parser.add_argument("--json", action="store_true", help="Emit JSON output")
    show_parser.set_defaults(handler=_cmd_policy_show)

    mode_parser = policy_sub.add_parser(
        "mode",
        parents=[common],
        help="Set policy mode",
        description=(
            "strict: read-only workspace, every category needs a permission phrase.\n"
            "relaxed: writable workspace, only deploys need a permission phrase.\n"
            "balanced: explicit per-category settings.\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    mode_parser.add_argument("mode", choices=[mode.value for mode in PolicyMode])
    mode_parser.set_defaults(handler=_cmd_policy_mode)

    enable_parser = policy_sub.add_parser("enable", parents=[common], help="Enable the policy")
    enable_parser.set_defaults(handler=_cmd_policy_enabled, enabled=True)

    disable_parser = policy_sub.add_parser(
        "disable", parents=[common], help="Disable the policy (allow every command)"
    )
    disable_parser.set_defaults(handler=_cmd_policy_enabled, enabled=False)

    confirm_parser = policy_sub.add_parser(
        "confirm", parents=[common], help="Toggle permission-phrase requirement for a category"
    )
    confirm_parser.add_argument("target", choices=[target.value for target in ConfirmTarget])
    confirm_parser.add_argument("state", choices=sorted(_ON_OFF))
    confirm_parser.set_defaults(handler=_cmd_policy_confirm)

    block_parser = policy_sub.add_parser(
        "block", parents=[common], help="Add a custom block regex (case-insensitive)"
    )
    block_parser.add_argument("pattern")
    block_parser.set_defaults(handler=_cmd_policy_block)

    unblock_parser = policy_sub.add_parser(
        "unblock", parents=[common], help="Remove a custom block regex"
    )
    unblock_parser.add_argument("pattern")
    unblock_parser.set_defaults(handler=_cmd_policy_unblock)

    reset_parser = policy_sub.add_parser(
        "reset", parents=[common], help="Restore default policy settings"
    )
    reset_parser.set_defaults(handler=_cmd_policy_reset)

    check_parser = policy_sub.add_parser(
        "check",
        parents=[common],
        help="Evaluate a shell command against the policy",
        description=(
            "Exit codes: 0 allowed, 1 denied, 3 permission phrase required.\n\n"
            "Examples:\n"
            "  warden policy check 'mkdir build'\n"
            "  warden policy check 'npm install zod' --message 'allow install please'\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    check_parser.add_argument("shell_command", metavar="COMMAND")
    check_parser.add_argument(
        "--message",
        default="",
        help="Full user message, scanned for permission phrases such as 'allow install'.",
    )
    check_parser.add_argument("--json", action="store_true", help="Emit JSON output")
    check_parser.set_defaults(handler=_cmd_policy_check)


def _add_eval_commands(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    common: argparse.ArgumentParser,
) -> None:
    eval_parser = subparsers.add_parser(
        "eval",
        help="Run the eval harness and inspect the regression gate",
        description=(
            "Score model outputs against <store_dir>/eval-harness/cases.json and track\n"
            "pass-rate regressions between runs.\n\n"
            "Examples:\n"
            "  warden eval run --responses replies.yaml\n"
            "  warden eval leaderboard --limit 5\n"
            "  warden eval clear\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    eval_sub = eval_parser.add_subparsers(dest="eval_command", required=True)

    run_parser = eval_sub.add_parser(
        "run", parents=[common], help="Run every eval case against recorded responses"
    )
    run_parser.add_argument(
        "--responses",
        required=True,
        help="JSON or YAML file of recorded outputs keyed by case id.",
    )
    run_parser.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Regression threshold override (pass-rate drop, e.g. 0.08).",
    )
    run_parser.add_argument("--json", action="store_true", help="Emit JSON output")
    run_parser.set_defaults(handler=_cmd_eval_run)

    gate_parser = eval_sub.add_parser("gate", parents=[common], help="Show regression gate state")
    gate_parser.add_argument("--json", action="store_true", help="Emit JSON output")
    gate_parser.set_defaults(handler=_cmd_eval_gate)

    clear_parser = eval_sub.add_parser(
        "clear", parents=[common], help="Clear a blocked gate without a new run"
    )
    clear_parser.set_defaults(handler=_cmd_eval_clear)

    rebuild_parser = eval_sub.add_parser(
        "rebuild-gate", parents=[common], help="Recompute gate state from the run log"
    )
    rebuild_parser.set_defaults(handler=_cmd_eval_rebuild_gate)

    leaderboard_parser = eval_sub.add_parser(
        "leaderboard", parents=[common], help="Rank provider/model pairs by pass rate"
    )
    leaderboard_parser.add_argument("--limit", type=int, default=None)
    leaderboard_parser.add_argument("--json", action="store_true", help="Emit JSON output")
    leaderboard_parser.set_defaults(handler=_cmd_eval_leaderboard)

    trend_parser = eval_sub.add_parser("trend", parents=[common], help="Show recent runs")
    trend_parser.add_argument("--limit", type=int, default=None)
    trend_parser.add_argument("--json", action="store_true", help="Emit JSON output")
    trend_parser.set_defaults(handler=_cmd_eval_trend)

    cases_parser = eval_sub.add_parser(
        "cases", parents=[common], help="List, import, or export the eval case catalog"
    )
    cases_parser.add_argument(
        "--import",
        dest="import_path",
        default=None,
        help="Replace the catalog with cases from a JSON or YAML file.",
    )
    cases_parser.add_argument(
        "--export",
        dest="export_path",
        default=None,
        help="Write the catalog to a YAML file.",
    )
    cases_parser.add_argument("--json", action="store_true", help="Emit JSON output")
    cases_parser.set_defaults(handler=_cmd_eval_cases)


# ---------------------------------------------------------------------------
# Entrypoints
# ---------------------------------------------------------------------------


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return int(ExitCode.CONFIG_ERROR)

    try:
        result = handler(namespace)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    finally:
        shutdown_logging()
    return int(result)


def main(argv: Sequence[str] | None = None) -> int:
    """Compatibility wrapper for main-module wiring."""

    return run_cli(argv)


# ---------------------------------------------------------------------------
# Policy handlers
# ---------------------------------------------------------------------------


def _cmd_policy_show(args: argparse.Namespace) -> int:
    session = _open_session(args)
    config = load_policy_config(session.policy_store(), workspace_root=session.workspace_root)
    if _flag(args, "json"):
        _emit_json({"command": "policy show", "policy": config.to_dict()})
        return 0
    _render_policy(session.renderer, config)
    return 0


def _cmd_policy_mode(args: argparse.Namespace) -> int:
    session = _open_session(args)
    config = set_policy_mode(
        session.policy_store(),
        PolicyMode(args.mode),
        workspace_root=session.workspace_root,
        logger=session.logger,
    )
    _render_policy(session.renderer, config)
    return 0


def _cmd_policy_enabled(args: argparse.Namespace) -> int:
    session = _open_session(args)
    config = set_policy_enabled(
        session.policy_store(),
        bool(args.enabled),
        workspace_root=session.workspace_root,
        logger=session.logger,
    )
    _render_policy(session.renderer, config)
    return 0


def _cmd_policy_confirm(args: argparse.Namespace) -> int:
    session = _open_session(args)
    target = ConfirmTarget(args.target)
    requested = _ON_OFF[args.state]
    config = set_policy_confirmation(
        session.policy_store(),
        target,
        requested,
        workspace_root=session.workspace_root,
        logger=session.logger,
    )
    if config.requires_confirmation_for(target) != requested:
        session.renderer.warning(
            f"mode {config.mode.value!r} overrides confirmation for {target.value}; "
            "switch to 'balanced' to control it explicitly"
        )
    _render_policy(session.renderer, config)
    return 0


def _cmd_policy_block(args: argparse.Namespace) -> int:
    session = _open_session(args)
    try:
        config = add_blocked_pattern(
            session.policy_store(),
            args.pattern,
            workspace_root=session.workspace_root,
            logger=session.logger,
        )
    except ValueError as exc:
        raise CLIError(str(exc), exit_code=int(ExitCode.CONFIG_ERROR)) from exc
    session.renderer.kv("Blocked patterns", len(config.blocked_command_patterns))
    session.renderer.items(list(config.blocked_command_patterns))
    return 0


def _cmd_policy_unblock(args: argparse.Namespace) -> int:
    session = _open_session(args)
    try:
        config = remove_blocked_pattern(
            session.policy_store(),
            args.pattern,
            workspace_root=session.workspace_root,
            logger=session.logger,
        )
    except KeyError as exc:
        raise CLIError(
            f"pattern not found: {args.pattern}", exit_code=int(ExitCode.CONFIG_ERROR)
        ) from exc
    session.renderer.kv("Blocked patterns", len(config.blocked_command_patterns))
    session.renderer.items(list(config.blocked_command_patterns))
    return 0


def _cmd_policy_reset(args: argparse.Namespace) -> int:
    session = _open_session(args)
    config = reset_policy_config(
        session.policy_store(), workspace_root=session.workspace_root, logger=session.logger
    )
    _render_policy(session.renderer, config)
    return 0


def _cmd_policy_check(args: argparse.Namespace) -> int:
    session = _open_session(args)
    config = load_policy_config(session.policy_store(), workspace_root=session.workspace_root)
    engine = PolicyEngine(logger=session.logger)
    decision = engine.evaluate(args.shell_command, args.message or "", config)

    if not decision.allowed:
        exit_code, verdict, tone = ExitCode.DENIED, "DENIED", Tone.BAD
    elif decision.requires_confirmation:
        exit_code, verdict, tone = (
            ExitCode.CONFIRMATION_REQUIRED,
            "CONFIRMATION REQUIRED",
            Tone.CAUTION,
        )
    else:
        exit_code, verdict, tone = ExitCode.SUCCESS, "ALLOWED", Tone.GOOD

    if _flag(args, "json"):
        _emit_json(
            {
                "command": "policy check",
                "shell_command": args.shell_command,
                "decision": decision.to_dict(),
            }
        )
        return int(exit_code)

    renderer = session.renderer
    renderer.verdict(verdict, tone)
    if decision.reason:
        renderer.kv("Reason", decision.reason)
    if decision.confirm_hint:
        renderer.kv("Include phrase", decision.confirm_hint)
    renderer.kv("Tags", ", ".join(decision.tags) or "(none)")
    if renderer.verbose:
        for diagnostic in engine.compile(config).diagnostics:
            renderer.warning(f"invalid custom pattern skipped: {diagnostic.pattern} ({diagnostic.error})")
    return int(exit_code)


# ---------------------------------------------------------------------------
# Eval handlers
# ---------------------------------------------------------------------------


def _cmd_eval_run(args: argparse.Namespace) -> int:
    session = _open_session(args)
    executor = load_replay_executor(_existing_file(args.responses))
    run = run_eval_harness(
        executor,
        args.threshold,
        store=session.eval_store(),
        logger=session.logger,
    )
    exit_code = ExitCode.DENIED if run.blocked else ExitCode.SUCCESS

    if _flag(args, "json"):
        _emit_json({"command": "eval run", "run": run.to_dict()})
        return int(exit_code)

    renderer = session.renderer
    renderer.lines(format_eval_run_summary(run))
    failed = [result for result in run.results if not result.passed]
    if failed:
        renderer.section("Failed cases:")
        for result in failed:
            renderer.text(f"- {result.id}: {'; '.join(result.reasons)}")
    return int(exit_code)


def _cmd_eval_gate(args: argparse.Namespace) -> int:
    session = _open_session(args)
    state = load_eval_gate_state(session.eval_store())
    exit_code = ExitCode.DENIED if state.blocked else ExitCode.SUCCESS

    if _flag(args, "json"):
        _emit_json({"command": "eval gate", "gate": state.to_dict()})
        return int(exit_code)

    renderer = session.renderer
    renderer.kv("Regression gate", "BLOCKED" if state.blocked else "clear")
    renderer.kv("Threshold", _percent(state.threshold))
    renderer.kv("Last run", state.last_run_id or "(none)")
    if state.pass_rate is not None:
        renderer.kv("Pass rate", _percent(state.pass_rate))
    if state.previous_pass_rate is not None:
        renderer.kv("Previous pass rate", _percent(state.previous_pass_rate))
    if state.regression_delta is not None:
        renderer.kv("Regression delta", _percent(state.regression_delta))
    renderer.kv("Updated", state.updated_at)
    return int(exit_code)


def _cmd_eval_clear(args: argparse.Namespace) -> int:
    session = _open_session(args)
    clear_eval_gate_block(session.eval_store(), logger=session.logger)
    session.renderer.ok("regression gate cleared")
    return 0


def _cmd_eval_rebuild_gate(args: argparse.Namespace) -> int:
    session = _open_session(args)
    state = rebuild_eval_gate_state(session.eval_store())
    session.renderer.kv("Regression gate", "BLOCKED" if state.blocked else "clear")
    session.renderer.kv("Last run", state.last_run_id or "(none)")
    return int(ExitCode.DENIED if state.blocked else ExitCode.SUCCESS)


def _cmd_eval_leaderboard(args: argparse.Namespace) -> int:
    session = _open_session(args)
    eval_config = session.config["eval"]
    limit = args.limit if args.limit is not None else int(eval_config["leaderboard_limit"])
    rows = load_eval_leaderboard(
        session.eval_store(), _positive(limit, "--limit"), window=int(eval_config["leaderboard_window"])
    )

    if _flag(args, "json"):
        _emit_json({"command": "eval leaderboard", "leaderboard": [row.to_dict() for row in rows]})
        return 0

    if not rows:
        session.renderer.text("No eval runs recorded yet.")
        return 0
    session.renderer.table(
        ("PROVIDER", "MODEL", "RESULTS", "PASS RATE", "AVG LATENCY"),
        [
            (
                row.provider,
                row.model,
                str(row.runs),
                _percent(row.pass_rate),
                f"{row.avg_latency_ms:.0f} ms",
            )
            for row in rows
        ],
        title="Eval leaderboard:",
    )
    return 0


def _cmd_eval_trend(args: argparse.Namespace) -> int:
    session = _open_session(args)
    limit = args.limit if args.limit is not None else int(session.config["eval"]["trend_limit"])
    runs = load_eval_trend(session.eval_store(), _positive(limit, "--limit"))

    if _flag(args, "json"):
        _emit_json({"command": "eval trend", "runs": [run.to_dict() for run in runs]})
        return 0

    if not runs:
        session.renderer.text("No eval runs recorded yet.")
        return 0
    session.renderer.table(
        ("RUN", "AT", "PASSED", "PASS RATE", "DELTA", "GATE"),
        [
            (
                run.id,
                run.at,
                f"{run.passed}/{run.total}",
                _percent(run.pass_rate),
                _percent(run.regression_delta),
                "BLOCKED" if run.blocked else "clear",
            )
            for run in runs
        ],
        title="Eval trend:",
    )
    return 0


def _cmd_eval_cases(args: argparse.Namespace) -> int:
    session = _open_session(args)
    store = session.eval_store()
    as_json = _flag(args, "json")
    if args.import_path:
        cases = import_eval_cases(store, _existing_file(args.import_path))
        if not as_json:
            session.renderer.ok(f"imported {len(cases)} eval cases into {store.cases_location}")
    else:
        cases = load_eval_cases(store)

    if args.export_path:
        atomic_write(Path(args.export_path).expanduser(), dump_eval_cases_yaml(cases))
        if not as_json:
            session.renderer.ok(f"exported {len(cases)} eval cases to {args.export_path}")

    if as_json:
        _emit_json(
            {
                "command": "eval cases",
                "path": store.cases_location,
                "cases": [case.to_dict() for case in cases],
            }
        )
        return 0

    renderer = session.renderer
    renderer.kv("Cases file", store.cases_location)
    renderer.table(
        ("ID", "MIN LENGTH", "MUST INCLUDE", "MUST NOT INCLUDE"),
        [
            (
                case.id,
                str(case.min_length) if case.min_length is not None else "-",
                ", ".join(case.must_include) or "-",
                ", ".join(case.must_not_include) or "-",
            )
            for case in cases
        ],
    )
    return 0


# ---------------------------------------------------------------------------
# Config handler
# ---------------------------------------------------------------------------


def _cmd_config(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    profile = _optional_str(getattr(args, "profile", None))
    redacted = effective_config(config)

    payload: dict[str, object] = {
        "command": "config",
        "active_profile": profile,
        "config": redacted,
    }

    if _flag(args, "json"):
        _emit_json(payload)
        return 0

    renderer = _get_renderer(args)
    renderer.kv("Active profile", profile or "(default)")
    renderer.text(json.dumps(redacted, indent=2, sort_keys=True, ensure_ascii=False))
    return 0


# ---------------------------------------------------------------------------
# Rendering helpers
# ---------------------------------------------------------------------------


def _emit_json(payload: Mapping[str, object]) -> None:
    """Emit a JSON payload to stdout with deterministic formatting."""

    print(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


def _get_renderer(args: argparse.Namespace) -> CLIRenderer:
    no_color = _flag(args, "no_color")
    verbose = _flag(args, "verbose")
    return create_renderer(no_color=no_color, verbose=verbose)


def _render_policy(renderer: CLIRenderer, config: PolicyConfig) -> None:
    renderer.lines(format_policy_config_lines(config))
    if renderer.verbose and config.blocked_command_patterns:
        renderer.section("Custom blocked patterns:")
        renderer.items(list(config.blocked_command_patterns))


def _percent(value: float) -> str:
    return f"{value * 100:.1f}%"


# ---------------------------------------------------------------------------
# Helpers: config, session, arguments
# ---------------------------------------------------------------------------


def _load_effective_config(args: argparse.Namespace) -> dict[str, Any]:
    config_path = _optional_str(getattr(args, "config_path", None))
    profile = _optional_str(getattr(args, "profile", None))
    overrides: dict[str, object] = {}
    store_dir = _optional_str(getattr(args, "store_dir", None))
    if store_dir is not None:
        overrides["paths.store_dir"] = store_dir
    if _flag(args, "verbose"):
        overrides["observability.log_level"] = "DEBUG"

    try:
        return load_config(config_path, profile=profile, cli_overrides=overrides)
    except (ConfigLoadError, ConfigValidationError) as exc:
        raise CLIError(str(exc), exit_code=int(ExitCode.CONFIG_ERROR)) from exc


def _open_session(args: argparse.Namespace) -> _Session:
    config = _load_effective_config(args)
    session_id = generate_session_id()
    setup_logging(config["observability"], run_id=session_id)
    logger = structlog.get_logger("warden.cli").bind(command=_command_name(args))

    workspace_root = Path(str(config["policy"]["workspace_root"])).expanduser().resolve()
    return _Session(
        config=config,
        store_dir=Path(str(config["paths"]["store_dir"])),
        workspace_root=workspace_root.as_posix(),
        renderer=_get_renderer(args),
        logger=logger,
    )


def _command_name(args: argparse.Namespace) -> str:
    parts = [
        str(part)
        for part in (
            getattr(args, "command", None),
            getattr(args, "policy_command", None),
            getattr(args, "eval_command", None),
        )
        if part
    ]
    return " ".join(parts)


def _existing_file(raw: str) -> Path:
    candidate = Path(raw).expanduser()
    if not candidate.is_file():
        raise CLIError(f"file not found: {candidate}", exit_code=int(ExitCode.CONFIG_ERROR))
    return candidate


def _positive(value: int, name: str) -> int:
    if value <= 0:
        raise CLIError(f"{name} must be > 0", exit_code=int(ExitCode.CONFIG_ERROR))
    return value


def _optional_str(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    return cleaned or None


def _flag(args: argparse.Namespace, name: str) -> bool:
    value = getattr(args, name, False)
    return bool(value)


__all__ = [
    "CLIError",
    "build_parser",
    "main",
    "run_cli",
]
