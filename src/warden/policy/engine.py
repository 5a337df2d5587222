"""
warden — command policy engine.

File: src/warden/policy/engine.py

Purpose
- Decide whether a shell command may run, and whether it needs an explicit
  permission phrase from the user first.

What should be included in this file
- Pure ``evaluate_command_policy`` evaluator with fixed precedence:
  hard-block > custom-block > read-only workspace > confirmation.
- ``PolicyEngine`` wrapper that caches compiled custom patterns, reports invalid
  ones, and emits machine-parseable decision logs through ``structlog``.

Functional requirements
- Disabled policy allows everything without tags.
- Every denial carries a reason; every confirmation carries a hint.
- Invalid custom patterns never fail an evaluation.
"""

from __future__ import annotations

from typing import Any

import structlog

from warden.policy.models import CONFIRM_TARGETS, PolicyConfig, PolicyDecision
from warden.policy.patterns import (
    CUSTOM_BLOCK_TAG,
    HARD_BLOCK_TAG,
    PERMISSION_HINTS,
    CompiledPatternSet,
    classify_command_tags,
    compile_blocked_patterns,
    includes_permission_phrase,
    is_hard_blocked,
)

HARD_BLOCK_REASON = "Harmful/destructive command is blocked by policy."
READ_ONLY_REASON = "Workspace write operation blocked (read-only workspace policy)."


def evaluate_command_policy(
    command: str,
    full_message: str,
    config: PolicyConfig,
    *,
    matchers: CompiledPatternSet | None = None,
) -> PolicyDecision:
    """Evaluate ``command`` against ``config``.

    ``full_message`` is the user's complete message; it is scanned for permission
    phrases such as ``allow install``. ``matchers`` may carry precompiled custom
    patterns; when omitted they are compiled from ``config``.
    """

    if not config.enabled:
        return PolicyDecision(allowed=True)

    if is_hard_blocked(command):
        return PolicyDecision(allowed=False, reason=HARD_BLOCK_REASON, tags=(HARD_BLOCK_TAG,))

    compiled = (
        matchers
        if matchers is not None
        else compile_blocked_patterns(config.blocked_command_patterns)
    )
    matched = compiled.first_match(command)
    if matched is not None:
        return PolicyDecision(
            allowed=False,
            reason=f"Command blocked by custom policy regex: {matched}",
            tags=(CUSTOM_BLOCK_TAG,),
        )

    tags = classify_command_tags(command)
    if config.read_only_workspace and "workspace-write" in tags:
        return PolicyDecision(allowed=False, reason=READ_ONLY_REASON, tags=tags)

    for target in CONFIRM_TARGETS:
        if target.value not in tags:
            continue
        if not config.requires_confirmation_for(target):
            continue
        if includes_permission_phrase(full_message, target):
            continue
        return PolicyDecision(
            allowed=True,
            requires_confirmation=True,
            reason=f"{target.value} command requires explicit permission phrase.",
            confirm_hint=PERMISSION_HINTS[target],
            tags=tags,
        )

    return PolicyDecision(allowed=True, tags=tags)


class PolicyEngine:
    """Stateless evaluator bound to a logger and a compiled-pattern cache."""

    def __init__(self, *, logger: Any | None = None) -> None:
        self._logger = logger if logger is not None else structlog.get_logger(__name__)
        self._compiled_key: tuple[str, ...] | None = None
        self._compiled: CompiledPatternSet | None = None

    def compile(self, config: PolicyConfig) -> CompiledPatternSet:
        """Return compiled custom patterns for ``config``, logging invalid entries once."""

        key = tuple(config.blocked_command_patterns)
        if self._compiled is not None and self._compiled_key == key:
            return self._compiled

        compiled = compile_blocked_patterns(key)
        for diagnostic in compiled.diagnostics:
            self._logger.warning(
                "policy_pattern_invalid",
                pattern=diagnostic.pattern,
                error=diagnostic.error,
            )
        self._compiled_key = key
        self._compiled = compiled
        return compiled

    def evaluate(self, command: str, full_message: str, config: PolicyConfig) -> PolicyDecision:
        decision = evaluate_command_policy(
            command,
            full_message,
            config,
            matchers=self.compile(config) if config.enabled else None,
        )
        self._logger.info(
            "policy_decision",
            command=command,
            mode=config.mode.value,
            enabled=config.enabled,
            allowed=decision.allowed,
            requires_confirmation=decision.requires_confirmation,
            reason=decision.reason,
            confirm_hint=decision.confirm_hint,
            tags=list(decision.tags),
        )
        return decision


__all__ = [
    "HARD_BLOCK_REASON",
    "READ_ONLY_REASON",
    "PolicyEngine",
    "evaluate_command_policy",
]
