"""Command-safety policy engine: records, pattern primitives, evaluator, and persistence."""

from warden.policy.engine import PolicyEngine, evaluate_command_policy
from warden.policy.models import (
    CONFIRM_TARGETS,
    ConfirmTarget,
    PolicyConfig,
    PolicyDecision,
    PolicyMode,
    default_policy_config,
    format_policy_config_lines,
    normalize_policy_config,
)
from warden.policy.patterns import (
    CompiledPatternSet,
    PatternDiagnostic,
    classify_command_tags,
    compile_blocked_patterns,
)
from warden.policy.store import (
    InMemoryPolicyStore,
    JsonPolicyStore,
    PolicyStore,
    add_blocked_pattern,
    load_policy_config,
    remove_blocked_pattern,
    reset_policy_config,
    save_policy_config,
    set_policy_confirmation,
    set_policy_enabled,
    set_policy_mode,
    update_policy_config,
)

__all__ = [
    "CONFIRM_TARGETS",
    "CompiledPatternSet",
    "ConfirmTarget",
    "InMemoryPolicyStore",
    "JsonPolicyStore",
    "PatternDiagnostic",
    "PolicyConfig",
    "PolicyDecision",
    "PolicyEngine",
    "PolicyMode",
    "PolicyStore",
    "add_blocked_pattern",
    "classify_command_tags",
    "compile_blocked_patterns",
    "default_policy_config",
    "evaluate_command_policy",
    "format_policy_config_lines",
    "load_policy_config",
    "normalize_policy_config",
    "remove_blocked_pattern",
    "reset_policy_config",
    "save_policy_config",
    "set_policy_confirmation",
    "set_policy_enabled",
    "set_policy_mode",
    "update_policy_config",
]
