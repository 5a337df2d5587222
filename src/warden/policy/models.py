"""
warden — policy engine records.

File: src/warden/policy/models.py

Purpose
- Define the persisted ``PolicyConfig`` record and the ephemeral ``PolicyDecision``.

What should be included in this file
- Mode and confirmation-target enums.
- Normalization that enforces mode invariants on every load and update.
- camelCase JSON mapping for the persisted policy file.
- Human-readable summary lines for CLI output.

Functional requirements
- ``strict`` forces a read-only workspace and every confirmation flag on.
- ``relaxed`` forces a writable workspace and confirmation only for deploys.
- Unknown modes normalize to ``balanced``; ``enabled`` is true unless explicitly false.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Final

from warden.domain.timestamps import format_timestamp


class PolicyMode(str, Enum):
    """Supported policy strictness modes."""

    RELAXED = "relaxed"
    BALANCED = "balanced"
    STRICT = "strict"


class ConfirmTarget(str, Enum):
    """Command categories that can require an explicit permission phrase."""

    DOWNLOAD = "download"
    INSTALL = "install"
    DEPLOY = "deploy"
    WORKSPACE_WRITE = "workspace-write"


# Evaluation order for the confirmation pass.
CONFIRM_TARGETS: Final[tuple[ConfirmTarget, ...]] = (
    ConfirmTarget.DOWNLOAD,
    ConfirmTarget.INSTALL,
    ConfirmTarget.DEPLOY,
    ConfirmTarget.WORKSPACE_WRITE,
)

DEFAULT_CONFIRMATION: Final[Mapping[ConfirmTarget, bool]] = {
    ConfirmTarget.DOWNLOAD: True,
    ConfirmTarget.INSTALL: True,
    ConfirmTarget.DEPLOY: True,
    ConfirmTarget.WORKSPACE_WRITE: False,
}

_STRICT_CONFIRMATION: Final[Mapping[ConfirmTarget, bool]] = {
    target: True for target in CONFIRM_TARGETS
}
_RELAXED_CONFIRMATION: Final[Mapping[ConfirmTarget, bool]] = {
    ConfirmTarget.DOWNLOAD: False,
    ConfirmTarget.INSTALL: False,
    ConfirmTarget.DEPLOY: True,
    ConfirmTarget.WORKSPACE_WRITE: False,
}


@dataclass(frozen=True, slots=True)
class PolicyConfig:
    """Persisted command-safety policy for one store."""

    enabled: bool = True
    mode: PolicyMode = PolicyMode.BALANCED
    read_only_workspace: bool = False
    blocked_command_patterns: tuple[str, ...] = ()
    require_confirmation: Mapping[ConfirmTarget, bool] = field(
        default_factory=lambda: dict(DEFAULT_CONFIRMATION)
    )
    workspace_root: str = "."
    updated_at: str = field(default_factory=format_timestamp)

    def requires_confirmation_for(self, target: ConfirmTarget | str) -> bool:
        return bool(self.require_confirmation.get(ConfirmTarget(target), False))

    def to_dict(self) -> dict[str, object]:
        return {
            "enabled": self.enabled,
            "mode": self.mode.value,
            "readOnlyWorkspace": self.read_only_workspace,
            "blockedCommandPatterns": list(self.blocked_command_patterns),
            "requireConfirmation": {
                target.value: self.requires_confirmation_for(target) for target in CONFIRM_TARGETS
            },
            "workspaceRoot": self.workspace_root,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(
        cls, payload: Mapping[str, object], *, workspace_root: str = "."
    ) -> PolicyConfig:
        return normalize_policy_config(payload, workspace_root=workspace_root)


@dataclass(frozen=True, slots=True)
class PolicyDecision:
    """Outcome of evaluating one shell command against a ``PolicyConfig``."""

    allowed: bool
    requires_confirmation: bool = False
    reason: str | None = None
    confirm_hint: str | None = None
    tags: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "allowed": self.allowed,
            "reason": self.reason,
            "requiresConfirmation": self.requires_confirmation,
            "confirmHint": self.confirm_hint,
            "tags": list(self.tags),
        }


def default_policy_config(workspace_root: str = ".") -> PolicyConfig:
    return PolicyConfig(workspace_root=workspace_root)


def normalize_policy_config(
    raw: Mapping[str, object] | PolicyConfig | None,
    *,
    workspace_root: str = ".",
) -> PolicyConfig:
    """Coerce an untrusted payload into a ``PolicyConfig`` and enforce mode invariants.

    Accepts the camelCase persisted form or an existing ``PolicyConfig``. Missing or
    malformed fields fall back to defaults.
    """

    if isinstance(raw, PolicyConfig):
        return apply_mode_invariants(raw)

    payload: Mapping[str, object] = raw if isinstance(raw, Mapping) else {}

    mode = _coerce_mode(payload.get("mode"))

    raw_patterns = payload.get("blockedCommandPatterns")
    if isinstance(raw_patterns, (list, tuple)):
        patterns = tuple(item for item in raw_patterns if isinstance(item, str) and item.strip())
    else:
        patterns = ()

    raw_confirmation = payload.get("requireConfirmation")
    confirmation_payload: Mapping[str, object] = (
        raw_confirmation if isinstance(raw_confirmation, Mapping) else {}
    )
    confirmation: dict[ConfirmTarget, bool] = {}
    for target in CONFIRM_TARGETS:
        value = confirmation_payload.get(target.value)
        confirmation[target] = value if isinstance(value, bool) else DEFAULT_CONFIRMATION[target]

    raw_root = payload.get("workspaceRoot")
    raw_updated = payload.get("updatedAt")

    config = PolicyConfig(
        enabled=payload.get("enabled") is not False,
        mode=mode,
        read_only_workspace=payload.get("readOnlyWorkspace") is True,
        blocked_command_patterns=patterns,
        require_confirmation=confirmation,
        workspace_root=raw_root if isinstance(raw_root, str) and raw_root else workspace_root,
        updated_at=raw_updated if isinstance(raw_updated, str) and raw_updated else format_timestamp(),
    )
    return apply_mode_invariants(config)


def apply_mode_invariants(config: PolicyConfig) -> PolicyConfig:
    """Return ``config`` with the forced values of ``strict`` / ``relaxed`` applied."""

    if config.mode is PolicyMode.STRICT:
        return replace(
            config,
            read_only_workspace=True,
            require_confirmation=dict(_STRICT_CONFIRMATION),
        )
    if config.mode is PolicyMode.RELAXED:
        return replace(
            config,
            read_only_workspace=False,
            require_confirmation=dict(_RELAXED_CONFIRMATION),
        )
    return replace(
        config,
        require_confirmation={
            target: bool(config.require_confirmation.get(target, DEFAULT_CONFIRMATION[target]))
            for target in CONFIRM_TARGETS
        },
    )


def format_policy_config_lines(config: PolicyConfig) -> list[str]:
    """Render ``config`` as one human-readable line per setting."""

    def _yes_no(flag: bool) -> str:
        return "yes" if flag else "no"

    lines = [
        f"Policy engine: {'enabled' if config.enabled else 'disabled'}",
        f"Mode: {config.mode.value}",
        f"Read-only workspace: {_yes_no(config.read_only_workspace)}",
    ]
    for target in CONFIRM_TARGETS:
        lines.append(f"Confirm {target.value}: {_yes_no(config.requires_confirmation_for(target))}")
    lines.append(f"Custom blocked patterns: {len(config.blocked_command_patterns)}")
    lines.append(f"Updated: {config.updated_at}")
    return lines


def _coerce_mode(value: object) -> PolicyMode:
    if isinstance(value, PolicyMode):
        return value
    if isinstance(value, str):
        try:
            return PolicyMode(value.strip().lower())
        except ValueError:
            return PolicyMode.BALANCED
    return PolicyMode.BALANCED


__all__ = [
    "CONFIRM_TARGETS",
    "DEFAULT_CONFIRMATION",
    "ConfirmTarget",
    "PolicyConfig",
    "PolicyDecision",
    "PolicyMode",
    "apply_mode_invariants",
    "default_policy_config",
    "format_policy_config_lines",
    "normalize_policy_config",
]
