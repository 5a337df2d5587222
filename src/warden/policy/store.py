"""
warden — policy config persistence.

File: src/warden/policy/store.py

Purpose
- Load, persist, and mutate the store's ``PolicyConfig``.

What should be included in this file
- ``PolicyStore`` protocol with JSON-file and in-memory implementations.
- Load with defaults synthesized and persisted when the file is absent or corrupt.
- Setters (mode, enabled, confirmation, combined update, custom patterns, reset)
  that re-normalize and persist on every change.

Non-functional requirements
- Whole-file atomic rewrite per save; no locking, last writer wins.
"""

from __future__ import annotations

import copy
import json
import re
from collections.abc import Mapping
from dataclasses import replace
from pathlib import Path
from typing import Any, Protocol

import structlog

from warden.constants import POLICY_FILENAME
from warden.domain.timestamps import format_timestamp
from warden.policy.models import (
    ConfirmTarget,
    PolicyConfig,
    PolicyMode,
    default_policy_config,
    normalize_policy_config,
)
from warden.utils.fs import atomic_write, read_text_if_exists


class PolicyStore(Protocol):
    """Persistence contract for the single policy record of a store."""

    def read(self) -> Mapping[str, object] | None:
        """Return the raw persisted payload, or ``None`` when absent or unreadable."""
        ...

    def write(self, payload: Mapping[str, object]) -> None: ...


class JsonPolicyStore:
    """``policy-engine.json`` under a store directory."""

    def __init__(self, path: Path | str, *, logger: Any | None = None) -> None:
        self.path = Path(path)
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    @classmethod
    def in_store_dir(cls, store_dir: Path | str, *, logger: Any | None = None) -> JsonPolicyStore:
        return cls(Path(store_dir) / POLICY_FILENAME, logger=logger)

    def read(self) -> Mapping[str, object] | None:
        try:
            text = read_text_if_exists(self.path)
        except (OSError, UnicodeDecodeError) as exc:
            self._logger.warning("policy_store_corrupt", path=str(self.path), error=str(exc))
            return None
        if text is None:
            return None
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            self._logger.warning("policy_store_corrupt", path=str(self.path), error=str(exc))
            return None
        if not isinstance(payload, dict):
            self._logger.warning(
                "policy_store_corrupt",
                path=str(self.path),
                error=f"expected object, got {type(payload).__name__}",
            )
            return None
        return payload

    def write(self, payload: Mapping[str, object]) -> None:
        atomic_write(self.path, json.dumps(payload, indent=2, ensure_ascii=False) + "\n")


class InMemoryPolicyStore:
    """Dict-backed store for tests and embedding."""

    def __init__(self, payload: Mapping[str, object] | None = None) -> None:
        self._payload: dict[str, object] | None = (
            copy.deepcopy(dict(payload)) if payload is not None else None
        )
        self.writes = 0

    def read(self) -> Mapping[str, object] | None:
        return copy.deepcopy(self._payload)

    def write(self, payload: Mapping[str, object]) -> None:
        self._payload = copy.deepcopy(dict(payload))
        self.writes += 1


def load_policy_config(store: PolicyStore, *, workspace_root: str = ".") -> PolicyConfig:
    """Return the normalized config, creating and persisting defaults when missing."""

    payload = store.read()
    if payload is None:
        config = default_policy_config(workspace_root)
        store.write(config.to_dict())
        return config
    return normalize_policy_config(payload, workspace_root=workspace_root)


def save_policy_config(
    store: PolicyStore,
    config: PolicyConfig,
    *,
    logger: Any | None = None,
) -> PolicyConfig:
    """Normalize, stamp ``updatedAt``, and persist ``config``."""

    stamped = normalize_policy_config(replace(config, updated_at=format_timestamp()))
    store.write(stamped.to_dict())
    _resolve_logger(logger).info(
        "policy_config_updated",
        enabled=stamped.enabled,
        mode=stamped.mode.value,
        read_only_workspace=stamped.read_only_workspace,
        blocked_pattern_count=len(stamped.blocked_command_patterns),
    )
    return stamped


def reset_policy_config(
    store: PolicyStore, *, workspace_root: str = ".", logger: Any | None = None
) -> PolicyConfig:
    return save_policy_config(store, default_policy_config(workspace_root), logger=logger)


def set_policy_mode(
    store: PolicyStore,
    mode: PolicyMode | str,
    *,
    workspace_root: str = ".",
    logger: Any | None = None,
) -> PolicyConfig:
    return update_policy_config(store, mode=mode, workspace_root=workspace_root, logger=logger)


def set_policy_enabled(
    store: PolicyStore,
    enabled: bool,
    *,
    workspace_root: str = ".",
    logger: Any | None = None,
) -> PolicyConfig:
    return update_policy_config(
        store, enabled=enabled, workspace_root=workspace_root, logger=logger
    )


def set_policy_confirmation(
    store: PolicyStore,
    target: ConfirmTarget | str,
    enabled: bool,
    *,
    workspace_root: str = ".",
    logger: Any | None = None,
) -> PolicyConfig:
    return update_policy_config(
        store,
        confirmation={ConfirmTarget(target): enabled},
        workspace_root=workspace_root,
        logger=logger,
    )


def update_policy_config(
    store: PolicyStore,
    *,
    mode: PolicyMode | str | None = None,
    enabled: bool | None = None,
    read_only_workspace: bool | None = None,
    confirmation: Mapping[ConfirmTarget, bool] | None = None,
    blocked_command_patterns: tuple[str, ...] | None = None,
    workspace_root: str = ".",
    logger: Any | None = None,
) -> PolicyConfig:
    """Apply several changes at once; mode invariants still win over explicit values."""

    current = load_policy_config(store, workspace_root=workspace_root)
    merged_confirmation = dict(current.require_confirmation)
    if confirmation is not None:
        merged_confirmation.update(
            {ConfirmTarget(target): bool(flag) for target, flag in confirmation.items()}
        )

    candidate = replace(
        current,
        mode=PolicyMode(mode) if mode is not None else current.mode,
        enabled=current.enabled if enabled is None else enabled,
        read_only_workspace=(
            current.read_only_workspace if read_only_workspace is None else read_only_workspace
        ),
        require_confirmation=merged_confirmation,
        blocked_command_patterns=(
            current.blocked_command_patterns
            if blocked_command_patterns is None
            else tuple(blocked_command_patterns)
        ),
    )
    return save_policy_config(store, candidate, logger=logger)


def add_blocked_pattern(
    store: PolicyStore,
    pattern: str,
    *,
    workspace_root: str = ".",
    logger: Any | None = None,
) -> PolicyConfig:
    """Append a custom block regex; raises ``ValueError`` when it does not compile."""

    source = pattern.strip()
    if not source:
        raise ValueError("pattern must not be empty")
    try:
        re.compile(source, re.IGNORECASE)
    except re.error as exc:
        raise ValueError(f"invalid regex {source!r}: {exc}") from exc

    current = load_policy_config(store, workspace_root=workspace_root)
    if source in current.blocked_command_patterns:
        return current
    return update_policy_config(
        store,
        blocked_command_patterns=(*current.blocked_command_patterns, source),
        workspace_root=workspace_root,
        logger=logger,
    )


def remove_blocked_pattern(
    store: PolicyStore,
    pattern: str,
    *,
    workspace_root: str = ".",
    logger: Any | None = None,
) -> PolicyConfig:
    """Drop every entry equal to ``pattern``; raises ``KeyError`` when none exists."""

    current = load_policy_config(store, workspace_root=workspace_root)
    remaining = tuple(item for item in current.blocked_command_patterns if item != pattern)
    if len(remaining) == len(current.blocked_command_patterns):
        raise KeyError(pattern)
    return update_policy_config(
        store,
        blocked_command_patterns=remaining,
        workspace_root=workspace_root,
        logger=logger,
    )


def _resolve_logger(logger: Any | None) -> Any:
    return logger if logger is not None else structlog.get_logger(__name__)


__all__ = [
    "InMemoryPolicyStore",
    "JsonPolicyStore",
    "PolicyStore",
    "add_blocked_pattern",
    "load_policy_config",
    "remove_blocked_pattern",
    "reset_policy_config",
    "save_policy_config",
    "set_policy_confirmation",
    "set_policy_enabled",
    "set_policy_mode",
    "update_policy_config",
]
