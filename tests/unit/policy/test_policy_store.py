"""
warden — unit tests for policy config normalization and persistence

File: tests/unit/policy/test_policy_store.py

Purpose
- Validate mode invariants, default synthesis on missing/corrupt files, and setters.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from structlog.testing import capture_logs

from warden.policy import (
    ConfirmTarget,
    InMemoryPolicyStore,
    JsonPolicyStore,
    PolicyMode,
    add_blocked_pattern,
    default_policy_config,
    format_policy_config_lines,
    load_policy_config,
    normalize_policy_config,
    remove_blocked_pattern,
    reset_policy_config,
    set_policy_confirmation,
    set_policy_enabled,
    set_policy_mode,
    update_policy_config,
)

_ALL_ON = {target: True for target in ConfirmTarget}
_RELAXED = {
    ConfirmTarget.DOWNLOAD: False,
    ConfirmTarget.INSTALL: False,
    ConfirmTarget.DEPLOY: True,
    ConfirmTarget.WORKSPACE_WRITE: False,
}


def test_defaults_match_documented_values() -> None:
    config = default_policy_config("/work")

    assert config.enabled is True
    assert config.mode is PolicyMode.BALANCED
    assert config.read_only_workspace is False
    assert config.blocked_command_patterns == ()
    assert dict(config.require_confirmation) == {
        ConfirmTarget.DOWNLOAD: True,
        ConfirmTarget.INSTALL: True,
        ConfirmTarget.DEPLOY: True,
        ConfirmTarget.WORKSPACE_WRITE: False,
    }
    assert config.workspace_root == "/work"
    assert config.updated_at.endswith("Z")


def test_normalize_drops_blank_and_non_string_patterns_and_unknown_mode() -> None:
    config = normalize_policy_config(
        {
            "mode": "paranoid",
            "enabled": "yes",
            "blockedCommandPatterns": ["", "   ", 3, None, "ssh\\s+root@"],
        },
        workspace_root="/repo",
    )

    assert config.mode is PolicyMode.BALANCED
    assert config.enabled is True
    assert config.blocked_command_patterns == ("ssh\\s+root@",)
    assert config.workspace_root == "/repo"


def test_enabled_is_true_unless_explicitly_false() -> None:
    assert normalize_policy_config({}).enabled is True
    assert normalize_policy_config({"enabled": 0}).enabled is True
    assert normalize_policy_config({"enabled": False}).enabled is False


@settings(max_examples=50, deadline=None)
@given(
    read_only=st.booleans(),
    flags=st.lists(st.booleans(), min_size=4, max_size=4),
)
def test_strict_and_relaxed_invariants_override_explicit_values(
    read_only: bool, flags: list[bool]
) -> None:
    confirmation = {
        "download": flags[0],
        "install": flags[1],
        "deploy": flags[2],
        "workspace-write": flags[3],
    }

    strict = normalize_policy_config(
        {"mode": "strict", "readOnlyWorkspace": read_only, "requireConfirmation": confirmation}
    )
    relaxed = normalize_policy_config(
        {"mode": "relaxed", "readOnlyWorkspace": read_only, "requireConfirmation": confirmation}
    )
    balanced = normalize_policy_config(
        {"mode": "balanced", "readOnlyWorkspace": read_only, "requireConfirmation": confirmation}
    )

    assert strict.read_only_workspace is True
    assert dict(strict.require_confirmation) == _ALL_ON
    assert relaxed.read_only_workspace is False
    assert dict(relaxed.require_confirmation) == _RELAXED
    assert balanced.read_only_workspace is read_only
    assert [balanced.requires_confirmation_for(target) for target in ConfirmTarget] == flags


def test_round_trip_uses_camel_case_keys() -> None:
    payload = normalize_policy_config({"mode": "strict"}).to_dict()

    assert set(payload) == {
        "enabled",
        "mode",
        "readOnlyWorkspace",
        "blockedCommandPatterns",
        "requireConfirmation",
        "workspaceRoot",
        "updatedAt",
    }
    assert payload["requireConfirmation"] == {
        "download": True,
        "install": True,
        "deploy": True,
        "workspace-write": True,
    }


def test_load_persists_defaults_when_file_missing(tmp_path: Path) -> None:
    store = JsonPolicyStore.in_store_dir(tmp_path / "store")

    config = load_policy_config(store, workspace_root="/w")

    assert store.path.exists()
    persisted = json.loads(store.path.read_text(encoding="utf-8"))
    assert persisted["mode"] == "balanced"
    assert persisted["workspaceRoot"] == "/w"
    assert config.mode is PolicyMode.BALANCED


def test_load_replaces_corrupt_file_with_defaults_and_logs(tmp_path: Path) -> None:
    store = JsonPolicyStore(tmp_path / "policy-engine.json")
    store.path.write_text("{not json", encoding="utf-8")

    with capture_logs() as logs:
        config = load_policy_config(store)

    assert config.mode is PolicyMode.BALANCED
    assert json.loads(store.path.read_text(encoding="utf-8"))["enabled"] is True
    assert any(entry["event"] == "policy_store_corrupt" for entry in logs)


def test_load_replaces_undecodable_file_with_defaults(tmp_path: Path) -> None:
    store = JsonPolicyStore(tmp_path / "policy-engine.json")
    store.path.write_bytes(b"\xff\xfe\x00garbage")

    with capture_logs() as logs:
        config = load_policy_config(store)

    assert config.mode is PolicyMode.BALANCED
    assert json.loads(store.path.read_text(encoding="utf-8"))["mode"] == "balanced"
    assert [entry["event"] for entry in logs] == ["policy_store_corrupt"]


def test_set_mode_strict_persists_forced_values() -> None:
    store = InMemoryPolicyStore()

    config = set_policy_mode(store, PolicyMode.STRICT)

    assert config.read_only_workspace is True
    assert dict(config.require_confirmation) == _ALL_ON
    assert normalize_policy_config(store.read()).read_only_workspace is True


def test_combined_update_cannot_escape_strict_invariants() -> None:
    store = InMemoryPolicyStore()

    config = update_policy_config(
        store,
        mode="strict",
        read_only_workspace=False,
        confirmation={ConfirmTarget.INSTALL: False},
    )

    assert config.read_only_workspace is True
    assert config.requires_confirmation_for(ConfirmTarget.INSTALL) is True


def test_confirmation_toggle_in_balanced_mode() -> None:
    store = InMemoryPolicyStore()

    config = set_policy_confirmation(store, "workspace-write", True)

    assert config.requires_confirmation_for(ConfirmTarget.WORKSPACE_WRITE) is True
    assert load_policy_config(store).requires_confirmation_for("workspace-write") is True


def test_setters_log_updates_and_reset_restores_defaults() -> None:
    store = InMemoryPolicyStore()

    with capture_logs() as logs:
        set_policy_enabled(store, False)
        add_blocked_pattern(store, "docker\\s+rm")
        reset = reset_policy_config(store, workspace_root="/w")

    assert [entry["event"] for entry in logs].count("policy_config_updated") == 3
    assert reset.enabled is True
    assert reset.blocked_command_patterns == ()


def test_add_and_remove_blocked_patterns() -> None:
    store = InMemoryPolicyStore()

    add_blocked_pattern(store, "npm\\s+publish")
    config = add_blocked_pattern(store, "npm\\s+publish")
    assert config.blocked_command_patterns == ("npm\\s+publish",)

    with pytest.raises(ValueError, match="invalid regex"):
        add_blocked_pattern(store, "(oops")

    config = remove_blocked_pattern(store, "npm\\s+publish")
    assert config.blocked_command_patterns == ()

    with pytest.raises(KeyError):
        remove_blocked_pattern(store, "npm\\s+publish")


def test_format_policy_config_lines() -> None:
    config = normalize_policy_config(
        {"blockedCommandPatterns": ["a", "b"], "updatedAt": "2026-01-01T00:00:00.000Z"}
    )

    assert format_policy_config_lines(config) == [
        "Policy engine: enabled",
        "Mode: balanced",
        "Read-only workspace: no",
        "Confirm download: yes",
        "Confirm install: yes",
        "Confirm deploy: yes",
        "Confirm workspace-write: no",
        "Custom blocked patterns: 2",
        "Updated: 2026-01-01T00:00:00.000Z",
    ]
