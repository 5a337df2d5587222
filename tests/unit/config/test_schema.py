"""
warden — unit tests for config schema validation

File: tests/unit/config/test_schema.py

Purpose
- Validate strict schema rules, structured issue paths, profile overlays, and redaction.
"""

from __future__ import annotations

import pytest

from warden.config.schema import (
    ConfigValidationError,
    apply_profile_overlay,
    default_config,
    looks_sensitive_key,
    merge_config,
    migration_guidance,
    redact_config,
    validate_config,
)


def _issues(config: object) -> list[tuple[str, str]]:
    result = validate_config(config)
    return [(issue.path, issue.message) for issue in result.issues]


def test_default_config_validates_successfully() -> None:
    result = validate_config(default_config())

    assert result.is_valid
    assert result.config is not None
    assert result.config["eval"]["default_threshold"] == 0.08
    assert sorted(result.config["profiles"]) == ["ci", "local"]


def test_unknown_key_rejection_is_explicit() -> None:
    config = merge_config(default_config(), {"eval": {"window": 5}, "extras": {}})

    assert ("eval.window", "unknown field") in _issues(config)
    assert ("extras", "unknown field") in _issues(config)


def test_type_validation_reports_structured_paths() -> None:
    config = merge_config(
        default_config(),
        {"eval": {"trend_limit": "6"}, "observability": {"log_to_stdout": "no"}},
    )

    issues = _issues(config)

    assert ("eval.trend_limit", "expected integer, got str") in issues
    assert ("observability.log_to_stdout", "expected boolean, got str") in issues


def test_range_violations_report_exact_path() -> None:
    config = merge_config(
        default_config(),
        {"eval": {"default_threshold": 0.0, "leaderboard_limit": 0}},
    )

    issues = _issues(config)

    assert ("eval.default_threshold", "must be in (0, 1]") in issues
    assert ("eval.leaderboard_limit", "must be >= 1") in issues


def test_enum_and_missing_field_errors() -> None:
    config = default_config()
    config["observability"]["log_format"] = "xml"  # type: ignore[typeddict-item]
    del config["policy"]  # type: ignore[misc]

    issues = _issues(config)

    assert ("observability.log_format", "invalid value 'xml'; expected one of: json, text") in issues
    assert ("policy", "missing required field") in issues


def test_embedded_secret_key_is_rejected() -> None:
    config = merge_config(default_config(), {"paths": {"api_token": "abc"}})

    assert ("paths.api_token", "embedded secret values are forbidden in warden config") in _issues(
        config
    )


def test_schema_version_mismatch_returns_migration_guidance() -> None:
    config = merge_config(default_config(), {"meta": {"schema_version": 2}})

    assert ("meta.schema_version", migration_guidance(2)) in _issues(config)
    assert "upgrade the warden runtime" in migration_guidance(2)


def test_profile_overlay_deep_merges_known_sections_and_revalidates() -> None:
    overlaid = apply_profile_overlay(default_config(), "ci")

    assert overlaid["eval"]["default_threshold"] == 0.05
    assert overlaid["eval"]["trend_limit"] == 6
    assert overlaid["observability"]["log_to_stdout"] is True

    broken = merge_config(default_config(), {"profiles": {"bad": {"eval": {"trend_limit": 0}}}})
    with pytest.raises(ConfigValidationError, match="profiles.bad.eval.trend_limit"):
        apply_profile_overlay(broken, "bad")


def test_invalid_profile_name_is_reported() -> None:
    config = merge_config(default_config(), {"profiles": {"Prod": {}}})

    assert ("profiles.Prod", "profile name must match ^[a-z][a-z0-9_-]*$") in _issues(config)


def test_redact_config_is_recursive_and_preserves_shape() -> None:
    redacted = redact_config(
        {"paths": {"store_dir": "/s", "secretKey": "x"}, "items": [{"password": "p"}]}
    )

    assert redacted == {
        "items": [{"password": "<redacted>"}],
        "paths": {"secretKey": "<redacted>", "store_dir": "/s"},
    }
    assert redact_config("not a mapping") == {}


@pytest.mark.parametrize(
    ("key", "expected"),
    [
        ("api_token", True),
        ("clientSecret", True),
        ("db-password", True),
        ("privateKey", True),
        ("store_dir", False),
        ("log_level", False),
    ],
)
def test_sensitive_key_detection(key: str, expected: bool) -> None:
    assert looks_sensitive_key(key) is expected
