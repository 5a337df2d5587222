"""
warden — configuration schema and validation.

File: src/warden/config/schema.py

Purpose
- Declare every ``warden.toml`` setting with its default and the rule it must satisfy.
- Validate payloads into structured issues (dotted field path + message).
- Merge profile overlays and redact secret-looking keys before display.

Validation is strict: unknown keys are errors, secret-looking keys are refused
outright (credentials never live in ``warden.toml``), and a schema version other
than the current one comes back with migration guidance.
"""

from __future__ import annotations

import copy
import math
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, Literal, TypedDict

from warden.constants import (
    CONFIG_SCHEMA_VERSION,
    DEFAULT_LEADERBOARD_LIMIT,
    DEFAULT_LEADERBOARD_WINDOW,
    DEFAULT_LOG_DIR,
    DEFAULT_REGRESSION_THRESHOLD,
    DEFAULT_STORE_DIR,
    DEFAULT_TREND_LIMIT,
)

ConfigSchemaVersion: Final[int] = CONFIG_SCHEMA_VERSION
REDACTED_VALUE: Final[str] = "<redacted>"

# Relative values are anchored at the config file's directory by the loader.
PATH_FIELDS: Final[tuple[tuple[str, str], ...]] = (
    ("paths", "store_dir"),
    ("observability", "log_dir"),
)

_PROFILE_NAME = re.compile(r"^[a-z][a-z0-9_-]*$")
_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_SECRET_MARKERS: Final[tuple[str, ...]] = (
    "secret",
    "token",
    "password",
    "passwd",
    "api_key",
    "apikey",
    "private_key",
    "credential",
)


class MetaConfig(TypedDict):
    schema_version: int


class PathsConfig(TypedDict):
    store_dir: str


class PolicySettings(TypedDict):
    workspace_root: str


class EvalSettings(TypedDict):
    default_threshold: float
    leaderboard_window: int
    leaderboard_limit: int
    trend_limit: int


class ObservabilityConfig(TypedDict):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"]
    log_format: Literal["json", "text"]
    log_dir: str
    log_to_stdout: bool
    redact_secrets: bool


class ProfileOverlay(TypedDict, total=False):
    paths: dict[str, object]
    policy: dict[str, object]
    eval: dict[str, object]
    observability: dict[str, object]


class WardenConfig(TypedDict):
    meta: MetaConfig
    paths: PathsConfig
    policy: PolicySettings
    eval: EvalSettings
    observability: ObservabilityConfig
    profiles: dict[str, ProfileOverlay]


DEFAULT_CONFIG: Final[WardenConfig] = {
    "meta": {"schema_version": ConfigSchemaVersion},
    "paths": {"store_dir": DEFAULT_STORE_DIR},
    "policy": {"workspace_root": "."},
    "eval": {
        "default_threshold": DEFAULT_REGRESSION_THRESHOLD,
        "leaderboard_window": DEFAULT_LEADERBOARD_WINDOW,
        "leaderboard_limit": DEFAULT_LEADERBOARD_LIMIT,
        "trend_limit": DEFAULT_TREND_LIMIT,
    },
    "observability": {
        "log_level": "INFO",
        "log_format": "json",
        "log_dir": DEFAULT_LOG_DIR,
        "log_to_stdout": False,
        "redact_secrets": True,
    },
    "profiles": {
        "ci": {
            "eval": {"default_threshold": 0.05},
            "observability": {"log_to_stdout": True},
        },
        "local": {},
    },
}


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


@dataclass(frozen=True, slots=True)
class ConfigValidationResult:
    config: dict[str, Any] | None
    issues: tuple[ConfigValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.issues


class ConfigValidationError(ValueError):
    """Raised when strict config validation fails; ``issues`` keeps the structured form."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid config:\n{rendered or '- <root>: unknown validation failure'}")


# ---------------------------------------------------------------------------
# Field rules
# ---------------------------------------------------------------------------


class _Invalid(Exception):
    """A rule rejected a value; the message becomes the issue text."""


_Rule = Callable[[object], object]


def _type_name(value: object) -> str:
    return type(value).__name__


def _text(value: object) -> str:
    if not isinstance(value, str):
        raise _Invalid(f"expected string, got {_type_name(value)}")
    stripped = value.strip()
    if not stripped:
        raise _Invalid("must not be empty")
    if "\x00" in stripped:
        raise _Invalid("must not contain NUL bytes")
    return stripped


def _flag(value: object) -> bool:
    if not isinstance(value, bool):
        raise _Invalid(f"expected boolean, got {_type_name(value)}")
    return value


def _count(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise _Invalid(f"expected integer, got {_type_name(value)}")
    if value < 1:
        raise _Invalid("must be >= 1")
    return value


def _fraction(value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _Invalid(f"expected number, got {_type_name(value)}")
    parsed = float(value)
    if not math.isfinite(parsed) or not 0.0 < parsed <= 1.0:
        raise _Invalid("must be in (0, 1]")
    return parsed


def _choice(*allowed: str) -> _Rule:
    def rule(value: object) -> str:
        text = _text(value)
        if text not in allowed:
            raise _Invalid(f"invalid value {text!r}; expected one of: {', '.join(sorted(allowed))}")
        return text

    return rule


def _schema_version(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise _Invalid(f"expected integer, got {_type_name(value)}")
    if value != ConfigSchemaVersion:
        raise _Invalid(migration_guidance(value))
    return value


_RULES: Final[dict[str, dict[str, _Rule]]] = {
    "meta": {"schema_version": _schema_version},
    "paths": {"store_dir": _text},
    "policy": {"workspace_root": _text},
    "eval": {
        "default_threshold": _fraction,
        "leaderboard_window": _count,
        "leaderboard_limit": _count,
        "trend_limit": _count,
    },
    "observability": {
        "log_level": _choice("DEBUG", "INFO", "WARNING", "ERROR"),
        "log_format": _choice("json", "text"),
        "log_dir": _text,
        "log_to_stdout": _flag,
        "redact_secrets": _flag,
    },
}

# Profiles may override any section except ``meta``.
_OVERLAY_SECTIONS: Final[tuple[str, ...]] = ("paths", "policy", "eval", "observability")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def default_config() -> WardenConfig:
    return copy.deepcopy(DEFAULT_CONFIG)


def migration_guidance(found_version: int) -> str:
    if found_version < ConfigSchemaVersion:
        return (
            f"schema version {found_version} is older than supported {ConfigSchemaVersion}; "
            "upgrade warden.toml to the current schema"
        )
    if found_version > ConfigSchemaVersion:
        return (
            f"schema version {found_version} is newer than supported {ConfigSchemaVersion}; "
            "upgrade the warden runtime"
        )
    return "schema version is current"


def merge_config(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``overlay`` deep-merged on top. Neither input is mutated."""

    merged: dict[str, Any] = {key: copy.deepcopy(value) for key, value in base.items()}
    for key, value in overlay.items():
        current = merged.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            merged[key] = merge_config(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def apply_profile_overlay(config: Mapping[str, Any], profile: str | None) -> dict[str, Any]:
    """Merge ``profiles.<profile>`` over the top-level sections and re-validate."""

    merged = merge_config(config, {})
    name = profile.strip() if profile else ""
    if not name:
        return merged

    profiles = merged.get("profiles")
    overlay = profiles.get(name) if isinstance(profiles, Mapping) else None
    if not isinstance(overlay, Mapping):
        raise ConfigValidationError(
            (ConfigValidationIssue("profiles", f"profile {name!r} is not defined"),)
        )
    return assert_valid_config(merge_config(merged, overlay), active_profile=name)


def validate_config(
    config: Mapping[str, object] | object,
    *,
    active_profile: str | None = None,
) -> ConfigValidationResult:
    issues: list[ConfigValidationIssue] = []
    if not isinstance(config, Mapping):
        issues.append(ConfigValidationIssue("<root>", f"expected object, got {_type_name(config)}"))
        return ConfigValidationResult(config=None, issues=tuple(issues))

    _flag_unknown_keys(config, (*_RULES, "profiles"), "", issues)
    normalized: dict[str, Any] = {}
    for section in _RULES:
        if section not in config:
            issues.append(ConfigValidationIssue(section, "missing required field"))
            continue
        checked = _check_section(section, config[section], section, issues, partial=False)
        if checked is not None:
            normalized[section] = checked

    if "profiles" in config:
        profiles = _check_profiles(config["profiles"], issues)
        if profiles is not None:
            normalized["profiles"] = profiles

    selected = active_profile.strip() if active_profile else ""
    if selected and selected not in normalized.get("profiles", {}):
        issues.append(ConfigValidationIssue("profiles", f"profile {selected!r} is not defined"))

    if issues:
        return ConfigValidationResult(config=None, issues=tuple(issues))
    return ConfigValidationResult(config=normalized, issues=())


def assert_valid_config(
    config: Mapping[str, object] | object,
    *,
    active_profile: str | None = None,
) -> dict[str, Any]:
    result = validate_config(config, active_profile=active_profile)
    if result.config is None:
        raise ConfigValidationError(result.issues)
    return result.config


def redact_config(config: Mapping[str, object] | object) -> dict[str, Any]:
    """Copy ``config`` with values under secret-looking keys replaced by ``<redacted>``."""

    if not isinstance(config, Mapping):
        return {}
    return {
        key: REDACTED_VALUE if looks_sensitive_key(str(key)) else _redact(item)
        for key, item in config.items()
    }


def looks_sensitive_key(key: str) -> bool:
    snake = _CAMEL_BOUNDARY.sub(r"\1_\2", key.strip()).lower().replace("-", "_")
    return any(marker in snake for marker in _SECRET_MARKERS)


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------


def _check_section(
    section: str,
    raw: object,
    path: str,
    issues: list[ConfigValidationIssue],
    *,
    partial: bool,
) -> dict[str, Any] | None:
    payload = _check_object(raw, path, issues)
    if payload is None:
        return None

    rules = _RULES[section]
    _flag_unknown_keys(payload, rules, path, issues)
    out: dict[str, Any] = {}
    for key, rule in rules.items():
        field_path = f"{path}.{key}"
        if key not in payload:
            if not partial:
                issues.append(ConfigValidationIssue(field_path, "missing required field"))
            continue
        try:
            out[key] = rule(payload[key])
        except _Invalid as exc:
            issues.append(ConfigValidationIssue(field_path, str(exc)))
    return out


def _check_profiles(raw: object, issues: list[ConfigValidationIssue]) -> dict[str, Any] | None:
    profiles = _check_object(raw, "profiles", issues)
    if profiles is None:
        return None

    out: dict[str, Any] = {}
    for name in sorted(profiles, key=str):
        path = f"profiles.{name}"
        if not isinstance(name, str) or not _PROFILE_NAME.fullmatch(name):
            issues.append(ConfigValidationIssue(path, "profile name must match ^[a-z][a-z0-9_-]*$"))
            continue
        overlay = _check_object(profiles[name], path, issues)
        if overlay is None:
            continue
        _flag_unknown_keys(overlay, _OVERLAY_SECTIONS, path, issues)
        checked: dict[str, Any] = {}
        for section in _OVERLAY_SECTIONS:
            if section not in overlay:
                continue
            values = _check_section(section, overlay[section], f"{path}.{section}", issues, partial=True)
            if values is not None:
                checked[section] = values
        out[name] = checked
    return out


def _check_object(
    value: object, path: str, issues: list[ConfigValidationIssue]
) -> Mapping[str, object] | None:
    if isinstance(value, Mapping):
        return value
    issues.append(ConfigValidationIssue(path, f"expected object, got {_type_name(value)}"))
    return None


def _flag_unknown_keys(
    payload: Mapping[str, object],
    allowed: Sequence[str] | Mapping[str, object],
    path: str,
    issues: list[ConfigValidationIssue],
) -> None:
    for key in sorted(str(key) for key in payload if key not in allowed):
        key_path = f"{path}.{key}" if path else key
        if looks_sensitive_key(key):
            issues.append(
                ConfigValidationIssue(key_path, "embedded secret values are forbidden in warden config")
            )
        else:
            issues.append(ConfigValidationIssue(key_path, "unknown field"))


def _redact(value: object) -> object:
    if isinstance(value, Mapping):
        return {
            key: REDACTED_VALUE if looks_sensitive_key(str(key)) else _redact(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_redact(item) for item in value]
    return value


__all__ = [
    "DEFAULT_CONFIG",
    "PATH_FIELDS",
    "REDACTED_VALUE",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "ProfileOverlay",
    "WardenConfig",
    "apply_profile_overlay",
    "assert_valid_config",
    "default_config",
    "looks_sensitive_key",
    "merge_config",
    "migration_guidance",
    "redact_config",
    "validate_config",
]
