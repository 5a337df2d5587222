"""
warden — runtime config loader.

File: src/warden/config/loader.py

Purpose
- Resolve the effective settings for one CLI invocation.

Layers, later wins
1. built-in defaults (``schema.DEFAULT_CONFIG``)
2. the TOML file: ``--config PATH``, else ``./warden.toml`` when present
3. the selected profile overlay: ``--profile NAME``, else ``WARDEN_PROFILE``
4. ``WARDEN_<SECTION>_<KEY>`` environment variables, coerced to the default's type
5. CLI overrides given as dotted ``section.key`` names

Relative ``paths.store_dir`` / ``observability.log_dir`` values are anchored at the
config file's directory, so a checked-in ``warden.toml`` behaves the same from any cwd.
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from warden.config.schema import (
    PATH_FIELDS,
    apply_profile_overlay,
    assert_valid_config,
    default_config,
    merge_config,
    redact_config,
)

DEFAULT_CONFIG_FILE: Final[str] = "warden.toml"
ENV_PREFIX: Final[str] = "WARDEN_"
PROFILE_ENV_VAR: Final[str] = f"{ENV_PREFIX}PROFILE"

# ``meta`` is never overridable from the environment.
_ENV_SECTIONS: Final[tuple[str, ...]] = ("paths", "policy", "eval", "observability")
_TRUTHY: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})
_FALSY: Final[frozenset[str]] = frozenset({"0", "false", "no", "off"})


class ConfigLoadError(ValueError):
    """Raised when a config file or override cannot be read or coerced."""


def load_config(
    config_path: str | Path | None = None,
    *,
    profile: str | None = None,
    cli_overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Return the validated effective config; see the module docstring for layering."""

    env = os.environ if environ is None else environ
    source = (
        Path(config_path).expanduser().resolve()
        if config_path is not None
        else (Path.cwd() / DEFAULT_CONFIG_FILE).resolve()
    )
    selected = _selected_profile(profile, env)

    config = assert_valid_config(
        merge_config(default_config(), _read_toml(source, required=config_path is not None))
    )
    if selected is not None:
        config = apply_profile_overlay(config, selected)
    config = merge_config(config, env_overrides(env))
    config = merge_config(config, _dotted_overrides(cli_overrides or {}))
    config = assert_valid_config(config, active_profile=selected)
    return assert_valid_config(normalize_paths(config, base_dir=source.parent), active_profile=selected)


def env_overrides(environ: Mapping[str, str]) -> dict[str, dict[str, object]]:
    """Collect ``WARDEN_<SECTION>_<KEY>`` values present in ``environ``."""

    defaults: Mapping[str, Any] = default_config()
    overrides: dict[str, dict[str, object]] = {}
    for section in _ENV_SECTIONS:
        for key, default in defaults[section].items():
            name = f"{ENV_PREFIX}{section}_{key}".upper()
            raw = environ.get(name)
            if raw is not None:
                overrides.setdefault(section, {})[key] = _coerce(name, raw.strip(), default)
    return overrides


def normalize_paths(config: Mapping[str, Any], *, base_dir: Path) -> dict[str, Any]:
    """Anchor relative path settings, top-level and inside profiles, at ``base_dir``."""

    normalized = merge_config(config, {})
    profiles = normalized.get("profiles")
    scopes: list[Mapping[str, Any]] = [normalized]
    if isinstance(profiles, Mapping):
        scopes.extend(overlay for overlay in profiles.values() if isinstance(overlay, Mapping))

    for scope in scopes:
        for section, key in PATH_FIELDS:
            block = scope.get(section)
            if isinstance(block, dict) and isinstance(block.get(key), str):
                block[key] = _anchor(block[key], base_dir)
    return normalized


def effective_config(config: Mapping[str, object]) -> dict[str, Any]:
    return redact_config(config)


def dump_effective_config(config: Mapping[str, object]) -> str:
    """Redacted config as one JSON line with sorted keys."""

    return json.dumps(
        effective_config(config), sort_keys=True, separators=(",", ":"), ensure_ascii=False
    )


def _read_toml(path: Path, *, required: bool) -> dict[str, Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError as exc:
        if required:
            raise ConfigLoadError(f"config file not found: {path}") from exc
        return {}
    except tomllib.TOMLDecodeError as exc:
        raise ConfigLoadError(f"invalid TOML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigLoadError(f"unable to read config file {path}: {exc}") from exc


def _selected_profile(profile: str | None, environ: Mapping[str, str]) -> str | None:
    raw = profile if profile is not None else environ.get(PROFILE_ENV_VAR)
    if raw is None:
        return None
    return raw.strip() or None


def _coerce(name: str, raw: str, default: object) -> object:
    if isinstance(default, bool):
        lowered = raw.lower()
        if lowered in _TRUTHY:
            return True
        if lowered in _FALSY:
            return False
        raise ConfigLoadError(f"{name} must be a boolean (true/false, yes/no, on/off, 1/0), got {raw!r}")
    if isinstance(default, int):
        try:
            return int(raw)
        except ValueError as exc:
            raise ConfigLoadError(f"{name} must be an integer, got {raw!r}") from exc
    if isinstance(default, float):
        try:
            return float(raw)
        except ValueError as exc:
            raise ConfigLoadError(f"{name} must be a number, got {raw!r}") from exc
    return raw


def _dotted_overrides(overrides: Mapping[str, object]) -> dict[str, dict[str, object]]:
    nested: dict[str, dict[str, object]] = {}
    for dotted, value in overrides.items():
        section, _, key = dotted.partition(".")
        if not section or not key or "." in key:
            raise ConfigLoadError(f"CLI override must be named section.key, got {dotted!r}")
        nested.setdefault(section, {})[key] = value
    return nested


def _anchor(raw: str, base_dir: Path) -> str:
    candidate = Path(os.path.expandvars(raw)).expanduser()
    if not candidate.is_absolute():
        candidate = base_dir / candidate
    return Path(os.path.normpath(candidate)).as_posix()


__all__ = [
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "PROFILE_ENV_VAR",
    "ConfigLoadError",
    "dump_effective_config",
    "effective_config",
    "env_overrides",
    "load_config",
    "normalize_paths",
]
