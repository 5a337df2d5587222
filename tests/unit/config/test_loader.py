"""
warden — unit tests for config loader

File: tests/unit/config/test_loader.py

Purpose
- Validate deterministic config loading from defaults, TOML, env overrides, and CLI overrides.

What this test file should cover
- Precedence: CLI > env > file > defaults.
- Deterministic env var path mapping and type coercion.
- Path normalization relative to the config file.
- Redacted effective config dumping.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path

import pytest

from warden.config.loader import (
    ConfigLoadError,
    dump_effective_config,
    env_overrides,
    load_config,
)
from warden.config.schema import ConfigValidationError

REPO_ROOT = Path(__file__).resolve().parents[3]


def _write_config(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def _sha256_json(data: dict[str, object]) -> str:
    payload = json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def test_loader_precedence_default_file_env_cli(tmp_path: Path) -> None:
    config_path = tmp_path / "warden.toml"
    default_path = tmp_path / "default.toml"
    _write_config(default_path, "")
    _write_config(
        config_path,
        """
[eval]
default_threshold = 0.1
""".strip(),
    )

    default_loaded = load_config(default_path, environ={})
    file_loaded = load_config(config_path, environ={})
    env_loaded = load_config(config_path, environ={"WARDEN_EVAL_DEFAULT_THRESHOLD": "0.2"})
    cli_loaded = load_config(
        config_path,
        environ={"WARDEN_EVAL_DEFAULT_THRESHOLD": "0.2"},
        cli_overrides={"eval.default_threshold": 0.3},
    )

    assert default_loaded["eval"]["default_threshold"] == 0.08
    assert file_loaded["eval"]["default_threshold"] == 0.1
    assert env_loaded["eval"]["default_threshold"] == 0.2
    assert cli_loaded["eval"]["default_threshold"] == 0.3


def test_env_mapping_coerces_ints_bools_and_strings(tmp_path: Path) -> None:
    config_path = tmp_path / "warden.toml"
    _write_config(config_path, "")

    loaded = load_config(
        config_path,
        environ={
            "WARDEN_EVAL_TREND_LIMIT": "12",
            "WARDEN_OBSERVABILITY_LOG_TO_STDOUT": "yes",
            "WARDEN_OBSERVABILITY_LOG_FORMAT": " text ",
        },
    )

    assert loaded["eval"]["trend_limit"] == 12
    assert loaded["observability"]["log_to_stdout"] is True
    assert loaded["observability"]["log_format"] == "text"


def test_invalid_env_coercion_raises_actionable_error(tmp_path: Path) -> None:
    config_path = tmp_path / "warden.toml"
    _write_config(config_path, "")

    with pytest.raises(ConfigLoadError, match="WARDEN_EVAL_LEADERBOARD_LIMIT"):
        load_config(config_path, environ={"WARDEN_EVAL_LEADERBOARD_LIMIT": "many"})
    with pytest.raises(ConfigLoadError, match="must be a boolean"):
        load_config(config_path, environ={"WARDEN_OBSERVABILITY_REDACT_SECRETS": "maybe"})


def test_out_of_range_override_fails_validation(tmp_path: Path) -> None:
    config_path = tmp_path / "warden.toml"
    _write_config(config_path, "")

    with pytest.raises(ConfigValidationError, match="eval.default_threshold: must be in"):
        load_config(config_path, environ={}, cli_overrides={"eval.default_threshold": 1.5})


def test_missing_explicit_file_and_bad_toml_raise_load_errors(tmp_path: Path) -> None:
    with pytest.raises(ConfigLoadError, match="config file not found"):
        load_config(tmp_path / "absent.toml", environ={})

    broken = tmp_path / "broken.toml"
    _write_config(broken, "[eval\n")
    with pytest.raises(ConfigLoadError, match="invalid TOML"):
        load_config(broken, environ={})


def test_loader_is_deterministic_for_same_inputs(tmp_path: Path) -> None:
    config_path = tmp_path / "warden.toml"
    _write_config(config_path, "[eval]\ntrend_limit = 3\n")
    environ = {"WARDEN_OBSERVABILITY_LOG_LEVEL": "DEBUG"}

    first = load_config(config_path, environ=environ)
    second = load_config(config_path, environ=environ)

    assert _sha256_json(first) == _sha256_json(second)


def test_path_normalization_is_relative_to_config_file(tmp_path: Path) -> None:
    config_dir = tmp_path / "nested" / "cfg"
    config_path = config_dir / "warden.toml"
    _write_config(
        config_path,
        """
[paths]
store_dir = "../state/store"

[observability]
log_dir = "logs"
""".strip(),
    )

    loaded = load_config(config_path, environ={})

    assert loaded["paths"]["store_dir"] == (tmp_path.resolve() / "nested" / "state" / "store").as_posix()
    assert loaded["observability"]["log_dir"] == (config_dir.resolve() / "logs").as_posix()


def test_profile_selection_from_argument_and_env(tmp_path: Path) -> None:
    config_path = tmp_path / "warden.toml"
    _write_config(config_path, "")

    from_arg = load_config(config_path, profile="ci", environ={})
    from_env = load_config(config_path, environ={"WARDEN_PROFILE": "ci"})

    for loaded in (from_arg, from_env):
        assert loaded["eval"]["default_threshold"] == 0.05
        assert loaded["observability"]["log_to_stdout"] is True

    with pytest.raises(ConfigValidationError, match="profile 'staging' is not defined"):
        load_config(config_path, profile="staging", environ={})


def test_dump_effective_config_is_redacted_and_deterministic(tmp_path: Path) -> None:
    config_path = tmp_path / "warden.toml"
    _write_config(config_path, "")

    loaded = load_config(config_path, environ={})
    dumped = dump_effective_config(loaded)

    assert dumped == dump_effective_config(load_config(config_path, environ={}))
    assert json.loads(dumped)["eval"]["leaderboard_window"] == 120
    assert dumped.startswith('{"eval":{')


def test_can_load_repo_warden_toml_with_profile_and_env_override() -> None:
    loaded = load_config(
        REPO_ROOT / "warden.toml",
        profile="local",
        environ={"WARDEN_EVAL_LEADERBOARD_LIMIT": "4"},
    )

    assert loaded["observability"]["log_format"] == "text"
    assert loaded["eval"]["leaderboard_limit"] == 4
    assert loaded["paths"]["store_dir"].endswith(".warden/store")


def test_config_package_exports_loader_and_errors(tmp_path: Path) -> None:
    import warden.config as config_pkg

    config_path = tmp_path / "warden.toml"
    _write_config(config_path, "")

    loaded = config_pkg.load_config(config_path, environ={})

    assert loaded["meta"]["schema_version"] == config_pkg.ConfigSchemaVersion
    assert issubclass(config_pkg.ConfigLoadError, ValueError)
    assert issubclass(config_pkg.ConfigValidationError, ValueError)


def test_env_overrides_only_reads_known_settings() -> None:
    overrides = env_overrides(
        {
            "WARDEN_PATHS_STORE_DIR": "/srv/warden",
            "WARDEN_EVAL_DEFAULT_THRESHOLD": "0.25",
            "WARDEN_META_SCHEMA_VERSION": "9",
            "WARDEN_EVAL_UNKNOWN": "1",
            "HOME": "/root",
        }
    )

    assert overrides == {
        "eval": {"default_threshold": 0.25},
        "paths": {"store_dir": "/srv/warden"},
    }


def test_malformed_cli_override_key_is_rejected(tmp_path: Path) -> None:
    config_path = tmp_path / "warden.toml"
    _write_config(config_path, "")

    with pytest.raises(ConfigLoadError, match="section.key"):
        load_config(config_path, environ={}, cli_overrides={"trend_limit": 3})
