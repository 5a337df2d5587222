from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from warden.evaluation import EvalCase, ExecutionResult, ReplayExecutor, load_replay_executor


def _case(case_id: str) -> EvalCase:
    return EvalCase(id=case_id, prompt="prompt")


def test_nested_payload_applies_defaults_and_overrides() -> None:
    executor = ReplayExecutor.from_payload(
        {
            "provider": "openrouter",
            "model": "qwen",
            "responses": {
                "a": "plain",
                "b": {"output": "detailed", "model": "llama", "latencyMs": 840},
            },
        }
    )

    assert executor(_case("a")) == ExecutionResult(output="plain", provider="openrouter", model="qwen")
    assert executor(_case("b")) == ExecutionResult(
        output="detailed", provider="openrouter", model="llama", latency_ms=840.0
    )
    assert executor.calls == ["a", "b"]


def test_bare_mapping_and_missing_case_replays_empty_output() -> None:
    executor = ReplayExecutor.from_payload({"a": "text"})

    missing = executor(_case("zzz"))

    assert executor(_case("a")).provider == "replay"
    assert missing.output == ""
    assert missing.model == "recorded"


def test_invalid_payloads_raise_value_error() -> None:
    with pytest.raises(ValueError, match="keyed by case id"):
        ReplayExecutor.from_payload(["a"])
    with pytest.raises(ValueError, match="string or object"):
        ReplayExecutor.from_payload({"a": 3})


def test_load_from_json_and_yaml(tmp_path: Path) -> None:
    json_path = tmp_path / "responses.json"
    json_path.write_text(json.dumps({"responses": {"a": "from json"}}), encoding="utf-8")
    yaml_path = tmp_path / "responses.yaml"
    yaml_path.write_text(yaml.safe_dump({"a": {"output": "from yaml"}}), encoding="utf-8")

    assert load_replay_executor(json_path)(_case("a")).output == "from json"
    assert load_replay_executor(yaml_path)(_case("a")).output == "from yaml"


def test_invalid_yaml_file_raises_value_error(tmp_path: Path) -> None:
    broken = tmp_path / "responses.yml"
    broken.write_text("a: [unclosed\n", encoding="utf-8")

    with pytest.raises(ValueError, match="invalid YAML"):
        load_replay_executor(broken)
