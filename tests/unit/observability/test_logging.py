"""
warden — unit tests for observability logging

File: tests/unit/observability/test_logging.py

Purpose
- Validate structured JSON logging with redaction, correlation metadata, structlog
  routing, and queue-backed reliability.

What this test file should cover
- JSON line validity and redaction guarantees.
- structlog key/values landing under ``fields`` and correlation keys at top level.
- Text format rendering.
- Queue drain/shutdown behavior.
"""

from __future__ import annotations

import json
import logging
import logging.handlers
import threading
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest
import structlog

from warden.observability.logging import (
    LoggingConfig,
    default_log_redactor,
    get_active_logging_handle,
    setup_logging,
    setup_structured_logging,
    shutdown_logging,
)

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture(autouse=True)
def _cleanup_logging() -> Iterator[None]:
    yield
    shutdown_logging()
    structlog.reset_defaults()


def _logger_name() -> str:
    return f"warden.tests.logging.{uuid4().hex}"


def _read_json_lines(path: Path) -> list[dict[str, object]]:
    lines = path.read_text(encoding="utf-8").splitlines()
    return [json.loads(line) for line in lines]


def test_json_logging_redacts_secrets_and_sets_session_id(tmp_path: Path) -> None:
    logger_name = _logger_name()
    handle = setup_structured_logging(
        LoggingConfig(
            run_id="ses-logging-redaction",
            base_log_dir=tmp_path,
            logger_name=logger_name,
        )
    )
    logger = logging.getLogger(logger_name)

    logger.info(
        "payload token=tok-FAKE and api_key=sk-FAKE123456789012345",
        extra={"nested": {"password": "hunter2", "safe": "ok"}},
    )

    shutdown_logging(handle)

    assert handle.log_path == tmp_path / "ses-logging-redaction" / "warden.jsonl"
    parsed = _read_json_lines(handle.log_path)
    assert len(parsed) == 1
    first = parsed[0]
    assert first["session_id"] == "ses-logging-redaction"
    assert first["level"] == "INFO"
    assert first["fields"] == {"nested": {"password": "***REDACTED***", "safe": "ok"}}

    line = handle.log_path.read_text(encoding="utf-8")
    assert "tok-FAKE" not in line
    assert "sk-FAKE" not in line
    assert "hunter2" not in line


def test_structlog_events_are_routed_into_json_lines(tmp_path: Path) -> None:
    logger_name = _logger_name()
    setup_logging(
        {"log_level": "INFO", "log_dir": str(tmp_path)},
        run_id="ses-structlog",
        logger_name=logger_name,
    )
    log = structlog.get_logger(f"{logger_name}.policy")

    with structlog.contextvars.bound_contextvars(eval_run_id="evr-123"):
        log.info("policy_decision", command="ls", allowed=True, auth_token="abc")
    log.debug("suppressed_below_level")

    handle = get_active_logging_handle()
    assert handle is not None
    shutdown_logging()

    parsed = _read_json_lines(tmp_path / "ses-structlog" / "warden.jsonl")
    assert len(parsed) == 1
    event = parsed[0]
    assert event["message"] == "policy_decision"
    assert event["logger"] == f"{logger_name}.policy"
    assert event["eval_run_id"] == "evr-123"
    assert event["session_id"] == "ses-structlog"
    assert event["fields"] == {
        "allowed": True,
        "auth_token": "***REDACTED***",
        "command": "ls",
    }


def test_redaction_can_be_disabled(tmp_path: Path) -> None:
    logger_name = _logger_name()
    logger = setup_logging(
        {"log_dir": str(tmp_path), "redact_secrets": False},
        run_id="ses-plain",
        logger_name=logger_name,
    )

    logger.info("hello", extra={"token": "t-123"})
    shutdown_logging()

    content = (tmp_path / "ses-plain" / "warden.jsonl").read_text(encoding="utf-8")
    assert "t-123" in content


def test_text_format_renders_key_value_pairs(tmp_path: Path) -> None:
    logger_name = _logger_name()
    logger = setup_logging(
        {"log_dir": str(tmp_path), "log_format": "text"},
        run_id="ses-text",
        logger_name=logger_name,
    )

    logger.warning("eval_store_corrupt", extra={"path": "/x/gate.json", "password": "p"})
    shutdown_logging()

    line = (tmp_path / "ses-text" / "warden.jsonl").read_text(encoding="utf-8").strip()
    assert f" WARNING {logger_name} eval_store_corrupt " in line
    assert line.endswith("password=***REDACTED*** path=/x/gate.json")


def test_multithreaded_logging_produces_valid_json_lines(tmp_path: Path) -> None:
    logger_name = _logger_name()
    handle = setup_structured_logging(
        LoggingConfig(
            run_id="ses-threaded",
            base_log_dir=tmp_path,
            logger_name=logger_name,
            queue_size=4096,
        )
    )
    logger = logging.getLogger(logger_name)

    total_threads = 8
    per_thread = 40

    def worker(thread_idx: int) -> None:
        for i in range(per_thread):
            logger.info(
                f"thread={thread_idx} index={i} token=tok-secret-{thread_idx}-{i}",
                extra={"api_key": f"sk-FAKE-{thread_idx}-{i}"},
            )

    threads = [threading.Thread(target=worker, args=(idx,)) for idx in range(total_threads)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    shutdown_logging(handle)

    lines = handle.log_path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == total_threads * per_thread
    for line in lines:
        parsed = json.loads(line)
        assert "message" in parsed
        assert "tok-secret" not in line
        assert "sk-FAKE" not in line


def test_queue_handler_non_blocking_and_shutdown_flushes(tmp_path: Path) -> None:
    logger_name = _logger_name()
    handle = setup_structured_logging(
        LoggingConfig(
            run_id="ses-flush",
            base_log_dir=tmp_path,
            logger_name=logger_name,
            queue_size=10_000,
        )
    )
    logger = logging.getLogger(logger_name)

    queue_handlers = [h for h in logger.handlers if isinstance(h, logging.handlers.QueueHandler)]
    assert queue_handlers, "expected queue-backed non-blocking logging"

    expected = 300
    for i in range(expected):
        logger.info("message %s", i)

    shutdown_logging(handle)
    shutdown_logging(handle)

    lines = handle.log_path.read_text(encoding="utf-8").splitlines()
    assert handle.dropped_records == 0
    assert handle.is_shutdown
    assert len(lines) == expected


def test_invalid_logging_config_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="run_id must not be empty"):
        setup_structured_logging(LoggingConfig(run_id="  ", base_log_dir=tmp_path))
    with pytest.raises(ValueError, match="path separators"):
        setup_structured_logging(
            LoggingConfig(run_id="ses-x", base_log_dir=tmp_path, log_filename="a/b.jsonl")
        )
    with pytest.raises(ValueError, match="unsupported logging level"):
        setup_structured_logging(LoggingConfig(run_id="ses-x", base_log_dir=tmp_path, level="LOUD"))


def test_default_redactor_scrubs_bearer_tokens_and_sensitive_keys() -> None:
    redacted = default_log_redactor(
        {"header": "sent Bearer abc.def", "client_secret": "s", "items": ["token=1"]}
    )

    assert redacted == {
        "header": "sent Bearer ***REDACTED***",
        "client_secret": "***REDACTED***",
        "items": ["token=***REDACTED***"],
    }
