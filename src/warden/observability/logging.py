"""
warden — session logging.

File: src/warden/observability/logging.py

Purpose
- One log file per CLI session: ``<log_dir>/<session_id>/warden.jsonl``.
- Records pass through a bounded queue to a background listener so policy checks
  and eval runs never wait on disk; a full queue drops and counts records.
- ``structlog`` events share the pipeline. Their key/values land under ``fields``
  and correlation ids (``session_id``, ``eval_run_id``, ``case_id``, ``run_id``)
  are lifted to the top level of each JSON line.
- Secret-looking keys and inline credentials are scrubbed unless
  ``redact_secrets = false``.
"""

from __future__ import annotations

import atexit
import functools
import json
import logging
import logging.handlers
import math
import queue
import re
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Final, Literal

import structlog

from warden.domain.timestamps import format_timestamp

JSONValue = str | int | float | bool | None | list["JSONValue"] | dict[str, "JSONValue"]
LogRedactor = Callable[[JSONValue], JSONValue]

REDACTED: Final[str] = "***REDACTED***"
LOG_FILENAME: Final[str] = "warden.jsonl"
ROOT_LOGGER_NAME: Final[str] = "warden"

_CORRELATION_KEYS: Final[tuple[str, ...]] = ("run_id", "session_id", "eval_run_id", "case_id")
_SECRET_KEY_MARKERS: Final[tuple[str, ...]] = (
    "secret",
    "token",
    "password",
    "passphrase",
    "api_key",
    "apikey",
    "authorization",
    "credential",
    "cookie",
    "private_key",
)
_INLINE_ASSIGNMENT: Final[re.Pattern[str]] = re.compile(
    r"(?i)\b(api[_-]?key|token|password|secret|client_secret|authorization)\b\s*([:=])\s*([^\s,;]+)"
)
_INLINE_BEARER: Final[re.Pattern[str]] = re.compile(r"(?i)\bbearer\s+[A-Za-z0-9._~+/-]+=*")
_INLINE_PROVIDER_KEY: Final[re.Pattern[str]] = re.compile(r"\bsk-[A-Za-z0-9_-]{12,}\b")

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RECORD_ATTRS: Final[frozenset[str]] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}

_active_lock = threading.Lock()
_active_handle: StructuredLoggingHandle | None = None


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    run_id: str
    base_log_dir: Path | str = Path("logs")
    logger_name: str = ROOT_LOGGER_NAME
    level: int | str = "INFO"
    log_format: Literal["json", "text"] = "json"
    queue_size: int = 4096
    log_filename: str = LOG_FILENAME
    log_to_stdout: bool = False
    redactor: LogRedactor | None = None


class _DroppingQueueHandler(logging.handlers.QueueHandler):
    """Enqueue without blocking; when the queue is full the record is counted and dropped."""

    def __init__(self, log_queue: queue.Queue[logging.LogRecord]) -> None:
        super().__init__(log_queue)
        self.dropped = 0
        self._dropped_lock = threading.Lock()

    def enqueue(self, record: logging.LogRecord) -> None:
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            with self._dropped_lock:
                self.dropped += 1


class _LineFormatter(logging.Formatter):
    """One record per line: a JSON object, or ``timestamp LEVEL logger message k=v ...``."""

    def __init__(self, *, redactor: LogRedactor, session_id: str, as_text: bool) -> None:
        super().__init__()
        self._redactor = redactor
        self._session_id = session_id
        self._as_text = as_text

    def format(self, record: logging.LogRecord) -> str:
        stamp = format_timestamp(datetime.fromtimestamp(record.created, tz=UTC))
        message = _as_text(self._redactor(record.getMessage()))
        redacted = self._redactor(_jsonable(_extra_fields(record)))
        fields = redacted if isinstance(redacted, dict) else {}
        error = self.formatException(record.exc_info) if record.exc_info else None

        if self._as_text:
            parts = [stamp, record.levelname, record.name, message]
            parts.extend(f"{key}={_as_text(fields[key])}" for key in sorted(fields))
            line = " ".join(parts)
            return f"{line}\n{error}" if error else line

        event: dict[str, JSONValue] = {
            "timestamp": stamp,
            "level": record.levelname,
            "logger": record.name,
            "message": message,
            "session_id": self._session_id,
        }
        for key in _CORRELATION_KEYS:
            value = getattr(record, key, None)
            if isinstance(value, str) and value.strip():
                event[key] = value.strip()
        if fields:
            event["fields"] = fields
        if error:
            event["exception"] = _as_text(self._redactor(error))
        return json.dumps(event, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


@dataclass(eq=False)
class StructuredLoggingHandle:
    """A live logging session. ``shutdown()`` drains the queue and closes every sink."""

    logger: logging.Logger
    session_id: str
    log_path: Path
    queue_handler: _DroppingQueueHandler
    listener: logging.handlers.QueueListener
    sinks: tuple[logging.Handler, ...]
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _closed: bool = False

    @property
    def dropped_records(self) -> int:
        return self.queue_handler.dropped

    @property
    def is_shutdown(self) -> bool:
        return self._closed

    def flush(self, *, timeout_seconds: float = 2.0) -> None:
        deadline = time.monotonic() + max(timeout_seconds, 0.0)
        pending = self.queue_handler.queue
        while getattr(pending, "unfinished_tasks", 0) and time.monotonic() < deadline:
            time.sleep(0.01)
        for sink in self.sinks:
            sink.flush()

    def shutdown(self, *, timeout_seconds: float = 2.0) -> None:
        with self._lock:
            if self._closed:
                return
            self.flush(timeout_seconds=timeout_seconds)
            self.listener.stop()
            self.logger.removeHandler(self.queue_handler)
            self.queue_handler.close()
            for sink in self.sinks:
                sink.flush()
                sink.close()
            self._closed = True


def setup_logging(
    observability_config: Mapping[str, object] | None = None,
    *,
    run_id: str,
    log_dir: Path | str | None = None,
    logger_name: str = ROOT_LOGGER_NAME,
) -> logging.Logger:
    """Start a logging session from an ``[observability]`` config section.

    ``run_id`` names the session directory and is stamped on every JSON line as
    ``session_id``. ``log_dir`` overrides the section's ``log_dir``.
    """

    section = dict(observability_config or {})
    level = section.get("log_level", "INFO")
    base_dir = log_dir if log_dir is not None else section.get("log_dir", "logs")
    handle = setup_structured_logging(
        LoggingConfig(
            run_id=run_id,
            base_log_dir=base_dir if isinstance(base_dir, (Path, str)) else "logs",
            logger_name=logger_name,
            level=level if isinstance(level, (int, str)) else "INFO",
            log_format="text" if section.get("log_format") == "text" else "json",
            log_to_stdout=bool(section.get("log_to_stdout", False)),
            redactor=None if section.get("redact_secrets", True) else _keep_secrets,
        )
    )
    return handle.logger


def configure_structlog() -> None:
    """Route structlog through stdlib logging; event key/values become record ``extra``."""

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.render_to_log_kwargs,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def setup_structured_logging(config: LoggingConfig) -> StructuredLoggingHandle:
    """Replace any active session with a new queue-backed one described by ``config``."""

    session_id = _required_text(config.run_id, "run_id")
    logger_name = _required_text(config.logger_name, "logger_name")
    filename = _required_text(config.log_filename, "log_filename")
    if Path(filename).name != filename:
        raise ValueError("log_filename must not include path separators")
    if config.queue_size <= 0:
        raise ValueError("queue_size must be > 0")
    level = _level_number(config.level)

    shutdown_logging()

    session_dir = Path(config.base_log_dir) / session_id
    session_dir.mkdir(parents=True, exist_ok=True)
    log_path = session_dir / filename

    formatter = _LineFormatter(
        redactor=config.redactor or default_log_redactor,
        session_id=session_id,
        as_text=config.log_format == "text",
    )
    sinks: list[logging.Handler] = [logging.FileHandler(log_path, encoding="utf-8")]
    if config.log_to_stdout:
        # stdout carries command output; mirrored log lines go to stderr.
        sinks.append(logging.StreamHandler())
    for sink in sinks:
        sink.setLevel(level)
        sink.setFormatter(formatter)

    logger = logging.getLogger(logger_name)
    logger.setLevel(level)
    logger.propagate = False
    for stale in list(logger.handlers):
        logger.removeHandler(stale)
        stale.close()

    log_queue: queue.Queue[logging.LogRecord] = queue.Queue(maxsize=config.queue_size)
    queue_handler = _DroppingQueueHandler(log_queue)
    queue_handler.setLevel(level)
    listener = logging.handlers.QueueListener(log_queue, *sinks, respect_handler_level=True)
    listener.start()
    logger.addHandler(queue_handler)
    configure_structlog()

    handle = StructuredLoggingHandle(
        logger=logger,
        session_id=session_id,
        log_path=log_path,
        queue_handler=queue_handler,
        listener=listener,
        sinks=tuple(sinks),
    )
    global _active_handle
    with _active_lock:
        _active_handle = handle
    _register_atexit_shutdown()
    return handle


def shutdown_logging(
    handle: StructuredLoggingHandle | None = None,
    *,
    timeout_seconds: float = 2.0,
) -> None:
    """Shut down ``handle`` (default: the active session). Safe to call repeatedly."""

    global _active_handle
    target = handle if handle is not None else get_active_logging_handle()
    if target is None:
        return
    target.shutdown(timeout_seconds=timeout_seconds)
    with _active_lock:
        if _active_handle is target:
            _active_handle = None


def get_active_logging_handle() -> StructuredLoggingHandle | None:
    with _active_lock:
        return _active_handle


def default_log_redactor(value: JSONValue) -> JSONValue:
    """Mask values under secret-looking keys and inline ``token=``/``Bearer``/``sk-`` secrets."""

    if isinstance(value, str):
        return _scrub(value)
    if isinstance(value, list):
        return [default_log_redactor(item) for item in value]
    if isinstance(value, dict):
        return {
            key: REDACTED if _is_secret_key(key) else default_log_redactor(item)
            for key, item in value.items()
        }
    return value


@functools.cache
def _register_atexit_shutdown() -> None:
    atexit.register(shutdown_logging)


def _keep_secrets(value: JSONValue) -> JSONValue:
    return value


def _required_text(value: str, name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{name} must be a string, got {type(value).__name__}")
    stripped = value.strip()
    if not stripped:
        raise ValueError(f"{name} must not be empty")
    return stripped


def _level_number(level: int | str) -> int:
    if isinstance(level, int):
        return level
    number = logging.getLevelName(str(level).strip().upper())
    if not isinstance(number, int):
        raise ValueError(f"unsupported logging level {level!r}")
    return number


def _extra_fields(record: logging.LogRecord) -> dict[str, object]:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RECORD_ATTRS and key not in _CORRELATION_KEYS and not key.startswith("_")
    }


def _jsonable(value: object) -> JSONValue:
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else str(value)
    if isinstance(value, Enum):
        return _jsonable(value.value)
    if isinstance(value, Mapping):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if isinstance(value, (set, frozenset)):
        return sorted((_jsonable(item) for item in value), key=repr)
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, Path):
        return value.as_posix()
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return repr(value)


def _as_text(value: JSONValue) -> str:
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _is_secret_key(key: str) -> bool:
    lowered = key.lower()
    return any(marker in lowered for marker in _SECRET_KEY_MARKERS)


def _scrub(text: str) -> str:
    text = _INLINE_ASSIGNMENT.sub(lambda match: f"{match.group(1)}{match.group(2)}{REDACTED}", text)
    text = _INLINE_BEARER.sub(f"Bearer {REDACTED}", text)
    return _INLINE_PROVIDER_KEY.sub(REDACTED, text)


__all__ = [
    "LOG_FILENAME",
    "REDACTED",
    "JSONValue",
    "LogRedactor",
    "LoggingConfig",
    "StructuredLoggingHandle",
    "configure_structlog",
    "default_log_redactor",
    "get_active_logging_handle",
    "setup_logging",
    "setup_structured_logging",
    "shutdown_logging",
]
