"""Shared domain primitives (record identifiers and timestamps)."""

from warden.domain.ids import IdKind, generate_eval_run_id, generate_session_id
from warden.domain.timestamps import coerce_datetime_utc, format_timestamp, parse_timestamp, utc_now

__all__ = [
    "IdKind",
    "coerce_datetime_utc",
    "format_timestamp",
    "generate_eval_run_id",
    "generate_session_id",
    "parse_timestamp",
    "utc_now",
]
