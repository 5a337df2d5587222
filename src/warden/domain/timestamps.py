"""UTC timestamp helpers for persisted records."""

from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


def coerce_datetime_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def format_timestamp(value: datetime | None = None) -> str:
    """Render ``value`` (default: now) as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""

    moment = utc_now() if value is None else coerce_datetime_utc(value)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(raw: object) -> datetime | None:
    """Parse an ISO-8601 timestamp; ``None`` for anything unparseable."""

    if isinstance(raw, datetime):
        return coerce_datetime_utc(raw)
    if not isinstance(raw, str) or not raw.strip():
        return None
    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return coerce_datetime_utc(parsed)


__all__ = ["coerce_datetime_utc", "format_timestamp", "parse_timestamp", "utc_now"]
