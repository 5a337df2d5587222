"""Unit tests for eval run and session ID helpers."""

from __future__ import annotations

import pytest

from warden.domain import ids


def _zero_bytes(size: int) -> bytes:
    return b"\x00" * size


def _ff_bytes(size: int) -> bytes:
    return b"\xff" * size


def test_generated_eval_run_ids_are_unique_and_sortable_by_time() -> None:
    generated = [ids.generate_eval_run_id(timestamp_ms=ms) for ms in range(1_000, 3_000)]

    assert len(set(generated)) == len(generated)
    assert generated == sorted(generated)
    for run_id in generated[:10]:
        prefix, _, ulid = run_id.partition("-")
        assert prefix == ids.IdKind.EVAL_RUN.value
        assert len(ulid) == ids.ULID_LENGTH
        assert set(ulid) <= set(ids.CROCKFORD_ALPHABET)


def test_ulid_layout_at_the_extremes() -> None:
    lowest = ids.new_ulid(timestamp_ms=0, randbytes=_zero_bytes)
    highest = ids.new_ulid(timestamp_ms=ids.ULID_MAX_TIMESTAMP_MS, randbytes=_ff_bytes)

    assert lowest == "0" * ids.ULID_LENGTH
    assert highest == "7" + "Z" * (ids.ULID_LENGTH - 1)


def test_ulid_timestamp_prefix_orders_ids_regardless_of_entropy() -> None:
    earlier = ids.new_ulid(timestamp_ms=5_000, randbytes=_ff_bytes)
    later = ids.new_ulid(timestamp_ms=5_001, randbytes=_zero_bytes)

    assert earlier < later


def test_new_ulid_rejects_bad_inputs() -> None:
    with pytest.raises(ValueError, match="timestamp_ms out of range"):
        ids.new_ulid(timestamp_ms=-1)
    with pytest.raises(ValueError, match="timestamp_ms out of range"):
        ids.new_ulid(timestamp_ms=ids.ULID_MAX_TIMESTAMP_MS + 1)
    with pytest.raises(ValueError, match="exactly 10 bytes"):
        ids.new_ulid(timestamp_ms=1, randbytes=lambda size: b"\x00" * (size - 1))


def test_session_ids_use_the_session_prefix() -> None:
    session_id = ids.generate_session_id(timestamp_ms=42, randbytes=_zero_bytes)

    assert session_id == "ses-" + ids.new_ulid(timestamp_ms=42, randbytes=_zero_bytes)
    with pytest.raises(ValueError):
        ids.new_record_id("run")  # type: ignore[arg-type]
