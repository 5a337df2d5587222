"""Record identifiers of the form ``<kind>-<ULID>``.

Eval runs use ``evr-`` and CLI sessions ``ses-``. The ULID part packs a 48-bit
millisecond timestamp followed by 80 random bits into 26 Crockford Base32
characters, so ids of one kind sort lexically in creation order.
"""

from __future__ import annotations

import secrets
import time
from collections.abc import Callable
from enum import Enum
from typing import Final

CROCKFORD_ALPHABET: Final[str] = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
ULID_LENGTH: Final[int] = 26
ULID_MAX_TIMESTAMP_MS: Final[int] = (1 << 48) - 1
_RANDOM_BYTES: Final[int] = 10
_RANDOM_BITS: Final[int] = _RANDOM_BYTES * 8

RandBytes = Callable[[int], bytes]


class IdKind(str, Enum):
    EVAL_RUN = "evr"
    SESSION = "ses"


def new_ulid(*, timestamp_ms: int | None = None, randbytes: RandBytes | None = None) -> str:
    """Return a new ULID; ``timestamp_ms`` and ``randbytes`` are injectable for tests."""
    stamp = time.time_ns() // 1_000_000 if timestamp_ms is None else timestamp_ms
    if not isinstance(stamp, int) or not 0 <= stamp <= ULID_MAX_TIMESTAMP_MS:
        raise ValueError(f"timestamp_ms out of range 0..{ULID_MAX_TIMESTAMP_MS}: {stamp!r}")

    entropy = bytes((randbytes or secrets.token_bytes)(_RANDOM_BYTES))
    if len(entropy) != _RANDOM_BYTES:
        raise ValueError(f"randbytes must return exactly {_RANDOM_BYTES} bytes, got {len(entropy)}")

    value = (stamp << _RANDOM_BITS) | int.from_bytes(entropy, "big")
    digits: list[str] = []
    for _ in range(ULID_LENGTH):
        value, digit = divmod(value, 32)
        digits.append(CROCKFORD_ALPHABET[digit])
    return "".join(reversed(digits))


def new_record_id(
    kind: IdKind, *, timestamp_ms: int | None = None, randbytes: RandBytes | None = None
) -> str:
    return f"{IdKind(kind).value}-{new_ulid(timestamp_ms=timestamp_ms, randbytes=randbytes)}"


def generate_eval_run_id(
    *, timestamp_ms: int | None = None, randbytes: RandBytes | None = None
) -> str:
    return new_record_id(IdKind.EVAL_RUN, timestamp_ms=timestamp_ms, randbytes=randbytes)


def generate_session_id(
    *, timestamp_ms: int | None = None, randbytes: RandBytes | None = None
) -> str:
    return new_record_id(IdKind.SESSION, timestamp_ms=timestamp_ms, randbytes=randbytes)


__all__ = [
    "CROCKFORD_ALPHABET",
    "ULID_LENGTH",
    "ULID_MAX_TIMESTAMP_MS",
    "IdKind",
    "generate_eval_run_id",
    "generate_session_id",
    "new_record_id",
    "new_ulid",
]
