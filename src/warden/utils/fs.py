"""
warden — filesystem utilities

File: src/warden/utils/fs.py

Purpose
- Provide minimal filesystem helpers for the JSON store: atomic whole-file
  rewrites for state records and line appends for the run log.

Functional requirements
- Atomic writes use temp files in the destination directory and replace in a single step.
- Appends write one complete line per call and never rewrite existing content.

Non-functional requirements
- Standard library only and cross-platform behavior where feasible.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from pathlib import Path

PathLike = str | os.PathLike[str]

__all__ = [
    "append_line",
    "atomic_write",
    "ensure_directory",
    "read_text_if_exists",
]


def ensure_directory(path: PathLike) -> Path:
    """Create ``path`` (and parents) if missing and return it as a ``Path``."""

    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def atomic_write(path: PathLike, data: bytes | str, *, encoding: str = "utf-8") -> None:
    """
    Atomically write ``data`` to ``path``.

    The write strategy is:
    1. create temp file in the same directory,
    2. write + flush + fsync file data,
    3. replace target via ``os.replace``.
    """

    target = Path(path)
    target_parent = ensure_directory(target.parent).resolve(strict=True)

    fd, temp_name = tempfile.mkstemp(
        prefix=f".{target.name}.",
        suffix=".tmp",
        dir=str(target_parent),
    )
    temp_path = Path(temp_name)

    try:
        if isinstance(data, bytes):
            with os.fdopen(fd, "wb") as file_handle:
                file_handle.write(data)
                file_handle.flush()
                os.fsync(file_handle.fileno())
        else:
            with os.fdopen(fd, "w", encoding=encoding) as file_handle:
                file_handle.write(data)
                file_handle.flush()
                os.fsync(file_handle.fileno())

        os.replace(temp_path, target)
        _fsync_directory(target_parent)
    except Exception:
        with contextlib.suppress(OSError):
            temp_path.unlink(missing_ok=True)
        raise


def append_line(path: PathLike, line: str, *, encoding: str = "utf-8") -> None:
    """Append ``line`` plus a trailing newline to ``path``, creating it if needed.

    A single ``write`` call per line; concurrent writers are not coordinated.
    """

    if "\n" in line:
        raise ValueError("appended line must not contain newlines")
    target = Path(path)
    ensure_directory(target.parent)
    with target.open("a", encoding=encoding) as handle:
        handle.write(line + "\n")
        handle.flush()


def read_text_if_exists(path: PathLike, *, encoding: str = "utf-8") -> str | None:
    """Return file text, or ``None`` when the file does not exist."""

    try:
        return Path(path).read_text(encoding=encoding)
    except FileNotFoundError:
        return None


def _fsync_directory(path: Path) -> None:
    """
    Best-effort directory fsync for metadata durability after ``os.replace``.

    Some platforms/filesystems do not support fsync on directories.
    """

    if os.name == "nt":
        return

    flags = os.O_RDONLY
    if hasattr(os, "O_DIRECTORY"):
        flags |= os.O_DIRECTORY

    try:
        dir_fd = os.open(path, flags)
    except OSError:
        return

    try:
        os.fsync(dir_fd)
    except OSError:
        return
    finally:
        os.close(dir_fd)
