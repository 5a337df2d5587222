"""Utility exports for filesystem helpers."""

from warden.utils.fs import append_line, atomic_write, ensure_directory, read_text_if_exists

__all__ = [
    "append_line",
    "atomic_write",
    "ensure_directory",
    "read_text_if_exists",
]
