"""Stream helpers."""

from __future__ import annotations

from typing import BinaryIO

DEFAULT_BUFFER_SIZE = 64 * 1024  # 64KB


def copy_stream(
    src: BinaryIO,
    dest: BinaryIO,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
) -> int:
    """Copy *src* into *dest* until EOF.  Returns the number of bytes copied.

    Neither stream is closed.
    """
    copied = 0
    while True:
        chunk = src.read(buffer_size)
        if not chunk:
            break
        dest.write(chunk)
        copied += len(chunk)
    return copied
