"""Filesystem records shared by the store and its backends."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class FileStatus:
    """Metadata for one filesystem entry.

    Attributes:
        path: Fully qualified path, rooted at the store id
            (e.g. ``hdfs://namenode:9000/6f/blob``).
        length: Size in bytes. Zero for directories.
        is_directory: True when the entry is a directory.
    """

    path: str
    length: int = 0
    is_directory: bool = False

    @property
    def name(self) -> str:
        """Final path segment."""
        return self.path.rstrip("/").rsplit("/", 1)[-1]
