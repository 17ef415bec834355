"""FsspecFileSystem — FileSystemClient on top of any fsspec filesystem."""

from __future__ import annotations

import errno
import logging
import posixpath
from typing import TYPE_CHECKING, Any, BinaryIO

from fsspec.core import url_to_fs

from .types import FileStatus

if TYPE_CHECKING:
    from fsspec import AbstractFileSystem

logger = logging.getLogger(__name__)


class FsspecFileSystem:
    """Hadoop-style filesystem client backed by fsspec.

    Implements the FileSystemClient protocol used by BlobStoreConnection.
    The store id selects the fsspec implementation: ``hdfs://`` (pyarrow),
    ``file://``, ``memory://``, or anything else fsspec knows about.

    All paths handed in and out are fully qualified with the store id.
    _to_fs_path() rejects paths outside the store root.
    """

    def __init__(self, fs: AbstractFileSystem, store_id: str, root_path: str) -> None:
        self.fs = fs
        self.store_id = store_id.rstrip("/") + "/"
        self.root_path = root_path.rstrip("/")
        self._closed = False

    @classmethod
    def connect(cls, store_id: str, **storage_options: Any) -> FsspecFileSystem:
        """Open a fresh filesystem handle for *store_id*.

        fsspec caches filesystem instances by default; the cache is skipped
        so every connection owns its own handle.
        """
        fs, root_path = url_to_fs(store_id, skip_instance_cache=True, **storage_options)
        client = cls(fs, store_id, root_path)
        fs.makedirs(client._to_fs_path(client.store_id), exist_ok=True)
        logger.debug("connected to %s (%s)", store_id, type(fs).__name__)
        return client

    @property
    def closed(self) -> bool:
        return self._closed

    # =========================================================================
    # Path Resolution
    # =========================================================================

    def _to_fs_path(self, path: str) -> str:
        """Resolve a store-qualified path to the fsspec path."""
        if path.rstrip("/") == self.store_id.rstrip("/"):
            relative = ""
        elif path.startswith(self.store_id):
            relative = path[len(self.store_id):]
        else:
            raise PermissionError(f"Path is outside store {self.store_id}: {path}")
        root = self.root_path or "/"
        if not relative:
            return root
        resolved = posixpath.normpath(posixpath.join(root, relative))
        if resolved != root and not resolved.startswith(root.rstrip("/") + "/"):
            raise PermissionError(f"Path is outside store {self.store_id}: {path}")
        return resolved

    def _to_store_path(self, fs_path: str) -> str:
        """Convert an fsspec path back to a store-qualified path."""
        fs_path = self.fs._strip_protocol(fs_path).rstrip("/")
        relative = fs_path[len(self.root_path):].lstrip("/")
        return self.store_id + relative

    def _status(self, info: dict[str, Any]) -> FileStatus:
        is_dir = info.get("type") == "directory"
        return FileStatus(
            path=self._to_store_path(info["name"]),
            length=0 if is_dir else int(info.get("size") or 0),
            is_directory=is_dir,
        )

    # =========================================================================
    # Query
    # =========================================================================

    def exists(self, path: str) -> bool:
        return self.fs.exists(self._to_fs_path(path))

    def stat(self, path: str) -> FileStatus:
        """Get file/directory metadata.  Raises FileNotFoundError."""
        return self._status(self.fs.info(self._to_fs_path(path)))

    def list_status(self, path: str) -> list[FileStatus]:
        """List immediate children, keeping the filesystem's order."""
        resolved = self._to_fs_path(path)
        if not self.fs.exists(resolved):
            raise FileNotFoundError(errno.ENOENT, "Directory not found", path)
        if not self.fs.isdir(resolved):
            raise NotADirectoryError(errno.ENOTDIR, "Not a directory", path)
        return [self._status(info) for info in self.fs.ls(resolved, detail=True)]

    # =========================================================================
    # Streams
    # =========================================================================

    def open(self, path: str) -> BinaryIO:
        return self.fs.open(self._to_fs_path(path), "rb")

    def create(self, path: str, overwrite: bool = False) -> BinaryIO:
        """Open a write stream, creating missing parents like HDFS does."""
        resolved = self._to_fs_path(path)
        if not overwrite and self.fs.exists(resolved):
            raise FileExistsError(errno.EEXIST, "File exists", path)
        self.fs.makedirs(posixpath.dirname(resolved), exist_ok=True)
        return self.fs.open(resolved, "wb")

    # =========================================================================
    # Mutation
    # =========================================================================

    def delete(self, path: str, recursive: bool = False) -> bool:
        """Delete a file or directory.  Returns False if nothing was there."""
        resolved = self._to_fs_path(path)
        if not self.fs.exists(resolved):
            return False
        if self.fs.isdir(resolved) and not recursive:
            if self.fs.ls(resolved, detail=False):
                raise OSError(errno.ENOTEMPTY, "Directory not empty", path)
            self.fs.rmdir(resolved)
            return True
        self.fs.rm(resolved, recursive=recursive)
        return True

    def rename(self, src: str, dst: str) -> bool:
        """Rename *src* to *dst*.

        Returns False when the source is missing, the target exists, or the
        target's parent directory does not exist.
        """
        src_resolved = self._to_fs_path(src)
        dst_resolved = self._to_fs_path(dst)
        if not self.fs.exists(src_resolved) or self.fs.exists(dst_resolved):
            return False
        if not self.fs.isdir(posixpath.dirname(dst_resolved)):
            return False
        self.fs.mv(src_resolved, dst_resolved)
        return True

    def mkdirs(self, path: str) -> bool:
        self.fs.makedirs(self._to_fs_path(path), exist_ok=True)
        return True

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Release the handle.  fsspec filesystems hold no explicit session."""
        self._closed = True
        logger.debug("closed filesystem handle for %s", self.store_id)
