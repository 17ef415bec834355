"""Blob — one addressable object in the store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, BinaryIO, TypeVar

from .exceptions import DuplicateBlobError, MissingBlobError, StorageError
from .fs.utils import copy_stream
from .ids import parent_paths, parse_id, to_internal

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from .connection import BlobStoreConnection
    from .fs.protocol import FileSystemClient
    from .ids import BlobId

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Blob:
    """Handle for a single blob, bound to the connection that created it.

    The id and internal path are fixed at construction.  The file they name
    may be created, overwritten, moved away, or deleted independently of
    the handle.  Every operation requires an open connection.
    """

    def __init__(self, blob_id: str | BlobId, connection: BlobStoreConnection) -> None:
        store = connection.store
        self._id = parse_id(blob_id, store.id_scheme)
        self._conn = connection
        self.path = to_internal(self._id, store.store_id, store.id_scheme)

    def __repr__(self) -> str:
        return f"Blob({self.id!r}, path={self.path!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Blob):
            return NotImplemented
        return self.path == other.path

    def __hash__(self) -> int:
        return hash(self.path)

    @property
    def id(self) -> str:
        return str(self._id)

    @property
    def canonical_id(self) -> str:
        return self.id

    @property
    def connection(self) -> BlobStoreConnection:
        return self._conn

    def _fs_call(self, action: str, func: Callable[[FileSystemClient], T]) -> T:
        self._conn.check_open()
        return self._conn.with_file_system(f"{action} {self.id}", func)

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def exists(self) -> bool:
        return self._fs_call("exists", lambda fs: fs.exists(self.path))

    def get_size(self) -> int:
        """Size in bytes.  Raises MissingBlobError if the blob doesn't exist."""
        logger.debug("checking size of %s", self.id)
        if not self.exists():
            raise MissingBlobError(self.id)
        return self._fs_call("stat", lambda fs: fs.stat(self.path)).length

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    def open_input_stream(self) -> BinaryIO:
        if not self.exists():
            raise MissingBlobError(self.id)
        return self._fs_call("open", lambda fs: fs.open(self.path))

    def open_output_stream(
        self,
        estimated_size: int | None = None,
        overwrite: bool = False,
    ) -> BinaryIO:
        """Open a write stream, creating the blob if needed.

        An existing blob is truncated when *overwrite* is True and rejected
        with DuplicateBlobError otherwise.  *estimated_size* is a hint only.
        """
        if self.exists():
            if not overwrite:
                raise DuplicateBlobError(self.id)
            return self._fs_call("create", lambda fs: fs.create(self.path, True))
        return self._fs_call("create", lambda fs: fs.create(self.path, False))

    def delete(self) -> bool:
        """Delete the blob.  Returns False (no error) if there was nothing to delete."""
        return self._fs_call("delete", lambda fs: fs.delete(self.path, False))

    # ------------------------------------------------------------------
    # Move
    # ------------------------------------------------------------------

    def move_to(
        self,
        target_id: str | BlobId | None = None,
        hints: Mapping[str, str] | None = None,
    ) -> Blob:
        """Move this blob to *target_id* (a fresh id if None) and return the new blob.

        Missing parent directories of the target are created first, then an
        atomic rename is attempted.  If rename is unavailable or refused,
        the content is copied and the source deleted only once the copy is
        complete.  Not transactional: directories (and, on a failed copy, a
        partial target) may be left behind.

        Raises:
            UnsupportedIdError: If *target_id* is malformed.
            MissingBlobError: If this blob does not exist.
            DuplicateBlobError: If the target already exists.
            StorageError: If both rename and copy fail.
        """
        target = self._conn.get_blob(target_id, hints)
        logger.debug("moving blob %s to %s", self.id, target.id)

        if not self.exists():
            raise MissingBlobError(self.id)
        if target.exists():
            raise DuplicateBlobError(target.id)

        self._make_parents(target)
        if not self._rename_to(target):
            self._copy_to(target)
        return target

    def _make_parents(self, target: Blob) -> None:
        for directory in parent_paths(target.path, self._conn.store.store_id):
            if self._fs_call("exists", lambda fs, d=directory: fs.exists(d)):
                continue
            logger.debug("creating directory %s", directory)
            self._fs_call("mkdirs", lambda fs, d=directory: fs.mkdirs(d))

    def _rename_to(self, target: Blob) -> bool:
        try:
            renamed = self._fs_call("rename", lambda fs: fs.rename(self.path, target.path))
        except (NotImplementedError, StorageError) as e:
            logger.debug(
                "rename %s -> %s unavailable (%s); copying instead",
                self.path,
                target.path,
                e,
            )
            return False
        if not renamed:
            logger.debug("rename %s -> %s refused; copying instead", self.path, target.path)
        return bool(renamed)

    def _copy_to(self, target: Blob) -> None:
        size = self.get_size()
        try:
            with self.open_input_stream() as src, target.open_output_stream(size) as dest:
                copied = copy_stream(src, dest, self._conn.store.config.buffer_size)
        except OSError as e:
            raise StorageError(f"Failed to copy {self.id} to {target.id}: {e}") from e

        written = target.get_size()
        if copied != size or written != size:
            raise StorageError(
                f"Incomplete copy of {self.id} to {target.id}: "
                f"expected {size} bytes, copied {copied}, target has {written}"
            )

        if not self.delete():
            logger.warning("Source %s was already gone after copying to %s", self.id, target.id)
