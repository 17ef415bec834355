"""BlobStoreConnection — one filesystem session scoping blob operations."""

from __future__ import annotations

import logging
import threading
import uuid
from contextlib import closing
from typing import TYPE_CHECKING, BinaryIO, TypeVar

from .blob import Blob
from .exceptions import (
    BlobStoreError,
    CapabilityNotSupportedError,
    ConnectionClosedError,
    StorageError,
)
from .fs.utils import copy_stream
from .ids import is_valid_directory, prefix_to_internal, to_external
from .iterator import BlobIdIterator

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from .fs.protocol import FileSystemClient
    from .ids import BlobId
    from .store import BlobStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Errors from the filesystem that warrant one reconnect-and-retry.
TRANSIENT_ERRORS = (ConnectionError, TimeoutError)


class BlobStoreConnection:
    """A session against one blob store.

    The filesystem handle is opened lazily on first use and released by
    :meth:`close`.  Blob operations on a closed connection raise
    :class:`ConnectionClosedError`; :meth:`get_file_system` is the one
    exception and transparently reopens the handle.

    Handle replacement is guarded by a lock.  Everything else is plain
    mutable state: share a connection between threads only with external
    synchronization.

    Usage::

        with store.open_connection() as conn:
            blob = conn.create_blob(io.BytesIO(b"hello"))
            blob.move_to("blob:6f/hello")
    """

    def __init__(self, store: BlobStore) -> None:
        self._store = store
        self._fs: FileSystemClient | None = None
        self._closed = False
        self._lock = threading.Lock()

    def __enter__(self) -> BlobStoreConnection:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"BlobStoreConnection({self._store.store_id!r}, {state})"

    @property
    def store(self) -> BlobStore:
        return self._store

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Mark the connection closed and release the filesystem handle.

        A failure to release the handle is logged; the connection is
        closed regardless.
        """
        with self._lock:
            self._closed = True
            fs, self._fs = self._fs, None
        if fs is not None:
            self._release(fs)

    def check_open(self) -> None:
        """Raise ConnectionClosedError if the connection was closed."""
        if self._closed:
            raise ConnectionClosedError(
                f"Connection to {self._store.store_id} is closed"
            )

    def get_file_system(self) -> FileSystemClient:
        """Return the filesystem handle, connecting (or reconnecting) on demand.

        Reopening clears the closed flag.

        Raises:
            StoreConnectionError: If the filesystem cannot be connected.
        """
        with self._lock:
            if self._fs is None or self._closed:
                if self._closed:
                    logger.debug("reopening closed connection to %s", self._store.store_id)
                self._fs = self._store.connect_file_system()
                self._closed = False
            return self._fs

    def reconnect(self) -> FileSystemClient:
        """Drop the current handle and open a fresh one."""
        with self._lock:
            old, self._fs = self._fs, None
            if old is not None:
                self._release(old)
            self._fs = self._store.connect_file_system()
            self._closed = False
            return self._fs

    def with_file_system(self, action: str, func: Callable[[FileSystemClient], T]) -> T:
        """Run *func* against the filesystem handle.

        A transient failure (``ConnectionError``, ``TimeoutError``) is
        retried once on a fresh handle.  Any other ``OSError``, or a second
        failure, surfaces as :class:`StorageError`.
        """
        fs = self.get_file_system()
        try:
            return func(fs)
        except TRANSIENT_ERRORS as e:
            logger.debug("%s failed (%s); reconnecting", action, e)
        except OSError as e:
            raise StorageError(f"{action} failed: {e}") from e

        fs = self.reconnect()
        try:
            return func(fs)
        except OSError as e:
            raise StorageError(f"{action} failed after reconnect: {e}") from e

    @staticmethod
    def _release(fs: FileSystemClient) -> None:
        try:
            fs.close()
        except Exception:
            logger.warning("Failed to release filesystem handle %r", fs, exc_info=True)

    # ------------------------------------------------------------------
    # Blobs
    # ------------------------------------------------------------------

    def get_blob(
        self,
        blob_id: str | BlobId | None = None,
        hints: Mapping[str, str] | None = None,
    ) -> Blob:
        """Return a handle for *blob_id*, or for a fresh random id if None.

        The blob itself is not created.  *hints* are accepted and ignored.

        Raises:
            UnsupportedIdError: If *blob_id* is malformed or uses another scheme.
        """
        self.check_open()
        if blob_id is None:
            blob_id = f"{self._store.id_scheme}:{uuid.uuid4()}"
            logger.debug("creating new blob id %s", blob_id)
        else:
            logger.debug("fetching blob %s", blob_id)
        return Blob(blob_id, self)

    def create_blob(
        self,
        source: BinaryIO,
        estimated_size: int | None = None,
        hints: Mapping[str, str] | None = None,
    ) -> Blob:
        """Store the content of *source* under a fresh id and return its blob.

        *source* is read to EOF and closed.  If copying fails the partially
        written blob is removed (best-effort) and the error propagates.
        """
        self.check_open()
        blob = self.get_blob(None, hints)
        logger.debug("creating blob %s", blob.id)

        with closing(source):
            out = blob.open_output_stream(estimated_size, overwrite=False)
            try:
                with out:
                    copy_stream(source, out, self._store.config.buffer_size)
            except Exception as e:
                self._discard_partial(blob)
                if isinstance(e, OSError):
                    raise StorageError(f"Failed to write blob {blob.id}: {e}") from e
                raise
        return blob

    def _discard_partial(self, blob: Blob) -> None:
        try:
            blob.delete()
        except BlobStoreError:
            logger.warning("Failed to clean up partial blob %s", blob.id, exc_info=True)

    def list_blob_ids(self, prefix: str | None = None) -> BlobIdIterator:
        """Lazily iterate the ids of all blobs whose name starts with *prefix*.

        An empty or None prefix lists every blob.  A prefix containing ``/``
        narrows the scan to that directory's subtree and matches the final
        segment against the rest, so ``"6f/te"`` scans ``6f/`` for names
        starting with ``"te"``.  If that directory part could not hold a blob
        (``..`` segments, an absolute path) or is not a directory in the
        store, nothing is listed.

        The result is single-pass; call again to restart.  Advancing it
        after the connection is closed raises ConnectionClosedError.
        """
        self.check_open()
        store_id = self._store.store_id
        scan_root: str | None = store_id
        name_prefix = prefix or ""

        if "/" in name_prefix:
            directory, _, name_prefix = name_prefix.rpartition("/")
            scan_root = None
            if is_valid_directory(directory):
                candidate = prefix_to_internal(directory, store_id)
                if self.with_file_system(
                    f"stat {candidate}", lambda fs: _is_directory(fs, candidate)
                ):
                    scan_root = candidate
            else:
                logger.debug("prefix directory %r cannot hold blobs", directory)

        return BlobIdIterator(
            self.get_file_system(),
            scan_root,
            name_prefix,
            to_id=self._to_external,
            check_open=self.check_open,
        )

    def _to_external(self, internal_path: str) -> str:
        return to_external(internal_path, self._store.store_id, self._store.id_scheme)

    def sync(self) -> None:
        raise CapabilityNotSupportedError("sync is not supported")


def _is_directory(fs: FileSystemClient, path: str) -> bool:
    try:
        return fs.stat(path).is_directory
    except FileNotFoundError:
        return False
