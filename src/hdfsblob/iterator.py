"""BlobIdIterator — lazy breadth-first walk over a directory tree."""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING, Any

from .exceptions import CapabilityNotSupportedError, StorageError, UnsupportedIdError
from .ids import unescape_name

if TYPE_CHECKING:
    from collections.abc import Callable

    from .fs.protocol import FileSystemClient

logger = logging.getLogger(__name__)


class BlobIdIterator:
    """Single-pass iterator over the files below a directory.

    Directories are visited breadth-first, one listing call per refill.
    Within a directory the filesystem's order is kept; no sorting is done.
    Only files whose (unescaped) name starts with *prefix* are yielded.

    Each yielded value is the file's internal path passed through *to_id*
    (identity by default).  Files that *to_id* rejects with
    :class:`UnsupportedIdError` are skipped.  A listing failure raises
    :class:`StorageError` and is not retried.  *check_open* runs before
    every listing, so the owning connection can refuse further work once
    it is closed.  Ids already queued are still handed out.

    ``root_path=None`` produces an iterator that is exhausted from the start.
    """

    def __init__(
        self,
        fs: FileSystemClient,
        root_path: str | None,
        prefix: str | None = None,
        *,
        to_id: Callable[[str], Any] | None = None,
        check_open: Callable[[], None] | None = None,
    ) -> None:
        self._fs = fs
        self.prefix = prefix or ""
        self._to_id = to_id
        self._check_open = check_open
        self._dir_queue: deque[str] = deque([root_path] if root_path is not None else [])
        self._file_queue: deque[Any] = deque()

    def __iter__(self) -> BlobIdIterator:
        return self

    def __next__(self) -> Any:
        if not self.has_next():
            raise StopIteration
        return self._file_queue.popleft()

    def has_next(self) -> bool:
        """True while at least one more id can be produced."""
        while not self._file_queue:
            if not self._refill():
                return False
        return True

    def remove(self) -> None:
        raise CapabilityNotSupportedError("remove is not supported by BlobIdIterator")

    @property
    def exhausted(self) -> bool:
        return not self._dir_queue and not self._file_queue

    def _refill(self) -> bool:
        """List the next pending directory.  False once both queues are empty."""
        if not self._dir_queue:
            return False
        if self._check_open is not None:
            self._check_open()

        directory = self._dir_queue.popleft()
        try:
            entries = self._fs.list_status(directory)
        except OSError as e:
            logger.error("Listing failed for %s: %s", directory, e, exc_info=True)
            raise StorageError(f"Cannot list directory {directory}: {e}") from e

        for entry in entries:
            if entry.is_directory:
                self._dir_queue.append(entry.path)
            elif self._matches(entry.name):
                self._enqueue(entry.path)
        return True

    def _matches(self, name: str) -> bool:
        if not self.prefix:
            return True
        try:
            return unescape_name(name).startswith(self.prefix)
        except UnsupportedIdError:
            logger.debug("skipping undecodable name %s", name)
            return False

    def _enqueue(self, path: str) -> None:
        if self._to_id is None:
            self._file_queue.append(path)
            return
        try:
            self._file_queue.append(self._to_id(path))
        except UnsupportedIdError as e:
            logger.warning("Skipping %s: %s", path, e)
