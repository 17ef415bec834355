"""FileSystemClient protocol — the hierarchical filesystem the store sits on.

The blob store never talks to HDFS (or any other filesystem) directly.
It goes through an object implementing :class:`FileSystemClient`, obtained
from a :class:`Connector`.  Paths are always fully qualified, i.e. they
start with the store id (``hdfs://namenode:9000/a/b``).

Semantics follow the Hadoop ``FileSystem`` API:

- ``create`` makes missing parent directories.
- ``rename`` does *not* make missing parents; it returns ``False``
  instead of raising when the rename cannot be performed.
- ``delete`` returns ``False`` when there was nothing to delete.

Backends signal failures with ``OSError`` subclasses.  ``ConnectionError``
and ``TimeoutError`` are treated as transient by the connection layer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, BinaryIO, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .types import FileStatus


@runtime_checkable
class FileSystemClient(Protocol):
    """Core interface every filesystem backend must implement."""

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def exists(self, path: str) -> bool: ...

    def stat(self, path: str) -> FileStatus:
        """Return metadata for *path*.  Raises ``FileNotFoundError``."""
        ...

    def list_status(self, path: str) -> list[FileStatus]:
        """List the immediate children of a directory, in filesystem order."""
        ...

    # ------------------------------------------------------------------
    # Streams
    # ------------------------------------------------------------------

    def open(self, path: str) -> BinaryIO: ...

    def create(self, path: str, overwrite: bool = False) -> BinaryIO: ...

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def delete(self, path: str, recursive: bool = False) -> bool: ...

    def rename(self, src: str, dst: str) -> bool: ...

    def mkdirs(self, path: str) -> bool: ...

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None: ...


@runtime_checkable
class Connector(Protocol):
    """Factory establishing a new filesystem handle for a store id."""

    def __call__(self, store_id: str, **storage_options: Any) -> FileSystemClient: ...
