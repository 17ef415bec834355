"""BlobStore — the store root that vends connections."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .config import StoreConfig
from .connection import BlobStoreConnection
from .exceptions import CapabilityNotSupportedError, StoreConnectionError
from .fs.fsspec_backend import FsspecFileSystem

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .fs.protocol import Connector, FileSystemClient

logger = logging.getLogger(__name__)


class BlobStore:
    """A blob store rooted at one filesystem location.

    The store id is fixed for the store's lifetime.  Each call to
    :meth:`open_connection` returns an independent connection with its
    own filesystem handle; connections may be used in parallel.

    Usage::

        store = BlobStore("hdfs://namenode:9000/blobs/")
        with store.open_connection() as conn:
            for blob_id in conn.list_blob_ids("6f/"):
                print(blob_id)

    *connector* establishes filesystem handles; it defaults to
    :meth:`FsspecFileSystem.connect`.  Extra keyword arguments are passed
    to it as storage options when *store* is a plain store id.
    """

    def __init__(
        self,
        store: str | StoreConfig,
        *,
        connector: Connector | None = None,
        **storage_options: Any,
    ) -> None:
        if isinstance(store, StoreConfig):
            if storage_options:
                store.storage_options.update(storage_options)
            self._config = store
        else:
            self._config = StoreConfig(store_id=store, storage_options=storage_options)
        self._connector: Connector = connector or FsspecFileSystem.connect

    def __repr__(self) -> str:
        return f"BlobStore({self.store_id!r})"

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def store_id(self) -> str:
        """Root URI, always ending in ``/``."""
        return self._config.store_id

    @property
    def id_scheme(self) -> str:
        return self._config.id_scheme

    def open_connection(
        self,
        transaction: object | None = None,
        hints: Mapping[str, str] | None = None,
    ) -> BlobStoreConnection:
        """Open a new connection.  The filesystem is connected lazily.

        Raises:
            CapabilityNotSupportedError: If a transaction is supplied.
        """
        if transaction is not None:
            raise CapabilityNotSupportedError("Transactions are not supported")
        return BlobStoreConnection(self)

    def connect_file_system(self) -> FileSystemClient:
        """Establish a fresh filesystem handle for this store.

        Raises:
            StoreConnectionError: If the connector fails.
        """
        try:
            fs = self._connector(self.store_id, **self._config.storage_options)
        except (OSError, ValueError, ImportError) as e:
            raise StoreConnectionError(f"Cannot connect to {self.store_id}: {e}") from e
        logger.debug("opened filesystem handle for %s", self.store_id)
        return fs
