"""hdfsblob: a blob store on top of HDFS (and any other fsspec filesystem).

Blobs are addressed by ids like ``blob:6f/report.pdf`` and stored as files
below the store root.
"""

__version__ = "0.1.0"

from hdfsblob.blob import Blob
from hdfsblob.config import StoreConfig
from hdfsblob.connection import BlobStoreConnection
from hdfsblob.exceptions import (
    BlobStoreError,
    CapabilityNotSupportedError,
    ConfigError,
    ConnectionClosedError,
    DuplicateBlobError,
    MissingBlobError,
    StorageError,
    StoreConnectionError,
    UnsupportedIdError,
)
from hdfsblob.fs import FileStatus, FileSystemClient, FsspecFileSystem
from hdfsblob.ids import BlobId, parse_id, to_external, to_internal
from hdfsblob.iterator import BlobIdIterator
from hdfsblob.store import BlobStore

__all__ = [
    "Blob",
    "BlobId",
    "BlobIdIterator",
    "BlobStore",
    "BlobStoreConnection",
    "BlobStoreError",
    "CapabilityNotSupportedError",
    "ConfigError",
    "ConnectionClosedError",
    "DuplicateBlobError",
    "FileStatus",
    "FileSystemClient",
    "FsspecFileSystem",
    "MissingBlobError",
    "StorageError",
    "StoreConfig",
    "StoreConnectionError",
    "UnsupportedIdError",
    "__version__",
    "parse_id",
    "to_external",
    "to_internal",
]
