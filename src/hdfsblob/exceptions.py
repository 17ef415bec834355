"""Custom exception hierarchy for the hdfsblob store layer."""

from __future__ import annotations


class BlobStoreError(Exception):
    """Base exception for all hdfsblob errors."""


class _BlobIdError(BlobStoreError):
    """Error bound to a single blob identifier."""

    def __init__(self, blob_id: object, message: str | None = None) -> None:
        self.blob_id = str(blob_id)
        super().__init__(message or f"{self._default_message}: {self.blob_id}")

    _default_message = "Blob error"


class UnsupportedIdError(_BlobIdError):
    """Raised when a blob id is malformed or uses a foreign scheme."""

    _default_message = "Unsupported blob id"


class MissingBlobError(_BlobIdError):
    """Raised when an operation requires a blob that does not exist."""

    _default_message = "Blob not found"


class DuplicateBlobError(_BlobIdError):
    """Raised when a blob already exists and may not be overwritten."""

    _default_message = "Blob already exists"


class ConnectionClosedError(BlobStoreError):
    """Raised when a blob operation is attempted on a closed connection."""


class StorageError(BlobStoreError):
    """Raised on filesystem failures (read, write, rename, listing)."""


class StoreConnectionError(StorageError):
    """Raised when the underlying filesystem cannot be connected."""


class CapabilityNotSupportedError(BlobStoreError):
    """Raised when the store doesn't support a requested capability."""


class ConfigError(BlobStoreError):
    """Raised for invalid store configuration."""
