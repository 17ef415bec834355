"""Filesystem layer — the backend contract and the fsspec implementation."""

from hdfsblob.fs.fsspec_backend import FsspecFileSystem
from hdfsblob.fs.protocol import Connector, FileSystemClient
from hdfsblob.fs.types import FileStatus
from hdfsblob.fs.utils import DEFAULT_BUFFER_SIZE, copy_stream

__all__ = [
    "DEFAULT_BUFFER_SIZE",
    "Connector",
    "FileStatus",
    "FileSystemClient",
    "FsspecFileSystem",
    "copy_stream",
]
