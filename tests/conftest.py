"""Shared fixtures for hdfsblob tests."""

from __future__ import annotations

import io
from collections import defaultdict
from typing import TYPE_CHECKING, Any

import pytest

from hdfsblob.fs.types import FileStatus
from hdfsblob.store import BlobStore

if TYPE_CHECKING:
    from collections.abc import Iterator

    from hdfsblob.connection import BlobStoreConnection

STORE_ID = "store://host/"


def _norm(path: str) -> str:
    return path.rstrip("/")


def _parent(path: str) -> str:
    return _norm(path).rsplit("/", 1)[0]


# =========================================================================
# FakeCluster — in-memory hierarchical filesystem shared by all handles
# =========================================================================


class FakeCluster:
    """Storage shared by every FakeFileSystem handle it hands out.

    ``entries`` maps normalized paths to file content, or ``None`` for
    directories, in creation order.  Failures can be queued per operation
    with :meth:`fail`; each queued exception is raised once.
    """

    def __init__(self, store_id: str = STORE_ID) -> None:
        self.root = _norm(store_id)
        self.entries: dict[str, bytes | None] = {self.root: None}
        self.handles: list[FakeFileSystem] = []
        self.calls: list[tuple[str, str]] = []
        self.failures: dict[str, list[BaseException]] = defaultdict(list)
        self.connect_error: BaseException | None = None
        self.rename_supported = True

    def connect(self, store_id: str, **storage_options: Any) -> FakeFileSystem:
        if self.connect_error is not None:
            raise self.connect_error
        handle = FakeFileSystem(self, storage_options)
        self.handles.append(handle)
        return handle

    def fail(self, op: str, exc: BaseException, times: int = 1) -> None:
        self.failures[op].extend([exc] * times)

    def maybe_fail(self, op: str) -> None:
        queued = self.failures.get(op)
        if queued:
            raise queued.pop(0)

    # Direct helpers for arranging test state ------------------------------

    def add_file(self, path: str, content: bytes = b"") -> None:
        self.add_dir(_parent(path))
        self.entries[_norm(path)] = content

    def add_dir(self, path: str) -> None:
        path = _norm(path)
        if path in self.entries or len(path) <= len(self.root):
            return
        self.add_dir(_parent(path))
        self.entries[path] = None

    def files(self) -> dict[str, bytes]:
        return {p: c for p, c in self.entries.items() if c is not None}

    def ops(self, op: str) -> list[str]:
        return [path for name, path in self.calls if name == op]


class _FakeWriter(io.BytesIO):
    """Write stream that commits its content to the cluster on close."""

    def __init__(self, cluster: FakeCluster, path: str) -> None:
        super().__init__()
        self._cluster = cluster
        self._path = path

    def write(self, data: Any) -> int:
        self._cluster.maybe_fail("write")
        return super().write(data)

    def close(self) -> None:
        if not self.closed:
            self._cluster.entries[self._path] = self.getvalue()
        super().close()


class FakeFileSystem:
    """FileSystemClient over a FakeCluster with Hadoop semantics."""

    def __init__(self, cluster: FakeCluster, storage_options: dict[str, Any]) -> None:
        self.cluster = cluster
        self.storage_options = storage_options
        self.closed = False
        self.close_error: BaseException | None = None

    def _enter(self, op: str, path: str) -> str:
        self.cluster.calls.append((op, path))
        self.cluster.maybe_fail(op)
        return _norm(path)

    def exists(self, path: str) -> bool:
        return self._enter("exists", path) in self.cluster.entries

    def stat(self, path: str) -> FileStatus:
        path = self._enter("stat", path)
        if path not in self.cluster.entries:
            raise FileNotFoundError(path)
        content = self.cluster.entries[path]
        if content is None:
            return FileStatus(path=path, is_directory=True)
        return FileStatus(path=path, length=len(content))

    def list_status(self, path: str) -> list[FileStatus]:
        path = self._enter("list_status", path)
        if self.cluster.entries.get(path, b"") is not None:
            raise FileNotFoundError(path)
        return [
            FileStatus(
                path=child,
                length=0 if content is None else len(content),
                is_directory=content is None,
            )
            for child, content in self.cluster.entries.items()
            if child != path and _parent(child) == path
        ]

    def open(self, path: str) -> io.BytesIO:
        path = self._enter("open", path)
        content = self.cluster.entries.get(path)
        if content is None:
            raise FileNotFoundError(path)
        return io.BytesIO(content)

    def create(self, path: str, overwrite: bool = False) -> _FakeWriter:
        path = self._enter("create", path)
        if path in self.cluster.entries and not overwrite:
            raise FileExistsError(path)
        self.cluster.add_dir(_parent(path))
        self.cluster.entries[path] = b""
        return _FakeWriter(self.cluster, path)

    def delete(self, path: str, recursive: bool = False) -> bool:
        path = self._enter("delete", path)
        if path not in self.cluster.entries:
            return False
        del self.cluster.entries[path]
        return True

    def rename(self, src: str, dst: str) -> bool:
        src = self._enter("rename", src)
        if not self.cluster.rename_supported:
            raise NotImplementedError("rename")
        dst = _norm(dst)
        entries = self.cluster.entries
        if src not in entries or dst in entries or _parent(dst) not in entries:
            return False
        entries[dst] = entries.pop(src)
        return True

    def mkdirs(self, path: str) -> bool:
        path = self._enter("mkdirs", path)
        if self.cluster.entries.get(path, None) is not None:
            raise FileExistsError(path)
        self.cluster.add_dir(path)
        return True

    def close(self) -> None:
        self.closed = True
        if self.close_error is not None:
            raise self.close_error


# =========================================================================
# Fixtures
# =========================================================================


@pytest.fixture
def cluster() -> FakeCluster:
    return FakeCluster()


@pytest.fixture
def store(cluster: FakeCluster) -> BlobStore:
    return BlobStore(STORE_ID, connector=cluster.connect)


@pytest.fixture
def conn(store: BlobStore) -> Iterator[BlobStoreConnection]:
    connection = store.open_connection()
    yield connection
    connection.close()
