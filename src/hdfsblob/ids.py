"""Blob id mapping between external ids and internal filesystem paths.

External ids look like ``blob:6f/allestest``: a scheme, a colon, and a
relative slash-separated path.  Internal paths are the same relative path
rooted at the store id, with the final segment percent-escaped::

    blob:6f/a b:c    <->    hdfs://namenode:9000/6f/a%20b%3Ac

Directory segments pass through unescaped.  The mapping is lossless:
``to_external(to_internal(x, root), root) == x`` for every id accepted
by :func:`parse_id`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from urllib.parse import quote, unquote

from .exceptions import UnsupportedIdError

logger = logging.getLogger(__name__)

DEFAULT_ID_SCHEME = "blob"

SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")
_MALFORMED_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")

# Staging markers.  quote() always escapes "%", so "%" followed by a
# non-hex character can never collide with an escaped name.
RESERVED_NAMES = {
    "new": "%new",
    "old": "%old",
}
_RESERVED_LOOKUP = {v: k for k, v in RESERVED_NAMES.items()}


@dataclass(frozen=True, slots=True)
class BlobId:
    """A parsed, validated external blob id.

    Attributes:
        scheme: Id scheme (e.g. ``"blob"``).
        path: Relative slash-separated path (e.g. ``"6f/allestest"``).
    """

    scheme: str
    path: str

    def __str__(self) -> str:
        return f"{self.scheme}:{self.path}"

    @property
    def name(self) -> str:
        """Final path segment."""
        return self.path.rsplit("/", 1)[-1]

    @property
    def parent(self) -> str:
        """Directory part of the path, ``""`` for top-level blobs."""
        head, _, _ = self.path.rpartition("/")
        return head


# =============================================================================
# Parsing
# =============================================================================


def parse_id(blob_id: str | BlobId, scheme: str = DEFAULT_ID_SCHEME) -> BlobId:
    """Parse and validate an external blob id.

    Raises:
        UnsupportedIdError: If the id has no scheme, a scheme other than
            *scheme*, or a path that cannot round-trip through the
            filesystem (empty, absolute, or with empty/dot segments).
    """
    if isinstance(blob_id, BlobId):
        blob_id = str(blob_id)
    if not isinstance(blob_id, str):
        raise UnsupportedIdError(blob_id, f"Blob id must be a string: {blob_id!r}")

    found, sep, path = blob_id.partition(":")
    if not sep or not SCHEME_RE.match(found):
        raise UnsupportedIdError(blob_id, f"Blob id has no scheme: {blob_id}")
    if found != scheme:
        raise UnsupportedIdError(
            blob_id, f"Blob ids have to start with '{scheme}:': {blob_id}"
        )
    if not path:
        raise UnsupportedIdError(blob_id, f"Blob id has an empty path: {blob_id}")
    if path.startswith("/"):
        raise UnsupportedIdError(
            blob_id, f"Blob id path must be relative: {blob_id}"
        )

    segment = _invalid_segment(path)
    if segment is not None:
        raise UnsupportedIdError(
            blob_id, f"Blob id has an invalid path segment {segment!r}: {blob_id}"
        )

    return BlobId(scheme=found, path=path)


def _invalid_segment(path: str) -> str | None:
    for segment in path.split("/"):
        if segment in ("", ".", ".."):
            return segment
    return None


def is_valid_directory(path: str) -> bool:
    """True if *path* is a relative directory that a blob id could live in."""
    return not path.startswith("/") and _invalid_segment(path) is None


# =============================================================================
# Name escaping
# =============================================================================


def escape_name(name: str) -> str:
    """Escape a single path segment for use as a filesystem name."""
    reserved = RESERVED_NAMES.get(name)
    if reserved is not None:
        return reserved
    try:
        return quote(name, safe="")
    except UnicodeEncodeError as e:
        raise UnsupportedIdError(name, f"Cannot encode blob name {name!r}: {e}") from e


def unescape_name(name: str) -> str:
    """Reverse :func:`escape_name`.

    Raises:
        UnsupportedIdError: On a malformed escape sequence or bytes that
            are not valid UTF-8.
    """
    reserved = _RESERVED_LOOKUP.get(name)
    if reserved is not None:
        return reserved
    if _MALFORMED_ESCAPE_RE.search(name):
        raise UnsupportedIdError(name, f"Malformed escape sequence in {name!r}")
    try:
        return unquote(name, errors="strict")
    except UnicodeDecodeError as e:
        raise UnsupportedIdError(name, f"Cannot decode blob name {name!r}: {e}") from e


# =============================================================================
# Mapping
# =============================================================================


def normalize_root(root: str) -> str:
    """Ensure a store id ends with exactly one ``/``."""
    return root.rstrip("/") + "/"


def to_internal(
    blob_id: str | BlobId,
    root: str,
    scheme: str = DEFAULT_ID_SCHEME,
) -> str:
    """Map an external blob id to its internal filesystem path.

    Examples:
        to_internal("blob:6f/test", "hdfs://nn:9000/") -> "hdfs://nn:9000/6f/test"
        to_internal("blob:a b", "hdfs://nn:9000/") -> "hdfs://nn:9000/a%20b"
    """
    parsed = parse_id(blob_id, scheme)
    name = escape_name(parsed.name)
    parent = parsed.parent
    internal = normalize_root(root) + (f"{parent}/{name}" if parent else name)
    logger.debug("mapping external id %s to %s", parsed, internal)
    return internal


def to_external(
    internal_path: str,
    root: str,
    scheme: str = DEFAULT_ID_SCHEME,
) -> str:
    """Map an internal filesystem path back to its external blob id.

    Raises:
        UnsupportedIdError: If *internal_path* is not below *root* or its
            final segment cannot be unescaped.
    """
    root = normalize_root(root)
    if not internal_path.startswith(root) or internal_path == root:
        raise UnsupportedIdError(
            internal_path, f"Path is not inside store {root}: {internal_path}"
        )

    relative = internal_path[len(root):]
    parent, _, name = relative.rpartition("/")
    if not name:
        raise UnsupportedIdError(internal_path, f"Path names a directory: {internal_path}")

    name = unescape_name(name)
    external = f"{scheme}:{parent}/{name}" if parent else f"{scheme}:{name}"
    logger.debug("mapping internal path %s to %s", internal_path, external)
    return external


def prefix_to_internal(prefix: str, root: str) -> str:
    """Narrow a directory scan: store root plus the raw external prefix.

    Not reversible, and no escaping is applied.
    """
    if prefix is None:
        raise TypeError("prefix must not be None")
    return normalize_root(root) + prefix


def parent_paths(internal_path: str, root: str) -> list[str]:
    """Return the directories between *root* and *internal_path*, root-to-leaf.

    Examples:
        parent_paths("hdfs://nn/a/b/c", "hdfs://nn/") -> ["hdfs://nn/a", "hdfs://nn/a/b"]
        parent_paths("hdfs://nn/c", "hdfs://nn/") -> []
    """
    root = normalize_root(root)
    relative = internal_path[len(root):] if internal_path.startswith(root) else internal_path
    segments = relative.split("/")[:-1]

    parents: list[str] = []
    current = root.rstrip("/")
    for segment in segments:
        current = f"{current}/{segment}"
        parents.append(current)
    return parents
