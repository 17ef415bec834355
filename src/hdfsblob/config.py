"""StoreConfig — settings for one blob store."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .exceptions import ConfigError
from .fs.utils import DEFAULT_BUFFER_SIZE
from .ids import DEFAULT_ID_SCHEME, SCHEME_RE, normalize_root

ENV_STORE_ID = "HDFSBLOB_STORE_ID"
ENV_ID_SCHEME = "HDFSBLOB_ID_SCHEME"
ENV_BUFFER_SIZE = "HDFSBLOB_BUFFER_SIZE"


@dataclass
class StoreConfig:
    """Configuration for a single blob store."""

    store_id: str
    """Root URI of the store, e.g. ``"hdfs://namenode:9000/blobs/"``."""

    id_scheme: str = DEFAULT_ID_SCHEME
    """Scheme every external blob id must carry, e.g. ``"blob"`` for ``blob:6f/x``."""

    storage_options: dict[str, Any] = field(default_factory=dict)
    """Extra keyword arguments for the connector (HDFS user, kerberos ticket, ...)."""

    buffer_size: int = DEFAULT_BUFFER_SIZE
    """Chunk size used when copying blob content."""

    def __post_init__(self) -> None:
        if not self.store_id or "://" not in self.store_id:
            raise ConfigError(
                f"Invalid store id {self.store_id!r}: expected scheme://authority/path"
            )
        if not SCHEME_RE.match(self.id_scheme or ""):
            raise ConfigError(f"Invalid blob id scheme: {self.id_scheme!r}")
        if self.buffer_size <= 0:
            raise ConfigError(f"Buffer size must be positive, got {self.buffer_size}")
        self.store_id = normalize_root(self.store_id)
        self.id_scheme = self.id_scheme.lower()
        self.storage_options = dict(self.storage_options)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> StoreConfig:
        """Build config from ``HDFSBLOB_*`` environment variables.

        Raises:
            ConfigError: If the store id is missing or a value is invalid.
        """
        env = os.environ if environ is None else environ
        store_id = env.get(ENV_STORE_ID)
        if not store_id:
            raise ConfigError(f"{ENV_STORE_ID} is not set")
        return cls(
            store_id=store_id,
            id_scheme=env.get(ENV_ID_SCHEME, DEFAULT_ID_SCHEME),
            buffer_size=_parse_buffer_size(env.get(ENV_BUFFER_SIZE)),
        )


def _parse_buffer_size(value: str | None) -> int:
    if value is None or value == "":
        return DEFAULT_BUFFER_SIZE
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{ENV_BUFFER_SIZE} must be an integer, got {value!r}") from None
