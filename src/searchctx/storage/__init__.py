"""Persistence backends for the search context."""
from __future__ import annotations

from searchctx.config import Config
from searchctx.storage.duckdb_store import DuckDBStore
from searchctx.storage.memory import MemoryStore
from searchctx.storage.protocols import GeolocationProvider, KeyValueStore, StorageError


def open_store(config: Config) -> KeyValueStore:
    """Build the store selected by ``[storage].backend``."""
    if config.storage.backend == "memory":
        return MemoryStore()
    return DuckDBStore(config.paths.store_path)


__all__ = [
    "DuckDBStore",
    "GeolocationProvider",
    "KeyValueStore",
    "MemoryStore",
    "StorageError",
    "open_store",
]
