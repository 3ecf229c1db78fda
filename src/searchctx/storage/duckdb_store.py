"""DuckDB-backed durable key-value store."""
from __future__ import annotations

import asyncio
import threading
from datetime import datetime, timezone
from pathlib import Path

import duckdb

from searchctx.storage.protocols import StorageError


class DuckDBStore:
    """Persistent key-value store in a single DuckDB table.

    DuckDB calls are blocking, so the async methods hand them to a worker
    thread. Each call opens its own short-lived connection.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._write_lock = threading.Lock()
        self._ensure_table()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> duckdb.DuckDBPyConnection:
        return duckdb.connect(str(self._db_path))

    def _ensure_table(self) -> None:
        with self._connect() as con:
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_store (
                    key         TEXT PRIMARY KEY,
                    value       TEXT NOT NULL,
                    updated_at  TIMESTAMP
                )
                """
            )

    def _get_sync(self, key: str) -> str | None:
        try:
            with self._connect() as con:
                row = con.execute("SELECT value FROM kv_store WHERE key = ?", [key]).fetchone()
        except duckdb.Error as exc:
            raise StorageError(f"Failed to read {key!r}: {exc}") from exc
        return row[0] if row else None

    def _set_sync(self, key: str, value: str) -> None:
        try:
            with self._write_lock, self._connect() as con:
                con.execute(
                    "INSERT OR REPLACE INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)",
                    [key, value, datetime.now(timezone.utc)],
                )
        except duckdb.Error as exc:
            raise StorageError(f"Failed to write {key!r}: {exc}") from exc

    def _remove_sync(self, key: str) -> None:
        try:
            with self._write_lock, self._connect() as con:
                con.execute("DELETE FROM kv_store WHERE key = ?", [key])
        except duckdb.Error as exc:
            raise StorageError(f"Failed to remove {key!r}: {exc}") from exc

    async def get(self, key: str) -> str | None:
        return await asyncio.to_thread(self._get_sync, key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._set_sync, key, value)

    async def remove(self, key: str) -> None:
        await asyncio.to_thread(self._remove_sync, key)

    def keys(self) -> list[str]:
        with self._connect() as con:
            rows = con.execute("SELECT key FROM kv_store ORDER BY key").fetchall()
        return [row[0] for row in rows]
