from __future__ import annotations

from typing import Protocol

from searchctx.models import Location


class KeyValueStore(Protocol):
    """Durable string store; every call may raise on I/O failure."""

    async def get(self, key: str) -> str | None:
        ...

    async def set(self, key: str, value: str) -> None:
        ...

    async def remove(self, key: str) -> None:
        ...


class GeolocationProvider(Protocol):
    async def current_location(self) -> Location:
        ...


class StorageError(RuntimeError):
    """Raised when the durable store cannot be read or written."""
