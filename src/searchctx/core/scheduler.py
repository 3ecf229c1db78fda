"""Cancellable periodic background tasks on the asyncio loop."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

TickCallback = Callable[[], Awaitable[None]]


class IntervalTask:
    """Run ``callback`` every ``interval_seconds`` until cancelled.

    ``tick()`` runs the callback once and is what the loop calls; hosts
    without a running loop (or tests) can drive it directly.
    """

    def __init__(self, name: str, interval_seconds: float, callback: TickCallback) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.name = name
        self.interval_seconds = interval_seconds
        self._callback = callback
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the loop on the running event loop. No-op if already running."""
        if self.running:
            return
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(), name=f"searchctx:{self.name}")

    def cancel(self) -> None:
        """Stop the loop. Safe to call repeatedly or before ``start``."""
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()

    async def tick(self) -> None:
        try:
            await self._callback()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Background task %s failed", self.name)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.tick()
