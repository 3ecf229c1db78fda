"""Session identity and the background retention / snapshot tasks."""
from __future__ import annotations

import logging
import uuid

from searchctx.config.settings import RetentionConfig, SnapshotsConfig
from searchctx.core.events import EventBus
from searchctx.core.scheduler import IntervalTask, TickCallback

logger = logging.getLogger(__name__)


def new_session_id() -> str:
    return f"session_{uuid.uuid4().hex[:12]}"


class LifecycleManager:
    """Owns the process session id and the two periodic tasks.

    The session id is generated once per process and is never restored from
    storage, so persisted history survives restarts but sessions do not.
    """

    def __init__(
        self,
        *,
        snapshots: SnapshotsConfig,
        retention: RetentionConfig,
        events: EventBus,
        on_snapshot: TickCallback,
        on_retention: TickCallback,
    ) -> None:
        self.session_id = new_session_id()
        self._events = events
        self.snapshot_task = IntervalTask(
            "context-snapshot", snapshots.interval_seconds, on_snapshot
        )
        self.retention_task = IntervalTask(
            "history-retention", retention.cleanup_interval_hours * 3600, on_retention
        )
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Start both tasks on the running loop."""
        if self._closed:
            raise RuntimeError("Lifecycle already cleaned up.")
        self.snapshot_task.start()
        self.retention_task.start()

    def cleanup(self) -> None:
        """Cancel both tasks and drop every subscriber. Idempotent."""
        self.snapshot_task.cancel()
        self.retention_task.cancel()
        self._events.clear()
        if not self._closed:
            self._closed = True
            logger.info("Search context cleanup completed for %s", self.session_id)
