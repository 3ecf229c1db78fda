"""Tests for searchctx.services.lifecycle."""
from __future__ import annotations

import asyncio
import logging
import re

import pytest

from searchctx.config.settings import RetentionConfig, SnapshotsConfig
from searchctx.core.events import EventBus
from searchctx.models import SearchEvent
from searchctx.services.lifecycle import LifecycleManager, new_session_id


async def _noop():
    return None


@pytest.fixture
def events() -> EventBus:
    return EventBus()


@pytest.fixture
def manager(events) -> LifecycleManager:
    return LifecycleManager(
        snapshots=SnapshotsConfig(max_snapshots=100, interval_seconds=30, idle_timeout_seconds=300),
        retention=RetentionConfig(cleanup_interval_hours=24, default_retention_days=90),
        events=events,
        on_snapshot=_noop,
        on_retention=_noop,
    )


class TestSessionId:
    def test_format(self):
        assert re.fullmatch(r"session_[0-9a-f]{12}", new_session_id())

    def test_unique_per_manager(self, events):
        ids = {
            LifecycleManager(
                snapshots=SnapshotsConfig(100, 30, 300),
                retention=RetentionConfig(24, 90),
                events=events,
                on_snapshot=_noop,
                on_retention=_noop,
            ).session_id
            for _ in range(5)
        }
        assert len(ids) == 5


class TestLifecycleManager:
    """Tests for start / cleanup."""

    def test_intervals(self, manager):
        assert manager.snapshot_task.interval_seconds == 30
        assert manager.retention_task.interval_seconds == 24 * 3600

    @pytest.mark.asyncio
    async def test_start_schedules_both_tasks(self, manager):
        manager.start()
        try:
            assert manager.snapshot_task.running
            assert manager.retention_task.running
        finally:
            manager.cleanup()

    @pytest.mark.asyncio
    async def test_cleanup_idempotent(self, manager, events, caplog):
        events.subscribe(SearchEvent.SEARCH_ADDED, lambda _p: None)
        manager.start()

        with caplog.at_level(logging.INFO):
            manager.cleanup()
            manager.cleanup()
        await asyncio.sleep(0)

        assert manager.closed
        assert not manager.snapshot_task.running
        assert not manager.retention_task.running
        assert events.listener_count() == 0
        assert caplog.text.count("cleanup completed") == 1

    @pytest.mark.asyncio
    async def test_start_after_cleanup_rejected(self, manager):
        manager.cleanup()
        with pytest.raises(RuntimeError):
            manager.start()
