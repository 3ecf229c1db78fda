"""Pytest configuration and fixtures for searchctx tests."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from searchctx.config import Config
from searchctx.core.time_context import to_epoch_ms
from searchctx.models import (
    ContextSnapshot,
    CurrentSession,
    EnvironmentalContext,
    Location,
    MapRegion,
    ResultSource,
    SearchContext,
    SearchEnvironment,
    SearchHistoryEntry,
    SearchResults,
    SearchState,
    SessionInfo,
    TimeOfDay,
    UserInteraction,
    UserState,
)
from searchctx.services import SearchContextService
from searchctx.storage import MemoryStore, StorageError


# Monday 2 March 2026, 09:00 local time.
BASE_TIME = datetime(2026, 3, 2, 9, 0, 0)

DOWNTOWN = Location(latitude=37.7749, longitude=-122.4194)


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = BASE_TIME) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now

    def set(self, moment: datetime) -> None:
        self.now = moment

    @property
    def ms(self) -> int:
        return to_epoch_ms(self.now)


class FailingStore(MemoryStore):
    """Store whose reads and writes can be switched to fail."""

    def __init__(self, *, fail_reads: bool = False, fail_writes: bool = True) -> None:
        super().__init__()
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes
        self.write_attempts = 0

    async def get(self, key: str) -> str | None:
        if self.fail_reads:
            raise StorageError(f"read failed for {key}")
        return await super().get(key)

    async def set(self, key: str, value: str) -> None:
        self.write_attempts += 1
        if self.fail_writes:
            raise StorageError(f"write failed for {key}")
        await super().set(key, value)


# ============================================================================
# ENVIRONMENT ISOLATION
# ============================================================================


@pytest.fixture(autouse=True)
def _isolate_searchctx_data_dir(monkeypatch, tmp_path):
    """Force tests to use a temp SEARCHCTX_DATA_DIR (avoid ~/.searchctx)."""
    data_dir = tmp_path / ".searchctx"
    (data_dir / "config").mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("SEARCHCTX_DATA_DIR", str(data_dir))
    for name in (
        "SEARCHCTX_STORAGE_BACKEND",
        "SEARCHCTX_MAX_HISTORY_ENTRIES",
        "SEARCHCTX_MAX_PATTERNS",
        "SEARCHCTX_MAX_RECOMMENDATIONS",
        "SEARCHCTX_SNAPSHOT_INTERVAL_SECONDS",
        "SEARCHCTX_SNAPSHOT_IDLE_TIMEOUT_SECONDS",
        "SEARCHCTX_CLEANUP_INTERVAL_HOURS",
        "SEARCHCTX_RETENTION_DAYS",
        "SEARCHCTX_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


# ============================================================================
# PYTEST FIXTURES
# ============================================================================


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def config() -> Config:
    return Config.defaults()


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def failing_store() -> FailingStore:
    return FailingStore()


@pytest.fixture
def search_context(clock) -> SearchContext:
    """Bare SearchContext for exercising a single component."""
    return SearchContext(
        current_session=CurrentSession(session_id="session_test", start_time=clock.ms)
    )


@pytest.fixture
def make_service(memory_store, config, clock):
    """Factory for SearchContextService instances sharing the test clock.

    Background tasks are not started; tests drive ticks explicitly.
    """
    created: list[SearchContextService] = []

    def _make(store=None, **kwargs) -> SearchContextService:
        kwargs.setdefault("clock", clock)
        service = SearchContextService(
            store if store is not None else memory_store,
            kwargs.pop("config", config),
            **kwargs,
        )
        created.append(service)
        return service

    yield _make

    for service in created:
        service.cleanup()


@pytest.fixture
def service(make_service) -> SearchContextService:
    return make_service()


# ============================================================================
# SAMPLE DATA
# ============================================================================


def _region_for(location: Location, delta: float = 0.01) -> MapRegion:
    return MapRegion(
        latitude=location.latitude,
        longitude=location.longitude,
        latitude_delta=delta,
        longitude_delta=delta,
    )


def _make_results(
    count: int = 3,
    *,
    source: ResultSource = ResultSource.FRESH,
    response_time_ms: float = 800.0,
) -> SearchResults:
    businesses = [{"id": f"biz_{i}", "name": f"Business {i}"} for i in range(count)]
    return SearchResults.from_businesses(
        businesses, source=source, response_time_ms=response_time_ms
    )


def _make_entry(
    entry_id: str = "search_1",
    *,
    query: str | None = "coffee",
    location: Location = DOWNTOWN,
    timestamp: int | None = None,
    rating: int | None = None,
    was_helpful: bool = True,
    result_count: int = 3,
    time_of_day: TimeOfDay = TimeOfDay.MORNING,
    day: str = "monday",
) -> SearchHistoryEntry:
    """Build a history entry directly, bypassing the ledger."""
    return SearchHistoryEntry(
        id=entry_id,
        timestamp=timestamp if timestamp is not None else to_epoch_ms(BASE_TIME),
        query=query,
        location=location,
        region=_region_for(location),
        results=_make_results(result_count),
        user_interaction=UserInteraction(rating=rating, was_helpful=was_helpful),
        context=SearchEnvironment(time_of_day=time_of_day, day_of_week=day),
        session_info=SessionInfo(session_id="session_test", search_sequence=1),
    )


def _make_snapshot(timestamp: int, *, query: str | None = None) -> ContextSnapshot:
    return ContextSnapshot(
        timestamp=timestamp,
        location=DOWNTOWN,
        search_state=SearchState(active_query=query),
        user_state=UserState(),
        environmental_context=EnvironmentalContext(),
    )


@pytest.fixture
def make_entry():
    return _make_entry


@pytest.fixture
def make_results():
    return _make_results


@pytest.fixture
def make_region():
    return _region_for


@pytest.fixture
def make_snapshot():
    return _make_snapshot
