"""Search context service: history, pattern learning, recommendations and snapshots."""
from __future__ import annotations

import json
import logging
from dataclasses import fields, replace
from typing import Any

from searchctx.config import Config
from searchctx.config.constants import (
    STORAGE_KEY_CONTEXT,
    STORAGE_KEY_HISTORY,
    STORAGE_KEY_PATTERNS,
    STORAGE_KEY_SNAPSHOTS,
)
from searchctx.core.events import EventBus, Listener, Subscription
from searchctx.core.time_context import Clock, day_of_week, local_now, time_of_day, to_epoch_ms
from searchctx.models import (
    ContextSnapshot,
    CurrentSession,
    EnvironmentalContext,
    Location,
    MapRegion,
    MovementPattern,
    PatternType,
    PerformanceMetrics,
    PrivacySettings,
    SearchContext,
    SearchEnvironment,
    SearchEvent,
    SearchHistoryEntry,
    SearchHistoryFilter,
    SearchPattern,
    SearchRecommendation,
    SearchResults,
    SearchState,
    SearchStatistics,
    UserPreferences,
    UserState,
    encode,
)
from searchctx.services.history import HistoryLedger
from searchctx.services.lifecycle import LifecycleManager
from searchctx.services.patterns import PatternLearner
from searchctx.services.recommendations import RecommendationEngine
from searchctx.services.snapshots import ContextPreservation
from searchctx.storage.protocols import GeolocationProvider, KeyValueStore

logger = logging.getLogger(__name__)

_PRIVACY_FIELDS = frozenset(f.name for f in fields(PrivacySettings))


class SearchContextService:
    """Records searches, learns from them and preserves interaction context.

    Construct one per process and pass it to consumers. ``open()`` builds,
    restores and starts it in one step; ``cleanup()`` disposes it.

    Mutating coroutines finish their in-memory update before the first
    ``await``; storage writes after that are best-effort and a failed write
    never rolls the in-memory state back.
    """

    def __init__(
        self,
        store: KeyValueStore,
        config: Config | None = None,
        *,
        clock: Clock = local_now,
        geolocation: GeolocationProvider | None = None,
    ) -> None:
        self._config = config or Config.defaults()
        self._store = store
        self._clock = clock
        self._geolocation = geolocation
        self.events = EventBus()

        self._lifecycle = LifecycleManager(
            snapshots=self._config.snapshots,
            retention=self._config.retention,
            events=self.events,
            on_snapshot=self.auto_snapshot_tick,
            on_retention=self.retention_tick,
        )

        self._context = SearchContext(
            current_session=CurrentSession(
                session_id=self._lifecycle.session_id,
                start_time=self._now_ms(),
            ),
            user_preferences=UserPreferences(
                privacy_settings=PrivacySettings(
                    retention_period_days=self._config.retention.default_retention_days,
                ),
            ),
        )
        self._ledger = HistoryLedger(self._config.history, self._context)
        self._learner = PatternLearner(self._config.patterns, self._context)
        self._recommender = RecommendationEngine(
            self._config.recommendations, self._ledger, self._learner, clock=clock
        )
        self._snapshots = ContextPreservation(self._config.snapshots, self._context, clock=clock)
        self._last_interaction_ms = 0

    @classmethod
    async def open(
        cls,
        store: KeyValueStore,
        config: Config | None = None,
        **kwargs: Any,
    ) -> "SearchContextService":
        """Create the service, restore stored state and start background tasks."""
        service = cls(store, config, **kwargs)
        await service.load()
        service.start()
        logger.info("Search context service initialized (session %s)", service.session_id)
        return service

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def session_id(self) -> str:
        return self._lifecycle.session_id

    @property
    def context(self) -> SearchContext:
        return self._context

    @property
    def lifecycle(self) -> LifecycleManager:
        return self._lifecycle

    @property
    def patterns(self) -> list[SearchPattern]:
        return self._learner.patterns

    @property
    def context_snapshots(self) -> list[ContextSnapshot]:
        """Saved snapshots, newest first."""
        return self._snapshots.snapshots

    @property
    def last_interaction_ms(self) -> int:
        return self._last_interaction_ms

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def load(self) -> None:
        """Restore history, context, patterns and snapshots from the store.

        A key that cannot be read or parsed is logged and skipped.
        """
        history = await self._read_json(STORAGE_KEY_HISTORY)
        if isinstance(history, list):
            try:
                self._ledger.replace([SearchHistoryEntry.from_dict(item) for item in history])
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Discarding unreadable search history: %s", exc)

        stored_context = await self._read_json(STORAGE_KEY_CONTEXT)
        if isinstance(stored_context, dict):
            try:
                self._restore_context(stored_context)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Discarding unreadable search context: %s", exc)

        patterns = await self._read_json(STORAGE_KEY_PATTERNS)
        if isinstance(patterns, list):
            try:
                self._learner.replace([SearchPattern.from_dict(item) for item in patterns])
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Discarding unreadable search patterns: %s", exc)

        snapshots = await self._read_json(STORAGE_KEY_SNAPSHOTS)
        if isinstance(snapshots, list):
            try:
                self._snapshots.replace([ContextSnapshot.from_dict(item) for item in snapshots])
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Discarding unreadable context snapshots: %s", exc)

    def start(self) -> None:
        self._lifecycle.start()

    def cleanup(self) -> None:
        """Stop background tasks and remove all subscribers. Safe to call repeatedly."""
        self._lifecycle.cleanup()

    def subscribe(self, event: SearchEvent | str, listener: Listener) -> Subscription:
        return self.events.subscribe(event, listener)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    async def add_search_entry(
        self,
        query: str | None,
        location: Location,
        region: MapRegion,
        results: SearchResults,
        context_overrides: dict[str, Any] | None = None,
    ) -> str:
        """Record a completed search and learn from it. Returns the new entry id."""
        now = self._clock()
        now_ms = to_epoch_ms(now)
        environment = SearchEnvironment(
            time_of_day=time_of_day(now),
            day_of_week=day_of_week(now),
            movement_pattern=self._context.current_session.user_movement_pattern,
        )
        entry = self._ledger.build_entry(
            query,
            location,
            region,
            results,
            environment,
            timestamp=now_ms,
            context_overrides=context_overrides,
        )
        self._ledger.add(entry)
        self._learner.learn(entry, now_ms=now_ms)
        self._last_interaction_ms = now_ms

        await self._persist_history_data()

        self.events.emit(SearchEvent.SEARCH_ADDED, entry)
        logger.debug("Search entry added to history: %s", entry.id)
        return entry.id

    async def update_user_interaction(self, search_id: str, **changes: Any) -> bool:
        """Merge ``changes`` into an entry's user interaction.

        Returns False (after logging a warning) when the id is unknown.
        """
        entry = self._ledger.update_interaction(search_id, **changes)
        if entry is None:
            return False
        self._last_interaction_ms = self._now_ms()

        await self._persist_history_data()

        self.events.emit(
            SearchEvent.INTERACTION_UPDATED,
            {"search_id": search_id, "interaction": dict(changes)},
        )
        return True

    def get_search_history(
        self, filters: SearchHistoryFilter | None = None
    ) -> list[SearchHistoryEntry]:
        return self._ledger.query(filters)

    async def clear_search_history(self, older_than_days: float | None = None) -> int:
        """Remove entries older than ``older_than_days`` (all when omitted)."""
        removed = self._ledger.clear(older_than_days, now_ms=self._now_ms())

        await self._persist_history_data()

        self.events.emit(
            SearchEvent.HISTORY_CLEARED,
            {"older_than_days": older_than_days, "removed": removed},
        )
        if removed:
            logger.info("Cleared %d search history entries", removed)
        return removed

    # ------------------------------------------------------------------
    # Recommendations
    # ------------------------------------------------------------------

    async def get_search_recommendations(
        self,
        current_location: Location,
        current_context: ContextSnapshot | None = None,
    ) -> list[SearchRecommendation]:
        try:
            return self._recommender.recommend(current_location, current_context)
        except Exception:
            logger.exception("Failed to generate search recommendations")
            return []

    # ------------------------------------------------------------------
    # Context preservation
    # ------------------------------------------------------------------

    def create_context_snapshot(
        self,
        location: Location,
        search_state: SearchState | None = None,
        user_state: UserState | None = None,
        environmental_context: EnvironmentalContext | None = None,
    ) -> ContextSnapshot:
        return self._snapshots.create(location, search_state, user_state, environmental_context)

    async def save_context_snapshot(self, snapshot: ContextSnapshot) -> None:
        self._snapshots.add(snapshot)

        await self._write(
            STORAGE_KEY_SNAPSHOTS,
            [s.to_dict() for s in self._snapshots.snapshots],
        )

        self.events.emit(SearchEvent.CONTEXT_SNAPSHOT_SAVED, snapshot)

    def get_context_snapshot(self, timestamp: int | None = None) -> ContextSnapshot | None:
        return self._snapshots.get(timestamp)

    def resumable_snapshot(self, max_age_seconds: float) -> ContextSnapshot | None:
        """Latest snapshot worth re-running on resume: fresh and with an active query."""
        return self._snapshots.resumable(max_age_seconds)

    # ------------------------------------------------------------------
    # Preferences and session state
    # ------------------------------------------------------------------

    def update_session_location(
        self,
        location: Location,
        movement_pattern: MovementPattern | str | None = None,
    ) -> None:
        session = self._context.current_session
        session.current_location = location
        if movement_pattern is not None:
            session.user_movement_pattern = MovementPattern(movement_pattern)

    async def update_preferences(self, **changes: Any) -> UserPreferences:
        preferences = replace(self._context.user_preferences, **changes)
        self._context.user_preferences = preferences
        await self._write(STORAGE_KEY_CONTEXT, self._context.to_dict())
        return preferences

    async def update_privacy_settings(self, **changes: Any) -> PrivacySettings:
        unknown = set(changes) - _PRIVACY_FIELDS
        if unknown:
            raise TypeError(f"Unknown privacy settings: {', '.join(sorted(unknown))}")
        retention = changes.get("retention_period_days")
        if retention is not None and int(retention) <= 0:
            raise ValueError("Retention period must be a positive number of days.")

        preferences = self._context.user_preferences
        preferences.privacy_settings = replace(preferences.privacy_settings, **changes)
        if "save_history" in changes:
            await self._persist_history_data()
        else:
            await self._write(STORAGE_KEY_CONTEXT, self._context.to_dict())
        return preferences.privacy_settings

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def get_statistics(self) -> SearchStatistics:
        return SearchStatistics(
            history_entries=len(self._ledger),
            search_patterns=len(self._learner),
            context_snapshots=len(self._snapshots),
            patterns_by_type={
                pattern_type.value: len(self._learner.by_type(pattern_type))
                for pattern_type in PatternType
            },
            current_session=replace(self._context.current_session),
            performance_metrics=replace(self._context.performance_metrics),
        )

    # ------------------------------------------------------------------
    # Background ticks
    # ------------------------------------------------------------------

    async def auto_snapshot_tick(self) -> bool:
        """Snapshot the session location unless the user has been idle.

        Returns True when a snapshot was saved.
        """
        now_ms = self._now_ms()
        idle_ms = self._config.snapshots.idle_timeout_seconds * 1000
        if now_ms - self._last_interaction_ms >= idle_ms:
            return False

        if self._geolocation is not None:
            try:
                self.update_session_location(await self._geolocation.current_location())
            except Exception as exc:
                logger.warning("Failed to refresh current location: %s", exc)

        snapshot = self.create_context_snapshot(self._context.current_session.current_location)
        await self.save_context_snapshot(snapshot)
        return True

    async def retention_tick(self) -> int:
        retention_days = self._context.user_preferences.privacy_settings.retention_period_days
        return await self.clear_search_history(retention_days)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _now_ms(self) -> int:
        return to_epoch_ms(self._clock())

    def _restore_context(self, data: dict[str, Any]) -> None:
        if "user_preferences" in data:
            self._context.user_preferences = UserPreferences.from_dict(data["user_preferences"])
        if "performance_metrics" in data:
            self._context.performance_metrics = PerformanceMetrics.from_dict(
                data["performance_metrics"]
            )
        stored_session = data.get("current_session")
        if stored_session:
            # Location and movement carry over; the session itself starts fresh.
            previous = CurrentSession.from_dict(stored_session)
            session = self._context.current_session
            session.current_location = previous.current_location
            session.user_movement_pattern = previous.user_movement_pattern

    async def _read_json(self, key: str) -> Any:
        try:
            raw = await self._store.get(key)
        except Exception as exc:
            logger.warning("Failed to load %s from storage: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Stored %s is not valid JSON: %s", key, exc)
            return None

    async def _write(self, key: str, payload: Any) -> bool:
        try:
            await self._store.set(key, json.dumps(encode(payload)))
        except Exception as exc:
            logger.warning("Failed to persist %s: %s", key, exc)
            return False
        return True

    async def _remove(self, key: str) -> bool:
        try:
            await self._store.remove(key)
        except Exception as exc:
            logger.warning("Failed to remove %s: %s", key, exc)
            return False
        return True

    async def _persist_history_data(self) -> None:
        # Serialize everything before the first await so the writes reflect
        # one consistent in-memory state.
        save_history = self._context.user_preferences.privacy_settings.save_history
        writes: list[tuple[str, Any]] = []
        if save_history:
            writes.append((STORAGE_KEY_HISTORY, [e.to_dict() for e in self._ledger.entries]))
        writes.append((STORAGE_KEY_CONTEXT, self._context.to_dict()))
        writes.append((STORAGE_KEY_PATTERNS, [p.to_dict() for p in self._learner.patterns]))

        for key, payload in writes:
            await self._write(key, payload)
        if not save_history:
            # Opted out: drop whatever history an earlier session stored.
            await self._remove(STORAGE_KEY_HISTORY)
