"""Bounded, newest-first ledger of completed searches."""
from __future__ import annotations

import logging
import uuid
from dataclasses import fields, replace
from typing import Any

from searchctx.config.constants import MS_PER_DAY
from searchctx.config.settings import HistoryConfig
from searchctx.core.geo import haversine_km, haversine_many_km
from searchctx.models import (
    Location,
    MapRegion,
    ResultSource,
    SearchContext,
    SearchEnvironment,
    SearchHistoryEntry,
    SearchHistoryFilter,
    SearchResults,
    SessionInfo,
    UserInteraction,
    encode,
)

logger = logging.getLogger(__name__)

_ENVIRONMENT_FIELDS = frozenset(f.name for f in fields(SearchEnvironment))


def _make_search_id() -> str:
    return f"search_{uuid.uuid4().hex[:12]}"


class HistoryLedger:
    """Search history plus the derived ``recent_history`` view and rolling metrics."""

    def __init__(self, config: HistoryConfig, context: SearchContext) -> None:
        self._config = config
        self._context = context
        self._entries: list[SearchHistoryEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[SearchHistoryEntry]:
        """Live ledger, newest first. Callers must not mutate it."""
        return self._entries

    def replace(self, entries: list[SearchHistoryEntry]) -> None:
        self._entries = list(entries[: self._config.max_entries])
        self._refresh_recent()

    def find(self, search_id: str) -> SearchHistoryEntry | None:
        for entry in self._entries:
            if entry.id == search_id:
                return entry
        return None

    def find_repeat(self, query: str | None, location: Location) -> SearchHistoryEntry | None:
        """Newest entry with the same query text within the repeat radius."""
        if not query:
            return None
        for entry in self._entries:
            if entry.query != query:
                continue
            distance = haversine_km(
                entry.location.latitude,
                entry.location.longitude,
                location.latitude,
                location.longitude,
            )
            if distance < self._config.repeat_search_radius_km:
                return entry
        return None

    def build_entry(
        self,
        query: str | None,
        location: Location,
        region: MapRegion,
        results: SearchResults,
        environment: SearchEnvironment,
        *,
        timestamp: int,
        context_overrides: dict[str, Any] | None = None,
    ) -> SearchHistoryEntry:
        if context_overrides:
            unknown = set(context_overrides) - _ENVIRONMENT_FIELDS
            if unknown:
                raise TypeError(f"Unknown search context fields: {', '.join(sorted(unknown))}")
            merged = {**encode(environment), **encode(context_overrides)}
            environment = SearchEnvironment.from_dict(merged)

        session = self._context.current_session
        previous = self.find_repeat(query, location)
        return SearchHistoryEntry(
            id=_make_search_id(),
            timestamp=timestamp,
            query=query,
            location=location,
            region=region,
            results=results,
            user_interaction=UserInteraction(),
            context=environment,
            session_info=SessionInfo(
                session_id=session.session_id,
                search_sequence=session.search_count + 1,
                is_repeat_search=previous is not None,
                previous_search_id=previous.id if previous is not None else None,
            ),
        )

    def add(self, entry: SearchHistoryEntry) -> None:
        """Prepend ``entry``, evict past the cap and update session state and metrics."""
        self._entries.insert(0, entry)
        if len(self._entries) > self._config.max_entries:
            del self._entries[self._config.max_entries:]
        self._refresh_recent()

        session = self._context.current_session
        session.search_count += 1
        session.last_search_time = entry.timestamp
        session.current_location = entry.location

        self._update_performance_metrics(entry)

    def update_interaction(self, search_id: str, **changes: Any) -> SearchHistoryEntry | None:
        entry = self.find(search_id)
        if entry is None:
            logger.warning("Search entry not found for interaction update: %s", search_id)
            return None

        rating = changes.get("rating")
        if rating is not None and (
            isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5
        ):
            raise ValueError(f"Rating must be an integer between 1 and 5, got {rating!r}.")

        entry.user_interaction = replace(entry.user_interaction, **changes)
        if rating is not None:
            self._update_satisfaction_score()
        return entry

    def query(self, filters: SearchHistoryFilter | None = None) -> list[SearchHistoryEntry]:
        filtered = list(self._entries)
        if filters is None:
            return filtered

        if filters.from_date is not None:
            filtered = [e for e in filtered if e.timestamp >= filters.from_date]

        if filters.to_date is not None:
            filtered = [e for e in filtered if e.timestamp <= filters.to_date]

        if filters.location is not None and filters.radius_km is not None and filtered:
            distances = haversine_many_km(
                filters.location.latitude,
                filters.location.longitude,
                [e.location.latitude for e in filtered],
                [e.location.longitude for e in filtered],
            )
            filtered = [e for e, d in zip(filtered, distances) if d <= filters.radius_km]

        if filters.query:
            needle = filters.query.lower()
            filtered = [e for e in filtered if e.query and needle in e.query.lower()]

        if filters.limit is not None:
            filtered = filtered[: max(0, filters.limit)]

        return filtered

    def clear(self, older_than_days: float | None, *, now_ms: int) -> int:
        """Drop entries older than the cutoff (or everything). Returns the count removed."""
        before = len(self._entries)
        if older_than_days is not None:
            cutoff = now_ms - older_than_days * MS_PER_DAY
            self._entries = [e for e in self._entries if e.timestamp > cutoff]
        else:
            self._entries = []
        self._refresh_recent()
        return before - len(self._entries)

    def _refresh_recent(self) -> None:
        self._context.recent_history = self._entries[: self._config.recent_history_size]

    def _update_performance_metrics(self, entry: SearchHistoryEntry) -> None:
        metrics = self._context.performance_metrics
        total = len(self._entries)

        # Incremental mean over the ledger length.
        metrics.average_search_time_ms = (
            metrics.average_search_time_ms * (total - 1) + entry.results.response_time_ms
        ) / total

        cached = sum(1 for e in self._entries if e.results.source == ResultSource.CACHED)
        metrics.cache_hit_rate = cached / total

    def _update_satisfaction_score(self) -> None:
        ratings = [
            e.user_interaction.rating
            for e in self._entries
            if e.user_interaction.rating is not None
        ]
        if ratings:
            self._context.performance_metrics.user_satisfaction_score = sum(ratings) / len(ratings)
