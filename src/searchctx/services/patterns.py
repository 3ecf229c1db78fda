"""Incremental learning of location, query, time and mixed search patterns."""
from __future__ import annotations

import logging
import uuid

from searchctx.config.constants import (
    LOCATION_CONFIDENCE_DIVISOR,
    LOCATION_KEY_PRECISION_KM,
    MAX_PREDICTIVE_VALUE,
    MAX_QUERY_LOCATIONS,
    MIXED_CONFIDENCE_DIVISOR,
    MIXED_PREDICTIVE_STEP,
    MS_PER_DAY,
    QUERY_CONFIDENCE_DIVISOR,
    QUERY_LOCATION_SPREAD_KM,
    TIME_CONFIDENCE_DIVISOR,
)
from searchctx.config.settings import PatternsConfig
from searchctx.core.geo import haversine_km, location_key
from searchctx.core.time_context import time_slot
from searchctx.models import (
    PatternDetails,
    PatternType,
    SearchContext,
    SearchHistoryEntry,
    SearchPattern,
)

logger = logging.getLogger(__name__)


def _make_pattern_id(pattern_type: PatternType) -> str:
    return f"{pattern_type.value}_{uuid.uuid4().hex[:12]}"


def _confidence(frequency: int, divisor: int) -> float:
    return min(1.0, frequency / divisor)


class PatternLearner:
    """Maintains the live pattern index shared with the search context.

    Each family is keyed independently and one entry may touch all four:

    - location: position quantized to a ~100 m grid
    - query: exact query text
    - time: ``time_of_day`` x ``day_of_week``
    - mixed: location key x time of day x query
    """

    def __init__(self, config: PatternsConfig, context: SearchContext) -> None:
        self._config = config
        self._context = context
        self._patterns: list[SearchPattern] = []
        self._sync()

    def __len__(self) -> int:
        return len(self._patterns)

    @property
    def patterns(self) -> list[SearchPattern]:
        return self._patterns

    def by_type(self, pattern_type: PatternType) -> list[SearchPattern]:
        return [p for p in self._patterns if p.type == pattern_type]

    def find(self, pattern_type: PatternType, key: str) -> SearchPattern | None:
        for pattern in self._patterns:
            if pattern.type == pattern_type and pattern.key == key:
                return pattern
        return None

    def replace(self, patterns: list[SearchPattern]) -> None:
        self._patterns = list(patterns)
        self._sync()

    def learn(self, entry: SearchHistoryEntry, *, now_ms: int | None = None) -> None:
        """Fold one new entry into every family, then prune."""
        try:
            self._update_location_pattern(entry)
            if entry.query:
                self._update_query_pattern(entry)
            self._update_time_pattern(entry)
            if entry.query:
                self._update_mixed_pattern(entry)
            self.prune(now_ms if now_ms is not None else entry.timestamp)
        except Exception:
            logger.exception("Failed to learn from search %s", entry.id)
        finally:
            self._sync()

    def prune(self, now_ms: int) -> int:
        """Drop stale or weak patterns and cap the index size. Returns the count removed."""
        before = len(self._patterns)
        max_age_ms = self._config.max_age_days * MS_PER_DAY
        kept = [
            p
            for p in self._patterns
            if now_ms - p.last_used <= max_age_ms and p.confidence >= self._config.min_confidence
        ]
        if len(kept) > self._config.max_patterns:
            kept.sort(key=lambda p: p.weight, reverse=True)
            kept = kept[: self._config.max_patterns]
        self._patterns = kept
        self._sync()
        return before - len(kept)

    def _sync(self) -> None:
        self._context.personalized_patterns = self._patterns

    def _create(
        self,
        pattern_type: PatternType,
        key: str,
        entry: SearchHistoryEntry,
        *,
        common_times: list[str],
        confidence: float,
        predictive_value: float,
    ) -> SearchPattern:
        pattern = SearchPattern(
            id=_make_pattern_id(pattern_type),
            key=key,
            type=pattern_type,
            pattern=PatternDetails(
                common_locations=[entry.location],
                common_queries=[entry.query] if entry.query else [],
                common_times=common_times,
                frequency=1,
            ),
            confidence=confidence,
            last_used=entry.timestamp,
            predictive_value=predictive_value,
        )
        self._patterns.append(pattern)
        return pattern

    def _touch(self, pattern: SearchPattern, entry: SearchHistoryEntry, divisor: int) -> None:
        pattern.pattern.frequency += 1
        pattern.last_used = entry.timestamp
        pattern.confidence = _confidence(pattern.pattern.frequency, divisor)

    def _update_location_pattern(self, entry: SearchHistoryEntry) -> None:
        key = location_key(
            entry.location.latitude, entry.location.longitude, LOCATION_KEY_PRECISION_KM
        )
        pattern = self.find(PatternType.LOCATION, key)
        if pattern is None:
            self._create(
                PatternType.LOCATION,
                key,
                entry,
                common_times=[entry.context.time_of_day.value],
                confidence=0.1,
                predictive_value=0.1,
            )
            return

        self._touch(pattern, entry, LOCATION_CONFIDENCE_DIVISOR)
        if entry.query and entry.query not in pattern.pattern.common_queries:
            pattern.pattern.common_queries.append(entry.query)

    def _update_query_pattern(self, entry: SearchHistoryEntry) -> None:
        if not entry.query:
            return
        pattern = self.find(PatternType.QUERY, entry.query)
        if pattern is None:
            self._create(
                PatternType.QUERY,
                entry.query,
                entry,
                common_times=[entry.context.time_of_day.value],
                confidence=0.1,
                predictive_value=0.2,
            )
            return

        self._touch(pattern, entry, QUERY_CONFIDENCE_DIVISOR)
        locations = pattern.pattern.common_locations
        near_existing = any(
            haversine_km(
                entry.location.latitude, entry.location.longitude, loc.latitude, loc.longitude
            )
            <= QUERY_LOCATION_SPREAD_KM
            for loc in locations
        )
        if not near_existing and len(locations) < MAX_QUERY_LOCATIONS:
            locations.append(entry.location)

    def _update_time_pattern(self, entry: SearchHistoryEntry) -> None:
        key = time_slot(entry.context.time_of_day.value, entry.context.day_of_week)
        pattern = self.find(PatternType.TIME, key)
        if pattern is None:
            self._create(
                PatternType.TIME,
                key,
                entry,
                common_times=[key],
                confidence=0.1,
                predictive_value=0.15,
            )
            return

        self._touch(pattern, entry, TIME_CONFIDENCE_DIVISOR)

    def _update_mixed_pattern(self, entry: SearchHistoryEntry) -> None:
        if not entry.query:
            return
        loc_key = location_key(
            entry.location.latitude, entry.location.longitude, LOCATION_KEY_PRECISION_KM
        )
        key = f"{loc_key}|{entry.context.time_of_day.value}|{entry.query}"
        pattern = self.find(PatternType.MIXED, key)
        if pattern is None:
            # New mixed patterns stop at the cap; existing ones keep learning.
            if len(self.by_type(PatternType.MIXED)) >= self._config.max_mixed_patterns:
                return
            self._create(
                PatternType.MIXED,
                key,
                entry,
                common_times=[time_slot(entry.context.time_of_day.value, entry.context.day_of_week)],
                confidence=0.05,
                predictive_value=0.3,
            )
            return

        self._touch(pattern, entry, MIXED_CONFIDENCE_DIVISOR)
        pattern.predictive_value = min(
            MAX_PREDICTIVE_VALUE, pattern.predictive_value + MIXED_PREDICTIVE_STEP
        )
