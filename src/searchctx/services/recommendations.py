"""Ranked search suggestions from history, learned patterns and current context."""
from __future__ import annotations

import logging
import uuid
from collections import Counter
from collections.abc import Callable

from searchctx.config.constants import HISTORY_GROUP_PRECISION_KM
from searchctx.config.settings import RecommendationsConfig
from searchctx.core.geo import haversine_km, haversine_many_km, location_key
from searchctx.core.time_context import (
    Clock,
    day_of_week,
    from_epoch_ms,
    local_now,
    time_of_day,
    time_slot,
)
from searchctx.models import (
    ContextSnapshot,
    Location,
    NavigateAction,
    PatternType,
    RecommendationBasis,
    RecommendationType,
    SearchAction,
    SearchHistoryEntry,
    SearchRecommendation,
)
from searchctx.services.history import HistoryLedger
from searchctx.services.patterns import PatternLearner

logger = logging.getLogger(__name__)

# Assumed rating for helpful searches the user never rated
_DEFAULT_RATING = 4
_MAX_LOCATION_QUERIES = 5
_MAX_TIME_PATTERNS = 3
_MAX_MATCHING_PATTERNS = 4
_MAX_SUCCESSFUL_SEARCHES = 20
_MAX_HISTORY_GROUPS = 3


def _make_recommendation_id(source: str) -> str:
    return f"{source}_{uuid.uuid4().hex[:12]}"


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, value))


class RecommendationEngine:
    """Reads the ledger and pattern index; never mutates either."""

    def __init__(
        self,
        config: RecommendationsConfig,
        ledger: HistoryLedger,
        learner: PatternLearner,
        *,
        clock: Clock = local_now,
    ) -> None:
        self._config = config
        self._ledger = ledger
        self._learner = learner
        self._clock = clock

    def recommend(
        self,
        current_location: Location,
        current_context: ContextSnapshot | None = None,
    ) -> list[SearchRecommendation]:
        """Run every generator and return the top suggestions by blended score.

        A failing generator is logged and skipped. The score is
        ``0.6 * relevance + 0.4 * confidence``; the sort is stable so ties
        keep generator order.
        """
        now = self._clock()
        moment = from_epoch_ms(current_context.timestamp, now.tzinfo) if current_context else now
        current_time = time_of_day(moment).value
        current_day = day_of_week(moment)

        generators: list[tuple[str, Callable[[], list[SearchRecommendation]]]] = [
            ("location", lambda: self.location_based(current_location)),
            ("time", lambda: self.time_based(current_time, current_day)),
            ("pattern", lambda: self.pattern_based(current_location, current_time)),
            ("history", lambda: self.history_based()),
        ]

        recommendations: list[SearchRecommendation] = []
        for name, generate in generators:
            try:
                recommendations.extend(generate())
            except Exception:
                logger.exception("Failed to generate %s-based recommendations", name)

        recommendations.sort(key=lambda r: r.score, reverse=True)
        return recommendations[: self._config.max_results]

    def location_based(self, location: Location) -> list[SearchRecommendation]:
        """Popular queries among past searches near ``location``."""
        entries = self._ledger.entries
        if not entries:
            return []

        distances = haversine_many_km(
            location.latitude,
            location.longitude,
            [e.location.latitude for e in entries],
            [e.location.longitude for e in entries],
        )
        frequency = Counter(
            entry.query
            for entry, distance in zip(entries, distances)
            if entry.query and distance < self._config.nearby_radius_km
        )

        return [
            SearchRecommendation(
                id=_make_recommendation_id("location"),
                type=RecommendationType.QUERY,
                title=f'Search for "{query}"',
                description=f"Popular search in this area ({count} previous searches)",
                confidence=_clamp(count / 5),
                relevance_score=0.8,
                based_on=RecommendationBasis(
                    patterns=("location",),
                    recent_history=True,
                    location_context=True,
                ),
                action=SearchAction(query=query, location=location),
            )
            for query, count in frequency.most_common(_MAX_LOCATION_QUERIES)
        ]

    def time_based(self, current_time: str, current_day: str) -> list[SearchRecommendation]:
        """Queries from time patterns for the current time slot."""
        slot = time_slot(current_time, current_day)
        matching = [
            p for p in self._learner.by_type(PatternType.TIME) if slot in p.pattern.common_times
        ]
        matching.sort(key=lambda p: p.confidence, reverse=True)

        recommendations: list[SearchRecommendation] = []
        for pattern in matching[:_MAX_TIME_PATTERNS]:
            for query in dict.fromkeys(q for q in pattern.pattern.common_queries if q):
                recommendations.append(
                    SearchRecommendation(
                        id=_make_recommendation_id("time"),
                        type=RecommendationType.QUERY,
                        title=f'Search for "{query}"',
                        description="Often searched at this time",
                        confidence=_clamp(pattern.confidence),
                        relevance_score=0.6,
                        based_on=RecommendationBasis(patterns=(pattern.id,), time_context=True),
                        action=SearchAction(query=query),
                    )
                )
        return recommendations

    def pattern_based(self, location: Location, current_time: str) -> list[SearchRecommendation]:
        """Confident patterns seen near here at this time of day."""

        def is_relevant(pattern) -> bool:
            if pattern.confidence < self._config.min_pattern_confidence:
                return False
            details = pattern.pattern
            if details.common_locations and not any(
                haversine_km(location.latitude, location.longitude, loc.latitude, loc.longitude)
                < self._config.pattern_radius_km
                for loc in details.common_locations
            ):
                return False
            if details.common_times and not any(
                t.split("_", 1)[0] == current_time for t in details.common_times
            ):
                return False
            return True

        relevant = [p for p in self._learner.patterns if is_relevant(p)]
        relevant.sort(key=lambda p: p.weight, reverse=True)

        recommendations: list[SearchRecommendation] = []
        for pattern in relevant[:_MAX_MATCHING_PATTERNS]:
            for query in dict.fromkeys(q for q in pattern.pattern.common_queries if q):
                recommendations.append(
                    SearchRecommendation(
                        id=_make_recommendation_id("pattern"),
                        type=RecommendationType.QUERY,
                        title=f'Try searching for "{query}"',
                        description="Based on your search patterns",
                        confidence=_clamp(pattern.confidence),
                        relevance_score=_clamp(pattern.predictive_value),
                        based_on=RecommendationBasis(
                            patterns=(pattern.id,),
                            recent_history=True,
                            location_context=True,
                            time_context=True,
                        ),
                        action=SearchAction(query=query, location=location),
                    )
                )
        return recommendations

    def history_based(self) -> list[SearchRecommendation]:
        """Areas where recent searches were repeatedly successful."""
        successful = [
            entry
            for entry in self._ledger.entries
            if _was_successful(entry)
        ][:_MAX_SUCCESSFUL_SEARCHES]

        groups: dict[str, list[SearchHistoryEntry]] = {}
        for entry in successful:
            key = location_key(
                entry.location.latitude, entry.location.longitude, HISTORY_GROUP_PRECISION_KM
            )
            groups.setdefault(key, []).append(entry)

        recommendations: list[SearchRecommendation] = []
        for key, members in groups.items():
            if len(members) < 2:
                continue
            most_recent = members[0]
            ratings = [m.user_interaction.rating or _DEFAULT_RATING for m in members]
            average = sum(ratings) / len(ratings)
            recommendations.append(
                SearchRecommendation(
                    id=_make_recommendation_id("history"),
                    type=RecommendationType.LOCATION,
                    title="Search near previous location",
                    description=(
                        f"You've had {len(members)} successful searches in this area "
                        f"(avg rating: {average:.1f})"
                    ),
                    confidence=_clamp(len(members) / 5),
                    relevance_score=0.7,
                    based_on=RecommendationBasis(recent_history=True, location_context=True),
                    action=NavigateAction(location=most_recent.location, region=most_recent.region),
                )
            )
            if len(recommendations) >= _MAX_HISTORY_GROUPS:
                break
        return recommendations


def _was_successful(entry: SearchHistoryEntry) -> bool:
    interaction = entry.user_interaction
    rating = interaction.rating if interaction.rating is not None else _DEFAULT_RATING
    return interaction.was_helpful and rating >= 4 and entry.results.count > 0
