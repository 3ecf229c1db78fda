"""Tests for searchctx.services.recommendations.RecommendationEngine."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import pytest

from searchctx.config.settings import HistoryConfig, PatternsConfig, RecommendationsConfig
from searchctx.core.time_context import to_epoch_ms
from searchctx.models import (
    Location,
    NavigateAction,
    RecommendationType,
    SearchAction,
)
from searchctx.services.history import HistoryLedger
from searchctx.services.patterns import PatternLearner
from searchctx.services.recommendations import RecommendationEngine

DOWNTOWN = Location(latitude=37.7749, longitude=-122.4194)
MISSION = Location(latitude=37.7599, longitude=-122.4148)  # ~1.7 km away
OAKLAND = Location(latitude=37.8044, longitude=-122.2712)  # ~13 km away


def _recommendations_config(**overrides) -> RecommendationsConfig:
    values = dict(
        max_results=10, nearby_radius_km=2.0, pattern_radius_km=5.0, min_pattern_confidence=0.3
    )
    values.update(overrides)
    return RecommendationsConfig(**values)


class _Harness:
    def __init__(self, search_context, clock, make_entry, config=None):
        self.ledger = HistoryLedger(
            HistoryConfig(max_entries=500, recent_history_size=50, repeat_search_radius_km=0.5),
            search_context,
        )
        self.learner = PatternLearner(
            PatternsConfig(max_patterns=100, max_mixed_patterns=20, max_age_days=90,
                           min_confidence=0.05),
            search_context,
        )
        self.engine = RecommendationEngine(
            config or _recommendations_config(), self.ledger, self.learner, clock=clock
        )
        self._clock = clock
        self._make_entry = make_entry
        self._count = 0

    def search(self, query, location=DOWNTOWN, **kwargs):
        self._count += 1
        kwargs.setdefault("timestamp", self._clock.ms + self._count)
        entry = self._make_entry(f"e{self._count}", query=query, location=location, **kwargs)
        self.ledger.add(entry)
        self.learner.learn(entry)
        return entry


@pytest.fixture
def harness(search_context, clock, make_entry) -> _Harness:
    return _Harness(search_context, clock, make_entry)


class TestEmpty:
    def test_no_history_no_recommendations(self, harness):
        assert harness.engine.recommend(DOWNTOWN) == []


class TestLocationBased:
    """Popular nearby queries."""

    def test_counts_nearby_queries(self, harness):
        for _ in range(3):
            harness.search("coffee", DOWNTOWN)
        harness.search("tea", MISSION)
        harness.search(None, DOWNTOWN)
        harness.search("pizza", OAKLAND)
        harness.search("pizza", OAKLAND)

        recs = harness.engine.location_based(DOWNTOWN)

        assert [r.action.query for r in recs] == ["coffee", "tea"]
        coffee = recs[0]
        assert coffee.type == RecommendationType.QUERY
        assert coffee.confidence == pytest.approx(0.6)
        assert coffee.relevance_score == 0.8
        assert coffee.action == SearchAction(query="coffee", location=DOWNTOWN)
        assert "3 previous searches" in coffee.description

    def test_top_five_queries_only(self, harness):
        for i in range(7):
            harness.search(f"q{i}")
        assert len(harness.engine.location_based(DOWNTOWN)) == 5

    def test_confidence_capped(self, harness):
        for _ in range(8):
            harness.search("coffee")
        assert harness.engine.location_based(DOWNTOWN)[0].confidence == 1.0


class TestTimeBased:
    def test_matches_current_slot(self, harness):
        harness.search("bagels")
        harness.search("coffee")

        recs = harness.engine.time_based("morning", "monday")

        assert [r.action.query for r in recs] == ["bagels"]
        assert recs[0].relevance_score == 0.6
        assert recs[0].confidence == pytest.approx(2 / 8)
        assert recs[0].based_on.time_context is True

    def test_other_slot_gets_nothing(self, harness):
        harness.search("bagels")
        assert harness.engine.time_based("evening", "monday") == []
        assert harness.engine.time_based("morning", "tuesday") == []


class TestPatternBased:
    """Confident patterns filtered by location and time of day."""

    def test_relevant_patterns_here_and_now(self, harness):
        for _ in range(3):
            harness.search("coffee", DOWNTOWN)

        recs = harness.engine.pattern_based(DOWNTOWN, "morning")

        assert recs
        assert {r.action.query for r in recs} == {"coffee"}
        assert all(0.0 <= r.relevance_score <= 1.0 for r in recs)
        assert all(r.confidence >= 0.3 for r in recs)

    def test_far_location_filtered(self, harness):
        for _ in range(3):
            harness.search("coffee", DOWNTOWN)
        assert harness.engine.pattern_based(OAKLAND, "morning") == []

    def test_other_time_filtered(self, harness):
        for _ in range(3):
            harness.search("coffee", DOWNTOWN)
        assert harness.engine.pattern_based(DOWNTOWN, "evening") == []

    def test_low_confidence_ignored(self, harness):
        harness.search("coffee", DOWNTOWN)
        assert harness.engine.pattern_based(DOWNTOWN, "morning") == []


class TestHistoryBased:
    """Repeatedly successful areas."""

    def test_groups_successful_searches(self, harness):
        harness.search("coffee", DOWNTOWN)
        harness.search("tea", DOWNTOWN)
        newest = harness.search("cake", DOWNTOWN, rating=5)

        recs = harness.engine.history_based()

        assert len(recs) == 1
        rec = recs[0]
        assert rec.type == RecommendationType.LOCATION
        assert rec.action == NavigateAction(location=newest.location, region=newest.region)
        assert rec.confidence == pytest.approx(0.6)
        assert rec.relevance_score == 0.7
        assert "3 successful searches" in rec.description
        assert "avg rating: 4.3" in rec.description

    def test_unsuccessful_searches_ignored(self, harness):
        harness.search("coffee", DOWNTOWN, rating=2)
        harness.search("coffee", DOWNTOWN, was_helpful=False)
        harness.search("coffee", DOWNTOWN, result_count=0)
        harness.search("coffee", DOWNTOWN)

        assert harness.engine.history_based() == []

    def test_single_search_area_ignored(self, harness):
        harness.search("coffee", DOWNTOWN)
        harness.search("coffee", OAKLAND)
        assert harness.engine.history_based() == []

    def test_at_most_three_areas(self, harness):
        for i in range(5):
            spot = Location(latitude=37.0 + i * 0.1, longitude=-122.0)
            harness.search("coffee", spot)
            harness.search("coffee", spot)
        assert len(harness.engine.history_based()) == 3


class TestRecommend:
    """Tests for the combined, ranked output."""

    def test_sorted_by_blended_score(self, harness):
        for _ in range(3):
            harness.search("coffee", DOWNTOWN)
        harness.search("tea", DOWNTOWN)

        recs = harness.engine.recommend(DOWNTOWN)
        scores = [r.score for r in recs]

        assert recs
        assert scores == sorted(scores, reverse=True)
        assert len(recs) <= 10
        assert all(0.0 <= r.confidence <= 1.0 for r in recs)
        assert all(0.0 <= r.relevance_score <= 1.0 for r in recs)

    def test_truncated_to_max_results(self, search_context, clock, make_entry):
        harness = _Harness(
            search_context, clock, make_entry, _recommendations_config(max_results=2)
        )
        for i in range(6):
            harness.search(f"q{i}")
        assert len(harness.engine.recommend(DOWNTOWN)) == 2

    def test_failing_generator_isolated(self, harness, monkeypatch, caplog):
        harness.search("coffee")
        harness.search("coffee")

        def boom(_location):
            raise RuntimeError("location generator broken")

        monkeypatch.setattr(harness.engine, "location_based", boom)

        with caplog.at_level(logging.ERROR):
            recs = harness.engine.recommend(DOWNTOWN)

        assert recs
        assert not any(r.id.startswith("location") for r in recs)
        assert "Failed to generate location-based recommendations" in caplog.text

    def test_context_timestamp_sets_time_of_day(self, harness, make_snapshot):
        harness.search("bagels")
        evening = to_epoch_ms(datetime(2026, 3, 2, 19, 0))

        morning_recs = harness.engine.recommend(OAKLAND)
        evening_recs = harness.engine.recommend(OAKLAND, make_snapshot(evening))

        assert any(r.id.startswith("time") for r in morning_recs)
        assert not any(r.id.startswith("time") for r in evening_recs)

    def test_context_timestamp_uses_clock_zone(self, harness, make_snapshot):
        # 09:00 Monday in UTC+9 is midnight UTC and Sunday evening in the Americas.
        tokyo = timezone(timedelta(hours=9))
        tokyo_morning = datetime(2026, 3, 2, 9, 0, tzinfo=tokyo)
        harness.search("bagels")
        engine = RecommendationEngine(
            _recommendations_config(),
            harness.ledger,
            harness.learner,
            clock=lambda: tokyo_morning,
        )

        recs = engine.recommend(OAKLAND, make_snapshot(to_epoch_ms(tokyo_morning)))

        assert any(r.id.startswith("time") for r in recs)

    def test_does_not_mutate_state(self, harness):
        for _ in range(3):
            harness.search("coffee")
        before = (
            [e.id for e in harness.ledger.entries],
            [p.to_dict() for p in harness.learner.patterns],
        )

        harness.engine.recommend(DOWNTOWN)

        after = (
            [e.id for e in harness.ledger.entries],
            [p.to_dict() for p in harness.learner.patterns],
        )
        assert before == after
