"""Tests for searchctx.core.time_context."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from searchctx.core.time_context import (
    day_of_week,
    from_epoch_ms,
    local_now,
    time_of_day,
    time_slot,
    to_epoch_ms,
)
from searchctx.models import TimeOfDay


class TestTimeOfDay:
    """Tests for the hour buckets."""

    @pytest.mark.parametrize(
        "hour, expected",
        [
            (0, TimeOfDay.NIGHT),
            (4, TimeOfDay.NIGHT),
            (5, TimeOfDay.MORNING),
            (11, TimeOfDay.MORNING),
            (12, TimeOfDay.AFTERNOON),
            (16, TimeOfDay.AFTERNOON),
            (17, TimeOfDay.EVENING),
            (20, TimeOfDay.EVENING),
            (21, TimeOfDay.NIGHT),
            (23, TimeOfDay.NIGHT),
        ],
    )
    def test_boundaries(self, hour, expected):
        assert time_of_day(datetime(2026, 3, 2, hour, 30)) == expected


class TestDayOfWeek:
    def test_lowercase_names(self):
        assert day_of_week(datetime(2026, 3, 2)) == "monday"
        assert day_of_week(datetime(2026, 3, 8)) == "sunday"

    def test_time_slot_key(self):
        assert time_slot("morning", "monday") == "morning_monday"


class TestEpochConversion:
    def test_round_trip_preserves_wall_clock(self):
        moment = datetime(2026, 3, 2, 9, 15, 0)
        restored = from_epoch_ms(to_epoch_ms(moment))
        assert (restored.hour, restored.minute) == (9, 15)

    def test_local_now_is_aware(self):
        assert local_now().tzinfo is not None

    def test_explicit_zone_keeps_wall_clock(self):
        tokyo = timezone(timedelta(hours=9))
        moment = datetime(2026, 3, 2, 9, 15, tzinfo=tokyo)

        restored = from_epoch_ms(to_epoch_ms(moment), tokyo)

        assert restored == moment
        assert (restored.hour, restored.minute) == (9, 15)
        assert restored.utcoffset() == timedelta(hours=9)
