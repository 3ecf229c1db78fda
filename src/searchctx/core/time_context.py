"""Clock and time-of-day helpers."""
from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, tzinfo

from searchctx.models.enums import TimeOfDay

Clock = Callable[[], datetime]

_DAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def local_now() -> datetime:
    return datetime.now().astimezone()


def to_epoch_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def from_epoch_ms(value: int, tz: tzinfo | None = None) -> datetime:
    """Epoch ms to an aware datetime in ``tz``, or in local time when ``tz`` is None."""
    if tz is not None:
        return datetime.fromtimestamp(value / 1000, tz=tz)
    return datetime.fromtimestamp(value / 1000).astimezone()


def time_of_day(moment: datetime) -> TimeOfDay:
    """Bucket a wall-clock hour: 5-12 morning, 12-17 afternoon, 17-21 evening, else night."""
    hour = moment.hour
    if 5 <= hour < 12:
        return TimeOfDay.MORNING
    if 12 <= hour < 17:
        return TimeOfDay.AFTERNOON
    if 17 <= hour < 21:
        return TimeOfDay.EVENING
    return TimeOfDay.NIGHT


def day_of_week(moment: datetime) -> str:
    return _DAY_NAMES[moment.weekday()]


def time_slot(time_of_day_value: str, day: str) -> str:
    """Key of the time pattern family, e.g. ``morning_monday``."""
    return f"{time_of_day_value}_{day}"
