"""Core utilities: geodistance, time context, events and scheduling."""
from searchctx.core.events import EventBus, Subscription
from searchctx.core.geo import haversine_km, haversine_many_km, location_key
from searchctx.core.scheduler import IntervalTask
from searchctx.core.time_context import day_of_week, time_of_day, to_epoch_ms

__all__ = [
    "EventBus",
    "Subscription",
    "IntervalTask",
    "haversine_km",
    "haversine_many_km",
    "location_key",
    "day_of_week",
    "time_of_day",
    "to_epoch_ms",
]
