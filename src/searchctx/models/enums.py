"""Enumerations for searchctx."""
from __future__ import annotations

from enum import Enum


class ResultSource(str, Enum):
    """Where a search result set came from."""

    FRESH = "fresh"
    CACHED = "cached"
    PARTIAL = "partial"


class AppState(str, Enum):
    FOREGROUND = "foreground"
    BACKGROUND = "background"


class MovementPattern(str, Enum):
    STATIONARY = "stationary"
    WALKING = "walking"
    DRIVING = "driving"
    TRANSIT = "transit"


class TimeOfDay(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"


class PatternType(str, Enum):
    """Independent families of learned search patterns."""

    LOCATION = "location"
    QUERY = "query"
    TIME = "time"
    MIXED = "mixed"


class RecommendationType(str, Enum):
    LOCATION = "location"
    QUERY = "query"
    CATEGORY = "category"
    REFINEMENT = "refinement"


class ActionType(str, Enum):
    SEARCH = "search"
    NAVIGATE = "navigate"
    FILTER = "filter"


class InteractionMode(str, Enum):
    BROWSING = "browsing"
    SEARCHING = "searching"
    EXPLORING = "exploring"


class NotificationFrequency(str, Enum):
    ALL = "all"
    IMPORTANT = "important"
    MINIMAL = "minimal"


class SearchEvent(str, Enum):
    """In-process notifications emitted by the search context service."""

    SEARCH_ADDED = "search_added"
    INTERACTION_UPDATED = "interaction_updated"
    HISTORY_CLEARED = "history_cleared"
    CONTEXT_SNAPSHOT_SAVED = "context_snapshot_saved"
