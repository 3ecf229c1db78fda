"""Data models for searchctx."""
from searchctx.models.enums import (
    ActionType,
    AppState,
    InteractionMode,
    MovementPattern,
    NotificationFrequency,
    PatternType,
    RecommendationType,
    ResultSource,
    SearchEvent,
    TimeOfDay,
)
from searchctx.models.domain import (
    ContextSnapshot,
    CurrentSession,
    EnvironmentalContext,
    FilterAction,
    Location,
    MapRegion,
    NavigateAction,
    NotificationSettings,
    PatternDetails,
    PerformanceMetrics,
    PrivacySettings,
    RecommendationAction,
    RecommendationBasis,
    SearchAction,
    SearchContext,
    SearchEnvironment,
    SearchHistoryEntry,
    SearchHistoryFilter,
    SearchPattern,
    SearchRecommendation,
    SearchResults,
    SearchState,
    SearchStatistics,
    SessionInfo,
    UserInteraction,
    UserPreferences,
    UserState,
    encode,
)

__all__ = [
    # Enums
    "ActionType",
    "AppState",
    "InteractionMode",
    "MovementPattern",
    "NotificationFrequency",
    "PatternType",
    "RecommendationType",
    "ResultSource",
    "SearchEvent",
    "TimeOfDay",
    # Domain models
    "ContextSnapshot",
    "CurrentSession",
    "EnvironmentalContext",
    "FilterAction",
    "Location",
    "MapRegion",
    "NavigateAction",
    "NotificationSettings",
    "PatternDetails",
    "PerformanceMetrics",
    "PrivacySettings",
    "RecommendationAction",
    "RecommendationBasis",
    "SearchAction",
    "SearchContext",
    "SearchEnvironment",
    "SearchHistoryEntry",
    "SearchHistoryFilter",
    "SearchPattern",
    "SearchRecommendation",
    "SearchResults",
    "SearchState",
    "SearchStatistics",
    "SessionInfo",
    "UserInteraction",
    "UserPreferences",
    "UserState",
    "encode",
]
