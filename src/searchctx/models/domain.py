"""Domain models for searchctx - search history, patterns, context and recommendations."""
from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, ClassVar, Union

from searchctx.models.enums import (
    ActionType,
    AppState,
    InteractionMode,
    MovementPattern,
    NotificationFrequency,
    PatternType,
    RecommendationType,
    ResultSource,
    TimeOfDay,
)


def encode(value: Any) -> Any:
    """Convert models (and anything nested in them) to JSON-ready values."""
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value) and not isinstance(value, type):
        data = {f.name: encode(getattr(value, f.name)) for f in fields(value)}
        action_type = getattr(type(value), "action_type", None)
        if isinstance(action_type, ActionType):
            data["type"] = action_type.value
        return data
    if isinstance(value, (list, tuple)):
        return [encode(item) for item in value]
    if isinstance(value, dict):
        return {key: encode(item) for key, item in value.items()}
    return value


# ============================================================================
# Search history
# ============================================================================


@dataclass(frozen=True)
class Location:
    """Coordinates as reported by the geolocation provider."""

    latitude: float
    longitude: float
    accuracy: float = 0.0
    timestamp: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Location":
        return cls(
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            accuracy=float(data.get("accuracy", 0.0)),
            timestamp=int(data.get("timestamp", 0)),
        )


@dataclass(frozen=True)
class MapRegion:
    """Map viewport: center plus lat/lon span."""

    latitude: float
    longitude: float
    latitude_delta: float = 0.0
    longitude_delta: float = 0.0
    radius: float | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MapRegion":
        radius = data.get("radius")
        return cls(
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            latitude_delta=float(data.get("latitude_delta", 0.0)),
            longitude_delta=float(data.get("longitude_delta", 0.0)),
            radius=float(radius) if radius is not None else None,
        )


@dataclass(frozen=True)
class SearchResults:
    """Summary of the result set returned by the location search backend."""

    count: int
    businesses: list[dict[str, Any]] = field(default_factory=list)
    source: ResultSource = ResultSource.FRESH
    response_time_ms: float = 0.0
    confidence: float = 100.0

    @classmethod
    def from_businesses(
        cls,
        businesses: list[dict[str, Any]] | None = None,
        *,
        source: ResultSource | str = ResultSource.FRESH,
        response_time_ms: float = 0.0,
        confidence: float = 100.0,
    ) -> "SearchResults":
        items = list(businesses or [])
        return cls(
            count=len(items),
            businesses=items,
            source=ResultSource(source),
            response_time_ms=float(response_time_ms),
            confidence=float(confidence),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SearchResults":
        return cls(
            count=int(data.get("count", 0)),
            businesses=list(data.get("businesses", [])),
            source=ResultSource(data.get("source", ResultSource.FRESH.value)),
            response_time_ms=float(data.get("response_time_ms", 0.0)),
            confidence=float(data.get("confidence", 100.0)),
        )


@dataclass
class UserInteraction:
    """How the user engaged with a search; the only mutable part of an entry."""

    view_duration_ms: int = 0
    businesses_viewed: list[str] = field(default_factory=list)
    businesses_interacted: list[str] = field(default_factory=list)
    businesses_saved: list[str] = field(default_factory=list)
    was_helpful: bool = True
    rating: int | None = None
    feedback: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserInteraction":
        rating = data.get("rating")
        return cls(
            view_duration_ms=int(data.get("view_duration_ms", 0)),
            businesses_viewed=list(data.get("businesses_viewed", [])),
            businesses_interacted=list(data.get("businesses_interacted", [])),
            businesses_saved=list(data.get("businesses_saved", [])),
            was_helpful=bool(data.get("was_helpful", True)),
            rating=int(rating) if rating is not None else None,
            feedback=data.get("feedback"),
        )


@dataclass(frozen=True)
class SearchEnvironment:
    """Device and time context captured when the search ran."""

    time_of_day: TimeOfDay
    day_of_week: str
    app_state: AppState = AppState.FOREGROUND
    network_type: str = "unknown"
    movement_pattern: MovementPattern = MovementPattern.STATIONARY
    battery_level: float | None = None
    weather_condition: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SearchEnvironment":
        battery = data.get("battery_level")
        return cls(
            time_of_day=TimeOfDay(data["time_of_day"]),
            day_of_week=str(data["day_of_week"]),
            app_state=AppState(data.get("app_state", AppState.FOREGROUND.value)),
            network_type=str(data.get("network_type", "unknown")),
            movement_pattern=MovementPattern(
                data.get("movement_pattern", MovementPattern.STATIONARY.value)
            ),
            battery_level=float(battery) if battery is not None else None,
            weather_condition=data.get("weather_condition"),
        )


@dataclass(frozen=True)
class SessionInfo:
    session_id: str
    search_sequence: int
    is_repeat_search: bool = False
    previous_search_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SessionInfo":
        return cls(
            session_id=str(data["session_id"]),
            search_sequence=int(data.get("search_sequence", 0)),
            is_repeat_search=bool(data.get("is_repeat_search", False)),
            previous_search_id=data.get("previous_search_id"),
        )


@dataclass
class SearchHistoryEntry:
    """One completed search."""

    id: str
    timestamp: int
    query: str | None
    location: Location
    region: MapRegion
    results: SearchResults
    user_interaction: UserInteraction
    context: SearchEnvironment
    session_info: SessionInfo

    def to_dict(self) -> dict[str, Any]:
        return encode(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SearchHistoryEntry":
        return cls(
            id=str(data["id"]),
            timestamp=int(data["timestamp"]),
            query=data.get("query"),
            location=Location.from_dict(data["location"]),
            region=MapRegion.from_dict(data["region"]),
            results=SearchResults.from_dict(data.get("results", {})),
            user_interaction=UserInteraction.from_dict(data.get("user_interaction", {})),
            context=SearchEnvironment.from_dict(data["context"]),
            session_info=SessionInfo.from_dict(data["session_info"]),
        )


@dataclass
class SearchHistoryFilter:
    """Filters for reading the history ledger."""

    limit: int | None = None
    from_date: int | None = None
    to_date: int | None = None
    location: Location | None = None
    radius_km: float | None = None
    query: str | None = None


# ============================================================================
# Learned patterns
# ============================================================================


@dataclass
class PatternDetails:
    common_locations: list[Location] = field(default_factory=list)
    common_queries: list[str] = field(default_factory=list)
    common_categories: list[str] = field(default_factory=list)
    common_times: list[str] = field(default_factory=list)
    frequency: int = 1

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PatternDetails":
        return cls(
            common_locations=[Location.from_dict(loc) for loc in data.get("common_locations", [])],
            common_queries=list(data.get("common_queries", [])),
            common_categories=list(data.get("common_categories", [])),
            common_times=list(data.get("common_times", [])),
            frequency=int(data.get("frequency", 1)),
        )


@dataclass
class SearchPattern:
    """A learned aggregate over the search history."""

    id: str
    key: str
    type: PatternType
    pattern: PatternDetails
    confidence: float
    last_used: int
    predictive_value: float

    @property
    def weight(self) -> float:
        """Ranking weight used for pruning and pattern recommendations."""
        return self.confidence * self.predictive_value

    def to_dict(self) -> dict[str, Any]:
        return encode(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SearchPattern":
        return cls(
            id=str(data["id"]),
            key=str(data["key"]),
            type=PatternType(data["type"]),
            pattern=PatternDetails.from_dict(data.get("pattern", {})),
            confidence=float(data.get("confidence", 0.0)),
            last_used=int(data.get("last_used", 0)),
            predictive_value=float(data.get("predictive_value", 0.0)),
        )


# ============================================================================
# Search context
# ============================================================================


@dataclass
class CurrentSession:
    session_id: str
    start_time: int
    search_count: int = 0
    last_search_time: int = 0
    current_location: Location = field(default_factory=lambda: Location(0.0, 0.0))
    user_movement_pattern: MovementPattern = MovementPattern.STATIONARY

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CurrentSession":
        location = data.get("current_location")
        return cls(
            session_id=str(data["session_id"]),
            start_time=int(data.get("start_time", 0)),
            search_count=int(data.get("search_count", 0)),
            last_search_time=int(data.get("last_search_time", 0)),
            current_location=Location.from_dict(location) if location else Location(0.0, 0.0),
            user_movement_pattern=MovementPattern(
                data.get("user_movement_pattern", MovementPattern.STATIONARY.value)
            ),
        )


@dataclass
class NotificationSettings:
    enabled: bool = True
    types: list[str] = field(
        default_factory=lambda: ["search_completed", "recommendations", "patterns"]
    )
    frequency: NotificationFrequency = NotificationFrequency.IMPORTANT

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NotificationSettings":
        defaults = cls()
        return cls(
            enabled=bool(data.get("enabled", defaults.enabled)),
            types=list(data.get("types", defaults.types)),
            frequency=NotificationFrequency(data.get("frequency", defaults.frequency.value)),
        )


@dataclass
class PrivacySettings:
    save_history: bool = True
    share_anonymized_data: bool = False
    retention_period_days: int = 90

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PrivacySettings":
        defaults = cls()
        return cls(
            save_history=bool(data.get("save_history", defaults.save_history)),
            share_anonymized_data=bool(
                data.get("share_anonymized_data", defaults.share_anonymized_data)
            ),
            retention_period_days=int(
                data.get("retention_period_days", defaults.retention_period_days)
            ),
        )


@dataclass
class UserPreferences:
    default_radius: float = 5
    preferred_categories: list[str] = field(default_factory=list)
    notification_settings: NotificationSettings = field(default_factory=NotificationSettings)
    privacy_settings: PrivacySettings = field(default_factory=PrivacySettings)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserPreferences":
        return cls(
            default_radius=float(data.get("default_radius", 5)),
            preferred_categories=list(data.get("preferred_categories", [])),
            notification_settings=NotificationSettings.from_dict(
                data.get("notification_settings", {})
            ),
            privacy_settings=PrivacySettings.from_dict(data.get("privacy_settings", {})),
        )


@dataclass
class PerformanceMetrics:
    average_search_time_ms: float = 1200.0
    cache_hit_rate: float = 0.75
    user_satisfaction_score: float = 4.2
    most_used_features: list[str] = field(
        default_factory=lambda: ["location_search", "category_filter", "radius_adjustment"]
    )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PerformanceMetrics":
        defaults = cls()
        return cls(
            average_search_time_ms=float(
                data.get("average_search_time_ms", defaults.average_search_time_ms)
            ),
            cache_hit_rate=float(data.get("cache_hit_rate", defaults.cache_hit_rate)),
            user_satisfaction_score=float(
                data.get("user_satisfaction_score", defaults.user_satisfaction_score)
            ),
            most_used_features=list(data.get("most_used_features", defaults.most_used_features)),
        )


@dataclass
class SearchContext:
    """Process-wide interaction state.

    ``recent_history`` and ``personalized_patterns`` are live views of the
    ledger and pattern index; they are stored under their own keys and left
    out of :meth:`to_dict`.
    """

    current_session: CurrentSession
    recent_history: list[SearchHistoryEntry] = field(default_factory=list)
    personalized_patterns: list[SearchPattern] = field(default_factory=list)
    user_preferences: UserPreferences = field(default_factory=UserPreferences)
    performance_metrics: PerformanceMetrics = field(default_factory=PerformanceMetrics)

    def to_dict(self) -> dict[str, Any]:
        return {
            "current_session": encode(self.current_session),
            "user_preferences": encode(self.user_preferences),
            "performance_metrics": encode(self.performance_metrics),
        }


# ============================================================================
# Context snapshots
# ============================================================================


@dataclass(frozen=True)
class SearchState:
    active_query: str | None = None
    active_filters: dict[str, Any] = field(default_factory=dict)
    current_region: MapRegion | None = None
    result_count: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SearchState":
        region = data.get("current_region")
        return cls(
            active_query=data.get("active_query"),
            active_filters=dict(data.get("active_filters") or {}),
            current_region=MapRegion.from_dict(region) if region else None,
            result_count=int(data.get("result_count", 0)),
        )


@dataclass(frozen=True)
class UserState:
    interaction_mode: InteractionMode = InteractionMode.BROWSING
    session_duration_ms: int = 0
    recent_actions: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserState":
        return cls(
            interaction_mode=InteractionMode(
                data.get("interaction_mode", InteractionMode.BROWSING.value)
            ),
            session_duration_ms=int(data.get("session_duration_ms", 0)),
            recent_actions=tuple(data.get("recent_actions", ())),
        )


@dataclass(frozen=True)
class EnvironmentalContext:
    network_condition: str = "unknown"
    battery_level: float | None = None
    time_context: TimeOfDay | None = None
    movement_pattern: MovementPattern = MovementPattern.STATIONARY

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EnvironmentalContext":
        battery = data.get("battery_level")
        time_context = data.get("time_context")
        return cls(
            network_condition=str(data.get("network_condition", "unknown")),
            battery_level=float(battery) if battery is not None else None,
            time_context=TimeOfDay(time_context) if time_context else None,
            movement_pattern=MovementPattern(
                data.get("movement_pattern", MovementPattern.STATIONARY.value)
            ),
        )


@dataclass(frozen=True)
class ContextSnapshot:
    """Point-in-time capture of the interaction state."""

    timestamp: int
    location: Location
    search_state: SearchState
    user_state: UserState
    environmental_context: EnvironmentalContext

    def to_dict(self) -> dict[str, Any]:
        return encode(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContextSnapshot":
        return cls(
            timestamp=int(data["timestamp"]),
            location=Location.from_dict(data["location"]),
            search_state=SearchState.from_dict(data.get("search_state", {})),
            user_state=UserState.from_dict(data.get("user_state", {})),
            environmental_context=EnvironmentalContext.from_dict(
                data.get("environmental_context", {})
            ),
        )


# ============================================================================
# Recommendations
# ============================================================================


@dataclass(frozen=True)
class SearchAction:
    action_type: ClassVar[ActionType] = ActionType.SEARCH

    query: str
    location: Location | None = None


@dataclass(frozen=True)
class NavigateAction:
    action_type: ClassVar[ActionType] = ActionType.NAVIGATE

    location: Location
    region: MapRegion


@dataclass(frozen=True)
class FilterAction:
    action_type: ClassVar[ActionType] = ActionType.FILTER

    filters: dict[str, Any] = field(default_factory=dict)


RecommendationAction = Union[SearchAction, NavigateAction, FilterAction]


@dataclass(frozen=True)
class RecommendationBasis:
    patterns: tuple[str, ...] = ()
    recent_history: bool = False
    location_context: bool = False
    time_context: bool = False


@dataclass(frozen=True)
class SearchRecommendation:
    """A suggested next search; computed per request, never persisted."""

    id: str
    type: RecommendationType
    title: str
    description: str
    confidence: float
    relevance_score: float
    based_on: RecommendationBasis
    action: RecommendationAction

    @property
    def score(self) -> float:
        return self.relevance_score * 0.6 + self.confidence * 0.4

    def to_dict(self) -> dict[str, Any]:
        return encode(self)


# ============================================================================
# Statistics
# ============================================================================


@dataclass
class SearchStatistics:
    history_entries: int
    search_patterns: int
    context_snapshots: int
    patterns_by_type: dict[str, int]
    current_session: CurrentSession
    performance_metrics: PerformanceMetrics

    def to_dict(self) -> dict[str, Any]:
        return encode(self)
