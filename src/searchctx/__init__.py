from __future__ import annotations

__version__ = "0.1.0"
__author__ = "searchctx contributors"

from searchctx.models import (
    ContextSnapshot,
    Location,
    MapRegion,
    SearchHistoryEntry,
    SearchHistoryFilter,
    SearchPattern,
    SearchRecommendation,
    SearchResults,
)
from searchctx.services import SearchContextService

__all__ = [
    "ContextSnapshot",
    "Location",
    "MapRegion",
    "SearchHistoryEntry",
    "SearchHistoryFilter",
    "SearchPattern",
    "SearchRecommendation",
    "SearchResults",
    "SearchContextService",
]
