"""Search context services."""
from searchctx.services.history import HistoryLedger
from searchctx.services.lifecycle import LifecycleManager, new_session_id
from searchctx.services.patterns import PatternLearner
from searchctx.services.recommendations import RecommendationEngine
from searchctx.services.search_context import SearchContextService
from searchctx.services.snapshots import ContextPreservation

__all__ = [
    "ContextPreservation",
    "HistoryLedger",
    "LifecycleManager",
    "PatternLearner",
    "RecommendationEngine",
    "SearchContextService",
    "new_session_id",
]
