"""
Constants and default values for searchctx.

Centralizes magic numbers and strings to improve maintainability.
"""

from pathlib import Path

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "searchctx"
APP_VERSION = "0.1.0"
CONFIG_DIR_NAME = ".searchctx"

# ============================================================================
# Path Defaults
# ============================================================================

DEFAULT_DATA_DIR = Path.home() / CONFIG_DIR_NAME
DEFAULT_CONFIG_SUBDIR = "config"
DEFAULT_LOGS_SUBDIR = "logs"

# Config file names
SETTINGS_FILE = "settings.toml"
ENV_FILE = ".env"

# DuckDB file backing the durable key-value store
STORE_DB_FILE = "searchctx.duckdb"

# ============================================================================
# Storage Keys
# ============================================================================

STORAGE_KEY_HISTORY = "search_history_v2"
STORAGE_KEY_CONTEXT = "search_context_v2"
STORAGE_KEY_PATTERNS = "search_patterns_v2"
STORAGE_KEY_SNAPSHOTS = "context_snapshots_v2"

DEFAULT_STORAGE_BACKEND = "duckdb"
STORAGE_BACKENDS = ("duckdb", "memory")

# ============================================================================
# History Ledger Defaults
# ============================================================================

MAX_HISTORY_ENTRIES = 500
RECENT_HISTORY_SIZE = 50
REPEAT_SEARCH_RADIUS_KM = 0.5

# ============================================================================
# Pattern Learning Defaults
# ============================================================================

MAX_PATTERNS = 100
MAX_MIXED_PATTERNS = 20
PATTERN_MAX_AGE_DAYS = 90
PATTERN_MIN_CONFIDENCE = 0.05

# Grid spacing for pattern location keys
LOCATION_KEY_PRECISION_KM = 0.1
# Query patterns only add a representative location this far from the others
QUERY_LOCATION_SPREAD_KM = 2.0
MAX_QUERY_LOCATIONS = 5

# Frequency divisors: confidence = min(1, frequency / divisor)
LOCATION_CONFIDENCE_DIVISOR = 10
QUERY_CONFIDENCE_DIVISOR = 5
TIME_CONFIDENCE_DIVISOR = 8
MIXED_CONFIDENCE_DIVISOR = 3

MIXED_PREDICTIVE_STEP = 0.05
MAX_PREDICTIVE_VALUE = 0.5

# ============================================================================
# Recommendation Defaults
# ============================================================================

MAX_RECOMMENDATIONS = 10
NEARBY_RADIUS_KM = 2.0
PATTERN_RADIUS_KM = 5.0
MIN_PATTERN_CONFIDENCE = 0.3
HISTORY_GROUP_PRECISION_KM = 1.0

RELEVANCE_WEIGHT = 0.6
CONFIDENCE_WEIGHT = 0.4

# ============================================================================
# Context Preservation / Lifecycle Defaults
# ============================================================================

MAX_CONTEXT_SNAPSHOTS = 100
SNAPSHOT_INTERVAL_SECONDS = 30
SNAPSHOT_IDLE_TIMEOUT_SECONDS = 300
HISTORY_CLEANUP_INTERVAL_HOURS = 24
DEFAULT_RETENTION_DAYS = 90

MS_PER_DAY = 86_400_000

# ============================================================================
# User Preference Defaults
# ============================================================================

DEFAULT_SEARCH_RADIUS_KM = 5
DEFAULT_NOTIFICATION_TYPES = ("search_completed", "recommendations", "patterns")
DEFAULT_AVERAGE_SEARCH_TIME_MS = 1200.0
DEFAULT_CACHE_HIT_RATE = 0.75
DEFAULT_SATISFACTION_SCORE = 4.2
DEFAULT_MOST_USED_FEATURES = ("location_search", "category_filter", "radius_adjustment")

# ============================================================================
# Environment Variable Names
# ============================================================================

ENV_DATA_DIR = "SEARCHCTX_DATA_DIR"
ENV_STORAGE_BACKEND = "SEARCHCTX_STORAGE_BACKEND"
ENV_MAX_HISTORY = "SEARCHCTX_MAX_HISTORY_ENTRIES"
ENV_MAX_PATTERNS = "SEARCHCTX_MAX_PATTERNS"
ENV_MAX_RECOMMENDATIONS = "SEARCHCTX_MAX_RECOMMENDATIONS"
ENV_SNAPSHOT_INTERVAL = "SEARCHCTX_SNAPSHOT_INTERVAL_SECONDS"
ENV_SNAPSHOT_IDLE_TIMEOUT = "SEARCHCTX_SNAPSHOT_IDLE_TIMEOUT_SECONDS"
ENV_CLEANUP_INTERVAL = "SEARCHCTX_CLEANUP_INTERVAL_HOURS"
ENV_RETENTION_DAYS = "SEARCHCTX_RETENTION_DAYS"
ENV_LOG_LEVEL = "SEARCHCTX_LOG_LEVEL"

# ============================================================================
# Error Messages
# ============================================================================

ERROR_NO_CONFIG = """
Configuration file not found: {path}

Create one at {config_dir}/{settings_file}, or drop the explicit path to
fall back to built-in defaults.
"""

ERROR_UNKNOWN_BACKEND = """
Unknown storage backend: {backend}

Valid backends: {valid}
"""
