"""
Configuration management with environment variable and .env support.

Configuration precedence (highest to lowest):
1. Environment variables (SEARCHCTX_*)
2. User config file (~/.searchctx/config/settings.toml)
3. Hardcoded constants (constants.py)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import overload

import tomli
from dotenv import load_dotenv

from ..core.logging_config import LogConfig
from .constants import (
    DEFAULT_DATA_DIR,
    DEFAULT_CONFIG_SUBDIR,
    SETTINGS_FILE,
    ENV_FILE,
    STORE_DB_FILE,
    # Defaults
    DEFAULT_STORAGE_BACKEND,
    STORAGE_BACKENDS,
    MAX_HISTORY_ENTRIES,
    RECENT_HISTORY_SIZE,
    REPEAT_SEARCH_RADIUS_KM,
    MAX_PATTERNS,
    MAX_MIXED_PATTERNS,
    PATTERN_MAX_AGE_DAYS,
    PATTERN_MIN_CONFIDENCE,
    MAX_RECOMMENDATIONS,
    NEARBY_RADIUS_KM,
    PATTERN_RADIUS_KM,
    MIN_PATTERN_CONFIDENCE,
    MAX_CONTEXT_SNAPSHOTS,
    SNAPSHOT_INTERVAL_SECONDS,
    SNAPSHOT_IDLE_TIMEOUT_SECONDS,
    HISTORY_CLEANUP_INTERVAL_HOURS,
    DEFAULT_RETENTION_DAYS,
    # Environment variable names
    ENV_DATA_DIR,
    ENV_STORAGE_BACKEND,
    ENV_MAX_HISTORY,
    ENV_MAX_PATTERNS,
    ENV_MAX_RECOMMENDATIONS,
    ENV_SNAPSHOT_INTERVAL,
    ENV_SNAPSHOT_IDLE_TIMEOUT,
    ENV_CLEANUP_INTERVAL,
    ENV_RETENTION_DAYS,
    ENV_LOG_LEVEL,
    ERROR_NO_CONFIG,
    ERROR_UNKNOWN_BACKEND,
)


# Load .env file at module import time
# Search order: ./.env, ~/.searchctx/.env, ~/.searchctx/config/.env
def _load_env_files():
    """Load .env files from standard locations."""
    env_locations = [
        Path.cwd() / ENV_FILE,
        DEFAULT_DATA_DIR / ENV_FILE,
        DEFAULT_DATA_DIR / DEFAULT_CONFIG_SUBDIR / ENV_FILE,
    ]

    for env_path in env_locations:
        if env_path.exists():
            load_dotenv(env_path, override=False)  # Don't override already-set vars


_load_env_files()


@overload
def _get_env_str(key: str, default: str) -> str: ...


@overload
def _get_env_str(key: str, default: None = None) -> str | None: ...


def _get_env_str(key: str, default: str | None = None) -> str | None:
    """Get string value from environment variable. Empty strings are treated as missing."""
    value = os.getenv(key)
    if value is None or value == "":
        return default
    return value


def _get_env_int(key: str, default: int) -> int:
    """Get integer value from environment variable."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_env_float(key: str, default: float) -> float:
    """Get float value from environment variable."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass
class PathsConfig:
    data_directory: str

    @classmethod
    def from_dict(cls, data: dict) -> "PathsConfig":
        """Create PathsConfig from dict with environment variable overrides."""
        return cls(
            data_directory=_get_env_str(
                ENV_DATA_DIR,
                data.get("data_directory", str(DEFAULT_DATA_DIR))
            ) or str(DEFAULT_DATA_DIR),
        )

    @property
    def store_path(self) -> Path:
        return Path(self.data_directory).expanduser() / STORE_DB_FILE


@dataclass
class StorageConfig:
    backend: str

    @classmethod
    def from_dict(cls, data: dict) -> "StorageConfig":
        backend = (
            _get_env_str(ENV_STORAGE_BACKEND, data.get("backend", DEFAULT_STORAGE_BACKEND))
            or DEFAULT_STORAGE_BACKEND
        ).strip().lower()
        if backend not in STORAGE_BACKENDS:
            raise ValueError(
                ERROR_UNKNOWN_BACKEND.format(backend=backend, valid=", ".join(STORAGE_BACKENDS))
            )
        return cls(backend=backend)


@dataclass
class HistoryConfig:
    max_entries: int
    recent_history_size: int
    repeat_search_radius_km: float

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryConfig":
        return cls(
            max_entries=_get_env_int(
                ENV_MAX_HISTORY,
                int(data.get("max_entries", MAX_HISTORY_ENTRIES)),
            ),
            recent_history_size=int(data.get("recent_history_size", RECENT_HISTORY_SIZE)),
            repeat_search_radius_km=float(
                data.get("repeat_search_radius_km", REPEAT_SEARCH_RADIUS_KM)
            ),
        )


@dataclass
class PatternsConfig:
    max_patterns: int
    max_mixed_patterns: int
    max_age_days: int
    min_confidence: float

    @classmethod
    def from_dict(cls, data: dict) -> "PatternsConfig":
        return cls(
            max_patterns=_get_env_int(
                ENV_MAX_PATTERNS,
                int(data.get("max_patterns", MAX_PATTERNS)),
            ),
            max_mixed_patterns=int(data.get("max_mixed_patterns", MAX_MIXED_PATTERNS)),
            max_age_days=int(data.get("max_age_days", PATTERN_MAX_AGE_DAYS)),
            min_confidence=float(data.get("min_confidence", PATTERN_MIN_CONFIDENCE)),
        )


@dataclass
class RecommendationsConfig:
    max_results: int
    nearby_radius_km: float
    pattern_radius_km: float
    min_pattern_confidence: float

    @classmethod
    def from_dict(cls, data: dict) -> "RecommendationsConfig":
        return cls(
            max_results=_get_env_int(
                ENV_MAX_RECOMMENDATIONS,
                int(data.get("max_results", MAX_RECOMMENDATIONS)),
            ),
            nearby_radius_km=float(data.get("nearby_radius_km", NEARBY_RADIUS_KM)),
            pattern_radius_km=float(data.get("pattern_radius_km", PATTERN_RADIUS_KM)),
            min_pattern_confidence=float(
                data.get("min_pattern_confidence", MIN_PATTERN_CONFIDENCE)
            ),
        )


@dataclass
class SnapshotsConfig:
    max_snapshots: int
    interval_seconds: float
    idle_timeout_seconds: float

    @classmethod
    def from_dict(cls, data: dict) -> "SnapshotsConfig":
        return cls(
            max_snapshots=int(data.get("max_snapshots", MAX_CONTEXT_SNAPSHOTS)),
            interval_seconds=_get_env_float(
                ENV_SNAPSHOT_INTERVAL,
                float(data.get("interval_seconds", SNAPSHOT_INTERVAL_SECONDS)),
            ),
            idle_timeout_seconds=_get_env_float(
                ENV_SNAPSHOT_IDLE_TIMEOUT,
                float(data.get("idle_timeout_seconds", SNAPSHOT_IDLE_TIMEOUT_SECONDS)),
            ),
        )


@dataclass
class RetentionConfig:
    cleanup_interval_hours: float
    default_retention_days: int

    @classmethod
    def from_dict(cls, data: dict) -> "RetentionConfig":
        return cls(
            cleanup_interval_hours=_get_env_float(
                ENV_CLEANUP_INTERVAL,
                float(data.get("cleanup_interval_hours", HISTORY_CLEANUP_INTERVAL_HOURS)),
            ),
            default_retention_days=_get_env_int(
                ENV_RETENTION_DAYS,
                int(data.get("default_retention_days", DEFAULT_RETENTION_DAYS)),
            ),
        )


@dataclass
class Config:
    paths: PathsConfig
    storage: StorageConfig
    history: HistoryConfig
    patterns: PatternsConfig
    recommendations: RecommendationsConfig
    snapshots: SnapshotsConfig
    retention: RetentionConfig
    logging: LogConfig

    @classmethod
    def defaults(cls) -> "Config":
        """Config built from constants and environment only, no files."""
        return cls._from_data({})

    @classmethod
    def load(cls, config_path: Path | None = None) -> "Config":
        """
        Load configuration with proper precedence.

        Precedence (highest to lowest):
        1. Environment variables (SEARCHCTX_*)
        2. User config (~/.searchctx/config/settings.toml)
        3. Hardcoded constants

        Args:
            config_path: Optional explicit config file path

        Returns:
            Loaded Config object

        Raises:
            FileNotFoundError: If an explicit config path does not exist
        """
        if config_path is not None:
            config_files = [config_path]
        else:
            base_data_dir = Path(os.getenv(ENV_DATA_DIR, str(DEFAULT_DATA_DIR))).expanduser()
            config_files = [base_data_dir / DEFAULT_CONFIG_SUBDIR / SETTINGS_FILE]

        data = None
        for config_file in config_files:
            if config_file.exists():
                with open(config_file, "rb") as f:
                    data = tomli.load(f)
                break

        if data is None:
            if config_path is not None:
                raise FileNotFoundError(
                    ERROR_NO_CONFIG.format(
                        path=config_path,
                        config_dir=DEFAULT_DATA_DIR / DEFAULT_CONFIG_SUBDIR,
                        settings_file=SETTINGS_FILE,
                    )
                )
            data = {}

        return cls._from_data(data)

    @classmethod
    def _from_data(cls, data: dict) -> "Config":
        log_data = dict(data.get("logging", {}))
        env_level = _get_env_str(ENV_LOG_LEVEL)
        if env_level:
            log_data["level"] = env_level

        return cls(
            paths=PathsConfig.from_dict(data.get("paths", {})),
            storage=StorageConfig.from_dict(data.get("storage", {})),
            history=HistoryConfig.from_dict(data.get("history", {})),
            patterns=PatternsConfig.from_dict(data.get("patterns", {})),
            recommendations=RecommendationsConfig.from_dict(data.get("recommendations", {})),
            snapshots=SnapshotsConfig.from_dict(data.get("snapshots", {})),
            retention=RetentionConfig.from_dict(data.get("retention", {})),
            logging=LogConfig(**log_data),
        )
