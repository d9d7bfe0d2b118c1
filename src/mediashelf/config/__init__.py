"""Application configuration helpers."""

from __future__ import annotations

from .anilist import AniListConfig, get_anilist_config
from .enrichment import EnrichmentConfig, get_enrichment_config
from .env import require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .jikan import JikanConfig, get_jikan_config
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "AniListConfig",
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "EnrichmentConfig",
    "JikanConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "configure_logging",
    "get_anilist_config",
    "get_database_config",
    "get_enrichment_config",
    "get_jikan_config",
    "get_storage_config",
    "require_env_vars",
]
