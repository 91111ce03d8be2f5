"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .gemini import GeminiConfig, GenerationSettings, get_gemini_config
from .http_resilience import NO_RETRY, CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .news import NewsConfig, get_news_config
from .service import TriggerConfig, get_trigger_config
from .storage import (
    DatabaseConfig,
    StorageConfig,
    StoreConfig,
    SupabaseConfig,
    get_database_config,
    get_storage_config,
    get_store_config,
    get_supabase_config,
)

__all__ = [
    "NO_RETRY",
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "GeminiConfig",
    "GenerationSettings",
    "MissingConfigurationError",
    "NewsConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "StoreConfig",
    "SupabaseConfig",
    "TriggerConfig",
    "configure_logging",
    "get_database_config",
    "get_gemini_config",
    "get_news_config",
    "get_storage_config",
    "get_store_config",
    "get_supabase_config",
    "get_trigger_config",
    "optional_env_var",
    "require_env_vars",
]
