"""Application configuration helpers."""

from __future__ import annotations

from .env import env_bool, env_float, env_int, optional_env
from .errors import ConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .sources import (
    FleetYardsConfig,
    RsiConfig,
    ScunpackedConfig,
    ScWikiConfig,
    SourcesConfig,
    get_fleetyards_config,
    get_rsi_config,
    get_scunpacked_config,
    get_scwiki_config,
    get_sources_config,
)
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .sync import SyncConfig, get_sync_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "FleetYardsConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "RsiConfig",
    "ScWikiConfig",
    "ScunpackedConfig",
    "SourcesConfig",
    "StorageConfig",
    "SyncConfig",
    "configure_logging",
    "env_bool",
    "env_float",
    "env_int",
    "get_database_config",
    "get_fleetyards_config",
    "get_rsi_config",
    "get_scunpacked_config",
    "get_scwiki_config",
    "get_sources_config",
    "get_storage_config",
    "get_sync_config",
    "optional_env",
]
