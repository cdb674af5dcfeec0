"""Application configuration helpers."""

from __future__ import annotations

from .aggregation import AggregationConfig, get_aggregation_config
from .env import env_flag, env_float, env_int, env_str, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .kinds import CollectionConfig, get_collection_config
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "AggregationConfig",
    "CollectionConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "StorageConfig",
    "configure_logging",
    "env_flag",
    "env_float",
    "env_int",
    "env_str",
    "get_aggregation_config",
    "get_collection_config",
    "get_database_config",
    "get_storage_config",
    "require_env_vars",
]
