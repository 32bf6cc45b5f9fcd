"""Application configuration helpers."""

from __future__ import annotations

from .env import env_flag, env_number, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .hris import HrisConfig, get_hris_config, is_sync_enabled, use_fixture_client
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .storage import DatabaseConfig, default_data_dir, get_database_config, get_database_uri
from .sync import SyncConfig, get_sync_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "HrisConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SyncConfig",
    "configure_logging",
    "default_data_dir",
    "env_flag",
    "env_number",
    "get_database_config",
    "get_database_uri",
    "get_hris_config",
    "get_sync_config",
    "is_sync_enabled",
    "require_env_var",
    "require_env_vars",
    "use_fixture_client",
]
