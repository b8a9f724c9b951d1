"""Application configuration helpers."""

from __future__ import annotations

from .coupang import CoupangConfig, get_coupang_config
from .env import require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .notifications import NotificationConfig, get_notification_config
from .smartstore import SmartstoreConfig, StoreKey, get_smartstore_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .sync import SyncConfig, get_sync_config
from .zigzag import ZigzagConfig, get_zigzag_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "CoupangConfig",
    "DatabaseConfig",
    "MissingConfigurationError",
    "NotificationConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SmartstoreConfig",
    "StorageConfig",
    "StoreKey",
    "SyncConfig",
    "ZigzagConfig",
    "configure_logging",
    "get_coupang_config",
    "get_database_config",
    "get_notification_config",
    "get_smartstore_config",
    "get_storage_config",
    "get_sync_config",
    "get_zigzag_config",
    "require_env_var",
    "require_env_vars",
]
