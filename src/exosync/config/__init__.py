"""Application configuration helpers."""

from __future__ import annotations

from .archive import ArchiveConfig, get_archive_config
from .classifier import ClassifierConfig, get_classifier_config
from .env import env_flag, optional_env_var
from .errors import ConfigurationError, InvalidSchedulePatternError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig
from .logging import configure_logging
from .scheduler import SchedulerConfig, get_scheduler_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ArchiveConfig",
    "CacheConfig",
    "ClassifierConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "InvalidSchedulePatternError",
    "RateLimit",
    "ResilienceConfig",
    "SchedulerConfig",
    "StorageConfig",
    "configure_logging",
    "env_flag",
    "get_archive_config",
    "get_classifier_config",
    "get_database_config",
    "get_scheduler_config",
    "get_storage_config",
    "optional_env_var",
]
