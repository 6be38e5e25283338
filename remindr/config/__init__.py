"""Unified configuration system for remindr."""

from remindr.config.loader import CONFIG_PATH_ENV, ConfigLoadError, YAMLConfigLoader
from remindr.config.manager import ConfigManager, build_config
from remindr.config.models import (
    IntegrationsConfig,
    LLMSettings,
    LoggingConfig,
    RemindrConfig,
    RetentionConfig,
    SchedulerConfig,
    StorageConfig,
    UsageConfig,
)

__all__ = [
    "CONFIG_PATH_ENV",
    "ConfigLoadError",
    "ConfigManager",
    "IntegrationsConfig",
    "LLMSettings",
    "LoggingConfig",
    "RemindrConfig",
    "RetentionConfig",
    "SchedulerConfig",
    "StorageConfig",
    "UsageConfig",
    "YAMLConfigLoader",
    "build_config",
]
