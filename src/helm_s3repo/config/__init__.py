"""
Configuration management for helm-s3repo.
"""

from .config_manager import (
    ConfigManager, AppConfig, StorageConfig, HelmConfig, LoggingConfig,
    get_config_manager, reset_config_manager
)

__all__ = [
    "ConfigManager",
    "AppConfig",
    "StorageConfig",
    "HelmConfig",
    "LoggingConfig",
    "get_config_manager",
    "reset_config_manager"
]
