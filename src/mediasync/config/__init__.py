"""Configuration module for media sync.

Provides configuration loading with precedence:
CLI args > environment variables > config file > defaults.
"""

from mediasync.config.env import EnvReader
from mediasync.config.loader import (
    ConfigFileError,
    clear_config_cache,
    get_config,
    get_data_dir,
    get_default_config_path,
    get_default_db_path,
)
from mediasync.config.logging_factory import build_logging_config
from mediasync.config.models import (
    LoggingConfig,
    MediaSyncConfig,
    RetryConfig,
    ServerConfig,
    ToolPathsConfig,
    TranscodeConfig,
    WatcherConfig,
)

__all__ = [
    "ConfigFileError",
    "EnvReader",
    "LoggingConfig",
    "MediaSyncConfig",
    "RetryConfig",
    "ServerConfig",
    "ToolPathsConfig",
    "TranscodeConfig",
    "WatcherConfig",
    "build_logging_config",
    "clear_config_cache",
    "get_config",
    "get_data_dir",
    "get_default_config_path",
    "get_default_db_path",
]
