"""Configuration loader with precedence handling.

Configuration is loaded with the following precedence (highest to lowest):
1. CLI arguments (passed directly to get_config)
2. Environment variables (MEDIASYNC_*)
3. Config file (~/.mediasync/config.toml)
4. Default values

Environment variables:
- MEDIASYNC_FFMPEG_PATH / MEDIASYNC_FFPROBE_PATH: tool executables
- MEDIASYNC_DATABASE_PATH: database file
- MEDIASYNC_CONFIG_PATH: config file (overrides default location)
- MEDIASYNC_DATA_DIR: data directory (overrides ~/.mediasync/)
- MEDIASYNC_MAX_CONCURRENT: transcode pool size
- MEDIASYNC_MAX_ATTEMPTS: failed attempts before retries are refused
- MEDIASYNC_STABILITY_WINDOW: watcher stability window in seconds
- MEDIASYNC_RETRY_ENABLED / MEDIASYNC_RETRY_INTERVAL: scheduled retry
- MEDIASYNC_SERVER_BIND / MEDIASYNC_SERVER_PORT: daemon address
- MEDIASYNC_LOG_LEVEL / MEDIASYNC_LOG_FILE / MEDIASYNC_LOG_FORMAT: logging
"""

from __future__ import annotations

import logging
import os
import threading
import tomllib
from pathlib import Path
from typing import Any

from mediasync.config.env import EnvReader
from mediasync.config.models import (
    LoggingConfig,
    MediaSyncConfig,
    RetryConfig,
    ServerConfig,
    ToolPathsConfig,
    TranscodeConfig,
    WatcherConfig,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".mediasync"
DEFAULT_DB_FILENAME = "library.db"

# Cache for loaded config files (path -> (parsed dict, mtime))
_config_cache: dict[Path, tuple[dict, float]] = {}
_config_cache_lock = threading.Lock()


class ConfigFileError(ValueError):
    """Raised in strict mode when the config file cannot be parsed."""


def get_default_config_path() -> Path:
    """Get the config file path, honoring MEDIASYNC_CONFIG_PATH."""
    env_path = os.environ.get("MEDIASYNC_CONFIG_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return get_data_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory (~/.mediasync/ unless MEDIASYNC_DATA_DIR is set)."""
    env_path = os.environ.get("MEDIASYNC_DATA_DIR")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_DIR


def get_default_db_path() -> Path:
    return get_data_dir() / DEFAULT_DB_FILENAME


def load_toml_file(path: Path, *, strict: bool = False) -> dict[str, Any]:
    """Parse a TOML file.

    Returns an empty dict if the file does not exist. Parse failures are
    logged and yield an empty dict unless strict is set.

    Raises:
        ConfigFileError: When strict=True and the file cannot be parsed.
    """
    if not path.exists():
        return {}
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as e:
        if strict:
            raise ConfigFileError(f"Cannot parse config file {path}: {e}") from e
        logger.warning("Ignoring unreadable config file %s: %s", path, e)
        return {}


def load_config_file(path: Path | None = None, *, strict: bool = False) -> dict:
    """Load configuration from a TOML file, cached by mtime.

    Thread-safe: uses a lock to protect concurrent access to the cache.
    """
    if path is None:
        path = get_default_config_path()

    try:
        current_mtime = path.stat().st_mtime
    except FileNotFoundError:
        current_mtime = 0.0

    with _config_cache_lock:
        if path in _config_cache:
            cached_config, cached_mtime = _config_cache[path]
            if current_mtime == cached_mtime:
                return cached_config

        result = load_toml_file(path, strict=strict)
        _config_cache[path] = (result, current_mtime)
        return result


def clear_config_cache() -> None:
    """Clear the config file cache. Primarily useful for testing."""
    with _config_cache_lock:
        _config_cache.clear()


def _optional_path(value: Any) -> Path | None:
    if value is None or value == "":
        return None
    return Path(str(value)).expanduser()


def _pick(*values: Any) -> Any:
    """Return the first value that is not None."""
    for value in values:
        if value is not None:
            return value
    return None


def get_config(
    config_path: Path | None = None,
    # CLI overrides (highest precedence)
    ffmpeg_path: Path | None = None,
    ffprobe_path: Path | None = None,
    database_path: Path | None = None,
    # Optional dependency injection for testing
    env_reader: EnvReader | None = None,
    *,
    strict: bool = False,
) -> MediaSyncConfig:
    """Get configuration with full precedence handling.

    Args:
        config_path: Path to config file (overrides MEDIASYNC_CONFIG_PATH).
        ffmpeg_path: CLI override for ffmpeg path.
        ffprobe_path: CLI override for ffprobe path.
        database_path: CLI override for database path.
        env_reader: Optional EnvReader for testing (uses os.environ if None).
        strict: If True, raise ConfigFileError on config file parse failures.

    Returns:
        MediaSyncConfig with merged configuration.

    Raises:
        ConfigFileError: When strict=True and the config file cannot be parsed.
        ValueError: When a merged value fails validation.
    """
    env = env_reader or EnvReader()
    file_config = load_config_file(config_path, strict=strict)

    tools_file = file_config.get("tools", {})
    watcher_file = file_config.get("watcher", {})
    transcode_file = file_config.get("transcode", {})
    retry_file = file_config.get("retry", {})
    logging_file = file_config.get("logging", {})
    server_file = file_config.get("server", {})

    tools = ToolPathsConfig(
        ffmpeg=_pick(
            ffmpeg_path,
            env.get_path("MEDIASYNC_FFMPEG_PATH"),
            _optional_path(tools_file.get("ffmpeg")),
        ),
        ffprobe=_pick(
            ffprobe_path,
            env.get_path("MEDIASYNC_FFPROBE_PATH"),
            _optional_path(tools_file.get("ffprobe")),
        ),
    )

    watcher_defaults = WatcherConfig()
    watcher = WatcherConfig(
        stability_window_seconds=_pick(
            env.get_float("MEDIASYNC_STABILITY_WINDOW"),
            watcher_file.get("stability_window_seconds"),
            watcher_defaults.stability_window_seconds,
        ),
        poll_interval_seconds=_pick(
            watcher_file.get("poll_interval_seconds"),
            watcher_defaults.poll_interval_seconds,
        ),
        queue_size=_pick(
            watcher_file.get("queue_size"), watcher_defaults.queue_size
        ),
        debounce_ms=_pick(
            watcher_file.get("debounce_ms"), watcher_defaults.debounce_ms
        ),
    )

    transcode_defaults = TranscodeConfig()
    transcode = TranscodeConfig(
        max_concurrent=_pick(
            env.get_int("MEDIASYNC_MAX_CONCURRENT"),
            transcode_file.get("max_concurrent"),
            transcode_defaults.max_concurrent,
        ),
        max_attempts=_pick(
            env.get_int("MEDIASYNC_MAX_ATTEMPTS"),
            transcode_file.get("max_attempts"),
            transcode_defaults.max_attempts,
        ),
        timeout_base_seconds=_pick(
            transcode_file.get("timeout_base_seconds"),
            transcode_defaults.timeout_base_seconds,
        ),
        timeout_duration_multiplier=_pick(
            transcode_file.get("timeout_duration_multiplier"),
            transcode_defaults.timeout_duration_multiplier,
        ),
        probe_timeout_seconds=_pick(
            transcode_file.get("probe_timeout_seconds"),
            transcode_defaults.probe_timeout_seconds,
        ),
    )

    retry_defaults = RetryConfig()
    retry = RetryConfig(
        enabled=_pick(
            env.get_bool("MEDIASYNC_RETRY_ENABLED"),
            retry_file.get("enabled"),
            retry_defaults.enabled,
        ),
        interval_seconds=_pick(
            env.get_int("MEDIASYNC_RETRY_INTERVAL"),
            retry_file.get("interval_seconds"),
            retry_defaults.interval_seconds,
        ),
    )

    logging_defaults = LoggingConfig()
    logging_config = LoggingConfig(
        level=_pick(
            env.get_str("MEDIASYNC_LOG_LEVEL"),
            logging_file.get("level"),
            logging_defaults.level,
        ),
        file=_pick(
            env.get_path("MEDIASYNC_LOG_FILE"),
            _optional_path(logging_file.get("file")),
        ),
        format=_pick(
            env.get_str("MEDIASYNC_LOG_FORMAT"),
            logging_file.get("format"),
            logging_defaults.format,
        ),
        include_stderr=_pick(
            logging_file.get("include_stderr"), logging_defaults.include_stderr
        ),
        max_bytes=_pick(logging_file.get("max_bytes"), logging_defaults.max_bytes),
        backup_count=_pick(
            logging_file.get("backup_count"), logging_defaults.backup_count
        ),
    )

    server_defaults = ServerConfig()
    server = ServerConfig(
        bind=_pick(
            env.get_str("MEDIASYNC_SERVER_BIND"),
            server_file.get("bind"),
            server_defaults.bind,
        ),
        port=_pick(
            env.get_int("MEDIASYNC_SERVER_PORT"),
            server_file.get("port"),
            server_defaults.port,
        ),
        shutdown_timeout=_pick(
            env.get_float("MEDIASYNC_SERVER_SHUTDOWN_TIMEOUT"),
            server_file.get("shutdown_timeout"),
            server_defaults.shutdown_timeout,
        ),
    )

    db_path = _pick(
        database_path,
        env.get_path("MEDIASYNC_DATABASE_PATH"),
        _optional_path(file_config.get("database_path")),
    )

    return MediaSyncConfig(
        tools=tools,
        watcher=watcher,
        transcode=transcode,
        retry=retry,
        logging=logging_config,
        server=server,
        database_path=db_path,
    )
