"""Configuration data models.

This module defines dataclasses for media sync configuration options.
"""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class ToolPathsConfig:
    """Configuration for external tool paths.

    All paths are optional. If not specified, tools are looked up in PATH.
    """

    ffmpeg: Path | None = None
    ffprobe: Path | None = None


@dataclass
class WatcherConfig:
    """Configuration for per-project folder watchers."""

    stability_window_seconds: float = 2.0
    """Quiet period with no size change before a file is considered stable."""

    poll_interval_seconds: float = 0.1
    """How often sizes are re-checked while waiting for stability."""

    queue_size: int = 256
    """Capacity of each project's event channel."""

    debounce_ms: int = 1600
    """Filesystem event batching window passed to the event source."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.stability_window_seconds < 0:
            raise ValueError(
                "stability_window_seconds must be non-negative, "
                f"got {self.stability_window_seconds}"
            )
        if self.poll_interval_seconds <= 0:
            raise ValueError(
                "poll_interval_seconds must be positive, "
                f"got {self.poll_interval_seconds}"
            )
        if self.queue_size < 1:
            raise ValueError(f"queue_size must be at least 1, got {self.queue_size}")
        if self.debounce_ms < 0:
            raise ValueError(
                f"debounce_ms must be non-negative, got {self.debounce_ms}"
            )


@dataclass
class TranscodeConfig:
    """Configuration for probing, transcoding and retry limits."""

    # Global cap on concurrently running encoder processes
    max_concurrent: int = 2

    # Failed attempts after which retries are refused unless forced
    max_attempts: int = 3

    # Minimum encoder timeout in seconds
    timeout_base_seconds: int = 600

    # Encoder timeout scales with the probed duration
    timeout_duration_multiplier: float = 4.0

    # ffprobe timeout in seconds
    probe_timeout_seconds: int = 60

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.max_concurrent < 1:
            raise ValueError(
                f"max_concurrent must be at least 1, got {self.max_concurrent}"
            )
        if self.max_attempts < 1:
            raise ValueError(
                f"max_attempts must be at least 1, got {self.max_attempts}"
            )
        if self.timeout_base_seconds < 0:
            raise ValueError(
                "timeout_base_seconds must be non-negative, "
                f"got {self.timeout_base_seconds}"
            )
        if self.timeout_duration_multiplier <= 0:
            raise ValueError(
                "timeout_duration_multiplier must be positive, "
                f"got {self.timeout_duration_multiplier}"
            )
        if self.probe_timeout_seconds < 1:
            raise ValueError(
                "probe_timeout_seconds must be at least 1, "
                f"got {self.probe_timeout_seconds}"
            )


@dataclass
class RetryConfig:
    """Configuration for the scheduled retry of failed files."""

    enabled: bool = False
    interval_seconds: int = 3600

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.interval_seconds < 1:
            raise ValueError(
                f"interval_seconds must be at least 1, got {self.interval_seconds}"
            )


@dataclass
class LoggingConfig:
    """Configuration for structured logging."""

    # Log level: debug, info, warning, error
    level: str = "info"

    # Log file path (None = stderr only)
    file: Path | None = None

    # Log format: text or json
    format: str = "text"

    # Also log to stderr when file is set
    include_stderr: bool = False

    # Rotation threshold in bytes (default 10MB)
    max_bytes: int = 10_485_760

    # Number of rotated files to keep
    backup_count: int = 5

    def __post_init__(self) -> None:
        """Validate configuration."""
        valid_levels = {"debug", "info", "warning", "error"}
        if self.level.lower() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}, got {self.level}")
        valid_formats = {"text", "json"}
        if self.format.lower() not in valid_formats:
            raise ValueError(
                f"format must be one of {valid_formats}, got {self.format}"
            )


@dataclass
class ServerConfig:
    """Configuration for daemon server mode.

    Controls bind address, port, and shutdown behavior for `mediasync serve`.
    """

    bind: str = "127.0.0.1"
    """Network address to bind to. Default localhost for security."""

    port: int = 8420
    """Port number for HTTP server."""

    shutdown_timeout: float = 30.0
    """Seconds to wait for graceful shutdown before cancelling tasks."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not 1 <= self.port <= 65535:
            raise ValueError(f"port must be 1-65535, got {self.port}")
        if self.shutdown_timeout <= 0:
            raise ValueError(
                f"shutdown_timeout must be positive, got {self.shutdown_timeout}"
            )


@dataclass
class MediaSyncConfig:
    """Main configuration container.

    Aggregates all configuration sections.
    """

    tools: ToolPathsConfig = field(default_factory=ToolPathsConfig)
    watcher: WatcherConfig = field(default_factory=WatcherConfig)
    transcode: TranscodeConfig = field(default_factory=TranscodeConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    # Database path (can be overridden)
    database_path: Path | None = None

    def get_tool_path(self, tool_name: str) -> Path | None:
        """Get configured path for a tool.

        Args:
            tool_name: Name of the tool (ffmpeg, ffprobe).

        Returns:
            Configured path or None if not configured.
        """
        return getattr(self.tools, tool_name.lower(), None)
