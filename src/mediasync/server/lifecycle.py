"""Daemon lifecycle state.

Tracks uptime and graceful shutdown for the HTTP server and background
services.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone


@dataclass
class DaemonLifecycle:
    """Manages daemon startup and shutdown state."""

    shutdown_timeout: float = 30.0
    """Seconds to wait for graceful shutdown before cancelling tasks."""

    start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    shutdown_initiated: datetime | None = None
    shutdown_deadline: datetime | None = None

    @property
    def uptime_seconds(self) -> float:
        return (datetime.now(timezone.utc) - self.start_time).total_seconds()

    @property
    def is_shutting_down(self) -> bool:
        return self.shutdown_initiated is not None

    def initiate_shutdown(self) -> None:
        """Begin graceful shutdown. Idempotent."""
        if self.shutdown_initiated is not None:
            return
        now = datetime.now(timezone.utc)
        self.shutdown_initiated = now
        self.shutdown_deadline = now + timedelta(seconds=self.shutdown_timeout)
