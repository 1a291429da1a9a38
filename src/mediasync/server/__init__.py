"""Daemon HTTP server."""

from mediasync.server.app import HealthStatus, create_app
from mediasync.server.lifecycle import DaemonLifecycle

__all__ = ["DaemonLifecycle", "HealthStatus", "create_app"]
