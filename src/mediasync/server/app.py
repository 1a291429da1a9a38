"""HTTP application for daemon mode.

Provides the aiohttp Application with the health endpoint, the media API
and startup/cleanup hooks for the background services.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from dataclasses import asdict, dataclass, field

from aiohttp import web

from mediasync import __version__
from mediasync.db.connection import get_connection
from mediasync.db.queries import count_by_status
from mediasync.server.api import setup_api_routes
from mediasync.server.lifecycle import DaemonLifecycle
from mediasync.services import MediaServices
from mediasync.sync.watcher import WatcherState

logger = logging.getLogger(__name__)

HEALTH_CHECK_TIMEOUT = 5.0  # seconds


@dataclass
class HealthStatus:
    """Health check response payload."""

    status: str
    """Overall status: 'healthy', 'degraded', or 'unhealthy'."""

    database: str
    """Database connectivity: 'connected' or 'disconnected'."""

    uptime_seconds: float
    version: str
    shutting_down: bool = False

    files_by_status: dict[str, int] = field(default_factory=dict)
    """Media file counts keyed by transcoding status."""

    files_in_flight: int = 0
    """Files queued or running in the worker pool."""

    watchers_running: int = 0
    watchers_down: list[int] = field(default_factory=list)
    """Project IDs whose watcher stopped on an error."""

    retry_task_healthy: bool | None = None
    """None when scheduled retry is disabled."""

    def to_dict(self) -> dict:
        return asdict(self)


async def fetch_status_counts(services: MediaServices) -> dict[str, int] | None:
    """Return file counts by status, or None if the database is unavailable."""

    def _sync_check() -> dict[str, int] | None:
        try:
            with get_connection(services.db_path) as conn:
                return count_by_status(conn)
        except sqlite3.Error as e:
            logger.warning("Database error during health check: %s", e)
            return None

    try:
        return await asyncio.wait_for(
            asyncio.to_thread(_sync_check), timeout=HEALTH_CHECK_TIMEOUT
        )
    except asyncio.TimeoutError:
        logger.warning(
            "Database health check timed out after %.1fs", HEALTH_CHECK_TIMEOUT
        )
        return None


async def health_handler(request: web.Request) -> web.Response:
    """Handle GET /health requests.

    Returns 200 when healthy and 503 when degraded or shutting down. A
    watcher that is down or an unhealthy retry task degrades the daemon.
    """
    services: MediaServices = request.app["services"]
    lifecycle: DaemonLifecycle | None = request.app.get("lifecycle")

    counts = await fetch_status_counts(services)
    shutting_down = lifecycle.is_shutting_down if lifecycle else False
    uptime = lifecycle.uptime_seconds if lifecycle else 0.0

    watchers_down: list[int] = []
    watchers_running = 0
    if services.registry is not None:
        watchers_running = services.registry.running_count()
        watchers_down = [
            project_id
            for project_id, state in services.registry.states().items()
            if state["state"] == WatcherState.DOWN.value
        ]

    retry_healthy = (
        services.retry_task.is_healthy if services.retry_task is not None else None
    )

    if shutting_down:
        status = "unhealthy"
    elif counts is None or watchers_down or retry_healthy is False:
        status = "degraded"
    else:
        status = "healthy"

    health = HealthStatus(
        status=status,
        database="connected" if counts is not None else "disconnected",
        uptime_seconds=round(uptime, 1),
        version=__version__,
        shutting_down=shutting_down,
        files_by_status=counts or {},
        files_in_flight=len(services.queue.in_flight()) if services.queue else 0,
        watchers_running=watchers_running,
        watchers_down=watchers_down,
        retry_task_healthy=retry_healthy,
    )

    http_status = 200 if status == "healthy" else 503
    return web.json_response(health.to_dict(), status=http_status)


async def _start_services(app: web.Application) -> None:
    await app["services"].start()
    logger.debug("Started background services")


async def _stop_services(app: web.Application) -> None:
    await app["services"].stop()
    logger.debug("Stopped background services")


def create_app(
    services: MediaServices, lifecycle: DaemonLifecycle | None = None
) -> web.Application:
    """Create and configure the aiohttp Application.

    Args:
        services: Daemon services from build_services.
        lifecycle: Shutdown state shared with the signal handlers.
    """
    app = web.Application()
    app["services"] = services
    app["lifecycle"] = lifecycle

    app.router.add_get("/health", health_handler)
    setup_api_routes(app)

    app.on_startup.append(_start_services)
    app.on_cleanup.append(_stop_services)
    return app
