"""CLI serve command for daemon mode.

`mediasync serve` runs the watchers, worker pool and HTTP API as a
long-lived service suitable for systemd management.
"""

from __future__ import annotations

import asyncio
import errno
import logging
import os
import sys

import click

from mediasync.cli.context import get_cli_config, get_db_path
from mediasync.cli.exit_codes import ExitCode
from mediasync.exceptions import ToolNotFoundError
from mediasync.services import MediaServices, build_services

logger = logging.getLogger(__name__)


async def run_server(
    services: MediaServices,
    bind: str,
    port: int,
    shutdown_timeout: float,
) -> int:
    """Run the daemon until SIGTERM or SIGINT.

    Returns:
        Exit code (0 for clean shutdown, non-zero for errors).
    """
    from aiohttp import web

    from mediasync.server.app import create_app
    from mediasync.server.lifecycle import DaemonLifecycle
    from mediasync.server.signals import (
        remove_signal_handlers,
        setup_signal_handlers,
    )

    lifecycle = DaemonLifecycle(shutdown_timeout=shutdown_timeout)
    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    setup_signal_handlers(loop, lifecycle, shutdown_event)

    app = create_app(services, lifecycle)
    runner = web.AppRunner(app)

    try:
        await runner.setup()
        site = web.TCPSite(runner, bind, port)
        await site.start()

        logger.info(
            "mediasync daemon started on http://%s:%d (PID %d)",
            bind,
            port,
            os.getpid(),
        )
        logger.info("Health endpoint: http://%s:%d/health", bind, port)
        logger.info("Press Ctrl+C or send SIGTERM to stop")

        await shutdown_event.wait()

        logger.info(
            "Shutdown initiated, waiting up to %.1fs for cleanup", shutdown_timeout
        )
        # Brief pause for in-flight requests
        await asyncio.sleep(0.5)

    except OSError as e:
        if e.errno == errno.EADDRINUSE:
            logger.error("Port %d is already in use", port)
            return 1
        if e.errno == errno.EADDRNOTAVAIL:
            logger.error("Cannot bind to address %s", bind)
            return 1
        logger.error("Server error: %s", e)
        return 1
    finally:
        remove_signal_handlers(loop)
        try:
            await asyncio.wait_for(runner.cleanup(), timeout=shutdown_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Cleanup did not finish within %.1fs, exiting anyway",
                shutdown_timeout,
            )
        logger.info("mediasync daemon stopped")

    return 0


@click.command("serve")
@click.option(
    "--bind",
    type=str,
    default=None,
    help="Address to bind to (default: 127.0.0.1).",
)
@click.option(
    "--port",
    "-p",
    type=click.IntRange(1, 65535),
    default=None,
    help="Port to bind to (default: 8420).",
)
@click.pass_context
def serve_command(ctx: click.Context, bind: str | None, port: int | None) -> None:
    """Run the media sync daemon.

    Watches every project's assigned media folder, processes new videos in
    a bounded worker pool and serves the HTTP API with a health endpoint at
    /health. Handles graceful shutdown on SIGTERM or SIGINT.

    \b
    Examples:
        mediasync serve
        mediasync serve --port 9000
        mediasync --log-json serve --bind 0.0.0.0
    """
    config = get_cli_config(ctx)
    server_bind = bind if bind is not None else config.server.bind
    server_port = port if port is not None else config.server.port
    shutdown_timeout = config.server.shutdown_timeout

    if server_port < 1024:
        logger.warning("Port %d is privileged and may require root", server_port)

    db_path = get_db_path(ctx)
    try:
        services = build_services(config, db_path=db_path)
    except ToolNotFoundError as e:
        logger.error("%s", e)
        sys.exit(ExitCode.TOOL_NOT_FOUND)

    logger.info(
        "Starting mediasync daemon (bind=%s, port=%d, workers=%d, db=%s)",
        server_bind,
        server_port,
        config.transcode.max_concurrent,
        db_path,
    )

    exit_code = asyncio.run(
        run_server(services, server_bind, server_port, shutdown_timeout)
    )
    sys.exit(exit_code)
