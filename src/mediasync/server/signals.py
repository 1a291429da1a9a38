"""Signal handler setup for daemon mode.

SIGTERM (from systemd) and SIGINT (Ctrl+C) trigger graceful shutdown.
"""

import asyncio
import logging
import signal

from mediasync.server.lifecycle import DaemonLifecycle

logger = logging.getLogger(__name__)

_SHUTDOWN_SIGNALS = (signal.SIGTERM, signal.SIGINT)


def setup_signal_handlers(
    loop: asyncio.AbstractEventLoop,
    lifecycle: DaemonLifecycle,
    shutdown_event: asyncio.Event,
) -> None:
    """Register shutdown signal handlers on the event loop."""

    def handle_shutdown_signal(sig: signal.Signals) -> None:
        logger.info("Received %s, initiating graceful shutdown", sig.name)
        lifecycle.initiate_shutdown()
        shutdown_event.set()

    for sig in _SHUTDOWN_SIGNALS:
        loop.add_signal_handler(sig, handle_shutdown_signal, sig)


def remove_signal_handlers(loop: asyncio.AbstractEventLoop) -> None:
    for sig in _SHUTDOWN_SIGNALS:
        loop.remove_signal_handler(sig)
