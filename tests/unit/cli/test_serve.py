"""Tests for the daemon server runner."""

import asyncio
import socket
from pathlib import Path
from unittest.mock import patch

import pytest

from mediasync.cli.serve import run_server
from mediasync.config import MediaSyncConfig
from mediasync.services import build_services


@pytest.fixture
def services(db_path: Path, fake_ffprobe, fake_ffmpeg, make_processor, event_source):
    return build_services(
        MediaSyncConfig(),
        db_path=db_path,
        processor=make_processor(fake_ffprobe(), fake_ffmpeg()),
        event_source=event_source,
    )


def free_port() -> int:
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.mark.asyncio
async def test_port_in_use_returns_error(services) -> None:
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        sock.listen()
        port = sock.getsockname()[1]

        exit_code = await run_server(services, "127.0.0.1", port, 5.0)

    assert exit_code == 1


@pytest.mark.asyncio
async def test_shutdown_signal_stops_cleanly(services) -> None:
    def fake_setup(loop, lifecycle, shutdown_event):
        def trigger() -> None:
            lifecycle.initiate_shutdown()
            shutdown_event.set()

        loop.call_later(0.2, trigger)

    with (
        patch("mediasync.server.signals.setup_signal_handlers", fake_setup),
        patch("mediasync.server.signals.remove_signal_handlers"),
    ):
        exit_code = await asyncio.wait_for(
            run_server(services, "127.0.0.1", free_port(), 5.0), timeout=10
        )

    assert exit_code == 0
    assert services.queue.submit(1) is None
