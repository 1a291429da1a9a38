"""Fixtures for the daemon HTTP API."""

from pathlib import Path

import pytest
import pytest_asyncio

from mediasync.config import MediaSyncConfig
from mediasync.server import DaemonLifecycle, create_app
from mediasync.services import build_services


@pytest.fixture
def lifecycle() -> DaemonLifecycle:
    return DaemonLifecycle()


@pytest.fixture
def services(
    db_path: Path,
    fake_ffprobe,
    fake_ffmpeg,
    make_processor,
    event_source,
    watcher_config,
):
    """Daemon services around fake tools. Videos probe as 50 Mbps HEVC."""
    processor = make_processor(fake_ffprobe("hevc_1080p_50mbps"), fake_ffmpeg())
    return build_services(
        MediaSyncConfig(watcher=watcher_config),
        db_path=db_path,
        processor=processor,
        event_source=event_source,
    )


@pytest.fixture
def make_client(aiohttp_client, services, lifecycle):
    """Start the app; background services start with it."""

    async def _make():
        return await aiohttp_client(create_app(services, lifecycle))

    return _make


@pytest_asyncio.fixture
async def client(make_client):
    return await make_client()
