"""Tests for daemon service wiring and startup/shutdown."""

from pathlib import Path
from unittest.mock import patch

import pytest

from mediasync.config import (
    MediaSyncConfig,
    RetryConfig,
    ToolPathsConfig,
    TranscodeConfig,
)
from mediasync.db import TranscodingStatus
from mediasync.exceptions import ToolNotFoundError
from mediasync.jobs import RetryTask
from mediasync.services import build_processor, build_services, resolve_db_path


def test_resolve_db_path_prefers_config(tmp_path: Path) -> None:
    config = MediaSyncConfig(database_path=tmp_path / "studio.db")

    assert resolve_db_path(config) == tmp_path / "studio.db"


class TestBuildProcessor:
    def test_uses_configured_tools(
        self, db_path: Path, fake_ffprobe, fake_ffmpeg
    ) -> None:
        config = MediaSyncConfig(
            tools=ToolPathsConfig(ffmpeg=fake_ffmpeg(), ffprobe=fake_ffprobe()),
            transcode=TranscodeConfig(max_attempts=5),
        )

        processor = build_processor(config, db_path)

        assert processor.max_attempts == 5

    def test_missing_tool(self, db_path: Path, tmp_path: Path) -> None:
        config = MediaSyncConfig(
            tools=ToolPathsConfig(ffprobe=tmp_path / "nope", ffmpeg=tmp_path / "nope")
        )

        with patch("mediasync.tools.shutil.which", return_value=None):
            with pytest.raises(ToolNotFoundError, match="ffprobe not found"):
                build_processor(config, db_path)


class TestBuildServices:
    def test_retry_disabled_by_default(
        self, tmp_path: Path, fake_ffprobe, fake_ffmpeg, make_processor
    ) -> None:
        db_path = tmp_path / "fresh" / "library.db"

        services = build_services(
            MediaSyncConfig(),
            db_path=db_path,
            processor=make_processor(fake_ffprobe(), fake_ffmpeg()),
        )

        assert db_path.exists()
        assert services.retry_task is None
        assert services.library.queue is services.queue
        assert services.library.registry is services.registry
        services.queue.shutdown()

    def test_retry_enabled(
        self, db_path: Path, fake_ffprobe, fake_ffmpeg, make_processor
    ) -> None:
        config = MediaSyncConfig(retry=RetryConfig(enabled=True, interval_seconds=60))

        services = build_services(
            config,
            db_path=db_path,
            processor=make_processor(fake_ffprobe(), fake_ffmpeg()),
        )

        assert isinstance(services.retry_task, RetryTask)
        assert services.retry_task.interval_seconds == 60
        services.queue.shutdown()


@pytest.mark.asyncio
async def test_start_and_stop(
    db_path: Path,
    fake_ffprobe,
    fake_ffmpeg,
    make_processor,
    event_source,
    add_media_file,
    media_root: Path,
) -> None:
    stale = add_media_file(media_root / "a.mov", status=TranscodingStatus.PROCESSING)
    config = MediaSyncConfig(retry=RetryConfig(enabled=True, interval_seconds=3600))
    services = build_services(
        config,
        db_path=db_path,
        processor=make_processor(fake_ffprobe("hevc_1080p_50mbps"), fake_ffmpeg()),
        event_source=event_source,
    )

    await services.start()
    await services.stop()

    record = services.library.get_file(stale)
    assert record.transcoding_status is TranscodingStatus.FAILED
    assert not services.retry_task.is_running
    assert services.queue.submit(stale) is None
