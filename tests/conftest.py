"""Shared test fixtures for mediasync."""

import asyncio
import json
import logging
import sys
import time
from collections.abc import Callable
from pathlib import Path

import pytest
from watchfiles import Change

from mediasync.config import WatcherConfig
from mediasync.core.datetime_utils import now_iso
from mediasync.core.mime import mime_type_for
from mediasync.db import (
    MediaFileRecord,
    TranscodingStatus,
    initialize_database,
    write_transaction,
)
from mediasync.db.queries import insert_media_file, insert_project
from mediasync.introspector import FFprobeProbe
from mediasync.jobs import MediaProcessor
from mediasync.transcode import TranscodeExecutor

FFPROBE_FIXTURES = Path(__file__).parent / "fixtures" / "ffprobe"

# Leading bytes of an MP4 file, enough for tests that only check existence
FAKE_MP4_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 1024

_FFPROBE_TEMPLATE = """
import sys
sys.stderr.write({stderr!r})
sys.stdout.write({stdout!r})
sys.exit({exit_code!r})
"""

_FFMPEG_TEMPLATE = """
import sys
import time

args_log = {args_log!r}
if args_log:
    with open(args_log, "w") as f:
        f.write("\\n".join(sys.argv[1:]))

for line in {stderr_lines!r}:
    sys.stderr.write(line + "\\n")
    sys.stderr.flush()

time.sleep({sleep!r})

if {write_output!r}:
    with open(sys.argv[-1], "wb") as f:
        f.write({output_bytes!r})

sys.exit({exit_code!r})
"""


def load_ffprobe_fixture(name: str) -> dict:
    """Load an ffprobe JSON fixture by name (without .json)."""
    return json.loads((FFPROBE_FIXTURES / f"{name}.json").read_text())


def write_script(path: Path, body: str) -> Path:
    """Write an executable Python script run by the test interpreter."""
    path.write_text(f"#!{sys.executable}\n{body}")
    path.chmod(0o755)
    return path


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo configure_logging calls made by CLI and logging tests.

    Without this a test that logs at --log-level error would hide warnings
    from later caplog assertions.
    """
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def ffprobe_fixture() -> Callable[[str], dict]:
    return load_ffprobe_fixture


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Initialized database in a temp directory."""
    path = tmp_path / "data" / "library.db"
    initialize_database(path)
    return path


@pytest.fixture
def project_id(db_path: Path) -> int:
    return write_transaction(db_path, lambda conn: insert_project(conn, "Launch Film"))


@pytest.fixture
def media_root(tmp_path: Path) -> Path:
    """Empty folder used as a project's watched media folder."""
    root = tmp_path / "media"
    root.mkdir()
    return root


@pytest.fixture
def add_media_file(db_path: Path, project_id: int):
    """Factory inserting a media file row for a path (created if missing)."""

    def _add(
        path: Path,
        *,
        status: TranscodingStatus = TranscodingStatus.PENDING,
        attempts: int = 0,
        error: str | None = None,
        transcoded_file_path: str | None = None,
        project: int | None = None,
    ) -> int:
        if not path.exists():
            path.write_bytes(b"media")
        now = now_iso()
        record = MediaFileRecord(
            id=None,
            project_id=project or project_id,
            filename=path.name,
            original_name=path.name,
            file_path=str(path),
            file_size=path.stat().st_size,
            mime_type=mime_type_for(path.name),
            uploaded_at=now,
            updated_at=now,
            transcoded_file_path=transcoded_file_path,
            transcoding_status=status,
            transcoding_error=error,
            transcoding_attempts=attempts,
        )
        return write_transaction(db_path, lambda conn: insert_media_file(conn, record))

    return _add


@pytest.fixture
def tools_dir(tmp_path: Path) -> Path:
    path = tmp_path / "bin"
    path.mkdir()
    return path


@pytest.fixture
def fake_ffprobe(tools_dir: Path):
    """Factory writing a fake ffprobe that prints a fixture."""

    def _make(
        fixture: str | None = None,
        *,
        stdout: str | None = None,
        stderr: str = "",
        exit_code: int = 0,
    ) -> Path:
        if stdout is None:
            stdout = (
                (FFPROBE_FIXTURES / f"{fixture}.json").read_text() if fixture else ""
            )
        body = _FFPROBE_TEMPLATE.format(
            stdout=stdout, stderr=stderr, exit_code=exit_code
        )
        return write_script(tools_dir / "ffprobe", body)

    return _make


@pytest.fixture
def fake_ffmpeg(tools_dir: Path):
    """Factory writing a fake ffmpeg.

    The fake writes its output to the last argument, so it exercises the
    real temp-file and move logic of the executor.
    """

    def _make(
        *,
        stderr_lines: list[str] | None = None,
        exit_code: int = 0,
        sleep: float = 0.0,
        write_output: bool = True,
        output_bytes: bytes = FAKE_MP4_BYTES,
        args_log: Path | None = None,
    ) -> Path:
        body = _FFMPEG_TEMPLATE.format(
            args_log=str(args_log) if args_log else "",
            stderr_lines=stderr_lines or [],
            sleep=sleep,
            write_output=write_output,
            output_bytes=output_bytes,
            exit_code=exit_code,
        )
        return write_script(tools_dir / "ffmpeg", body)

    return _make


@pytest.fixture
def make_processor(db_path: Path):
    """Factory building a MediaProcessor around the given tool paths."""

    def _make(
        ffprobe: Path,
        ffmpeg: Path,
        *,
        max_attempts: int = 3,
        timeout_base_seconds: int = 600,
    ) -> MediaProcessor:
        return MediaProcessor(
            db_path,
            FFprobeProbe(ffprobe, timeout=10),
            TranscodeExecutor(ffmpeg, timeout_base_seconds=timeout_base_seconds),
            max_attempts=max_attempts,
        )

    return _make


class FakeEventSource:
    """Event source fed by the test instead of the filesystem.

    Pushing None ends the stream, like an event source that dies.
    """

    def __init__(self) -> None:
        self.batches: asyncio.Queue = asyncio.Queue()
        self.roots: list[Path] = []

    def __call__(self, root: Path, stop_event: asyncio.Event):
        self.roots.append(root)
        return self._stream(stop_event)

    async def _stream(self, stop_event: asyncio.Event):
        while not stop_event.is_set():
            batch = await self.batches.get()
            if batch is None:
                return
            yield batch

    def emit(self, *paths: Path, change: Change = Change.added) -> None:
        self.batches.put_nowait([(change, str(path)) for path in paths])

    def end(self) -> None:
        self.batches.put_nowait(None)


async def _wait_until(predicate, timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.01)


@pytest.fixture
def wait_until():
    """Poll a predicate until it holds or fail after a timeout."""
    return _wait_until


@pytest.fixture
def event_source() -> FakeEventSource:
    return FakeEventSource()


@pytest.fixture
def watcher_config() -> WatcherConfig:
    return WatcherConfig(stability_window_seconds=0.05, poll_interval_seconds=0.01)
