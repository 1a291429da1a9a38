"""Tests for structured logging."""

import json
import logging
import sys
from pathlib import Path

import pytest

from mediasync.config import LoggingConfig
from mediasync.logging import (
    JSONFormatter,
    MediaContextFilter,
    configure_logging,
    get_media_context,
    media_context,
)


def make_record(msg: str = "Transcoding %s", *args, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="mediasync.jobs.processor",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=args or ("clip.mov",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestMediaContext:
    def test_default_is_empty(self) -> None:
        assert get_media_context() == (None, None)

    def test_nesting_keeps_outer_project(self) -> None:
        with media_context(project_id=7):
            with media_context(file_id=42):
                assert get_media_context() == (7, 42)
            assert get_media_context() == (7, None)
        assert get_media_context() == (None, None)

    def test_reset_on_error(self) -> None:
        with pytest.raises(RuntimeError):
            with media_context(project_id=1, file_id=2):
                raise RuntimeError("boom")
        assert get_media_context() == (None, None)


class TestMediaContextFilter:
    @pytest.mark.parametrize(
        "project_id,file_id,tag",
        [
            (7, 42, "[P7:F42] "),
            (7, None, "[P7] "),
            (None, 42, "[F42] "),
            (None, None, ""),
        ],
    )
    def test_context_tag(self, project_id, file_id, tag) -> None:
        record = make_record()

        with media_context(project_id=project_id, file_id=file_id):
            assert MediaContextFilter().filter(record) is True

        assert record.context_tag == tag
        assert record.project_id == project_id
        assert record.file_id == file_id


class TestJSONFormatter:
    def test_basic_fields(self) -> None:
        entry = json.loads(JSONFormatter().format(make_record()))

        assert entry["level"] == "INFO"
        assert entry["message"] == "Transcoding clip.mov"
        assert entry["logger"] == "mediasync.jobs.processor"
        assert entry["timestamp"].endswith("+00:00")
        assert "context" not in entry

    def test_context_includes_extras_and_media_ids(self) -> None:
        record = make_record(attempt=2)
        with media_context(project_id=7, file_id=42):
            MediaContextFilter().filter(record)

        entry = json.loads(JSONFormatter().format(record))

        assert entry["context"] == {"attempt": 2, "project_id": 7, "file_id": 42}

    def test_exception_is_formatted(self) -> None:
        try:
            raise ValueError("bad probe")
        except ValueError:
            record = make_record(exc_info=sys.exc_info())

        entry = json.loads(JSONFormatter().format(record))

        assert "ValueError: bad probe" in entry["exception"]


class TestConfigureLogging:
    def test_json_file_output(self, tmp_path: Path, restore_root_logger) -> None:
        log_file = tmp_path / "logs" / "mediasync.log"
        configure_logging(LoggingConfig(level="debug", file=log_file, format="json"))

        with media_context(project_id=3):
            logging.getLogger("mediasync.test").debug("Sync pass complete")
        for handler in logging.getLogger().handlers:
            handler.flush()

        entry = json.loads(log_file.read_text().splitlines()[-1])
        assert entry["message"] == "Sync pass complete"
        assert entry["context"]["project_id"] == 3
        assert logging.getLogger().level == logging.DEBUG

    def test_stderr_only_without_file(self, restore_root_logger) -> None:
        configure_logging(LoggingConfig(level="warning"))

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.StreamHandler)
        assert logging.getLogger().level == logging.WARNING

    def test_unwritable_file_falls_back_to_stderr(
        self, tmp_path: Path, restore_root_logger, capsys
    ) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")

        configure_logging(LoggingConfig(file=blocker / "mediasync.log"))

        assert "Could not open log file" in capsys.readouterr().err
        assert len(logging.getLogger().handlers) == 1


class TestRootLoggerRestored:
    """configure_logging changes made by one test do not leak into the next."""

    def test_configure_at_error_level(self) -> None:
        configure_logging(LoggingConfig(level="error"))

        assert logging.getLogger().level == logging.ERROR

    def test_warnings_visible_afterwards(self, caplog) -> None:
        assert logging.getLogger().level != logging.ERROR

        logging.getLogger("mediasync.config.env").warning("Invalid value")

        assert "Invalid value" in caplog.text
