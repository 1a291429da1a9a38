"""Media context for structured logging.

Watchers for different projects and transcode workers run concurrently, so
project_id and file_id are carried in contextvars and injected into every
log record by MediaContextFilter.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_project_id: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "project_id", default=None
)
_file_id: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "file_id", default=None
)


@contextmanager
def media_context(
    project_id: int | None = None, file_id: int | None = None
) -> Generator[None, None, None]:
    """Set project/file context for the enclosed block.

    Arguments left as None keep the enclosing value, so a processor call
    nested inside a watcher keeps the project id.

    Example:
        with media_context(project_id=7, file_id=42):
            logger.info("Transcoding")  # tagged [P7:F42]
    """
    project_token = (
        _project_id.set(project_id) if project_id is not None else None
    )
    file_token = _file_id.set(file_id) if file_id is not None else None
    try:
        yield
    finally:
        if file_token is not None:
            _file_id.reset(file_token)
        if project_token is not None:
            _project_id.reset(project_token)


def get_media_context() -> tuple[int | None, int | None]:
    """Return (project_id, file_id) for the current context."""
    return _project_id.get(), _file_id.get()


class MediaContextFilter(logging.Filter):
    """Logging filter that injects media context into log records.

    Adds project_id and file_id attributes, plus a compact context_tag like
    "[P7:F42] " for the text format.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        project_id, file_id = get_media_context()
        record.project_id = project_id
        record.file_id = file_id

        if project_id is not None and file_id is not None:
            record.context_tag = f"[P{project_id}:F{file_id}] "
        elif project_id is not None:
            record.context_tag = f"[P{project_id}] "
        elif file_id is not None:
            record.context_tag = f"[F{file_id}] "
        else:
            record.context_tag = ""

        return True  # Never filter out records
