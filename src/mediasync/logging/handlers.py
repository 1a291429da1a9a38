"""JSON log formatting for `--log-json` and `logging.format = "json"`."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

# Attributes every LogRecord carries, taken from a blank record so new
# interpreter versions (taskName in 3.12) are covered without a list update.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}

# Set by MediaContextFilter; the ids are re-added below, the tag is text-only
_MEDIA_ATTRS = frozenset({"project_id", "file_id", "context_tag"})


class JSONFormatter(logging.Formatter):
    """Format each record as one JSON object per line.

    Keys: timestamp (UTC ISO-8601), level, message, logger (omitted for the
    root logger), context (extra= values plus the project and file ids) and
    exception (the formatted traceback).
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
        }
        if record.name and record.name != "root":
            entry["logger"] = record.name

        context = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS
            and key not in _MEDIA_ATTRS
            and not key.startswith("_")
        }
        # Re-added last so an extra= key cannot shadow them
        for key in ("project_id", "file_id"):
            value = getattr(record, key, None)
            if value is not None:
                context[key] = value
        if context:
            entry["context"] = context

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)
