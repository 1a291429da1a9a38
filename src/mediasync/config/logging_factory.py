"""Apply the global --log-* CLI flags on top of the configured logging."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from mediasync.config.models import LoggingConfig


def build_logging_config(
    base: LoggingConfig,
    *,
    level: str | None = None,
    file: Path | None = None,
    format: str | None = None,
    include_stderr: bool | None = None,
) -> LoggingConfig:
    """Return a copy of base with every flag that was given applied.

    Flags left as None keep the configured value. The copy is validated
    again, so an invalid flag raises ValueError.
    """
    overrides = {
        "level": level,
        "file": file,
        "format": format,
        "include_stderr": include_stderr,
    }
    return replace(
        base, **{name: value for name, value in overrides.items() if value is not None}
    )
