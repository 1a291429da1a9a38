"""Structured logging for media sync."""

from mediasync.logging.config import configure_logging
from mediasync.logging.context import (
    MediaContextFilter,
    get_media_context,
    media_context,
)
from mediasync.logging.handlers import JSONFormatter

__all__ = [
    "JSONFormatter",
    "MediaContextFilter",
    "configure_logging",
    "get_media_context",
    "media_context",
]
