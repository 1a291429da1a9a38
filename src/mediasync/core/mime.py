"""Extension to MIME type classification.

The table is total over the extensions the studio accepts; anything else is
application/octet-stream.
"""

from __future__ import annotations

from pathlib import PurePath

DEFAULT_MIME_TYPE = "application/octet-stream"

MIME_TYPES: dict[str, str] = {
    # Video
    ".mp4": "video/mp4",
    ".mov": "video/quicktime",
    ".avi": "video/x-msvideo",
    ".mkv": "video/x-matroska",
    ".webm": "video/webm",
    # Audio
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".aac": "audio/aac",
    ".flac": "audio/flac",
    ".m4a": "audio/mp4",
    # Documents
    ".pdf": "application/pdf",
    ".txt": "text/plain",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".xls": "application/vnd.ms-excel",
    ".csv": "text/csv",
    # Images
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


def mime_type_for(filename: str | PurePath) -> str:
    """Return the MIME type for a filename based on its extension.

    Matching is case-insensitive.
    """
    suffix = PurePath(filename).suffix.lower()
    return MIME_TYPES.get(suffix, DEFAULT_MIME_TYPE)


def is_video_mime(mime_type: str | None) -> bool:
    return bool(mime_type) and mime_type.startswith("video/")
