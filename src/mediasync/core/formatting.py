"""Human-readable formatting for CLI output."""

from __future__ import annotations


def format_file_size(size_bytes: int) -> str:
    """Format a byte count, e.g. "4.2 GB", "128.0 MB", "512 B"."""
    for unit, scale in (("GB", 1024**3), ("MB", 1024**2), ("KB", 1024)):
        if size_bytes >= scale:
            return f"{size_bytes / scale:.1f} {unit}"
    return f"{size_bytes} B"


def format_duration(seconds: float | None) -> str:
    """Format a duration as H:MM:SS or M:SS; "-" when unknown."""
    if seconds is None:
        return "-"
    total = int(round(seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def truncate_filename(filename: str, max_length: int = 40) -> str:
    """Shorten filename to max_length, keeping the extension.

    Examples:
        >>> truncate_filename("interview-take-three-final.mov", 20)
        'interview-take-….mov'
    """
    if not filename or len(filename) <= max_length:
        return filename

    dot_index = filename.rfind(".")
    if dot_index > 0:
        base, extension = filename[:dot_index], filename[dot_index:]
    else:
        base, extension = filename, ""

    available = max_length - len(extension) - 1
    if available < 1:
        return filename[: max_length - 1] + "…"
    return base[:available] + "…" + extension
