"""Pure parsing functions for ffprobe JSON output.

These functions hold no I/O so they can be tested against fixture JSON.
"""

import logging
from typing import Any

from mediasync.introspector.types import ProbeResult

logger = logging.getLogger(__name__)


def parse_duration(value: Any) -> float | None:
    """Parse a duration value from ffprobe into seconds.

    Args:
        value: Duration string from ffprobe (e.g., "3600.000") or None.

    Returns:
        Duration in seconds, or None if missing, unparseable or negative.
    """
    if value is None:
        return None
    try:
        seconds = float(value)
    except (ValueError, TypeError):
        return None
    return seconds if seconds >= 0 else None


def parse_int(value: Any) -> int | None:
    """Parse an integer-valued ffprobe field ("6000000", 1920, "N/A")."""
    if value is None:
        return None
    try:
        parsed = int(value)
    except (ValueError, TypeError):
        return None
    return parsed if parsed >= 0 else None


def _first_stream(streams: list[dict], codec_type: str) -> dict | None:
    """Return the first stream of a type, skipping embedded cover art."""
    for stream in streams:
        if stream.get("codec_type") != codec_type:
            continue
        if stream.get("disposition", {}).get("attached_pic"):
            continue
        return stream
    return None


def parse_probe_output(data: dict) -> ProbeResult:
    """Parse ffprobe JSON output into a ProbeResult.

    Args:
        data: Parsed ffprobe JSON output with "streams" and "format" keys.

    Returns:
        ProbeResult describing the first video and audio streams.
    """
    streams = data.get("streams", [])
    format_info = data.get("format", {})

    video = _first_stream(streams, "video")
    audio = _first_stream(streams, "audio")

    container_duration = parse_duration(format_info.get("duration"))
    container_bitrate = parse_int(format_info.get("bit_rate"))

    if video is None:
        return ProbeResult(
            has_video_stream=False,
            bitrate_bps=container_bitrate or 0,
            duration_seconds=container_duration,
            has_audio_stream=audio is not None,
            audio_codec=audio.get("codec_name") if audio else None,
            format_name=format_info.get("format_name"),
            size=parse_int(format_info.get("size")),
        )

    stream_bitrate = parse_int(video.get("bit_rate"))
    bitrate = stream_bitrate or container_bitrate or 0

    duration = container_duration
    if duration is None:
        duration = parse_duration(video.get("duration"))

    return ProbeResult(
        has_video_stream=True,
        video_codec=video.get("codec_name"),
        width=parse_int(video.get("width")),
        height=parse_int(video.get("height")),
        bitrate_bps=bitrate,
        duration_seconds=duration,
        has_audio_stream=audio is not None,
        audio_codec=audio.get("codec_name") if audio else None,
        format_name=format_info.get("format_name"),
        size=parse_int(format_info.get("size")),
    )
