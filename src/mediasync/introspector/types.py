"""Probe result type."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ProbeResult:
    """Stream and container facts extracted from a media file.

    bitrate_bps is the effective bitrate: the video stream's own bit rate,
    else the container's, else 0 when neither is reported.
    """

    has_video_stream: bool
    video_codec: str | None = None
    width: int | None = None
    height: int | None = None
    bitrate_bps: int = 0
    duration_seconds: float | None = None
    has_audio_stream: bool = False
    audio_codec: str | None = None
    format_name: str | None = None
    size: int | None = None
