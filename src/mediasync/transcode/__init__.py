"""Transcode decision, profile and supervised encoder."""

from mediasync.transcode.decisions import bitrate_ceiling_bps, needs_transcoding
from mediasync.transcode.executor import TranscodeExecutor, compute_timeout
from mediasync.transcode.profile import (
    WEB_PROFILE,
    TranscodeProfile,
    build_ffmpeg_command,
    is_transcoded_artifact,
    transcoded_output_path,
)

__all__ = [
    "WEB_PROFILE",
    "TranscodeExecutor",
    "TranscodeProfile",
    "bitrate_ceiling_bps",
    "build_ffmpeg_command",
    "compute_timeout",
    "is_transcoded_artifact",
    "needs_transcoding",
    "transcoded_output_path",
]
