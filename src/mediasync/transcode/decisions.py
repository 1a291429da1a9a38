"""Transcode decision.

Decides from probe output alone whether a file must be normalized to the
web profile. Pure, so re-evaluating an already normalized file is a no-op.
"""

from mediasync.introspector.types import ProbeResult

MBPS = 1_000_000

# Width above which the higher ceiling applies
HD_WIDTH = 1920

HD_BITRATE_CEILING_BPS = 20 * MBPS
UHD_BITRATE_CEILING_BPS = 40 * MBPS

WEB_VIDEO_CODEC = "h264"


def bitrate_ceiling_bps(width: int | None) -> int:
    """Return the highest acceptable bitrate for a frame width."""
    if width is not None and width > HD_WIDTH:
        return UHD_BITRATE_CEILING_BPS
    return HD_BITRATE_CEILING_BPS


def needs_transcoding(probe: ProbeResult) -> bool:
    """Return True if the file must be re-encoded for web playback.

    Files without a video stream never need it. H.264 at or under the
    bitrate ceiling for its width is served as-is. An unknown (zero)
    bitrate is treated as needing normalization.
    """
    if not probe.has_video_stream:
        return False

    codec = (probe.video_codec or "").lower()
    if codec == WEB_VIDEO_CODEC and 0 < probe.bitrate_bps <= bitrate_ceiling_bps(
        probe.width
    ):
        return False

    return True
