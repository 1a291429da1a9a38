"""Fixed web transcoding profile and encoder command construction."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

TRANSCODED_SUFFIX = "-transcoded.mp4"


@dataclass(frozen=True)
class TranscodeProfile:
    """Target encoding parameters applied to every normalized output."""

    video_codec: str = "libx264"
    preset: str = "fast"
    crf: int = 23
    h264_profile: str = "high"
    level: str = "4.0"
    pixel_format: str = "yuv420p"
    max_width: int = 1920
    max_fps: int = 30
    audio_codec: str = "aac"
    audio_bitrate: str = "192k"
    audio_channels: int = 2
    audio_sample_rate: int = 48000
    container: str = "mp4"


WEB_PROFILE = TranscodeProfile()


def transcoded_output_path(input_path: Path, *, qualify: bool = False) -> Path:
    """Return the deterministic output path for an input file.

    The output sits beside the input, so repeated attempts overwrite it.
    With qualify the source extension is kept in the name
    (clip.mkv -> clip-mkv-transcoded.mp4), for sources that share a stem.
    """
    stem = input_path.stem
    extension = input_path.suffix.lstrip(".").lower()
    if qualify and extension:
        stem = f"{stem}-{extension}"
    return input_path.with_name(f"{stem}{TRANSCODED_SUFFIX}")


def is_transcoded_artifact(name: str) -> bool:
    return name.endswith(TRANSCODED_SUFFIX)


def build_ffmpeg_command(
    ffmpeg_path: Path,
    input_path: Path,
    output_path: Path,
    profile: TranscodeProfile = WEB_PROFILE,
) -> list[str]:
    """Build the encoder command line for a profile.

    Width is capped without upscaling and height follows the aspect ratio
    (rounded to an even number for yuv420p). Frame rate is capped, never
    raised. The first audio stream is optional so silent video encodes.
    """
    scale = f"scale='min({profile.max_width},iw)':-2"
    return [
        str(ffmpeg_path),
        "-hide_banner",
        "-nostdin",
        "-y",
        "-i",
        str(input_path),
        "-map",
        "0:v:0",
        "-map",
        "0:a:0?",
        "-c:v",
        profile.video_codec,
        "-preset",
        profile.preset,
        "-crf",
        str(profile.crf),
        "-profile:v",
        profile.h264_profile,
        "-level",
        profile.level,
        "-pix_fmt",
        profile.pixel_format,
        "-vf",
        scale,
        "-fpsmax",
        str(profile.max_fps),
        "-c:a",
        profile.audio_codec,
        "-b:a",
        profile.audio_bitrate,
        "-ac",
        str(profile.audio_channels),
        "-ar",
        str(profile.audio_sample_rate),
        "-movflags",
        "+faststart",
        "-f",
        profile.container,
        str(output_path),
    ]
