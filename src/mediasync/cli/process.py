"""File commands: process, retry and probe."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import asdict
from pathlib import Path

import click

from mediasync.cli.context import get_cli_config, open_processor
from mediasync.cli.exit_codes import ExitCode
from mediasync.cli.output import echo_json, error_exit, json_option
from mediasync.core.formatting import format_duration, format_file_size
from mediasync.db import MediaFileRecord, TranscodingStatus
from mediasync.exceptions import (
    MediaFileNotFoundError,
    ProbeError,
    RetryNotAllowedError,
    ToolNotFoundError,
)
from mediasync.introspector import FFprobeProbe
from mediasync.tools import find_tool
from mediasync.transcode import bitrate_ceiling_bps, needs_transcoding
from mediasync.transcode.decisions import MBPS

logger = logging.getLogger(__name__)


@contextmanager
def _progress_bar(
    enabled: bool, label: str
) -> Iterator[Callable[[float], None] | None]:
    """Yield an on_progress callback drawing a percent bar, or None."""
    if not enabled:
        yield None
        return

    with click.progressbar(
        length=100, label=label, file=click.get_text_stream("stderr")
    ) as bar:
        shown = 0

        def on_progress(fraction: float) -> None:
            nonlocal shown
            percent = int(fraction * 100)
            if percent > shown:
                bar.update(percent - shown)
                shown = percent

        yield on_progress


def _report(record: MediaFileRecord, json_output: bool) -> None:
    """Print a processed record; exit non-zero if it ended failed."""
    if json_output:
        echo_json(record.to_dict())
    else:
        click.echo(f"{record.original_name}: {record.transcoding_status.value}")
        if record.transcoded_file_path:
            click.echo(f"  Output: {record.transcoded_file_path}")
        if record.duration is not None:
            click.echo(f"  Duration: {format_duration(record.duration)}")
        if record.transcoding_error:
            click.echo(f"  Attempts: {record.transcoding_attempts}")
            click.echo("  Error:")
            for line in record.transcoding_error.splitlines():
                click.echo(f"    {line}")

    if record.transcoding_status is TranscodingStatus.FAILED:
        raise SystemExit(int(ExitCode.PROCESSING_FAILED))


@click.command("process")
@click.argument("file_id", type=click.IntRange(min=1))
@json_option
@click.pass_context
def process_command(ctx: click.Context, file_id: int, json_output: bool) -> None:
    """Probe FILE_ID and transcode it if needed, in the foreground.

    Only pending files are processed; use retry for failed ones.
    """
    processor = open_processor(ctx, json_output)
    try:
        with _progress_bar(not json_output, f"File {file_id}") as on_progress:
            record = processor.process_file(file_id, on_progress=on_progress)
    except MediaFileNotFoundError as e:
        error_exit(str(e), ExitCode.NOT_FOUND, json_output)
    _report(record, json_output)


@click.command("retry")
@click.argument("file_id", type=click.IntRange(min=1))
@click.option(
    "--force",
    is_flag=True,
    default=False,
    help="Retry even if the attempt limit is reached.",
)
@json_option
@click.pass_context
def retry_command(
    ctx: click.Context, file_id: int, force: bool, json_output: bool
) -> None:
    """Retry a failed FILE_ID in the foreground."""
    processor = open_processor(ctx, json_output)
    try:
        with _progress_bar(not json_output, f"File {file_id}") as on_progress:
            record = processor.retry_file(
                file_id, force=force, on_progress=on_progress
            )
    except MediaFileNotFoundError as e:
        error_exit(str(e), ExitCode.NOT_FOUND, json_output)
    except RetryNotAllowedError as e:
        error_exit(str(e), ExitCode.RETRY_NOT_ALLOWED, json_output)
    _report(record, json_output)


@click.command("probe")
@click.argument(
    "path", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@json_option
@click.pass_context
def probe_command(ctx: click.Context, path: Path, json_output: bool) -> None:
    """Probe PATH and show whether it would be transcoded."""
    config = get_cli_config(ctx)
    try:
        ffprobe = find_tool("ffprobe", config.get_tool_path("ffprobe"))
    except ToolNotFoundError as e:
        error_exit(str(e), ExitCode.TOOL_NOT_FOUND, json_output)

    probe = FFprobeProbe(ffprobe, timeout=config.transcode.probe_timeout_seconds)
    try:
        result = probe.probe(path)
    except ProbeError as e:
        error_exit(str(e), ExitCode.PROBE_FAILED, json_output)

    transcode = needs_transcoding(result)
    ceiling = bitrate_ceiling_bps(result.width)

    if json_output:
        data = asdict(result)
        data["needs_transcoding"] = transcode
        data["bitrate_ceiling_bps"] = ceiling
        echo_json(data)
        return

    click.echo(f"File:      {path}")
    click.echo(f"Format:    {result.format_name or '-'}")
    if result.size is not None:
        click.echo(f"Size:      {format_file_size(result.size)}")
    click.echo(f"Duration:  {format_duration(result.duration_seconds)}")
    if result.has_video_stream:
        click.echo(
            f"Video:     {result.video_codec or 'unknown'} "
            f"{result.width or '?'}x{result.height or '?'} "
            f"@ {result.bitrate_bps / MBPS:.1f} Mbps"
        )
    else:
        click.echo("Video:     none")
    click.echo(
        f"Audio:     {result.audio_codec or 'unknown'}"
        if result.has_audio_stream
        else "Audio:     none"
    )

    if not result.has_video_stream:
        decision = "no video stream, served as-is"
    elif transcode:
        decision = f"transcode (ceiling {ceiling / MBPS:.0f} Mbps, h264 only)"
    else:
        decision = "web-ready, served as-is"
    click.echo(f"Decision:  {decision}")
