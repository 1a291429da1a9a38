"""Per-file processing workflow.

MediaProcessor drives one file through probe, decision and encode, and
persists the outcome:

    pending -> processing -> complete | failed
    failed  -> processing   (explicit retry only)

Each transition is one conditional UPDATE, so readers never observe a
half-written outcome and a second claimant for the same file loses.
"""

from __future__ import annotations

import logging
from pathlib import Path

from mediasync.db import MediaFileRecord, TranscodingStatus, write_transaction
from mediasync.db.connection import get_connection
from mediasync.db.queries import (
    claim_for_processing,
    get_files_for_project,
    get_media_file,
    mark_complete,
    mark_failed,
    recover_interrupted,
)
from mediasync.exceptions import (
    MediaFileNotFoundError,
    ProbeError,
    RetryNotAllowedError,
    TranscodeError,
)
from mediasync.introspector.interface import MediaProbe
from mediasync.logging import media_context
from mediasync.transcode.decisions import needs_transcoding
from mediasync.transcode.executor import ProgressCallback, TranscodeExecutor
from mediasync.transcode.profile import transcoded_output_path

logger = logging.getLogger(__name__)


class MediaProcessor:
    """Runs the probe/decide/encode workflow for media files."""

    def __init__(
        self,
        db_path: Path,
        probe: MediaProbe,
        executor: TranscodeExecutor,
        *,
        max_attempts: int = 3,
    ) -> None:
        self.db_path = db_path
        self._probe = probe
        self._executor = executor
        self.max_attempts = max_attempts

    def get_file(self, file_id: int) -> MediaFileRecord:
        with get_connection(self.db_path) as conn:
            record = get_media_file(conn, file_id)
        if record is None:
            raise MediaFileNotFoundError(file_id)
        return record

    def process_file(
        self,
        file_id: int,
        *,
        retry: bool = False,
        on_progress: ProgressCallback | None = None,
    ) -> MediaFileRecord:
        """Process a pending file (or a failed one when retry is set).

        ProbeError, TranscodeError and any unexpected error resolve the
        record to failed; none of them propagate.

        Returns:
            The record after processing. If another worker holds the file,
            or it is not in a claimable state, the current record is
            returned unchanged.

        Raises:
            MediaFileNotFoundError: If the record does not exist.
        """
        claimed = write_transaction(
            self.db_path,
            lambda conn: claim_for_processing(conn, file_id, from_failed=retry),
        )
        record = self.get_file(file_id)
        if not claimed:
            logger.info(
                "Media file %d not claimed (status %s), skipping",
                file_id,
                record.transcoding_status.value,
            )
            return record

        with media_context(project_id=record.project_id, file_id=file_id):
            self._run(record, on_progress)

        return self.get_file(file_id)

    def _run(
        self, record: MediaFileRecord, on_progress: ProgressCallback | None
    ) -> None:
        file_id = record.id
        input_path = Path(record.file_path)
        duration: float | None = None

        try:
            try:
                probe = self._probe.probe(input_path)
            except ProbeError as e:
                logger.warning("Probe failed for %s: %s", input_path.name, e)
                self._fail(file_id, str(e))
                return

            duration = probe.duration_seconds

            if not needs_transcoding(probe):
                logger.info(
                    "%s is web-ready (codec=%s, %d bps), no transcode needed",
                    input_path.name,
                    probe.video_codec,
                    probe.bitrate_bps,
                )
                self._complete(file_id, duration=duration, transcoded_path=None)
                return

            output_path = self._output_path_for(record)
            try:
                self._executor.transcode(
                    input_path,
                    output_path,
                    on_progress=on_progress,
                    duration_seconds=duration,
                )
            except TranscodeError as e:
                logger.warning("Transcode failed for %s: %s", input_path.name, e)
                self._fail(file_id, e.error_text, duration=duration)
                return

            self._complete(file_id, duration=duration, transcoded_path=str(output_path))
        except Exception as e:
            logger.exception("Unexpected error processing %s", input_path.name)
            self._fail(file_id, f"Unexpected error: {e}", duration=duration)

    def _output_path_for(self, record: MediaFileRecord) -> Path:
        """Pick the output path, qualifying it when a sibling shares the stem.

        clip.mov and clip.mkv in one folder would otherwise both encode to
        clip-transcoded.mp4 and overwrite each other.
        """
        input_path = Path(record.file_path)
        with get_connection(self.db_path) as conn:
            siblings = [
                other.filename
                for other in get_files_for_project(conn, record.project_id)
                if other.id != record.id
                and Path(other.file_path).parent == input_path.parent
                and Path(other.file_path).stem == input_path.stem
            ]
        if not siblings:
            return transcoded_output_path(input_path)

        output_path = transcoded_output_path(input_path, qualify=True)
        logger.warning(
            "%s shares its name with %s, writing %s",
            input_path.name,
            ", ".join(siblings),
            output_path.name,
        )
        return output_path

    def _complete(
        self, file_id: int, *, duration: float | None, transcoded_path: str | None
    ) -> None:
        updated = write_transaction(
            self.db_path,
            lambda conn: mark_complete(
                conn,
                file_id,
                duration=duration,
                transcoded_file_path=transcoded_path,
            ),
        )
        if not updated:
            logger.warning("Media file %d left processing before completion", file_id)
            if transcoded_path is not None:
                self._discard_orphaned_output(file_id, Path(transcoded_path))
            return
        logger.info("Media file %d complete", file_id)

    def _discard_orphaned_output(self, file_id: int, output_path: Path) -> None:
        """Delete an output whose row was removed while it was being encoded."""
        with get_connection(self.db_path) as conn:
            if get_media_file(conn, file_id) is not None:
                return
        try:
            output_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove transcoded file %s: %s", output_path, e)
        else:
            logger.info("Removed %s, its media file was deleted", output_path.name)

    def _fail(self, file_id: int, error: str, *, duration: float | None = None) -> None:
        updated = write_transaction(
            self.db_path,
            lambda conn: mark_failed(conn, file_id, error, duration=duration),
        )
        if not updated:
            logger.warning("Media file %d left processing before failure", file_id)

    def retry_file(
        self,
        file_id: int,
        *,
        force: bool = False,
        on_progress: ProgressCallback | None = None,
    ) -> MediaFileRecord:
        """Re-run a failed file.

        Raises:
            MediaFileNotFoundError: If the record does not exist.
            RetryNotAllowedError: If the file is not failed, or has used all
                its attempts and force is not set.
        """
        self.check_retry_allowed(self.get_file(file_id), force=force)
        return self.process_file(file_id, retry=True, on_progress=on_progress)

    def check_retry_allowed(self, record: MediaFileRecord, *, force: bool) -> None:
        """Raise RetryNotAllowedError unless record may be retried."""
        if record.transcoding_status is not TranscodingStatus.FAILED:
            raise RetryNotAllowedError(
                record.id,
                f"status is {record.transcoding_status.value}, not failed",
            )
        if not force and record.transcoding_attempts >= self.max_attempts:
            raise RetryNotAllowedError(
                record.id,
                f"{record.transcoding_attempts} of {self.max_attempts} attempts used",
            )

    def recover_interrupted(self) -> int:
        """Fail any records left in processing by a previous process."""
        count = write_transaction(self.db_path, recover_interrupted)
        if count:
            logger.warning(
                "Recovered %d media file(s) interrupted mid-processing", count
            )
        return count
