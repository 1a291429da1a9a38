"""Exception hierarchy for the media sync pipeline.

ProbeError and TranscodeError are recorded on the owning media file and never
escape the processor. FsSyncError aborts a single reconciliation pass.
"""

from __future__ import annotations


class MediaSyncError(Exception):
    """Base exception for all media sync errors."""


class ProbeError(MediaSyncError):
    """Raised when a media file cannot be probed.

    Covers missing, unreadable, and unparseable files. This is deliberately
    distinct from a successful probe that finds no video stream.
    """


class TranscodeError(MediaSyncError):
    """Raised when the encoder process does not produce a usable output.

    Attributes:
        returncode: Encoder exit status (-1 when killed on timeout).
        diagnostics: Encoder diagnostic output, verbatim.
        timed_out: True if the encoder was killed after exceeding its timeout.
    """

    def __init__(
        self,
        message: str,
        *,
        returncode: int | None = None,
        diagnostics: str = "",
        timed_out: bool = False,
    ) -> None:
        self.returncode = returncode
        self.diagnostics = diagnostics
        self.timed_out = timed_out
        super().__init__(message)

    @property
    def error_text(self) -> str:
        """Text persisted to the media file's transcoding_error field."""
        if self.diagnostics:
            return f"{self}\n{self.diagnostics}"
        return str(self)


class FsSyncError(MediaSyncError):
    """Raised when a watched directory cannot be read during reconciliation."""

    def __init__(self, root: str, reason: str) -> None:
        self.root = root
        self.reason = reason
        super().__init__(f"Cannot sync folder {root}: {reason}")


class ToolNotFoundError(MediaSyncError):
    """Raised when ffmpeg or ffprobe cannot be located."""


class MediaFileNotFoundError(MediaSyncError):
    """Raised when a media file record does not exist.

    Attributes:
        file_id: ID of the missing record.
    """

    def __init__(self, file_id: int) -> None:
        self.file_id = file_id
        super().__init__(f"Media file {file_id} not found")


class RetryNotAllowedError(MediaSyncError):
    """Raised when a retry is requested for a file that cannot be retried."""

    def __init__(self, file_id: int, reason: str) -> None:
        self.file_id = file_id
        self.reason = reason
        super().__init__(f"Cannot retry media file {file_id}: {reason}")


class ProjectNotFoundError(MediaSyncError):
    """Raised when a project record does not exist."""

    def __init__(self, project_id: int) -> None:
        self.project_id = project_id
        super().__init__(f"Project {project_id} not found")


class MediaFileExistsError(MediaSyncError):
    """Raised when a project already has a record for a file path.

    Attributes:
        file_id: ID of the existing record.
        file_path: The duplicated path.
    """

    def __init__(self, file_id: int, file_path: str) -> None:
        self.file_id = file_id
        self.file_path = file_path
        super().__init__(f"{file_path} is already registered as media file {file_id}")
