"""Data type definitions for the media sync database.

Database records and status enums shared by the query modules, the
processor, and the HTTP layer.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any


class TranscodingStatus(Enum):
    """Per-file transcoding state.

    pending -> processing -> {complete, failed}; failed re-enters processing
    only through an explicit retry.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETE = "complete"
    FAILED = "failed"


class FolderClassification(Enum):
    """Upload subfolder a file was placed in."""

    INBOUND = "inbound"
    OUTBOUND = "outbound"


@dataclass
class ProjectRecord:
    """Database record for the projects table."""

    id: int | None
    name: str
    media_folder_path: str | None
    created_at: str
    updated_at: str


@dataclass
class MediaFileRecord:
    """Database record for the files table.

    file_path is absolute and unique within a project. transcoded_file_path
    is set only when status is complete and normalization was required.
    """

    id: int | None
    project_id: int
    filename: str
    original_name: str
    file_path: str
    file_size: int
    mime_type: str
    uploaded_at: str
    updated_at: str
    transcoded_file_path: str | None = None
    duration: float | None = None
    folder: FolderClassification | None = None
    transcoding_status: TranscodingStatus = TranscodingStatus.PENDING
    transcoding_error: str | None = None
    transcoding_attempts: int = 0

    @property
    def is_video(self) -> bool:
        return self.mime_type.startswith("video/")

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output using the persisted column names."""
        data = asdict(self)
        data["transcoding_status"] = self.transcoding_status.value
        data["folder"] = self.folder.value if self.folder else None
        return data


@dataclass
class CommentRecord:
    """Database record for the comments table."""

    id: int | None
    file_id: int
    author_name: str
    comment_text: str
    created_at: str
    timecode: str | None = None
