"""Request body models for the HTTP API."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mediasync.db.types import FolderClassification


class MediaFolderRequest(BaseModel):
    """Body of PUT /api/projects/{id}/media-folder."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    path: str = Field(min_length=1)

    @field_validator("path")
    @classmethod
    def strip_path(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("path must not be blank")
        return v


class RegisterUploadRequest(BaseModel):
    """Body of POST /api/projects/{id}/files."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    file_path: str = Field(min_length=1)
    original_name: str | None = None
    folder: FolderClassification | None = None
    mime_type: str | None = None
