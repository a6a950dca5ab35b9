# model/drive.py
from pydantic import BaseModel, ConfigDict, Field


class DriveFolder(BaseModel):
    id: str
    name: str


class FolderListPage(BaseModel):
    files: list[DriveFolder] = Field(default_factory=list)
    nextPageToken: str | None = None


class FileMetadata(BaseModel):
    """Metadata half of the resumable protocol (no bytes)."""

    name: str
    parents: list[str]


class DriveFile(BaseModel):
    # Final descriptor from the data phase; the store adds fields we don't use
    model_config = ConfigDict(extra="allow")

    id: str = Field(min_length=1)
    name: str | None = None
    mimeType: str | None = None


class UploadSession(BaseModel):
    # Ephemeral: one per file, one attempt, never persisted
    model_config = ConfigDict(frozen=True)

    folder_id: str
    file_name: str
    size_bytes: int = Field(ge=0)
    mime_type: str
    session_url: str


class UploadResult(BaseModel):
    success: bool
    file_id: str | None = None
    error_detail: str | None = None
