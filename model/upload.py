# model/upload.py
from pydantic import BaseModel, field_validator
from util.enums import UploadState


class TicketCheck(BaseModel):
    exists: bool
    detail: str | None = None


class UploadOutcome(BaseModel):
    state: UploadState
    message: str
    http_status: int
    file_id: str | None = None
    comment_posted: bool = False

    @field_validator("state")
    @classmethod
    def _terminal_only(cls, v: UploadState) -> UploadState:
        if not v.is_terminal:
            raise ValueError(f"{v.value} is not a terminal state")
        return v
