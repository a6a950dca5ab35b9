# util/enums.py
from enum import Enum
from typing import NamedTuple
from fastapi import status


class Color(str, Enum):
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    BOLD = "\033[1m"

    def __str__(self):
        return self.value


class Environment(str, Enum):
    DEV = "dev"
    PROD = "prod"


class UploadState(str, Enum):
    # Stages, in the order they run
    CHECK_TICKET = "CheckTicket"
    RESOLVE_FOLDER = "ResolveFolder"
    INITIATE_SESSION = "InitiateSession"
    STREAM_UPLOAD = "StreamUpload"
    NOTIFY_COMMENT = "NotifyComment"
    # Terminal
    SUCCEEDED = "Succeeded"
    FAILED_AT_TICKET_CHECK = "FailedAtTicketCheck"
    FAILED_AT_STORE = "FailedAtStore"
    FAILED_AT_UPLOAD = "FailedAtUpload"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset(
    {
        UploadState.SUCCEEDED,
        UploadState.FAILED_AT_TICKET_CHECK,
        UploadState.FAILED_AT_STORE,
        UploadState.FAILED_AT_UPLOAD,
    }
)


class ErrorInfo(NamedTuple):
    message: str
    http_status: int


class ErrorMessage(Enum):
    NO_FILE = ErrorInfo("No file uploaded", status.HTTP_400_BAD_REQUEST)
    NO_BUG_ID = ErrorInfo("No bug number supplied", status.HTTP_400_BAD_REQUEST)
    UPLOAD_ERROR = ErrorInfo(
        "Error uploading file", status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    FILE_TOO_LARGE = ErrorInfo(
        "File too large", status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    )
    RATE_LIMITED = ErrorInfo(
        "Too many requests. Try again later.", status.HTTP_429_TOO_MANY_REQUESTS
    )
    BUG_NOT_FOUND = ErrorInfo(
        "Bug number does not appear to exist", status.HTTP_400_BAD_REQUEST
    )
    TRACKER_UNREACHABLE = ErrorInfo("Unknown", status.HTTP_400_BAD_REQUEST)
