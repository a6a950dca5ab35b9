# util/constants.py
from typing import Final


class InternalURIs:
    INDEX = "/"
    UPLOAD = "/upload"
    HEALTHZ = "/healthz"


class ExternalURIs:
    # Relative to settings.DRIVE_API_URL / DRIVE_UPLOAD_URL / BUGZILLA_URL
    DRIVE_FILES = "/files"
    BUGZILLA_BUG = "/rest/bug/{bug_id}"
    BUGZILLA_COMMENT = "/rest/bug/{bug_id}/comment"


FOLDER_MIME_TYPE: Final[str] = "application/vnd.google-apps.folder"
DEFAULT_MIME_TYPE: Final[str] = "application/octet-stream"
BUGZILLA_API_KEY_HEADER: Final[str] = "X-BUGZILLA-API-KEY"
RATE_LIMIT_PREFIX: Final[str] = "logup:ratelimit"

UPLOAD_OK_MESSAGE: Final[str] = "File uploaded successfully.\n<br>"
COMMENT_OK_MESSAGE: Final[str] = "Added comment to bugzilla"
COMMENT_FAILED_MESSAGE: Final[str] = "Failed to comment to bugzilla"
