# util/errors.py
from typing import Iterable
from fastapi import HTTPException, status


class ConfigurationError(Exception):
    """Startup-fatal: the process cannot serve uploads with this configuration."""

    def __init__(self, problems: Iterable[str] | str) -> None:
        if isinstance(problems, str):
            problems = [problems]
        self.problems = list(problems)
        super().__init__("; ".join(self.problems))


class AppError(HTTPException):
    # Flow: raise AppError to short-circuit with a typed status & message.
    def __init__(
        self, message: str, http_status: int = status.HTTP_400_BAD_REQUEST
    ) -> None:
        super().__init__(status_code=http_status, detail=message)


class TicketNotFound(AppError):
    def __init__(self, ticket_id: str, detail: str) -> None:
        super().__init__(f"Failed to upload file: {detail}")
        self.ticket_id = ticket_id
        self.reason = detail


class StoreUnavailable(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)


class _UpstreamStatusError(AppError):
    """Carries the upstream status (0 for transport failures) and raw body."""

    def __init__(self, what: str, status_code: int, body: str) -> None:
        super().__init__(
            f"{what}: {status_code} {body}".strip(),
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
        self.upstream_status = status_code
        self.body = body


class SessionCreationFailed(_UpstreamStatusError):
    def __init__(self, status_code: int, body: str) -> None:
        super().__init__("Failed to create resumable upload session", status_code, body)


class UploadFailed(_UpstreamStatusError):
    def __init__(self, status_code: int, body: str) -> None:
        super().__init__("Failed to upload file", status_code, body)


class CommentPostFailed(Exception):
    # Soft: converted to a sub-status, never surfaced as an HTTP error.
    def __init__(self, ticket_id: str, status_code: int, body: str = "") -> None:
        super().__init__(f"comment on {ticket_id} failed: {status_code} {body}".strip())
        self.ticket_id = ticket_id
        self.upstream_status = status_code
