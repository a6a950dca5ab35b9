# service/upload_service.py
import logging
from fastapi import status
from config.settings import Settings
from core.bugzilla_client import TicketNotifier
from core.byte_pipe import ByteSource
from core.credentials import TokenProvider
from core.drive_folders import FolderResolver
from core.drive_upload import ResumableUploader
from model.drive import FileMetadata
from model.upload import UploadOutcome
from util.constants import COMMENT_FAILED_MESSAGE, COMMENT_OK_MESSAGE, UPLOAD_OK_MESSAGE
from util.enums import ErrorMessage, UploadState
from util.errors import SessionCreationFailed, StoreUnavailable, TicketNotFound, UploadFailed
from util.timing import timed

logger = logging.getLogger(__name__)


class UploadService:
    """
    Runs one upload request through its stages, strictly in order:

      CheckTicket -> ResolveFolder -> InitiateSession -> StreamUpload -> NotifyComment

    Any failure before NotifyComment ends the request; nothing is retried and
    nothing already created (e.g. the ticket folder) is rolled back. A failed
    comment only changes the wording of the success message.
    """

    def __init__(
        self,
        settings: Settings,
        notifier: TicketNotifier,
        folders: FolderResolver,
        uploader: ResumableUploader,
        tokens: TokenProvider,
    ) -> None:
        self._notifier = notifier
        self._folders = folders
        self._uploader = uploader
        self._tokens = tokens
        self._comment_text = settings.BUGZILLA_COMMENT_TEXT

    async def upload(
        self,
        ticket_id: str,
        file_name: str,
        size_bytes: int,
        mime_type: str,
        source: ByteSource,
    ) -> UploadOutcome:
        logger.info(
            "upload.start bug=%s name=%s bytes=%d mime=%s",
            ticket_id,
            file_name,
            size_bytes,
            mime_type,
        )

        try:
            with timed(logger, "upload.stage.check_ticket", bug=ticket_id):
                await self._check_ticket(ticket_id)
        except TicketNotFound as e:
            return self._fail(UploadState.FAILED_AT_TICKET_CHECK, e.detail, e.status_code)

        try:
            with timed(logger, "upload.stage.resolve_folder", bug=ticket_id):
                folder_id = await self._folders.resolve_or_create_folder(str(ticket_id))
        except StoreUnavailable as e:
            logger.error("upload.folder.failed bug=%s err=%s", ticket_id, e.detail)
            return self._fail_hard(UploadState.FAILED_AT_STORE)

        try:
            with timed(logger, "upload.stage.initiate_session", bug=ticket_id):
                token = await self._tokens.access_token()
                session = await self._uploader.create_session(
                    token,
                    FileMetadata(name=file_name, parents=[folder_id]),
                    size_bytes,
                    mime_type,
                )
            with timed(logger, "upload.stage.stream", bug=ticket_id, bytes=size_bytes):
                result = await self._uploader.stream_upload(session, source)
        except StoreUnavailable as e:
            # token refresh between folder and session stages
            logger.error("upload.token.failed bug=%s err=%s", ticket_id, e.detail)
            return self._fail_hard(UploadState.FAILED_AT_STORE)
        except (SessionCreationFailed, UploadFailed) as e:
            logger.error(
                "upload.transfer.failed bug=%s folder=%s kind=%s status=%d",
                ticket_id,
                folder_id,
                type(e).__name__,
                e.upstream_status,
            )
            return self._fail_hard(UploadState.FAILED_AT_UPLOAD)

        with timed(logger, "upload.stage.notify_comment", bug=ticket_id):
            commented = await self._notifier.post_comment(ticket_id, self._comment_text)

        message = UPLOAD_OK_MESSAGE + (
            COMMENT_OK_MESSAGE if commented else COMMENT_FAILED_MESSAGE
        )
        logger.info(
            "upload.ok bug=%s file=%s commented=%s", ticket_id, result.file_id, commented
        )
        return UploadOutcome(
            state=UploadState.SUCCEEDED,
            message=message,
            http_status=status.HTTP_200_OK,
            file_id=result.file_id,
            comment_posted=commented,
        )

    async def _check_ticket(self, ticket_id: str) -> None:
        check = await self._notifier.ticket_exists(ticket_id)
        if not check.exists:
            raise TicketNotFound(
                ticket_id, check.detail or ErrorMessage.BUG_NOT_FOUND.value.message
            )

    @staticmethod
    def _fail(state: UploadState, message: str, http_status: int) -> UploadOutcome:
        logger.warning("upload.rejected state=%s message=%s", state.value, message)
        return UploadOutcome(state=state, message=message, http_status=http_status)

    @staticmethod
    def _fail_hard(state: UploadState) -> UploadOutcome:
        # Upstream detail stays in the logs
        info = ErrorMessage.UPLOAD_ERROR.value
        return UploadOutcome(state=state, message=info.message, http_status=info.http_status)
