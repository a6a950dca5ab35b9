# core/drive_upload.py
import logging
import httpx
from pydantic import ValidationError
from config.settings import Settings
from core.byte_pipe import BytePipe, BytePipeError, ByteSource
from model.drive import DriveFile, FileMetadata, UploadResult, UploadSession
from util.constants import ExternalURIs
from util.errors import SessionCreationFailed, UploadFailed
from util.timing import timed

logger = logging.getLogger(__name__)


class ResumableUploader:
    """
    Two-phase resumable upload against the storage API.

    Phase 1 (`create_session`) sends metadata only and gets back a session URL.
    Phase 2 (`stream_upload`) PUTs the bytes to that URL in a single request
    with the exact length declared up front. A failed phase 2 is never resumed:
    the session is abandoned and a new upload must start from phase 1.
    """

    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self._client = client
        self._sessions_url = (
            settings.DRIVE_UPLOAD_URL.rstrip("/") + ExternalURIs.DRIVE_FILES
        )
        self._chunk_size = settings.UPLOAD_CHUNK_BYTES
        self._depth = settings.UPLOAD_QUEUE_DEPTH

    async def create_session(
        self,
        access_token: str,
        metadata: FileMetadata,
        size_bytes: int,
        mime_type: str,
    ) -> UploadSession:
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json; charset=UTF-8",
            "X-Upload-Content-Type": mime_type,
            "X-Upload-Content-Length": str(size_bytes),
        }
        params = {"uploadType": "resumable", "supportsAllDrives": "true"}

        with timed(logger, "drive.session.create", file=metadata.name):
            try:
                res = await self._client.post(
                    self._sessions_url,
                    params=params,
                    headers=headers,
                    json=metadata.model_dump(),
                )
            except httpx.RequestError as e:
                logger.error("drive.session.request_error err=%s", type(e).__name__)
                raise SessionCreationFailed(0, str(e) or type(e).__name__) from e

        if res.status_code // 100 != 2:
            logger.error(
                "drive.session.bad_status status=%d body=%s",
                res.status_code,
                res.text[:500],
            )
            raise SessionCreationFailed(res.status_code, res.text)

        session_url = res.headers.get("location")
        if not session_url:
            logger.error("drive.session.no_location status=%d", res.status_code)
            raise SessionCreationFailed(res.status_code, "missing Location header")

        return UploadSession(
            folder_id=metadata.parents[0],
            file_name=metadata.name,
            size_bytes=size_bytes,
            mime_type=mime_type,
            session_url=session_url,
        )

    async def stream_upload(
        self, session: UploadSession, byte_source: ByteSource
    ) -> UploadResult:
        headers = {
            "Content-Length": str(session.size_bytes),
            "Content-Type": session.mime_type,
        }

        with timed(logger, "drive.upload.stream", bytes=session.size_bytes):
            try:
                async with BytePipe(
                    byte_source,
                    session.size_bytes,
                    chunk_size=self._chunk_size,
                    depth=self._depth,
                ) as pipe:
                    # explicit Content-Length keeps httpx off chunked encoding
                    res = await self._client.put(
                        session.session_url, content=pipe.chunks(), headers=headers
                    )
            except httpx.RequestError as e:
                logger.error("drive.upload.request_error err=%s", type(e).__name__)
                raise UploadFailed(0, str(e) or type(e).__name__) from e
            except BytePipeError as e:
                logger.error("drive.upload.source_error err=%s", e)
                raise UploadFailed(0, str(e)) from e

        if res.status_code // 100 != 2:
            logger.error(
                "drive.upload.bad_status status=%d body=%s",
                res.status_code,
                res.text[:500],
            )
            raise UploadFailed(res.status_code, res.text)

        try:
            descriptor = DriveFile.model_validate_json(res.content)
        except ValidationError as e:
            logger.error("drive.upload.bad_descriptor status=%d", res.status_code)
            raise UploadFailed(res.status_code, "response carried no file id") from e

        logger.info(
            "drive.upload.ok file=%s bytes=%d folder=%s",
            descriptor.id,
            session.size_bytes,
            session.folder_id,
        )
        return UploadResult(success=True, file_id=descriptor.id)
