# controller/upload_controller.py
import logging
from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import PlainTextResponse
from controller.controller_dependencies import (
    enforce_max_upload_size,
    get_upload_service,
    rate_limit_dependencies,
    upload_size,
)
from service.upload_service import UploadService
from util.constants import DEFAULT_MIME_TYPE, InternalURIs
from util.enums import ErrorMessage

logger = logging.getLogger(__name__)

upload_router = APIRouter(dependencies=rate_limit_dependencies())


@upload_router.post(
    InternalURIs.UPLOAD,
    response_class=PlainTextResponse,
    dependencies=[Depends(enforce_max_upload_size)],
)
async def upload_log(
    file: UploadFile | None = File(None),
    bugid: str = Form(""),
    service: UploadService = Depends(get_upload_service),
) -> PlainTextResponse:
    # Browsers send an empty part with no filename when nothing was picked
    if file is None or not file.filename:
        info = ErrorMessage.NO_FILE.value
        logger.info("upload.rejected reason=no_file bug=%s", bugid)
        return PlainTextResponse(info.message, status_code=info.http_status)

    if not bugid.strip():
        info = ErrorMessage.NO_BUG_ID.value
        logger.info("upload.rejected reason=no_bug_id file=%s", file.filename)
        return PlainTextResponse(info.message, status_code=info.http_status)

    outcome = await service.upload(
        ticket_id=bugid,
        file_name=file.filename,
        size_bytes=upload_size(file),
        mime_type=file.content_type or DEFAULT_MIME_TYPE,
        source=file,
    )
    return PlainTextResponse(outcome.message, status_code=outcome.http_status)
