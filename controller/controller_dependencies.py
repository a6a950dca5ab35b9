# controller/controller_dependencies.py
from typing import AsyncIterator, List
import httpx
from fastapi import Depends, Request
from starlette.datastructures import UploadFile
from fastapi.params import Depends as DependsParam
from fastapi_limiter.depends import RateLimiter
from config.settings import Settings, settings
from core.bugzilla_client import TicketNotifier
from core.credentials import TokenProvider
from core.drive_folders import FolderResolver
from core.drive_upload import ResumableUploader
from service.upload_service import UploadService
from util.enums import ErrorMessage
from util.errors import AppError


def get_settings() -> Settings:
    return settings


def get_token_provider(request: Request) -> TokenProvider:
    # Built once in the app lifespan; shared so the cached token is reused
    return request.app.state.token_provider


async def get_http_client(
    cfg: Settings = Depends(get_settings),
) -> AsyncIterator[httpx.AsyncClient]:
    timeout = httpx.Timeout(
        cfg.HTTP_TIMEOUT_SECONDS, connect=cfg.HTTP_CONNECT_TIMEOUT_SECONDS
    )
    async with httpx.AsyncClient(timeout=timeout) as client:
        yield client


def get_upload_service(
    cfg: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
    tokens: TokenProvider = Depends(get_token_provider),
) -> UploadService:
    return UploadService(
        cfg,
        TicketNotifier(client, cfg),
        FolderResolver(client, tokens, cfg),
        ResumableUploader(client, cfg),
        tokens,
    )


def rate_limit_dependencies(cfg: Settings = settings) -> List[DependsParam]:
    if not cfg.rate_limit_enabled:
        return []
    return [Depends(RateLimiter(times=cfg.RATE_LIMIT_TIMES, seconds=cfg.RATE_LIMIT_SECONDS))]


def upload_size(file: UploadFile) -> int:
    """Byte length of the spooled upload; the parser normally records it."""
    if file.size is not None:
        return file.size
    f = file.file
    pos = f.tell()
    f.seek(0, 2)
    size = f.tell()
    f.seek(pos)
    return size


async def enforce_max_upload_size(
    request: Request, cfg: Settings = Depends(get_settings)
) -> None:
    # MAX_FILE_MB=0 disables the cap
    max_bytes = cfg.max_upload_bytes
    if not max_bytes:
        return
    info = ErrorMessage.FILE_TOO_LARGE.value
    cl = request.headers.get("content-length")
    if cl and cl.isdigit() and int(cl) > max_bytes:
        raise AppError(info.message, info.http_status)

    form = await request.form()
    file = form.get("file")
    if isinstance(file, UploadFile) and upload_size(file) > max_bytes:
        raise AppError(info.message, info.http_status)
