# core/drive_folders.py
import logging
from typing import Any, Dict, Optional
import httpx
from pydantic import ValidationError
from config.settings import Settings
from core.credentials import TokenProvider
from model.drive import DriveFolder, FolderListPage
from util.constants import ExternalURIs, FOLDER_MIME_TYPE
from util.errors import StoreUnavailable
from util.timing import timed

logger = logging.getLogger(__name__)


class FolderResolver:
    """
    Finds or creates the per-ticket folder directly under the root shared drive.

    Not atomic: two concurrent requests for the same new name can both miss
    the listing and both create a folder. There is no lock against that.
    """

    def __init__(
        self, client: httpx.AsyncClient, tokens: TokenProvider, settings: Settings
    ) -> None:
        self._client = client
        self._tokens = tokens
        self._root_id = settings.DRIVE_ROOT_ID
        self._files_url = settings.DRIVE_API_URL.rstrip("/") + ExternalURIs.DRIVE_FILES
        self._page_size = settings.FOLDER_PAGE_SIZE
        self._max_pages = settings.FOLDER_LIST_MAX_PAGES

    async def resolve_or_create_folder(self, name: str) -> str:
        token = await self._tokens.access_token()
        with timed(logger, "drive.folder.resolve", folder=name):
            existing = await self.find_folder(name, token)
            if existing is not None:
                logger.info("drive.folder.exists name=%s id=%s", name, existing.id)
                return existing.id
            return await self.create_folder(name, token)

    async def find_folder(self, name: str, token: str) -> Optional[DriveFolder]:
        # Exact, case-sensitive match; the first hit wins
        page_token: Optional[str] = None
        seen = 0
        for _ in range(self._max_pages):
            page = await self._list_page(token, page_token)
            seen += len(page.files)
            for folder in page.files:
                if folder.name == name:
                    return folder
            page_token = page.nextPageToken
            if not page_token:
                logger.info("drive.folder.missing name=%s scanned=%d", name, seen)
                return None

        logger.warning(
            "drive.folder.list.truncated name=%s scanned=%d max_pages=%d",
            name,
            seen,
            self._max_pages,
        )
        return None

    async def create_folder(self, name: str, token: str) -> str:
        body = {"name": name, "mimeType": FOLDER_MIME_TYPE, "parents": [self._root_id]}
        data = await self._send(
            "POST",
            self._files_url,
            token,
            params={"supportsAllDrives": "true", "fields": "id"},
            json=body,
        )
        try:
            folder_id = str(data["id"])
        except (KeyError, TypeError) as e:
            logger.error("drive.folder.create.bad_body name=%s", name)
            raise StoreUnavailable("Folder creation returned no id") from e
        logger.info("drive.folder.created name=%s id=%s", name, folder_id)
        return folder_id

    async def _list_page(self, token: str, page_token: Optional[str]) -> FolderListPage:
        params: Dict[str, Any] = {
            "driveId": self._root_id,
            "corpora": "drive",
            "includeItemsFromAllDrives": "true",
            "supportsAllDrives": "true",
            "q": (
                f"mimeType='{FOLDER_MIME_TYPE}' and '{self._root_id}' in parents"
                " and trashed=false"
            ),
            "fields": "nextPageToken, files(id, name)",
            "pageSize": self._page_size,
        }
        if page_token:
            params["pageToken"] = page_token
        data = await self._send("GET", self._files_url, token, params=params)
        try:
            return FolderListPage.model_validate(data)
        except ValidationError as e:
            logger.error("drive.folder.list.bad_body")
            raise StoreUnavailable("Folder listing was malformed") from e

    async def _send(
        self, method: str, url: str, token: str, **kwargs: Any
    ) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {token}"}
        try:
            res = await self._client.request(method, url, headers=headers, **kwargs)
        except httpx.RequestError as e:
            logger.error("drive.request_error method=%s err=%s", method, type(e).__name__)
            raise StoreUnavailable("Storage API unreachable") from e

        if res.status_code // 100 != 2:
            logger.error(
                "drive.bad_status method=%s status=%d body=%s",
                method,
                res.status_code,
                res.text[:500],
            )
            raise StoreUnavailable(f"Storage API error {res.status_code}")

        try:
            return res.json()
        except ValueError as e:
            logger.error("drive.bad_json method=%s", method)
            raise StoreUnavailable("Storage API returned invalid JSON") from e
