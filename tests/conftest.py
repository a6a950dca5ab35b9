import io
import json
import os
from typing import Dict, List, Optional, Tuple

# Settings are read at import time; point them at the fakes below first.
os.environ.setdefault("APP_ENV", "prod")
os.environ.setdefault("MOZ_LOGUP_DRIVE_ID", "root-drive")
os.environ.setdefault("MOZ_LOGUP_BUGZILLA_API_KEY", "bz-test-key")
os.environ.setdefault("DRIVE_API_URL", "https://drive.test/drive/v3")
os.environ.setdefault("DRIVE_UPLOAD_URL", "https://drive.test/upload/drive/v3")
os.environ.setdefault("BUGZILLA_URL", "https://bugzilla.test")
os.environ.setdefault("UPLOAD_CHUNK_BYTES", "256")
os.environ.setdefault("UPLOAD_QUEUE_DEPTH", "2")
os.environ["REDIS_URL"] = ""

import httpx
import pytest
from config.settings import Settings, settings as app_settings

UPLOAD_PATH = "/upload/drive/v3/files"
FILES_PATH = "/drive/v3/files"


class FakeDrive:
    """In-memory stand-in for the Drive v3 endpoints this service calls."""

    def __init__(self, root_id: str = "root-drive", page_size: Optional[int] = None) -> None:
        self.root_id = root_id
        self.folders: List[Dict[str, str]] = []
        self.files: Dict[str, Dict[str, object]] = {}
        self.calls: List[Tuple[str, str]] = []
        self.list_status = 200
        self.create_status = 200
        self.session_status = 200
        self.session_location = True
        self.upload_status = 200
        self.upload_body: Optional[bytes] = None
        self.forced_page_size = page_size
        self.pending_sessions: Dict[str, Dict[str, object]] = {}
        self.requests: List[httpx.Request] = []

    def add_folder(self, name: str, folder_id: Optional[str] = None) -> str:
        folder_id = folder_id or f"folder-{len(self.folders) + 1}"
        self.folders.append({"id": folder_id, "name": name})
        return folder_id

    def kinds(self) -> List[str]:
        return [kind for kind, _ in self.calls]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if request.method == "GET" and path == FILES_PATH:
            return self._list(request)
        if request.method == "POST" and path == FILES_PATH:
            return self._create(request)
        if request.method == "POST" and path == UPLOAD_PATH:
            return self._session(request)
        if request.method == "PUT" and path == UPLOAD_PATH:
            return self._upload(request)
        return httpx.Response(404, text="no such endpoint")

    def _list(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(("list", request.url.params.get("pageToken", "")))
        if self.list_status != 200:
            return httpx.Response(self.list_status, text="list failed")
        size = self.forced_page_size or int(request.url.params.get("pageSize", "100"))
        start = int(request.url.params.get("pageToken") or 0)
        chunk = self.folders[start : start + size]
        body: Dict[str, object] = {"files": chunk}
        if start + size < len(self.folders):
            body["nextPageToken"] = str(start + size)
        return httpx.Response(200, json=body)

    def _create(self, request: httpx.Request) -> httpx.Response:
        meta = json.loads(request.content)
        self.calls.append(("create", meta["name"]))
        if self.create_status != 200:
            return httpx.Response(self.create_status, text="create failed")
        folder_id = self.add_folder(meta["name"])
        return httpx.Response(200, json={"id": folder_id})

    def _session(self, request: httpx.Request) -> httpx.Response:
        meta = json.loads(request.content)
        self.calls.append(("session", meta["name"]))
        if self.session_status // 100 != 2:
            return httpx.Response(self.session_status, text="quota exceeded")
        upload_id = f"sess-{len(self.pending_sessions) + 1}"
        self.pending_sessions[upload_id] = {
            "name": meta["name"],
            "parents": meta["parents"],
            "mime": request.headers.get("x-upload-content-type"),
        }
        headers = {}
        if self.session_location:
            headers["Location"] = (
                f"https://drive.test{UPLOAD_PATH}?uploadType=resumable&upload_id={upload_id}"
            )
        return httpx.Response(self.session_status, headers=headers)

    def _upload(self, request: httpx.Request) -> httpx.Response:
        upload_id = request.url.params.get("upload_id", "")
        self.calls.append(("upload", upload_id))
        if self.upload_status // 100 != 2:
            return httpx.Response(self.upload_status, text="backend error")
        if self.upload_body is not None:
            return httpx.Response(self.upload_status, content=self.upload_body)
        session = self.pending_sessions.pop(upload_id)
        file_id = f"file-{len(self.files) + 1}"
        self.files[file_id] = {
            "name": session["name"],
            "parents": session["parents"],
            "content": request.content,
        }
        return httpx.Response(
            200,
            json={"kind": "drive#file", "id": file_id, "name": session["name"], "mimeType": session["mime"]},
        )


class FakeBugzilla:
    def __init__(self, bugs=("12345",)) -> None:
        self.bugs = set(bugs)
        self.comments: List[Tuple[str, str]] = []
        self.probe_status: Optional[int] = None
        self.comment_status = 201
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.strip("/").split("/")
        # rest/bug/<id>[/comment]
        if len(parts) == 3 and request.method == "GET":
            if self.probe_status is not None:
                return httpx.Response(self.probe_status, json={"error": True})
            if parts[2] in self.bugs:
                return httpx.Response(200, json={"bugs": [{"id": int(parts[2])}]})
            return httpx.Response(404, json={"error": True, "code": 101})
        if len(parts) == 4 and parts[3] == "comment" and request.method == "POST":
            if self.comment_status == 201:
                self.comments.append((parts[2], json.loads(request.content)["comment"]))
                return httpx.Response(201, json={"id": len(self.comments)})
            return httpx.Response(self.comment_status, json={"error": True})
        return httpx.Response(404)


class Upstreams:
    """Routes by host to the drive and tracker fakes."""

    def __init__(self) -> None:
        self.drive = FakeDrive()
        self.bugzilla = FakeBugzilla()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == "drive.test":
            return self.drive(request)
        if request.url.host == "bugzilla.test":
            return self.bugzilla(request)
        raise httpx.ConnectError("unknown host", request=request)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


class StubTokens:
    def __init__(self, token: str = "ya29.test") -> None:
        self.token = token
        self.calls = 0
        self.error: Optional[Exception] = None

    async def access_token(self) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.token


class AsyncBytes:
    """Async byte source over an in-memory buffer; records read sizes."""

    def __init__(
        self,
        data: bytes,
        fail_after: Optional[int] = None,
        fail_with: Optional[Exception] = None,
    ) -> None:
        self._buf = io.BytesIO(data)
        self.read_sizes: List[int] = []
        self._fail_after = fail_after
        self._fail_with = fail_with or OSError("disk went away")

    async def read(self, size: int = -1) -> bytes:
        if self._fail_after is not None and len(self.read_sizes) >= self._fail_after:
            raise self._fail_with
        self.read_sizes.append(size)
        return self._buf.read(size)


@pytest.fixture
def settings() -> Settings:
    return app_settings


@pytest.fixture
def upstreams() -> Upstreams:
    return Upstreams()


@pytest.fixture
def tokens() -> StubTokens:
    return StubTokens()


@pytest.fixture
async def http_client(upstreams: Upstreams):
    async with httpx.AsyncClient(transport=upstreams.transport()) as client:
        yield client


@pytest.fixture
def byte_source():
    return AsyncBytes
