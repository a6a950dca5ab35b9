# controller/index_controller.py
from typing import Final
from fastapi import APIRouter
from fastapi.responses import HTMLResponse
from util.constants import InternalURIs

UPLOAD_FORM_HTML: Final[str] = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>Upload a log to a bug</title>
</head>
<body>
  <h1>Upload a log</h1>
  <form action="/upload" method="post" enctype="multipart/form-data">
    <p>
      <label for="bugid">Bug number</label>
      <input type="text" id="bugid" name="bugid" required>
    </p>
    <p>
      <label for="file">Log file</label>
      <input type="file" id="file" name="file" required>
    </p>
    <button type="submit">Upload</button>
  </form>
</body>
</html>
"""

index_router = APIRouter()


@index_router.get(InternalURIs.INDEX, response_class=HTMLResponse)
async def upload_form() -> HTMLResponse:
    return HTMLResponse(UPLOAD_FORM_HTML)
