# core/bugzilla_client.py
import logging
from urllib.parse import quote
import httpx
from fastapi import status
from config.settings import Settings
from model.upload import TicketCheck
from util.constants import BUGZILLA_API_KEY_HEADER, ExternalURIs
from util.enums import ErrorMessage
from util.errors import CommentPostFailed

logger = logging.getLogger(__name__)


class TicketNotifier:
    """
    Existence probe and completion comment against the Bugzilla REST API.

    Note: every non-2xx on the probe reads as "does not exist", so an auth
    failure or tracker outage is reported to the user as an unknown bug. The
    cases are only told apart in the logs.
    """

    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self._client = client
        self._base = settings.BUGZILLA_URL.rstrip("/")
        self._headers = {BUGZILLA_API_KEY_HEADER: settings.BUGZILLA_API_KEY}

    def _url(self, template: str, ticket_id: str) -> str:
        return self._base + template.format(bug_id=quote(str(ticket_id), safe=""))

    async def ticket_exists(self, ticket_id: str) -> TicketCheck:
        url = self._url(ExternalURIs.BUGZILLA_BUG, ticket_id)
        try:
            res = await self._client.get(url, headers=self._headers)
        except httpx.RequestError as e:
            logger.error("bugzilla.bug.request_error bug=%s err=%s", ticket_id, type(e).__name__)
            return TicketCheck(
                exists=False, detail=ErrorMessage.TRACKER_UNREACHABLE.value.message
            )

        if res.status_code // 100 == 2:
            logger.info("bugzilla.bug.found bug=%s", ticket_id)
            return TicketCheck(exists=True)

        if res.status_code == status.HTTP_404_NOT_FOUND:
            logger.info("bugzilla.bug.missing bug=%s", ticket_id)
        elif res.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN):
            logger.error("bugzilla.bug.auth_failed bug=%s status=%d", ticket_id, res.status_code)
        else:
            logger.warning("bugzilla.bug.unexpected bug=%s status=%d", ticket_id, res.status_code)
        return TicketCheck(exists=False, detail=ErrorMessage.BUG_NOT_FOUND.value.message)

    async def post_comment(self, ticket_id: str, text: str) -> bool:
        try:
            await self._submit_comment(ticket_id, text)
        except CommentPostFailed as e:
            logger.warning("bugzilla.comment.failed bug=%s status=%d", ticket_id, e.upstream_status)
            return False
        logger.info("bugzilla.comment.ok bug=%s", ticket_id)
        return True

    async def _submit_comment(self, ticket_id: str, text: str) -> None:
        url = self._url(ExternalURIs.BUGZILLA_COMMENT, ticket_id)
        try:
            res = await self._client.post(url, headers=self._headers, json={"comment": text})
        except httpx.RequestError as e:
            raise CommentPostFailed(ticket_id, 0, type(e).__name__) from e
        # Bugzilla answers 201 Created; anything else counts as failure
        if res.status_code != status.HTTP_201_CREATED:
            raise CommentPostFailed(ticket_id, res.status_code, res.text[:500])
