# core/credentials.py
import asyncio
import logging
from typing import Protocol
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account
from starlette.concurrency import run_in_threadpool
from config.settings import Settings
from util.errors import ConfigurationError, StoreUnavailable

logger = logging.getLogger(__name__)


class TokenProvider(Protocol):
    async def access_token(self) -> str: ...


class ServiceAccountTokenProvider:
    """
    Bearer tokens for the storage API from a service-account key.

    The token is cached on the credentials object and only refreshed once
    google-auth reports it as no longer valid (expired or about to).
    """

    def __init__(self, credentials: service_account.Credentials) -> None:
        self._credentials = credentials
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "ServiceAccountTokenProvider":
        path = settings.SERVICE_CREDENTIAL_PATH
        try:
            creds = service_account.Credentials.from_service_account_file(
                path, scopes=list(settings.DRIVE_SCOPES)
            )
        except (OSError, ValueError) as e:
            raise ConfigurationError(
                f"SERVICE_CREDENTIAL_PATH: cannot load key material from {path} ({type(e).__name__})"
            ) from e
        logger.info("auth.credentials.loaded account=%s", creds.service_account_email)
        return cls(creds)

    async def access_token(self) -> str:
        async with self._lock:
            if not self._credentials.valid:
                try:
                    # google-auth refresh is blocking I/O
                    await run_in_threadpool(self._credentials.refresh, GoogleAuthRequest())
                except GoogleAuthError as e:
                    logger.error("auth.token.refresh_error err=%s", type(e).__name__)
                    raise StoreUnavailable("Could not obtain storage access token") from e
                logger.debug("auth.token.refreshed expiry=%s", self._credentials.expiry)
            return self._credentials.token
