# config/settings.py
import os
import sys
from dotenv import load_dotenv
from pydantic import ValidationError, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from util.enums import Environment
from util.errors import ConfigurationError


if os.getenv("APP_ENV", Environment.DEV) == Environment.DEV:
    load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(frozen=True, extra="ignore")

    # App
    APP_ENV: str = Field(default=Environment.DEV.value, validation_alias="APP_ENV")
    HOST: str = Field(default="0.0.0.0", validation_alias="HOST")
    PORT: int = Field(default=3000, validation_alias="PORT")
    MAX_FILE_MB: int = Field(default=0, ge=0, validation_alias="MAX_FILE_MB")

    # Storage (shared drive)
    DRIVE_ROOT_ID: str = Field(..., min_length=1, validation_alias="MOZ_LOGUP_DRIVE_ID")
    SERVICE_CREDENTIAL_PATH: str = Field(
        default="key.json", validation_alias="SERVICE_CREDENTIAL_PATH"
    )
    DRIVE_API_URL: str = Field(
        default="https://www.googleapis.com/drive/v3", validation_alias="DRIVE_API_URL"
    )
    DRIVE_UPLOAD_URL: str = Field(
        default="https://www.googleapis.com/upload/drive/v3",
        validation_alias="DRIVE_UPLOAD_URL",
    )
    DRIVE_SCOPES: tuple[str, ...] = (
        "https://www.googleapis.com/auth/drive",
        "https://www.googleapis.com/auth/drive.file",
    )
    FOLDER_PAGE_SIZE: int = Field(
        default=1000, ge=1, le=1000, validation_alias="FOLDER_PAGE_SIZE"
    )
    FOLDER_LIST_MAX_PAGES: int = Field(
        default=10, ge=1, validation_alias="FOLDER_LIST_MAX_PAGES"
    )

    # Streaming buffer: memory per upload is bounded by depth * chunk
    UPLOAD_CHUNK_BYTES: int = Field(
        default=1024 * 1024, ge=1, validation_alias="UPLOAD_CHUNK_BYTES"
    )
    UPLOAD_QUEUE_DEPTH: int = Field(default=4, ge=1, validation_alias="UPLOAD_QUEUE_DEPTH")

    # Tracker
    BUGZILLA_API_KEY: str = Field(
        ..., min_length=1, validation_alias="MOZ_LOGUP_BUGZILLA_API_KEY"
    )
    BUGZILLA_URL: str = Field(
        default="https://bugzilla.mozilla.org", validation_alias="BUGZILLA_URL"
    )
    BUGZILLA_COMMENT_TEXT: str = Field(
        default="A log has been successfully uploaded to the team's storage",
        validation_alias="BUGZILLA_COMMENT_TEXT",
    )

    # Outbound HTTP
    HTTP_TIMEOUT_SECONDS: float = Field(default=60.0, gt=0, validation_alias="HTTP_TIMEOUT_SECONDS")
    HTTP_CONNECT_TIMEOUT_SECONDS: float = Field(
        default=10.0, gt=0, validation_alias="HTTP_CONNECT_TIMEOUT_SECONDS"
    )

    # Inbound rate limiting (disabled when REDIS_URL is unset)
    REDIS_URL: str = Field(default="", validation_alias="REDIS_URL")
    RATE_LIMIT_TIMES: int = Field(default=10, ge=1, validation_alias="RATE_LIMIT_TIMES")
    RATE_LIMIT_SECONDS: int = Field(default=60, ge=1, validation_alias="RATE_LIMIT_SECONDS")
    TRUST_PROXY: bool = Field(default=False, validation_alias="TRUST_PROXY")

    # Logging knobs
    LOGGER_NAME: str = "logup"
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", validation_alias="LOG_DIR")
    LOG_FILE_NAME: str = Field(default="app.log", validation_alias="LOG_FILE_NAME")
    LOG_MAX_BYTES: int = Field(
        default=50 * 1024 * 1024, validation_alias="LOG_MAX_BYTES"
    )
    LOG_BACKUP_COUNT: int = Field(default=5, validation_alias="LOG_BACKUP_COUNT")

    @property
    def rate_limit_enabled(self) -> bool:
        return bool(self.REDIS_URL)

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_FILE_MB * 1024 * 1024


def load_settings() -> Settings:
    """
    Read the environment once into an immutable Settings object.
    Raises ConfigurationError listing every missing/invalid field.
    """
    try:
        return Settings()
    except ValidationError as e:
        problems = []
        for err in e.errors():
            loc = ".".join(str(x) for x in err.get("loc", []))
            problems.append(f"{loc}: {err.get('msg', '')}")
        raise ConfigurationError(problems) from e


try:
    settings = load_settings()
except ConfigurationError as e:
    print("❌ Missing/invalid environment variables:", file=sys.stderr)
    for problem in e.problems:
        print(f" - {problem}", file=sys.stderr)
    sys.exit(1)
