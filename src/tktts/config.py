"""Application configuration using environment variables."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, AnyHttpUrl, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from .services.speech_client import DEFAULT_SPEAKER, DEFAULT_USER_AGENT
from .services.tts.text_segmenter import DEFAULT_BYTE_LIMIT

# Resolve the project root once so that `.env` is discovered regardless of CWD
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Load configuration from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Session cookie for the speech endpoint; only needed for real synthesis
    session_id: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("TIKTOK_SESSIONID", "session_id"),
    )
    api_base_url: Optional[AnyHttpUrl] = Field(
        default=None,
        validation_alias=AliasChoices("TIKTOK_API_BASEURL", "api_base_url"),
    )
    default_speaker: str = Field(
        default=DEFAULT_SPEAKER,
        validation_alias=AliasChoices("TTS_SPEAKER", "default_speaker"),
    )
    byte_limit: int = Field(
        default=DEFAULT_BYTE_LIMIT,
        ge=1,
        validation_alias=AliasChoices("TTS_BYTE_LIMIT", "byte_limit"),
    )
    max_concurrency: int = Field(
        default=8,
        ge=1,
        validation_alias=AliasChoices("TTS_MAX_CONCURRENCY", "max_concurrency"),
        description="Number of chunk requests allowed in flight at once.",
    )
    request_timeout: float = Field(
        default=30.0,
        ge=1,
        validation_alias=AliasChoices("TTS_REQUEST_TIMEOUT", "request_timeout"),
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        validation_alias=AliasChoices("TTS_USER_AGENT", "user_agent"),
    )

    server_host: str = Field(
        default="0.0.0.0",
        validation_alias=AliasChoices("TTS_SERVER_HOST", "server_host"),
    )
    server_port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        validation_alias=AliasChoices("TTS_SERVER_PORT", "server_port"),
    )

    @property
    def api_root(self) -> Optional[str]:
        """Return the API base URL without a trailing slash."""

        if self.api_base_url is None:
            return None
        return str(self.api_base_url).rstrip("/")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached `Settings` instance."""

    return Settings()  # pyright: ignore[reportCallIssue]


__all__ = ["Settings", "get_settings"]
