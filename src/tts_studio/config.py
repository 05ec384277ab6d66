"""Application configuration using environment variables."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from tts_studio.segment import MAX_CHUNK_LENGTH

# Resolve the project root once so that `.env` is discovered regardless of CWD
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class Settings(BaseSettings):
    """Load configuration from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=(".env", str(PROJECT_ROOT / ".env")),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Missing key is only fatal once generation is attempted
    gemini_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "API_KEY", "GOOGLE_API_KEY"),
    )
    gemini_model: str = Field(
        default="gemini-2.5-flash-preview-tts",
        validation_alias=AliasChoices("GEMINI_TTS_MODEL", "gemini_model"),
    )
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        validation_alias=AliasChoices("GEMINI_BASE_URL", "gemini_base_url"),
    )
    request_timeout: float = Field(
        default=120.0,
        ge=1,
        validation_alias=AliasChoices("TTS_REQUEST_TIMEOUT", "request_timeout"),
    )
    max_chunk_length: int = Field(
        default=MAX_CHUNK_LENGTH,
        ge=1,
        validation_alias=AliasChoices("TTS_MAX_CHUNK_LENGTH", "max_chunk_length"),
    )
    session_timeout: float = Field(
        default=3600.0,
        gt=0,
        validation_alias=AliasChoices("TTS_SESSION_TIMEOUT", "session_timeout"),
    )
    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("TTS_LOG_LEVEL", "log_level"),
    )
    use_mock_engine: bool = Field(
        default=False,
        validation_alias=AliasChoices("TTS_MOCK_ENGINE", "use_mock_engine"),
    )

    def api_key(self) -> str | None:
        """Return the plain API key, or None when it is unset or blank."""
        if self.gemini_api_key is None:
            return None
        value = self.gemini_api_key.get_secret_value().strip()
        return value or None


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""
    return Settings()


def configure_logging(level: str | int = "INFO") -> None:
    """Configure root logging for the server and CLI.

    Args:
        level: Log level name or number.
    """
    if isinstance(level, str):
        level = level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
