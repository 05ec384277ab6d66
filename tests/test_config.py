"""Tests for application settings."""

from __future__ import annotations

import pytest
from pydantic import SecretStr, ValidationError

from tts_studio.config import Settings
from tts_studio.segment import MAX_CHUNK_LENGTH


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, clean_env) -> None:
        """Test the defaults with an empty environment."""
        settings = Settings(_env_file=None)
        assert settings.gemini_api_key is None
        assert settings.api_key() is None
        assert settings.max_chunk_length == MAX_CHUNK_LENGTH
        assert settings.log_level == "INFO"
        assert settings.use_mock_engine is False

    @pytest.mark.parametrize("name", ["GEMINI_API_KEY", "API_KEY", "GOOGLE_API_KEY"])
    def test_api_key_aliases(self, clean_env, monkeypatch: pytest.MonkeyPatch, name: str) -> None:
        """Test that each supported variable supplies the key."""
        monkeypatch.setenv(name, "secret-key")
        settings = Settings(_env_file=None)
        assert isinstance(settings.gemini_api_key, SecretStr)
        assert settings.api_key() == "secret-key"
        assert "secret-key" not in repr(settings)

    def test_blank_api_key(self, clean_env, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that a whitespace-only key counts as missing."""
        monkeypatch.setenv("GEMINI_API_KEY", "   ")
        assert Settings(_env_file=None).api_key() is None

    def test_mock_engine_flag(self, clean_env, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that TTS_MOCK_ENGINE selects the mock engine."""
        monkeypatch.setenv("TTS_MOCK_ENGINE", "1")
        assert Settings(_env_file=None).use_mock_engine is True

    def test_rejects_zero_chunk_length(self, clean_env) -> None:
        """Test that segment length must be positive."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, TTS_MAX_CHUNK_LENGTH=0)

