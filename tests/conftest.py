"""Test configuration and shared fixtures."""

from __future__ import annotations

import base64

import pytest

from tts_studio.config import get_settings
from tts_studio.errors import ResponseError
from tts_studio.tts import MockTTSEngine, TTSEngineProtocol


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add custom pytest options."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="Run slow tests (e.g., real Gemini API calls)",
    )


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest."""
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m not slow')")


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip slow tests unless --run-slow is provided."""
    if config.getoption("--run-slow"):
        return

    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


class ScriptedTTSEngine(TTSEngineProtocol):
    """Engine returning a fixed PCM buffer per call, optionally failing on one call."""

    def __init__(self, buffers: list[bytes] | None = None, fail_on: int | None = None) -> None:
        self.buffers = buffers or []
        self.fail_on = fail_on
        self.calls: list[tuple[str, str]] = []

    def generate(self, text: str, voice: str) -> str:
        self.calls.append((text, voice))
        if self.fail_on is not None and len(self.calls) == self.fail_on:
            raise ResponseError("No audio data received from API.")
        index = len(self.calls) - 1
        pcm = self.buffers[index] if index < len(self.buffers) else bytes([index % 256]) * 4
        return base64.b64encode(pcm).decode("ascii")


@pytest.fixture
def mock_tts_engine() -> MockTTSEngine:
    """Provide a mock TTS engine for testing."""
    return MockTTSEngine(sample_rate=24000)


@pytest.fixture
def failing_tts_engine() -> ScriptedTTSEngine:
    """Provide an engine whose second request fails."""
    return ScriptedTTSEngine(fail_on=2)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Clear Gemini-related environment variables and cached settings."""
    for name in (
        "GEMINI_API_KEY",
        "API_KEY",
        "GOOGLE_API_KEY",
        "TTS_MAX_CHUNK_LENGTH",
        "TTS_MOCK_ENGINE",
        "TTS_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def scripted_engine() -> type[ScriptedTTSEngine]:
    """Provide the scripted engine class for tests that need custom buffers."""
    return ScriptedTTSEngine
