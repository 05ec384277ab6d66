"""TTS engine wrappers for the Gemini speech generation API."""

from __future__ import annotations

import base64
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from tts_studio.audio import SAMPLE_RATE
from tts_studio.errors import ConfigurationError, ResponseError

if TYPE_CHECKING:
    from tts_studio.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VoiceOption:
    """A prebuilt Gemini voice offered to the user."""

    id: str
    label: str


VOICE_OPTIONS: list[VoiceOption] = [
    VoiceOption("Kore", "Kore (female)"),
    VoiceOption("Puck", "Puck (male)"),
    VoiceOption("Charon", "Charon (soft female)"),
    VoiceOption("Fenrir", "Fenrir (formal male)"),
    VoiceOption("Zephyr", "Zephyr (calm male)"),
]

VOICE_IDS = [voice.id for voice in VOICE_OPTIONS]
DEFAULT_VOICE = VOICE_OPTIONS[0].id

DEFAULT_MODEL = "gemini-2.5-flash-preview-tts"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

# Prefixing "Say:" improves pronunciation for some texts
DEFAULT_PROMPT_PREFIX = "Say: "


class TTSEngineProtocol(ABC):
    """Protocol for TTS engines, enabling dependency injection and mocking."""

    @abstractmethod
    def generate(self, text: str, voice: str) -> str:
        """Generate speech for one text segment.

        Args:
            text: Segment to speak.
            voice: Prebuilt voice name.

        Returns:
            Base64-encoded 16-bit mono PCM audio.

        Raises:
            ConfigurationError: If the engine has no credential.
            ResponseError: If the service returned no usable audio.
        """
        ...

    @property
    def sample_rate(self) -> int:
        """Return the sample rate of generated audio."""
        return SAMPLE_RATE


def extract_audio_payload(body: Any) -> str:
    """Pull the base64 audio out of a generateContent response body.

    Args:
        body: Decoded JSON response.

    Returns:
        The base64 audio payload.

    Raises:
        ResponseError: If the body holds no inline audio data.
    """
    try:
        data = body["candidates"][0]["content"]["parts"][0]["inlineData"]["data"]
    except (KeyError, IndexError, TypeError):
        data = None

    if not isinstance(data, str) or not data:
        raise ResponseError("No audio data received from API.")
    return data


class GeminiTTSEngine(TTSEngineProtocol):
    """TTS engine calling the Gemini generateContent REST endpoint."""

    def __init__(
        self,
        api_key: str | None,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 120.0,
        prompt_prefix: str = DEFAULT_PROMPT_PREFIX,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the Gemini engine.

        Args:
            api_key: Gemini API key. May be None; generation then fails
                     with ConfigurationError.
            model: Gemini TTS model name.
            base_url: API base URL including the version segment.
            timeout: Request timeout in seconds.
            prompt_prefix: Text prepended to every segment.
            client: Optional preconfigured HTTP client (used in tests).
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.prompt_prefix = prompt_prefix
        self._client = client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> GeminiTTSEngine:
        """Create an engine from application settings."""
        return cls(
            api_key=settings.api_key(),
            model=settings.gemini_model,
            base_url=settings.gemini_base_url,
            timeout=settings.request_timeout,
        )

    @property
    def endpoint(self) -> str:
        """Return the generateContent URL for the configured model."""
        return f"{self.base_url}/models/{self.model}:generateContent"

    def build_request_body(self, text: str, voice: str) -> dict[str, Any]:
        """Build the JSON request for one segment.

        Args:
            text: Segment to speak.
            voice: Prebuilt voice name.

        Returns:
            Request body for generateContent.
        """
        return {
            "contents": [{"parts": [{"text": f"{self.prompt_prefix}{text}"}]}],
            "generationConfig": {
                "responseModalities": ["AUDIO"],
                "speechConfig": {
                    "voiceConfig": {
                        "prebuiltVoiceConfig": {"voiceName": voice},
                    },
                },
            },
        }

    def generate(self, text: str, voice: str) -> str:
        """Generate speech for one text segment.

        Args:
            text: Segment to speak.
            voice: Prebuilt voice name.

        Returns:
            Base64-encoded PCM audio.
        """
        if not self.api_key:
            raise ConfigurationError("GEMINI_API_KEY environment variable not set.")

        logger.debug("Requesting %d characters with voice %s", len(text), voice)
        try:
            response = self._client.post(
                self.endpoint,
                json=self.build_request_body(text, voice),
                headers={"x-goog-api-key": self.api_key},
            )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            raise ResponseError(
                f"Speech service returned HTTP {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            raise ResponseError(f"Failed to reach speech service: {e}") from e
        except ValueError as e:
            raise ResponseError(f"Speech service returned invalid JSON: {e}") from e

        return extract_audio_payload(body)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()


class MockTTSEngine(TTSEngineProtocol):
    """Mock TTS engine for testing."""

    def __init__(self, sample_rate: int = SAMPLE_RATE) -> None:
        """Initialize the mock TTS engine.

        Args:
            sample_rate: Sample rate for generated audio.
        """
        self._sample_rate = sample_rate
        self.calls: list[tuple[str, str]] = []

    @property
    def sample_rate(self) -> int:
        """Return the sample rate of generated audio."""
        return self._sample_rate

    def generate(self, text: str, voice: str) -> str:
        """Generate silent PCM audio for testing.

        Args:
            text: Text to synthesize (used to determine duration).
            voice: Voice name (recorded, otherwise ignored).

        Returns:
            Base64-encoded silence, ~0.1 seconds per word.
        """
        self.calls.append((text, voice))

        words = len(text.split())
        duration_samples = int(self._sample_rate * 0.1 * max(1, words))
        silence = b"\x00\x00" * duration_samples

        return base64.b64encode(silence).decode("ascii")
