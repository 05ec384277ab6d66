"""Per-user generation state and the registry that holds it."""

from __future__ import annotations

import enum
import logging
import threading
import time
import uuid

from tts_studio.audio import WavAudio
from tts_studio.errors import SessionBusyError, SpeechError
from tts_studio.pipeline import synthesize
from tts_studio.segment import MAX_CHUNK_LENGTH
from tts_studio.tts import DEFAULT_VOICE, TTSEngineProtocol

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An error occurred while generating speech. Please try again."

# Sessions idle longer than this are discarded (seconds)
SESSION_TIMEOUT = 3600


class SessionStatus(str, enum.Enum):
    """Lifecycle of a generation request."""

    IDLE = "idle"
    GENERATING = "generating"
    READY = "ready"
    FAILED = "failed"


class SpeechSession:
    """Holds the text, voice and latest audio for one user."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        self.text = ""
        self.voice = DEFAULT_VOICE
        self.status = SessionStatus.IDLE
        self.error: str | None = None
        self.progress_message = ""
        self.audio: WavAudio | None = None
        self.created = time.time()
        self.touched = self.created
        self._lock = threading.Lock()

    @property
    def is_busy(self) -> bool:
        """Return True while a generation request is in flight."""
        return self.status is SessionStatus.GENERATING

    def _set_progress(self, current: int, total: int) -> None:
        self.progress_message = f"Generating segment {current} of {total}..."

    def generate(
        self,
        engine: TTSEngineProtocol,
        max_len: int = MAX_CHUNK_LENGTH,
        text: str | None = None,
        voice: str | None = None,
    ) -> WavAudio | None:
        """Generate audio, optionally replacing the session's text and voice.

        Any speech failure leaves the session failed with a generic message
        and no audio. A busy session keeps its text and voice untouched.

        Args:
            engine: Engine to generate speech with.
            max_len: Maximum characters per segment.
            text: New text to speak. Uses the current text if None.
            voice: New voice. Uses the current voice if None.

        Returns:
            The new audio, or None if generation failed.

        Raises:
            ValueError: If the text is blank.
            SessionBusyError: If a generation is already running.
        """
        with self._lock:
            if self.is_busy:
                raise SessionBusyError(f"Session {self.session_id} is already generating")
            text = self.text if text is None else text
            if not text.strip():
                raise ValueError("Text is required")
            self.text = text
            if voice is not None:
                self.voice = voice
            voice = self.voice
            self.status = SessionStatus.GENERATING
            self.error = None
            self.audio = None
            self.touched = time.time()

        try:
            audio = synthesize(
                text,
                voice,
                engine,
                max_len=max_len,
                on_progress=self._set_progress,
            )
        except SpeechError:
            logger.exception("Error generating speech for session %s", self.session_id)
            self.error = GENERIC_ERROR_MESSAGE
            self.status = SessionStatus.FAILED
            return None
        except Exception:
            self.error = GENERIC_ERROR_MESSAGE
            self.status = SessionStatus.FAILED
            raise
        finally:
            self.progress_message = ""
            self.touched = time.time()

        self.audio = audio
        self.status = SessionStatus.READY
        return audio

    def to_dict(self) -> dict:
        """Return the session state without the audio bytes."""
        return {
            "session_id": self.session_id,
            "status": self.status.value,
            "voice": self.voice,
            "text_length": len(self.text),
            "error": self.error,
            "progress_message": self.progress_message,
            "audio_duration": round(self.audio.duration, 2) if self.audio is not None else None,
            "audio_size": len(self.audio) if self.audio is not None else None,
        }


class SessionManager:
    """Manages speech sessions."""

    def __init__(self, timeout: float = SESSION_TIMEOUT) -> None:
        self._sessions: dict[str, SpeechSession] = {}
        self._lock = threading.Lock()
        self.timeout = timeout

    def create_session(self) -> SpeechSession:
        """Create a new session and return it."""
        session = SpeechSession(str(uuid.uuid4()))
        with self._lock:
            self._sessions[session.session_id] = session
            self._cleanup_old_sessions()
        return session

    def get_session(self, session_id: str) -> SpeechSession | None:
        """Get a session by ID."""
        with self._lock:
            return self._sessions.get(session_id)

    def remove_session(self, session_id: str) -> bool:
        """Remove a session. Returns True if it existed."""
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _cleanup_old_sessions(self) -> None:
        """Remove idle sessions older than the timeout."""
        now = time.time()
        to_remove = [
            sid
            for sid, session in self._sessions.items()
            if not session.is_busy and now - session.touched > self.timeout
        ]
        for sid in to_remove:
            del self._sessions[sid]
        if to_remove:
            logger.debug("Expired %d idle sessions", len(to_remove))
