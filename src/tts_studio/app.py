"""FastAPI application for the text-to-speech studio."""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import quote

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, Response
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, field_validator

from tts_studio import __version__
from tts_studio.audio import WAV_MEDIA_TYPE, WavAudio
from tts_studio.config import Settings, configure_logging, get_settings
from tts_studio.errors import SessionBusyError, SpeechError
from tts_studio.pipeline import synthesize
from tts_studio.segment import MAX_CHUNK_LENGTH, split_text
from tts_studio.session import GENERIC_ERROR_MESSAGE, SessionManager, SpeechSession
from tts_studio.tts import (
    DEFAULT_VOICE,
    VOICE_IDS,
    VOICE_OPTIONS,
    GeminiTTSEngine,
    MockTTSEngine,
    TTSEngineProtocol,
)

logger = logging.getLogger(__name__)

# ~500KB limit for pasted text
MAX_TEXT_LENGTH = 500_000

DEFAULT_FILENAME = "gemini-speech.wav"


class TextRequest(BaseModel):
    """Request body for text to preview or synthesize."""

    text: str


class GenerateRequest(BaseModel):
    """Request body for speech generation."""

    text: str
    voice: str = DEFAULT_VOICE

    @field_validator("voice")
    @classmethod
    def _known_voice(cls, value: str) -> str:
        if value not in VOICE_IDS:
            raise ValueError(f"Unknown voice. Options: {', '.join(VOICE_IDS)}")
        return value


class EstimateResponse(BaseModel):
    """Response describing how text will be segmented."""

    text_length: int
    chunk_count: int
    chunk_lengths: list[int]


# Global state (set during startup)
_tts_engine: TTSEngineProtocol | None = None
_session_manager = SessionManager()
_max_chunk_length = MAX_CHUNK_LENGTH


def create_app(
    tts_engine: TTSEngineProtocol | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        tts_engine: TTS engine to use. If None, uses MockTTSEngine.
        settings: Application settings. Defaults are used if None.

    Returns:
        Configured FastAPI application.
    """
    global _tts_engine, _session_manager, _max_chunk_length
    _tts_engine = tts_engine or MockTTSEngine()
    if settings is not None:
        _max_chunk_length = settings.max_chunk_length
        _session_manager = SessionManager(timeout=settings.session_timeout)
    else:
        _max_chunk_length = MAX_CHUNK_LENGTH
        _session_manager = SessionManager()

    app = FastAPI(
        title="TTS Studio",
        description="Turn text of any length into speech with Gemini",
        version=__version__,
    )

    # Mount static files
    static_dir = Path(__file__).parent / "static"
    if static_dir.exists():
        app.mount("/static", StaticFiles(directory=static_dir), name="static")

    # Register routes
    app.add_api_route("/", index, methods=["GET"], response_class=HTMLResponse)
    app.add_api_route("/api/health", health_check, methods=["GET"])
    app.add_api_route("/api/voices", get_voices, methods=["GET"])
    app.add_api_route(
        "/api/estimate", estimate, methods=["POST"], response_model=EstimateResponse
    )
    app.add_api_route("/api/synthesize", synthesize_text, methods=["POST"])
    app.add_api_route("/api/sessions", create_session, methods=["POST"], status_code=201)
    app.add_api_route("/api/sessions/{session_id}", get_session_state, methods=["GET"])
    app.add_api_route(
        "/api/sessions/{session_id}", delete_session, methods=["DELETE"], status_code=204
    )
    app.add_api_route("/api/sessions/{session_id}/generate", generate_session, methods=["POST"])
    app.add_api_route("/api/sessions/{session_id}/audio", stream_session_audio, methods=["GET"])
    app.add_api_route("/api/sessions/{session_id}/download", download_audio, methods=["GET"])

    return app


def create_app_from_settings() -> FastAPI:
    """Build the app from environment settings.

    Used as the uvicorn factory when serving with auto-reload, where the
    engine cannot be passed in directly.
    """
    settings = get_settings()
    configure_logging(settings.log_level)
    engine: TTSEngineProtocol
    if settings.use_mock_engine:
        engine = MockTTSEngine()
    else:
        engine = GeminiTTSEngine.from_settings(settings)
    return create_app(tts_engine=engine, settings=settings)


def _validate_text(text: str) -> str:
    """Reject blank or oversized text.

    Args:
        text: Raw user text.

    Returns:
        The text unchanged.

    Raises:
        HTTPException: If the text is blank or too long.
    """
    if not text.strip():
        raise HTTPException(status_code=400, detail="Text is required")
    if len(text) > MAX_TEXT_LENGTH:
        raise HTTPException(
            status_code=400, detail=f"Text too long (max {MAX_TEXT_LENGTH:,} characters)"
        )
    return text


def _get_session_or_404(session_id: str) -> SpeechSession:
    session = _session_manager.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _session_payload(session: SpeechSession) -> dict:
    payload = session.to_dict()
    payload["audio_url"] = (
        f"/api/sessions/{session.session_id}/audio" if session.audio is not None else None
    )
    return payload


async def index(request: Request) -> HTMLResponse:
    """Serve the main page.

    Args:
        request: The incoming request.

    Returns:
        HTML response with the main page.
    """
    index_file = Path(__file__).parent / "static" / "index.html"

    if not index_file.exists():
        return HTMLResponse(
            content="<h1>TTS Studio</h1><p>Static files not found.</p>",
            status_code=200,
        )

    return HTMLResponse(content=index_file.read_text(encoding="utf-8"))


async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}


async def get_voices() -> dict:
    """Get the available voices.

    Returns:
        Voice ids with display labels, and the default voice.
    """
    return {
        "voices": [{"id": v.id, "label": v.label} for v in VOICE_OPTIONS],
        "default": DEFAULT_VOICE,
    }


async def estimate(request: TextRequest) -> EstimateResponse:
    """Preview how text will be split into speech requests."""
    text = _validate_text(request.text)
    chunks = split_text(text, _max_chunk_length)
    return EstimateResponse(
        text_length=len(text.strip()),
        chunk_count=len(chunks),
        chunk_lengths=[len(c) for c in chunks],
    )


def synthesize_text(request: GenerateRequest) -> Response:
    """Synthesize text in one request and return the WAV file.

    Runs in the threadpool since segments are generated with blocking calls.

    Args:
        request: Text and voice to synthesize.

    Returns:
        WAV audio response.

    Raises:
        HTTPException: If the text is invalid or generation fails.
    """
    if _tts_engine is None:
        raise HTTPException(status_code=500, detail="TTS engine not initialized")

    text = _validate_text(request.text)
    try:
        audio = synthesize(text, request.voice, _tts_engine, max_len=_max_chunk_length)
    except SpeechError:
        logger.exception("Error generating speech")
        raise HTTPException(status_code=502, detail=GENERIC_ERROR_MESSAGE)

    return _audio_response(audio, disposition=f'inline; filename="{DEFAULT_FILENAME}"')


async def create_session() -> dict:
    """Create a new speech session."""
    session = _session_manager.create_session()
    return _session_payload(session)


async def get_session_state(session_id: str) -> dict:
    """Get the state of a session."""
    return _session_payload(_get_session_or_404(session_id))


async def delete_session(session_id: str) -> Response:
    """Discard a session and its audio."""
    if not _session_manager.remove_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return Response(status_code=204)


def generate_session(session_id: str, request: GenerateRequest) -> dict:
    """Generate speech for a session, replacing any previous audio.

    Args:
        session_id: Session to generate for.
        request: Text and voice to use.

    Returns:
        Session state including the audio URL.

    Raises:
        HTTPException: 404 for unknown sessions, 400 for invalid text,
            409 while a generation is in flight, 502 if generation fails.
    """
    if _tts_engine is None:
        raise HTTPException(status_code=500, detail="TTS engine not initialized")

    session = _get_session_or_404(session_id)
    text = _validate_text(request.text)

    try:
        audio = session.generate(
            _tts_engine, max_len=_max_chunk_length, text=text, voice=request.voice
        )
    except SessionBusyError:
        raise HTTPException(status_code=409, detail="Generation already in progress")

    if audio is None:
        raise HTTPException(status_code=502, detail=session.error or GENERIC_ERROR_MESSAGE)

    return _session_payload(session)


async def stream_session_audio(session_id: str) -> Response:
    """Return the session's audio for inline playback."""
    session = _get_session_or_404(session_id)
    if session.audio is None:
        raise HTTPException(status_code=404, detail="No audio available")

    return _audio_response(session.audio, headers={"Cache-Control": "no-cache"})


async def download_audio(session_id: str, filename: str = DEFAULT_FILENAME) -> Response:
    """Download the session's audio as a file.

    Args:
        session_id: Session to download audio for.
        filename: Suggested filename for download.

    Returns:
        Complete WAV audio file response.
    """
    session = _get_session_or_404(session_id)
    if session.audio is None:
        raise HTTPException(status_code=404, detail="No audio available")

    # RFC 5987 encoding for non-ASCII filenames
    # ASCII fallback without quotes or backslashes + UTF-8 encoded filename*
    safe_filename = (
        filename.encode("ascii", "replace").decode("ascii").replace('"', "_").replace("\\", "_")
    )
    encoded_filename = quote(filename, safe="")

    return _audio_response(
        session.audio,
        disposition=(
            f'attachment; filename="{safe_filename}"; ' f"filename*=UTF-8''{encoded_filename}"
        ),
    )


def _audio_response(
    audio: WavAudio,
    disposition: str | None = None,
    headers: dict[str, str] | None = None,
) -> Response:
    all_headers = {"Content-Length": str(len(audio))}
    if disposition:
        all_headers["Content-Disposition"] = disposition
    if headers:
        all_headers.update(headers)
    return Response(content=audio.data, media_type=WAV_MEDIA_TYPE, headers=all_headers)
