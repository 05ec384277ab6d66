"""Sequential text-to-WAV generation."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from tts_studio.audio import WavAudio, assemble_wav, decode_payload
from tts_studio.segment import MAX_CHUNK_LENGTH, split_text
from tts_studio.tts import VOICE_IDS, TTSEngineProtocol

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


def synthesize(
    text: str,
    voice: str,
    engine: TTSEngineProtocol,
    max_len: int = MAX_CHUNK_LENGTH,
    on_progress: ProgressCallback | None = None,
) -> WavAudio:
    """Turn text into one WAV file, one speech request per segment.

    Segments are sent strictly one after another. The first failure aborts
    the remaining segments and propagates; no partial audio is returned.

    Args:
        text: Text to speak.
        voice: Prebuilt voice name.
        engine: Engine that generates base64 PCM per segment.
        max_len: Maximum characters per segment.
        on_progress: Called with (current, total) before each segment.

    Returns:
        The assembled WAV audio.

    Raises:
        ValueError: If the text is blank or the voice is unknown.
        SpeechError: If any segment fails to generate or decode.
    """
    if voice not in VOICE_IDS:
        raise ValueError(f"Unknown voice: {voice}")

    chunks = split_text(text, max_len)
    if not chunks:
        raise ValueError("Text is required")

    total = len(chunks)
    logger.info("Generating speech: %d segments, voice %s", total, voice)
    start_time = time.time()

    buffers: list[bytes] = []
    for index, chunk in enumerate(chunks, start=1):
        if on_progress is not None:
            on_progress(index, total)
        payload = engine.generate(chunk, voice)
        buffers.append(decode_payload(payload))
        logger.debug("Segment %d/%d done (%d bytes)", index, total, len(buffers[-1]))

    audio = assemble_wav(buffers)
    logger.info(
        "Generated %.1fs of audio in %.1fs",
        audio.duration,
        time.time() - start_time,
    )
    return audio
