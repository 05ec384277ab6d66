#!/usr/bin/env python3
"""Generate a sample audio file for the README demo."""

from pathlib import Path

SAMPLE_TEXT = (
    "Welcome to TTS Studio! Paste any text, pick a voice, " "and I will read it aloud for you."
)


def main() -> None:
    """Generate the sample audio file."""
    from tts_studio.config import get_settings
    from tts_studio.pipeline import synthesize
    from tts_studio.tts import DEFAULT_VOICE, GeminiTTSEngine

    engine = GeminiTTSEngine.from_settings(get_settings())

    print(f"Generating audio for sample text ({len(SAMPLE_TEXT)} characters)...")
    output_path = Path(__file__).parent.parent / "src" / "tts_studio" / "static" / "sample.wav"

    try:
        audio = synthesize(SAMPLE_TEXT, DEFAULT_VOICE, engine)
    finally:
        engine.close()

    output_path.write_bytes(audio.data)
    print(f"Sample audio saved to: {output_path}")
    print(f"File size: {len(audio) / 1024:.1f} KB")


if __name__ == "__main__":
    main()
