"""CLI entry point for TTS Studio."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from tts_studio.tts import DEFAULT_VOICE, VOICE_IDS, VOICE_OPTIONS

if TYPE_CHECKING:
    from tts_studio.config import Settings


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tts-studio",
        description="Turn text of any length into speech with Gemini",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Log level (default: TTS_LOG_LEVEL or INFO)",
    )
    subparsers = parser.add_subparsers(dest="command")

    serve = subparsers.add_parser("serve", help="Run the web server (default)")
    serve.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",
        help="Host to bind the server to (default: 0.0.0.0)",
    )
    serve.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind the server to (default: 8000)",
    )
    serve.add_argument(
        "--mock",
        action="store_true",
        help="Use a silent mock engine instead of the Gemini API",
    )
    serve.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    serve.add_argument(
        "--log-level",
        type=str,
        default=argparse.SUPPRESS,
        help="Log level (default: TTS_LOG_LEVEL or INFO)",
    )

    synth = subparsers.add_parser("synthesize", help="Convert text to a WAV file")
    synth.add_argument("text", nargs="?", default=None, help="Text to speak")
    synth.add_argument(
        "-f",
        "--file",
        type=Path,
        default=None,
        help="Read text from a file ('-' for stdin)",
    )
    synth.add_argument(
        "--voice",
        type=str,
        default=DEFAULT_VOICE,
        choices=VOICE_IDS,
        help=f"Voice name (default: {DEFAULT_VOICE})",
    )
    synth.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("gemini-speech.wav"),
        help="Output WAV path (default: gemini-speech.wav)",
    )
    synth.add_argument(
        "--max-chunk",
        type=int,
        default=None,
        help="Maximum characters per request (default: TTS_MAX_CHUNK_LENGTH or 2000)",
    )

    subparsers.add_parser("voices", help="List available voices")
    return parser


def _read_text(args: argparse.Namespace) -> str:
    if args.file is not None:
        if str(args.file) == "-":
            return sys.stdin.read()
        return args.file.read_text(encoding="utf-8")
    return args.text or ""


def _serve(args: argparse.Namespace, settings: Settings) -> int:
    # Import here to avoid slow startup for --help
    import uvicorn

    from tts_studio.app import create_app
    from tts_studio.tts import GeminiTTSEngine, MockTTSEngine

    print("🚀 Starting TTS Studio server...")
    print(f"   Model:    {settings.gemini_model}")
    print(f"   Engine:   {'mock' if args.mock else 'gemini'}")
    print(f"   URL:      http://{args.host}:{args.port}")
    print()

    log_level = (args.log_level or settings.log_level).lower()
    if not args.mock and settings.api_key() is None:
        print("⚠️  GEMINI_API_KEY is not set, every generation will fail")

    if args.reload:
        # The reload worker rebuilds the app from the environment
        os.environ["TTS_MOCK_ENGINE"] = "1" if args.mock else "0"
        os.environ["TTS_LOG_LEVEL"] = log_level
        uvicorn.run(
            "tts_studio.app:create_app_from_settings",
            factory=True,
            host=args.host,
            port=args.port,
            log_level=log_level,
            reload=True,
        )
        return 0

    if args.mock:
        engine = MockTTSEngine()
    else:
        engine = GeminiTTSEngine.from_settings(settings)

    app = create_app(tts_engine=engine, settings=settings)

    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        log_level=log_level,
    )
    return 0


def _synthesize(args: argparse.Namespace, settings: Settings) -> int:
    from tts_studio.errors import SpeechError
    from tts_studio.pipeline import synthesize
    from tts_studio.session import GENERIC_ERROR_MESSAGE
    from tts_studio.tts import GeminiTTSEngine

    text = _read_text(args)
    if not text.strip():
        print("❌ No text given", file=sys.stderr)
        return 2

    max_len = args.max_chunk or settings.max_chunk_length
    engine = GeminiTTSEngine.from_settings(settings)

    def report(current: int, total: int) -> None:
        print(f"🔊 Generating segment {current} of {total}...")

    try:
        audio = synthesize(text, args.voice, engine, max_len=max_len, on_progress=report)
    except SpeechError as e:
        print(f"❌ {GENERIC_ERROR_MESSAGE} ({e})", file=sys.stderr)
        return 1
    finally:
        engine.close()

    args.output.write_bytes(audio.data)
    print(f"✅ Saved {audio.duration:.1f}s of audio to {args.output}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the TTS Studio CLI.

    Returns:
        Exit code (0 for success).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    from tts_studio.config import configure_logging, get_settings

    settings = get_settings()
    configure_logging(args.log_level or settings.log_level)

    if args.command == "voices":
        for voice in VOICE_OPTIONS:
            print(f"{voice.id:<8} {voice.label}")
        return 0

    if args.command == "synthesize":
        return _synthesize(args, settings)

    if args.command is None:
        log_level = args.log_level
        args = parser.parse_args(["serve"])
        args.log_level = log_level
    return _serve(args, settings)


if __name__ == "__main__":
    sys.exit(main())
