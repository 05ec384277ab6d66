"""Turn text of any length into a single WAV file with Gemini text-to-speech."""

__version__ = "0.1.0"
