"""Exceptions raised while turning text into speech."""

from __future__ import annotations


class SpeechError(Exception):
    """Base class for failures that abort a speech generation job."""


class ConfigurationError(SpeechError):
    """Raised when no credential is configured for the speech service."""


class ResponseError(SpeechError):
    """Raised when the speech service returns no usable audio payload."""


class DecodeError(SpeechError):
    """Raised when an audio payload is not valid base64."""


class SessionBusyError(SpeechError):
    """Raised when a session is asked to generate while it is already generating."""
