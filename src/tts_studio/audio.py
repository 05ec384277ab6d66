"""Decode speech payloads and pack raw PCM into a WAV container."""

from __future__ import annotations

import base64
import binascii
import io
import struct
from collections.abc import Iterable
from dataclasses import dataclass

from tts_studio.errors import DecodeError

# Gemini TTS returns 16-bit mono PCM at 24 kHz
SAMPLE_RATE = 24000
CHANNELS = 1
BITS_PER_SAMPLE = 16

WAV_HEADER_SIZE = 44
WAV_MEDIA_TYPE = "audio/wav"


@dataclass(frozen=True)
class WavAudio:
    """A finished WAV file: 44-byte header followed by PCM samples."""

    data: bytes
    sample_rate: int = SAMPLE_RATE
    channels: int = CHANNELS
    bits_per_sample: int = BITS_PER_SAMPLE
    media_type: str = WAV_MEDIA_TYPE

    @property
    def pcm_size(self) -> int:
        """Return the number of PCM bytes after the header."""
        return len(self.data) - WAV_HEADER_SIZE

    @property
    def duration(self) -> float:
        """Return the audio duration in seconds."""
        byte_rate = self.sample_rate * self.channels * self.bits_per_sample // 8
        return self.pcm_size / byte_rate

    def __len__(self) -> int:
        return len(self.data)


def decode_payload(payload: str) -> bytes:
    """Decode a base64 audio payload into raw PCM bytes.

    Args:
        payload: Base64 text as returned by the speech service.

    Returns:
        Decoded audio bytes.

    Raises:
        DecodeError: If the payload is not valid base64.
    """
    compact = "".join(payload.split())
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid base64 audio payload: {e}") from e


def create_wav_header(
    data_size: int,
    sample_rate: int = SAMPLE_RATE,
    channels: int = CHANNELS,
    bits_per_sample: int = BITS_PER_SAMPLE,
) -> bytes:
    """Create a 44-byte PCM WAV header.

    Args:
        data_size: Number of PCM bytes that follow the header.
        sample_rate: Audio sample rate.
        channels: Number of channels.
        bits_per_sample: Bits per sample.

    Returns:
        WAV header bytes.
    """
    byte_rate = sample_rate * channels * bits_per_sample // 8
    block_align = channels * bits_per_sample // 8
    file_size = WAV_HEADER_SIZE + data_size

    header = io.BytesIO()
    header.write(b"RIFF")
    header.write(struct.pack("<I", file_size - 8))
    header.write(b"WAVE")
    header.write(b"fmt ")
    header.write(struct.pack("<I", 16))  # fmt chunk size
    header.write(struct.pack("<H", 1))  # PCM format
    header.write(struct.pack("<H", channels))
    header.write(struct.pack("<I", sample_rate))
    header.write(struct.pack("<I", byte_rate))
    header.write(struct.pack("<H", block_align))
    header.write(struct.pack("<H", bits_per_sample))
    header.write(b"data")
    header.write(struct.pack("<I", data_size))

    return header.getvalue()


def assemble_wav(buffers: Iterable[bytes]) -> WavAudio:
    """Concatenate PCM buffers in order and wrap them in a WAV container.

    Args:
        buffers: Raw PCM buffers, one per text segment.

    Returns:
        The finished WAV audio. An empty input gives a header-only file.
    """
    pcm_data = b"".join(buffers)
    return WavAudio(data=create_wav_header(len(pcm_data)) + pcm_data)
