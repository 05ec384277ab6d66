"""Tests for payload decoding and WAV assembly."""

from __future__ import annotations

import base64
import struct
import wave
from io import BytesIO

import pytest

from tts_studio.audio import (
    WAV_HEADER_SIZE,
    WavAudio,
    assemble_wav,
    create_wav_header,
    decode_payload,
)
from tts_studio.errors import DecodeError, SpeechError


class TestDecodePayload:
    """Tests for base64 payload decoding."""

    def test_decodes_base64(self) -> None:
        """Test that a payload decodes to its bytes."""
        pcm = bytes(range(256))
        assert decode_payload(base64.b64encode(pcm).decode()) == pcm

    def test_decoded_length(self) -> None:
        """Test that the decoded length matches the encoded byte count."""
        payload = base64.b64encode(b"\x01\x02\x03\x04\x05").decode()
        assert len(decode_payload(payload)) == 5

    def test_tolerates_line_breaks(self) -> None:
        """Test that wrapped base64 still decodes."""
        payload = base64.encodebytes(b"\x00\x01" * 100).decode()
        assert "\n" in payload
        assert decode_payload(payload) == b"\x00\x01" * 100

    def test_empty_payload(self) -> None:
        """Test that an empty payload decodes to no bytes."""
        assert decode_payload("") == b""

    @pytest.mark.parametrize("payload", ["not base64!", "abc$", "AAA"])
    def test_rejects_malformed(self, payload: str) -> None:
        """Test that invalid alphabet or padding raises DecodeError."""
        with pytest.raises(DecodeError):
            decode_payload(payload)

    def test_decode_error_is_speech_error(self) -> None:
        """Test that DecodeError belongs to the speech error family."""
        with pytest.raises(SpeechError):
            decode_payload("%%%")


class TestWavHeader:
    """Tests for the WAV header layout."""

    def test_header_fields(self) -> None:
        """Test every field of the 44-byte header."""
        header = create_wav_header(1000)
        assert len(header) == WAV_HEADER_SIZE

        fields = struct.unpack("<4sI4s4sIHHIIHH4sI", header)
        assert fields == (
            b"RIFF",
            1036,
            b"WAVE",
            b"fmt ",
            16,
            1,
            1,
            24000,
            48000,
            2,
            16,
            b"data",
            1000,
        )

    def test_custom_format(self) -> None:
        """Test byte rate and block align for other formats."""
        header = create_wav_header(0, sample_rate=16000, channels=2, bits_per_sample=16)
        byte_rate, block_align = struct.unpack_from("<IH", header, 28)
        assert byte_rate == 64000
        assert block_align == 4


class TestAssembleWav:
    """Tests for combining PCM buffers into a WAV file."""

    def test_empty_input(self) -> None:
        """Test that no buffers give a 44-byte file with an empty data chunk."""
        audio = assemble_wav([])
        assert len(audio.data) == 44
        assert struct.unpack_from("<I", audio.data, 40)[0] == 0
        assert struct.unpack_from("<I", audio.data, 4)[0] == 36

    def test_data_region_is_concatenation(self) -> None:
        """Test that the data region equals the buffers joined in order."""
        a = b"\x01\x00\x02\x00"
        b = b"\xff\x7f"
        audio = assemble_wav([a, b])
        assert audio.data[44:] == a + b

        reversed_audio = assemble_wav([b, a])
        assert reversed_audio.data[44:] == b + a

    def test_declared_sizes_match(self) -> None:
        """Test that header sizes match the actual byte counts."""
        buffers = [b"\x00" * 10, b"\x01" * 7, b"", b"\x02" * 1001]
        audio = assemble_wav(buffers)

        riff_size = struct.unpack_from("<I", audio.data, 4)[0]
        data_size = struct.unpack_from("<I", audio.data, 40)[0]
        assert data_size == sum(len(b) for b in buffers)
        assert riff_size == len(audio.data) - 8
        assert len(audio.data) == 44 + data_size

    def test_accepts_generator(self) -> None:
        """Test that any iterable of buffers is accepted."""
        audio = assemble_wav(bytes([i]) * 2 for i in range(3))
        assert audio.data[44:] == b"\x00\x00\x01\x01\x02\x02"

    def test_readable_by_wave_module(self) -> None:
        """Test that the result parses as a standard WAV file."""
        pcm = struct.pack("<4h", 0, 1000, -1000, 32767)
        audio = assemble_wav([pcm])

        with wave.open(BytesIO(audio.data), "rb") as wav_file:
            assert wav_file.getnchannels() == 1
            assert wav_file.getsampwidth() == 2
            assert wav_file.getframerate() == 24000
            assert wav_file.getnframes() == 4
            assert wav_file.readframes(4) == pcm

    def test_media_type_and_duration(self) -> None:
        """Test the container metadata."""
        audio = assemble_wav([b"\x00\x00" * 24000])
        assert isinstance(audio, WavAudio)
        assert audio.media_type == "audio/wav"
        assert audio.pcm_size == 48000
        assert audio.duration == pytest.approx(1.0)
        assert len(audio) == 48044
