"""Split long text into segments small enough for a single TTS request."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

# Maximum characters sent to the speech service in one request
MAX_CHUNK_LENGTH = 2000


def _last_whitespace(text: str, limit: int) -> int:
    """Return the index of the last whitespace character at or before ``limit``.

    Args:
        text: Text to search.
        limit: Highest index to consider.

    Returns:
        Index of the whitespace character, or -1 if there is none.
    """
    for index in range(min(limit, len(text) - 1), -1, -1):
        if text[index].isspace():
            return index
    return -1


def split_text(text: str, max_len: int = MAX_CHUNK_LENGTH) -> list[str]:
    """Split text into ordered segments of at most ``max_len`` characters.

    Breaks on the last whitespace at or before ``max_len`` when there is one,
    otherwise cuts the word at ``max_len``. Whitespace around every break is
    dropped, so no segment is empty or starts/ends with whitespace.

    Args:
        text: Text to split. Leading and trailing whitespace is ignored.
        max_len: Maximum characters per segment.

    Returns:
        List of segments in source order. Empty if the text is blank.

    Raises:
        ValueError: If ``max_len`` is less than 1.
    """
    if max_len < 1:
        raise ValueError(f"max_len must be at least 1, got {max_len}")

    chunks: list[str] = []
    remaining = text.strip()

    while remaining:
        if len(remaining) <= max_len:
            chunks.append(remaining)
            break

        chunk_end = _last_whitespace(remaining, max_len)
        if chunk_end <= 0:
            # No usable break point, cut mid-word
            chunk_end = max_len

        chunks.append(remaining[:chunk_end].rstrip())
        rest = remaining[chunk_end:].strip()

        if len(rest) >= len(remaining):
            raise RuntimeError("Text segmentation made no progress")
        remaining = rest

    logger.debug("Split %d characters into %d segments", len(text), len(chunks))
    return chunks
