"""
Byte-bounded Text Segmenter for Chunked TTS Requests.

The remote speech endpoint accepts a limited number of UTF-8 bytes per
request. This module partitions arbitrary text into request-sized chunks
while keeping natural pauses intact: text is first cut into "natural units"
that end at punctuation or structural characters, and units are then packed
greedily into chunks that never exceed the byte limit.

Architecture:
    text → iter_natural_units() → TextSegmenter.split() → chunks (ordered)

Packing rules:
    - A unit that fits into the current chunk is appended verbatim. A unit
      that fills the remaining capacity exactly is still appended.
    - A unit that does not fit, but fits on its own, starts a new chunk.
    - A unit larger than the limit is broken into whitespace-delimited words
      which are packed the same way, re-joined with a single space.
    - A single word larger than the limit becomes its own chunk; words are
      never split.

Usage:
    segmenter = TextSegmenter(byte_limit=300)
    for segment in segmenter.segments(text):
        print(segment.index, segment.content)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional

from ...errors import InvalidByteLimit

logger = logging.getLogger(__name__)

DEFAULT_BYTE_LIMIT = 300

# Sentence and clause punctuation, dashes, ellipsis, brackets and newline
BOUNDARY_CHARS = frozenset(".,!?:;-—…(){}<>[]\n")


@dataclass(frozen=True)
class TextSegment:
    """One request-sized piece of the original text."""

    index: int
    content: str

    @property
    def byte_length(self) -> int:
        return utf8_length(self.content)


def utf8_length(text: str) -> int:
    return len(text.encode("utf-8"))


def iter_natural_units(
    text: str, boundaries: Iterable[str] = BOUNDARY_CHARS
) -> Iterator[str]:
    """
    Yield the shortest runs of text that end with a boundary character.

    Text after the last boundary character is yielded as a final unit. The
    units are contiguous and cover the whole input, so joining them gives
    back ``text`` unchanged.
    """
    lookup = boundaries if isinstance(boundaries, frozenset) else frozenset(boundaries)
    start = 0
    for cursor, char in enumerate(text):
        if char in lookup:
            yield text[start:cursor + 1]
            start = cursor + 1
    if start < len(text):
        yield text[start:]


class _ChunkAccumulator:
    """Collects emitted chunks and the chunk currently being filled."""

    def __init__(self) -> None:
        self.chunks: List[str] = []
        self.text = ""
        self.byte_length = 0

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()

    def append(self, piece: str, byte_length: int) -> None:
        self.text += piece
        self.byte_length += byte_length

    def restart(self, piece: str, byte_length: int) -> None:
        self.flush()
        self.text = piece
        self.byte_length = byte_length

    def flush(self) -> None:
        # Whitespace-only chunks carry nothing to speak
        if not self.is_blank:
            logger.debug("Chunk created: %s (Bytes: %d)", self.text, self.byte_length)
            self.chunks.append(self.text)
        self.text = ""
        self.byte_length = 0


class TextSegmenter:
    """
    Split text into ordered chunks bounded by a UTF-8 byte limit.

    Instances hold configuration only, so one segmenter can be shared and
    reused; splitting the same text twice yields identical chunks.

    Attributes:
        byte_limit: Maximum UTF-8 bytes per chunk (default: 300)
        boundaries: Characters that end a natural unit
    """

    def __init__(
        self,
        byte_limit: int = DEFAULT_BYTE_LIMIT,
        boundaries: Optional[Iterable[str]] = None,
    ):
        """
        Initialize the segmenter.

        Args:
            byte_limit: Maximum UTF-8 byte length of a chunk. Must be a
                        positive integer.
            boundaries: Boundary characters. Defaults to BOUNDARY_CHARS.

        Raises:
            InvalidByteLimit: If byte_limit is not a positive integer.
        """
        if (
            isinstance(byte_limit, bool)
            or not isinstance(byte_limit, int)
            or byte_limit <= 0
        ):
            raise InvalidByteLimit(byte_limit)
        self.byte_limit = byte_limit
        self.boundaries = (
            frozenset(boundaries) if boundaries is not None else BOUNDARY_CHARS
        )

    def split(self, text: str) -> List[str]:
        """Return the chunks of ``text`` in reading order."""
        accumulator = _ChunkAccumulator()

        for unit in iter_natural_units(text, self.boundaries):
            unit_bytes = utf8_length(unit)
            if unit_bytes > self.byte_limit:
                self._pack_words(unit, accumulator)
            elif accumulator.byte_length + unit_bytes <= self.byte_limit:
                accumulator.append(unit, unit_bytes)
            else:
                accumulator.restart(unit, unit_bytes)

        accumulator.flush()
        return accumulator.chunks

    def segments(self, text: str) -> List[TextSegment]:
        """Return the chunks of ``text`` as indexed segments."""
        return [
            TextSegment(index=index, content=content)
            for index, content in enumerate(self.split(text))
        ]

    def _pack_words(self, unit: str, accumulator: _ChunkAccumulator) -> None:
        """Pack an oversized unit word by word."""
        for word in unit.split():
            word_bytes = utf8_length(word)
            if word_bytes > self.byte_limit:
                logger.warning(
                    "Word of %d bytes exceeds the %d byte limit; sending it whole",
                    word_bytes,
                    self.byte_limit,
                )
            if accumulator.is_blank:
                accumulator.restart(word, word_bytes)
            elif accumulator.byte_length + 1 + word_bytes <= self.byte_limit:
                accumulator.append(" " + word, word_bytes + 1)
            else:
                accumulator.restart(word, word_bytes)


def split_text(text: str, byte_limit: int = DEFAULT_BYTE_LIMIT) -> List[str]:
    """Split ``text`` into chunks of at most ``byte_limit`` UTF-8 bytes."""
    return TextSegmenter(byte_limit).split(text)


def build_segments(text: str, byte_limit: int = DEFAULT_BYTE_LIMIT) -> List[TextSegment]:
    """Split ``text`` into indexed segments of at most ``byte_limit`` bytes."""
    return TextSegmenter(byte_limit).segments(text)


__all__ = [
    "BOUNDARY_CHARS",
    "DEFAULT_BYTE_LIMIT",
    "TextSegment",
    "TextSegmenter",
    "build_segments",
    "iter_natural_units",
    "split_text",
    "utf8_length",
]
