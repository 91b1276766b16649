"""Text-to-audio pipeline tying the segmenter, client and dispatcher together."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import Optional

from .speech_client import DEFAULT_SPEAKER, SpeechClient
from .tts.dispatcher import describe_first_segment, synthesize
from .tts.text_segmenter import DEFAULT_BYTE_LIMIT, TextSegmenter

logger = logging.getLogger(__name__)


async def synthesize_text(
    text: str,
    client: SpeechClient,
    *,
    speaker: str = DEFAULT_SPEAKER,
    byte_limit: int = DEFAULT_BYTE_LIMIT,
    concurrency: Optional[int] = None,
) -> bytes:
    """
    Convert ``text`` to a single audio buffer.

    The byte limit is validated before any request is made.
    """
    chunks = TextSegmenter(byte_limit).split(text)
    logger.info("Split %d characters into %d chunk(s)", len(text), len(chunks))
    request_fn = partial(client.request_chunk, speaker=speaker)
    return await synthesize(chunks, request_fn, concurrency=concurrency)


@dataclass(frozen=True)
class DryRunRequest:
    """Request URL for the first chunk and the number of chunks it came from."""

    url: Optional[str]
    segment_count: int


def describe_text(
    text: str,
    *,
    speaker: str = DEFAULT_SPEAKER,
    byte_limit: int = DEFAULT_BYTE_LIMIT,
) -> DryRunRequest:
    """Describe the first chunk's request for ``text`` without calling the API."""
    chunks = TextSegmenter(byte_limit).split(text)
    return DryRunRequest(
        url=describe_first_segment(chunks, speaker), segment_count=len(chunks)
    )


__all__ = ["DryRunRequest", "describe_text", "synthesize_text"]
