"""
Concurrent Chunk Dispatcher and Audio Reassembler.

Sends one synthesis request per text chunk through a bounded pool of worker
tasks, records each chunk's outcome in a slot reserved for its index, and
joins the decoded audio in index order once every request has finished.

Architecture:
    chunks → work queue → N workers → request_fn(chunk) → result slots
                                                            │
                                                            ▼
                                      reassemble() → bytes | PartialFailure

Guarantees:
- Every request that starts is allowed to finish; a failed chunk never
  cancels its siblings.
- Output order comes from the chunk index, never from completion order.
- Each payload is base64-decoded on its own before concatenation.
- Audio is returned only when every chunk succeeded.

Usage:
    audio = await synthesize(chunks, client.request_chunk, concurrency=8)
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence, Union

from ...errors import DecodeFailure, InvalidCredential, PartialFailure
from ..speech_client import DEFAULT_SPEAKER, build_request_url
from .text_segmenter import TextSegment

logger = logging.getLogger(__name__)

RequestFn = Callable[[str], Awaitable[str]]
Chunk = Union[str, TextSegment]


@dataclass
class SegmentResult:
    """Outcome slot for one chunk, settled exactly once."""

    index: int
    payload: Optional[bytes] = None
    error: Optional[BaseException] = None
    settled: bool = False

    @property
    def succeeded(self) -> bool:
        return self.payload is not None

    def resolve(self, payload: bytes) -> None:
        self._settle()
        self.payload = payload

    def fail(self, error: BaseException) -> None:
        self._settle()
        self.error = error

    def _settle(self) -> None:
        if self.settled:
            raise RuntimeError(f"Result for chunk {self.index} was already settled")
        self.settled = True


def _chunk_text(chunk: Chunk) -> str:
    return chunk.content if isinstance(chunk, TextSegment) else chunk


def decode_payload(encoded: Union[str, bytes]) -> bytes:
    """Decode one chunk's base64 audio string into raw bytes."""
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, TypeError, ValueError) as exc:
        raise DecodeFailure(f"Audio payload is not valid base64: {exc}") from exc


async def _process_chunk(
    slot: SegmentResult,
    text: str,
    total: int,
    request_fn: RequestFn,
) -> None:
    position = slot.index + 1
    logger.info("Processing chunk %d/%d: %s", position, total, text)
    try:
        encoded = await request_fn(text)
        slot.resolve(decode_payload(encoded))
    except Exception as exc:
        logger.error("Error processing chunk %d: %s", position, exc)
        slot.fail(exc)


async def dispatch(
    chunks: Sequence[Chunk],
    request_fn: RequestFn,
    *,
    concurrency: Optional[int] = None,
) -> List[SegmentResult]:
    """
    Run ``request_fn`` once per chunk and return one settled slot per chunk.

    Args:
        chunks: Ordered chunks; position in the sequence is the chunk index.
        request_fn: Coroutine function returning the base64 audio for a chunk.
        concurrency: Number of worker tasks. None starts one worker per chunk.

    Returns:
        Results ordered by chunk index. Failures are recorded, never raised.
    """
    if concurrency is not None and concurrency < 1:
        raise ValueError(f"concurrency must be at least 1, got {concurrency}")

    total = len(chunks)
    results = [SegmentResult(index=index) for index in range(total)]
    if total == 0:
        return results

    queue: asyncio.Queue[tuple[int, str]] = asyncio.Queue()
    for index, chunk in enumerate(chunks):
        queue.put_nowait((index, _chunk_text(chunk)))

    async def worker() -> None:
        while True:
            try:
                index, text = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            await _process_chunk(results[index], text, total, request_fn)

    worker_count = total if concurrency is None else min(concurrency, total)
    await asyncio.gather(*(worker() for _ in range(worker_count)))
    return results


def reassemble(results: Sequence[SegmentResult]) -> bytes:
    """
    Concatenate decoded payloads in index order.

    Raises:
        InvalidCredential: If any chunk was refused for its session.
        PartialFailure: If any other chunk has no payload.
    """
    for result in results:
        if isinstance(result.error, InvalidCredential):
            raise result.error

    failed = [result.index for result in results if not result.succeeded]
    if failed:
        raise PartialFailure(failed, len(results))

    ordered = sorted(results, key=lambda result: result.index)
    return b"".join(result.payload for result in ordered if result.payload is not None)


async def synthesize(
    chunks: Sequence[Chunk],
    request_fn: RequestFn,
    *,
    concurrency: Optional[int] = None,
) -> bytes:
    """Synthesize every chunk and return the reassembled audio."""
    if not chunks:
        return b""

    if len(chunks) > 1:
        logger.info("Processing %d chunks in parallel...", len(chunks))

    start_time = time.monotonic()
    results = await dispatch(chunks, request_fn, concurrency=concurrency)
    audio = reassemble(results)
    elapsed = (time.monotonic() - start_time) * 1000
    logger.info(
        "Synthesized %d chunk(s) into %d bytes in %.0fms", len(chunks), len(audio), elapsed
    )
    return audio


def describe_first_segment(
    chunks: Sequence[Chunk], speaker: str = DEFAULT_SPEAKER
) -> Optional[str]:
    """Return the request URL for the first chunk without any network call."""
    if not chunks:
        return None
    return build_request_url(_chunk_text(chunks[0]), speaker)


__all__ = [
    "RequestFn",
    "SegmentResult",
    "decode_payload",
    "describe_first_segment",
    "dispatch",
    "reassemble",
    "synthesize",
]
