"""Tests for concurrent chunk dispatch and reassembly."""

import asyncio
import base64

import pytest

from tktts.errors import (
    DecodeFailure,
    InvalidCredential,
    PartialFailure,
    TransportFailure,
)
from tktts.services.tts.dispatcher import (
    SegmentResult,
    decode_payload,
    describe_first_segment,
    dispatch,
    reassemble,
    synthesize,
)
from tktts.services.tts.text_segmenter import TextSegment

pytestmark = pytest.mark.anyio


def encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


async def echo_audio(text: str) -> str:
    return encode(f"<{text}>".encode("utf-8"))


async def test_zero_segments_yield_empty_audio_without_calls() -> None:
    calls: list[str] = []

    async def request_fn(text: str) -> str:
        calls.append(text)
        return encode(b"never")

    assert await synthesize([], request_fn) == b""
    assert calls == []


async def test_single_segment() -> None:
    assert await synthesize(["Hello world."], echo_audio) == b"<Hello world.>"


async def test_reassembly_follows_index_not_completion_order() -> None:
    chunks = ["zero", "one", "two", "three"]
    completed: list[str] = []

    async def reverse_order(text: str) -> str:
        # Later chunks finish first
        await asyncio.sleep(0.01 * (len(chunks) - chunks.index(text)))
        completed.append(text)
        return encode(text.encode("utf-8"))

    audio = await synthesize(chunks, reverse_order)

    assert completed == list(reversed(chunks))
    assert audio == b"zeroonetwothree"


async def test_payloads_are_decoded_before_concatenation() -> None:
    # Joined before decoding, the padding of "QQ==" would sit mid-string
    payloads = {"a": "QQ==", "b": "Qg=="}

    async def request_fn(text: str) -> str:
        return payloads[text]

    assert await synthesize(["a", "b"], request_fn) == b"AB"


async def test_failed_segment_fails_whole_operation() -> None:
    async def request_fn(text: str) -> str:
        if text == "first":
            raise TransportFailure("timed out")
        return encode(b"ok")

    with pytest.raises(PartialFailure) as excinfo:
        await synthesize(["first", "second"], request_fn)

    assert excinfo.value.failed_indices == (0,)
    assert excinfo.value.total == 2


async def test_failure_does_not_cancel_siblings() -> None:
    finished: list[str] = []

    async def request_fn(text: str) -> str:
        if text == "bad":
            raise TransportFailure("boom")
        await asyncio.sleep(0.02)
        finished.append(text)
        return encode(b"x")

    results = await dispatch(["bad", "slow-1", "slow-2"], request_fn)

    assert sorted(finished) == ["slow-1", "slow-2"]
    assert [result.succeeded for result in results] == [False, True, True]
    assert isinstance(results[0].error, TransportFailure)
    assert all(result.settled for result in results)


async def test_unexpected_exception_is_recorded_per_segment() -> None:
    async def request_fn(text: str) -> str:
        raise RuntimeError("bug in collaborator")

    results = await dispatch(["a"], request_fn)

    assert results[0].payload is None
    assert isinstance(results[0].error, RuntimeError)


async def test_undecodable_payload_is_decode_failure() -> None:
    async def request_fn(text: str) -> str:
        return "not base64!!" if text == "b" else encode(b"fine")

    results = await dispatch(["a", "b"], request_fn)
    assert isinstance(results[1].error, DecodeFailure)

    with pytest.raises(PartialFailure) as excinfo:
        reassemble(results)
    assert excinfo.value.failed_indices == (1,)


async def test_invalid_credential_is_surfaced_after_all_calls_drain() -> None:
    finished: list[str] = []

    async def request_fn(text: str) -> str:
        if text == "a":
            raise InvalidCredential("session rejected")
        await asyncio.sleep(0.01)
        finished.append(text)
        return encode(b"x")

    with pytest.raises(InvalidCredential):
        await synthesize(["a", "b", "c"], request_fn)

    assert sorted(finished) == ["b", "c"]


@pytest.mark.parametrize("concurrency", [1, 2, 3])
async def test_worker_pool_bounds_requests_in_flight(concurrency: int) -> None:
    in_flight = 0
    peak = 0

    async def request_fn(text: str) -> str:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return encode(text.encode("ascii"))

    chunks = [str(index) for index in range(10)]
    audio = await synthesize(chunks, request_fn, concurrency=concurrency)

    assert audio == b"0123456789"
    assert peak == concurrency


async def test_unbounded_dispatch_runs_every_request_concurrently() -> None:
    in_flight = 0
    peak = 0

    async def request_fn(text: str) -> str:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return encode(b"-")

    await dispatch(["a"] * 6, request_fn)
    assert peak == 6


async def test_invalid_concurrency_is_rejected() -> None:
    with pytest.raises(ValueError):
        await dispatch(["a"], echo_audio, concurrency=0)


async def test_text_segments_are_accepted() -> None:
    segments = [TextSegment(0, "one"), TextSegment(1, "two")]
    assert await synthesize(segments, echo_audio) == b"<one><two>"


def test_result_slot_settles_only_once() -> None:
    slot = SegmentResult(index=3)
    slot.resolve(b"audio")

    with pytest.raises(RuntimeError):
        slot.fail(TransportFailure("late"))
    assert slot.payload == b"audio"


def test_reassemble_sorts_by_index() -> None:
    results = [SegmentResult(index=1), SegmentResult(index=0)]
    results[0].resolve(b"world")
    results[1].resolve(b"hello ")

    assert reassemble(results) == b"hello world"


def test_decode_payload_rejects_garbage() -> None:
    assert decode_payload("aGk=") == b"hi"
    with pytest.raises(DecodeFailure):
        decode_payload("***")


def test_describe_first_segment() -> None:
    url = describe_first_segment(["Rock & roll.", "Second."], "en_us_ghostface")

    assert url is not None
    assert "text_speaker=en_us_ghostface" in url
    assert "req_text=Rock+and+roll." in url
    assert "Second" not in url
    assert describe_first_segment([]) is None
