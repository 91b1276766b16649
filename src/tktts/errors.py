"""Exception types raised by the speech pipeline."""

from __future__ import annotations

from typing import Sequence


class SpeechError(Exception):
    """Base class for every failure surfaced by the speech pipeline."""


class InvalidByteLimit(SpeechError, ValueError):
    """The requested per-segment byte limit is not a positive integer."""

    def __init__(self, byte_limit: object):
        super().__init__(f"byte limit must be a positive integer, got {byte_limit!r}")
        self.byte_limit = byte_limit


class InvalidCredential(SpeechError):
    """The remote endpoint rejected the session credential."""


class MalformedResponse(SpeechError):
    """The remote call succeeded but the audio payload field is missing."""


class TransportFailure(SpeechError):
    """Network, timeout or HTTP status failure for a single remote call."""

    def __init__(self, detail: str, status_code: int | None = None):
        super().__init__(detail)
        self.status_code = status_code


class DecodeFailure(SpeechError):
    """A segment payload could not be decoded from base64."""


class PartialFailure(SpeechError):
    """At least one segment failed, so no audio can be returned."""

    def __init__(self, failed_indices: Sequence[int], total: int):
        self.failed_indices = tuple(failed_indices)
        self.total = total
        super().__init__(
            f"{len(self.failed_indices)} of {total} audio chunks failed to generate "
            f"(indices: {', '.join(str(i) for i in self.failed_indices)})"
        )


__all__ = [
    "DecodeFailure",
    "InvalidByteLimit",
    "InvalidCredential",
    "MalformedResponse",
    "PartialFailure",
    "SpeechError",
    "TransportFailure",
]
