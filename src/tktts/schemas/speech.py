"""Schemas for the speech synthesis endpoints."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class SpeechRequest(BaseModel):
    """Text to synthesize and the voice to use."""

    text: str = Field(..., min_length=1)
    speaker: Optional[str] = Field(
        default=None,
        min_length=1,
        description="Voice identifier; the server default is used when omitted.",
    )


class SegmentationRequest(BaseModel):
    text: str


class SegmentPreview(BaseModel):
    index: int
    content: str
    byte_length: int


class SegmentationResponse(BaseModel):
    byte_limit: int
    segments: list[SegmentPreview] = Field(default_factory=list)


class RequestUrlResponse(BaseModel):
    """Dry-run request URL for the first chunk, or null for empty text."""

    url: Optional[str] = None
    segment_count: int = 0


__all__ = [
    "RequestUrlResponse",
    "SegmentPreview",
    "SegmentationRequest",
    "SegmentationResponse",
    "SpeechRequest",
]
