"""
TTS (Text-to-Speech) Chunking Package.

This package contains the two stages of chunked synthesis:

- text_segmenter: Splits input text into byte-bounded chunks at natural pauses
- dispatcher: Requests every chunk concurrently and reassembles the audio

Architecture Overview:

    ┌────────────┐     ┌───────────────┐     ┌────────────┐     ┌──────────────┐
    │ Input text │────▶│ TextSegmenter │────▶│ work queue │────▶│ worker pool  │
    └────────────┘     └───────────────┘     └────────────┘     └──────────────┘
                                                                        │
                                                                        ▼
                                                                ┌──────────────┐
                                                                │ result slots │
                                                                └──────────────┘
                                                                        │
                                                                        ▼
                                                                ┌──────────────┐
                                                                │  reassemble  │
                                                                └──────────────┘

Chunk boundaries are computed on the original text; sanitization happens per
chunk when the request is built.
"""

from .dispatcher import SegmentResult, describe_first_segment, dispatch, reassemble, synthesize
from .text_segmenter import TextSegment, TextSegmenter, build_segments, split_text

__all__ = [
    "SegmentResult",
    "TextSegment",
    "TextSegmenter",
    "build_segments",
    "describe_first_segment",
    "dispatch",
    "reassemble",
    "split_text",
    "synthesize",
]
