from __future__ import annotations

import logging
from typing import AsyncIterator

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response

from ..config import Settings, get_settings
from ..errors import InvalidCredential, PartialFailure
from ..schemas.speech import (
    RequestUrlResponse,
    SegmentationRequest,
    SegmentationResponse,
    SegmentPreview,
    SpeechRequest,
)
from ..services.speech_client import SpeechClient
from ..services.speech_service import describe_text, synthesize_text
from ..services.tts.text_segmenter import TextSegmenter

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/speech", tags=["speech"])


def get_speech_settings() -> Settings:
    return get_settings()


async def get_speech_client(
    settings: Settings = Depends(get_speech_settings),
) -> AsyncIterator[SpeechClient]:
    """Yield a client bound to the server's session credential."""

    session_id = settings.session_id.get_secret_value() if settings.session_id else ""
    if not session_id or settings.api_root is None:
        logger.error("Speech endpoint session or base URL not configured")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Speech synthesis is not configured on server",
        )

    async with SpeechClient(
        settings.api_root,
        session_id,
        timeout=settings.request_timeout,
        user_agent=settings.user_agent,
    ) as client:
        yield client


@router.post(
    "",
    response_class=Response,
    responses={200: {"content": {"audio/mpeg": {}}}},
)
async def synthesize_speech(
    payload: SpeechRequest,
    settings: Settings = Depends(get_speech_settings),
    client: SpeechClient = Depends(get_speech_client),
) -> Response:
    speaker = payload.speaker or settings.default_speaker
    logger.info("Speech request received (%d chars, speaker=%s)", len(payload.text), speaker)

    try:
        audio = await synthesize_text(
            payload.text,
            client,
            speaker=speaker,
            byte_limit=settings.byte_limit,
            concurrency=settings.max_concurrency,
        )
    except InvalidCredential as exc:
        logger.error("Speech endpoint rejected the session: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)
        ) from exc
    except PartialFailure as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "message": str(exc),
                "failed_indices": list(exc.failed_indices),
                "total": exc.total,
            },
        ) from exc

    return Response(content=audio, media_type="audio/mpeg")


@router.post("/url", response_model=RequestUrlResponse)
async def describe_speech_request(
    payload: SpeechRequest,
    settings: Settings = Depends(get_speech_settings),
) -> RequestUrlResponse:
    """Return the request URL for the first chunk without calling the endpoint."""

    dry_run = describe_text(
        payload.text,
        speaker=payload.speaker or settings.default_speaker,
        byte_limit=settings.byte_limit,
    )
    return RequestUrlResponse(url=dry_run.url, segment_count=dry_run.segment_count)


@router.post("/segments", response_model=SegmentationResponse)
async def preview_segments(
    payload: SegmentationRequest,
    settings: Settings = Depends(get_speech_settings),
) -> SegmentationResponse:
    segments = TextSegmenter(settings.byte_limit).segments(payload.text)
    return SegmentationResponse(
        byte_limit=settings.byte_limit,
        segments=[
            SegmentPreview(
                index=segment.index,
                content=segment.content,
                byte_length=segment.byte_length,
            )
            for segment in segments
        ],
    )
