"""Application factory for the FastAPI service."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import get_settings
from .logging_config import configure_logging
from .routers.speech import router as speech_router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    # Configure logging first thing
    configure_logging()

    settings = get_settings()
    if settings.session_id is None or settings.api_base_url is None:
        logger.warning(
            "TIKTOK_SESSIONID or TIKTOK_API_BASEURL not set; only dry-run endpoints will work"
        )

    app = FastAPI(title="tktts", version=__version__)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(speech_router)

    @app.get("/health")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return app


__all__ = ["create_app"]
