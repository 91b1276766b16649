"""Command-line interface: synthesize text and write raw audio to stdout."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence, TextIO

from pydantic import ValidationError

from .config import Settings, get_settings
from .errors import SpeechError
from .logging_config import configure_logging
from .services.speech_client import SpeechClient
from .services.speech_service import describe_text, synthesize_text

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tktts",
        description="Generate TikTok TTS audio (or request URLs) for text of any length.",
    )
    parser.add_argument(
        "text",
        nargs="*",
        help="Text to convert to speech (read from stdin when omitted)",
    )
    parser.add_argument(
        "-s",
        "--speaker",
        default=None,
        help="Speaker voice (default: TTS_SPEAKER or en_us_002)",
    )
    parser.add_argument(
        "-u",
        "--url-only",
        action="store_true",
        help="Print the request URL for the first chunk instead of making HTTP requests",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level for stderr output (default: LOG_LEVEL or INFO)",
    )
    return parser


def read_text(words: Sequence[str], stdin: TextIO) -> str:
    """Join argument words, or read and trim stdin when there are none."""
    if words:
        return " ".join(words)
    return stdin.read().strip()


async def _synthesize(text: str, speaker: str, settings: Settings) -> bytes:
    session_id = settings.session_id.get_secret_value() if settings.session_id else ""
    async with SpeechClient(
        settings.api_root or "",
        session_id,
        timeout=settings.request_timeout,
        user_agent=settings.user_agent,
    ) as client:
        return await synthesize_text(
            text,
            client,
            speaker=speaker,
            byte_limit=settings.byte_limit,
            concurrency=settings.max_concurrency,
        )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        text = read_text(args.text, sys.stdin)
    except OSError as exc:
        print(f"Error reading from stdin: {exc}", file=sys.stderr)
        return 1
    if not text:
        print("Error: No text provided via arguments or stdin", file=sys.stderr)
        return 1

    try:
        settings = get_settings()
    except ValidationError as exc:
        print(f"Error: invalid configuration: {exc}", file=sys.stderr)
        return 1
    speaker = args.speaker or settings.default_speaker

    if args.url_only:
        dry_run = describe_text(text, speaker=speaker, byte_limit=settings.byte_limit)
        if dry_run.url:
            print(dry_run.url)
        return 0

    if settings.session_id is None or not settings.session_id.get_secret_value():
        print(
            "Error: TIKTOK_SESSIONID environment variable not set. "
            "Please set it in .env file or export it.",
            file=sys.stderr,
        )
        return 1
    if settings.api_root is None:
        print("Error: TIKTOK_API_BASEURL environment variable not set.", file=sys.stderr)
        return 1

    try:
        audio = asyncio.run(_synthesize(text, speaker, settings))
    except SpeechError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    # Raw audio goes to stdout so it can be piped to mpv or ffplay
    sys.stdout.buffer.write(audio)
    sys.stdout.buffer.flush()
    return 0


if __name__ == "__main__":  # pragma: no cover - manual invocation
    raise SystemExit(main())
