"""HTTP client for the remote text-to-speech endpoint."""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import urlencode

import httpx

from ..errors import InvalidCredential, MalformedResponse, TransportFailure

logger = logging.getLogger(__name__)

API_PATH = "/media/api/text/speech/invoke/"
DEFAULT_SPEAKER = "en_us_002"
DEFAULT_USER_AGENT = (
    "com.zhiliaoapp.musically/2022600030 (Linux; U; Android 7.1.2; es_ES; "
    "SM-G988N; Build/NRD90M;tt-ok/3.12.13.1)"
)
# Message the endpoint returns when the session cookie is not accepted
INVALID_SESSION_MESSAGE = "Couldn't load speech. Try again."

_REPLACEMENTS = (
    ("+", "plus"),
    ("&", "and"),
    ("ä", "ae"),
    ("Ä", "Ae"),
    ("ö", "oe"),
    ("Ö", "Oe"),
    ("ü", "ue"),
    ("Ü", "Ue"),
    ("ß", "ss"),
)


def sanitize_text(text: str) -> str:
    """Replace characters the endpoint mangles with ASCII-safe spellings."""
    for old, new in _REPLACEMENTS:
        text = text.replace(old, new)
    return text


def _query_params(text: str, speaker: str) -> dict[str, str]:
    return {
        "text_speaker": speaker,
        "req_text": sanitize_text(text),
        "speaker_map_type": "0",
        "aid": "1233",
    }


def build_request_url(text: str, speaker: str = DEFAULT_SPEAKER) -> str:
    """Return the request path and query for ``text`` without calling the API."""

    return f"{API_PATH}?{urlencode(_query_params(text, speaker))}"


class SpeechClient:
    """
    Client for synthesizing one chunk of text per request.

    The session credential and base URL are passed in by the caller; the
    client never reads them from the environment. Each call returns the
    base64 audio string exactly as the endpoint sent it.
    """

    def __init__(
        self,
        base_url: str,
        session_id: str,
        *,
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._base_url = str(base_url).rstrip("/")
        self._session_id = session_id
        self._user_agent = user_agent
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=10.0)
        )

    async def __aenter__(self) -> "SpeechClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._http_client.aclose()

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "User-Agent": self._user_agent,
            "Cookie": f"sessionid={self._session_id}",
        }

    async def request_chunk(self, text: str, speaker: str = DEFAULT_SPEAKER) -> str:
        """
        Synthesize ``text`` with ``speaker`` and return the encoded audio.

        Raises:
            InvalidCredential: The endpoint refused the session.
            MalformedResponse: The response carried no audio string.
            TransportFailure: The request failed or returned an error status.
        """
        try:
            response = await self._http_client.post(
                f"{self._base_url}{API_PATH}",
                params=_query_params(text, speaker),
                headers=self._headers,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise TransportFailure(
                f"Speech endpoint returned HTTP {exc.response.status_code}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportFailure(str(exc) or exc.__class__.__name__) from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise MalformedResponse("Speech endpoint returned a non-JSON body") from exc

        logger.debug("Speech endpoint response: %s", _summarize(body))

        if not isinstance(body, dict):
            raise MalformedResponse("Speech endpoint returned an unexpected body")

        if body.get("message") == INVALID_SESSION_MESSAGE:
            raise InvalidCredential("Invalid TikTok session ID or API error.")

        data = body.get("data")
        encoded = data.get("v_str") if isinstance(data, dict) else None
        if not isinstance(encoded, str) or not encoded:
            status_msg = body.get("status_msg")
            detail = "Missing v_str in response"
            if status_msg:
                detail = f"{detail} ({status_msg})"
            raise MalformedResponse(detail)

        return encoded


def _summarize(body: Any) -> Any:
    """Drop the audio payload from a response body before logging it."""
    if isinstance(body, dict) and isinstance(body.get("data"), dict):
        data = dict(body["data"])
        if "v_str" in data:
            data["v_str"] = f"<{len(str(data['v_str']))} chars>"
        return {**body, "data": data}
    return body


__all__ = [
    "API_PATH",
    "DEFAULT_SPEAKER",
    "DEFAULT_USER_AGENT",
    "INVALID_SESSION_MESSAGE",
    "SpeechClient",
    "build_request_url",
    "sanitize_text",
]
