import base64
from urllib.parse import parse_qs, urlsplit

import httpx
from fastapi import FastAPI
from fastapi.testclient import TestClient

from tktts.config import Settings
from tktts.routers import speech as speech_router
from tktts.services.speech_client import INVALID_SESSION_MESSAGE, SpeechClient


def make_settings(**overrides) -> Settings:
    values = {
        "session_id": "session-abc",
        "api_base_url": "https://speech.example.com",
        "byte_limit": 20,
    }
    values.update(overrides)
    return Settings(**values)


def make_client(settings: Settings, handler=None) -> TestClient:
    """Build a TestClient whose speech endpoint is served by ``handler``."""

    app = FastAPI()
    app.dependency_overrides[speech_router.get_speech_settings] = lambda: settings
    if handler is not None:

        async def _override_client():
            http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
            async with http_client:
                yield SpeechClient(
                    settings.api_root, "session-abc", http_client=http_client
                )

        app.dependency_overrides[speech_router.get_speech_client] = _override_client
    app.include_router(speech_router.router)
    return TestClient(app)


def audio_handler(request: httpx.Request) -> httpx.Response:
    text = request.url.params["req_text"]
    encoded = base64.b64encode(f"[{text}]".encode("utf-8")).decode("ascii")
    return httpx.Response(200, json={"data": {"v_str": encoded}})


def test_synthesize_returns_audio_in_chunk_order() -> None:
    client = make_client(make_settings(), audio_handler)

    response = client.post(
        "/api/speech", json={"text": "First sentence. Second one & more."}
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "audio/mpeg"
    assert response.content == b"[First sentence.][ Second one and more.]"


def test_synthesize_uses_requested_speaker() -> None:
    speakers: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        speakers.append(request.url.params["text_speaker"])
        return audio_handler(request)

    client = make_client(make_settings(default_speaker="en_us_001"), handler)

    client.post("/api/speech", json={"text": "Hi."})
    client.post("/api/speech", json={"text": "Hi.", "speaker": "en_us_c3po"})

    assert speakers == ["en_us_001", "en_us_c3po"]


def test_partial_failure_returns_bad_gateway() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if "Second" in request.url.params["req_text"]:
            return httpx.Response(500)
        return audio_handler(request)

    client = make_client(make_settings(), handler)

    response = client.post("/api/speech", json={"text": "First sentence. Second one."})

    assert response.status_code == 502
    detail = response.json()["detail"]
    assert detail["failed_indices"] == [1]
    assert detail["total"] == 2


def test_rejected_session_returns_bad_gateway() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"message": INVALID_SESSION_MESSAGE})

    client = make_client(make_settings(), handler)

    response = client.post("/api/speech", json={"text": "Hello."})

    assert response.status_code == 502
    assert "session" in response.json()["detail"].lower()


def test_missing_credentials_return_service_unavailable() -> None:
    client = make_client(make_settings(session_id=None))

    response = client.post("/api/speech", json={"text": "Hello."})

    assert response.status_code == 503


def test_empty_text_is_rejected() -> None:
    client = make_client(make_settings(), audio_handler)

    response = client.post("/api/speech", json={"text": ""})

    assert response.status_code == 422


def test_url_endpoint_needs_no_credentials() -> None:
    client = make_client(make_settings(session_id=None, api_base_url=None))

    response = client.post(
        "/api/speech/url",
        json={"text": "Fish & chips. And more text here.", "speaker": "en_uk_001"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["segment_count"] == 2
    query = parse_qs(urlsplit(body["url"]).query)
    assert query["req_text"] == ["Fish and chips."]
    assert query["text_speaker"] == ["en_uk_001"]


def test_segments_endpoint_previews_chunks() -> None:
    client = make_client(make_settings(byte_limit=12))

    response = client.post("/api/speech/segments", json={"text": "Grüße. Hallo Welt."})

    assert response.status_code == 200
    assert response.json() == {
        "byte_limit": 12,
        "segments": [
            {"index": 0, "content": "Grüße.", "byte_length": 8},
            {"index": 1, "content": " Hallo Welt.", "byte_length": 12},
        ],
    }
