import pathlib
import sys

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from tktts.config import get_settings  # noqa: E402

_SETTINGS_ENV = (
    "TIKTOK_SESSIONID",
    "TIKTOK_API_BASEURL",
    "TTS_SPEAKER",
    "TTS_BYTE_LIMIT",
    "TTS_MAX_CONCURRENCY",
    "TTS_REQUEST_TIMEOUT",
    "TTS_USER_AGENT",
    "TTS_SERVER_HOST",
    "TTS_SERVER_PORT",
)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch):
    """Start every test without speech settings from the host environment."""
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
