"""Entry point for serving the speech API with uvicorn."""

from __future__ import annotations

import uvicorn

from .config import get_settings


def main() -> None:
    """Run the ASGI server on the configured host and port."""

    settings = get_settings()
    uvicorn.run(
        "tktts.app:create_app",
        factory=True,
        host=settings.server_host,
        port=settings.server_port,
        reload=False,
    )


if __name__ == "__main__":  # pragma: no cover - manual invocation
    main()
