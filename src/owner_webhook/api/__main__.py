"""
owner_webhook.api.__main__

Entrypoint for running the webhook via `python -m owner_webhook.api`.

Responsibilities:
- Load settings (fatal on missing owners).
- Create the app.
- Start uvicorn with the mounted certificate, if present.
"""

from __future__ import annotations

import os

import uvicorn

from owner_webhook.api.app import create_app
from owner_webhook.settings import get_settings


def main() -> None:
    settings = get_settings()
    app = create_app(settings=settings)

    tls: dict[str, str] = {}
    if settings.ssl_certfile and settings.ssl_keyfile and os.path.exists(settings.ssl_certfile):
        tls = {"ssl_certfile": settings.ssl_certfile, "ssl_keyfile": settings.ssl_keyfile}

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,  # structlog
        **tls,
    )


if __name__ == "__main__":
    main()


# --- Module Notes -----------------------------------------------------------
# The API server only calls webhooks over HTTPS; plain HTTP is for local testing.
