"""
owner_webhook.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Provide liveness probe (`/healthz`).
- Provide readiness probe (`/readyz`).
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz", response_class=PlainTextResponse)
async def readyz() -> str:
    # Ready as soon as the app serves: the engine is built before startup completes.
    return "ok"


# --- Module Notes -----------------------------------------------------------
# Readiness does not call the Kubernetes API; a lookup outage fails only
# the admission requests that need a lookup.
