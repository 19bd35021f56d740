"""
owner_webhook.observability.middleware

HTTP middleware for request-scoped logging context.

Responsibilities:
- Honour or mint a request id and echo it on the response.
- Bind request id, path and peer address into structlog contextvars.
- Emit one completion line per request, carrying the admission uid and outcome
  recorded by the `/mutate` handler.
"""

from __future__ import annotations

import time
import uuid
from typing import Any

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from owner_webhook.observability.logging import get_logger

# Polled by the kubelet every few seconds.
_QUIET_PATHS = frozenset({"/healthz", "/readyz"})


def record_admission(request: Request, *, uid: str, allowed: bool, code: int | None = None) -> None:
    """
    Attach the admission outcome to the request so the completion line can report it.

    Contextvars bound inside the handler do not flow back out to the middleware, the
    request state does.
    """
    request.state.admission = {"uid": uid, "allowed": allowed, "code": code}


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        # The API server does not send a request id; honour one if a proxy adds it.
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            path=request.url.path,
            peer=request.client.host if request.client else None,
        )
        started = time.perf_counter()
        try:
            response: Response = await call_next(request)
            response.headers["x-request-id"] = request_id
            self._log_completed(request, response.status_code, started)
        finally:
            structlog.contextvars.clear_contextvars()
        return response

    @staticmethod
    def _log_completed(request: Request, status_code: int, started: float) -> None:
        fields: dict[str, Any] = {
            "method": request.method,
            "status_code": status_code,
            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
        }
        admission = getattr(request.state, "admission", None)
        if admission:
            fields.update(admission)

        log = get_logger(__name__)
        if request.url.path in _QUIET_PATHS:
            log.debug("request_completed", **fields)
        else:
            log.info("request_completed", **fields)


# --- Module Notes -----------------------------------------------------------
# Unhandled exceptions propagate past the completion line; uvicorn logs those.
