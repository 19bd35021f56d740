"""
owner_webhook.api.routers.mutate

Mutating admission endpoint.

Responsibilities:
- Accept AdmissionReview requests on `/mutate`.
- Run the decision engine off the event loop (the label lookup blocks).
- Answer every request with a well-formed AdmissionReview, errors included.
"""

from __future__ import annotations

import json
from typing import Any

import structlog
from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from owner_webhook.admission.engine import DecisionEngine
from owner_webhook.admission.errors import CollaboratorError, EngineError
from owner_webhook.api.deps import engine_dep
from owner_webhook.api.review import error_response, parse_review, to_admission_request, verdict_response
from owner_webhook.observability.logging import get_logger
from owner_webhook.observability.middleware import record_admission

router = APIRouter()

log = get_logger(__name__)


def _uid_hint(body: bytes) -> str:
    # Best effort: echo the uid even when the review fails validation.
    try:
        payload = json.loads(body)
    except ValueError:
        return ""
    if isinstance(payload, dict) and isinstance(payload.get("request"), dict):
        uid = payload["request"].get("uid")
        return uid if isinstance(uid, str) else ""
    return ""


@router.post("/mutate")
async def mutate(request: Request, engine: DecisionEngine = Depends(engine_dep)) -> dict[str, Any]:
    body = await request.body()
    uid = ""
    try:
        review = parse_review(body)
        uid = review.request.uid
        admission_request = to_admission_request(review)
        structlog.contextvars.bind_contextvars(
            uid=uid,
            operation=admission_request.operation.value,
        )
        verdict = await run_in_threadpool(engine.decide, admission_request)
    except CollaboratorError as e:
        log.error("admission_failed", error=str(e), cause=repr(e.__cause__))
        record_admission(request, uid=uid, allowed=False, code=e.status_code)
        return error_response(uid, e)
    except EngineError as e:
        uid = uid or _uid_hint(body)
        log.error("admission_malformed", error=str(e))
        record_admission(request, uid=uid, allowed=False, code=e.status_code)
        return error_response(uid, e)

    record_admission(request, uid=uid, allowed=verdict.allowed, code=verdict.code)
    return verdict_response(uid, verdict)


# --- Module Notes -----------------------------------------------------------
# Errors are returned with HTTP 200 and allowed=false; the webhook's failurePolicy is
# not involved because the API server always receives a valid review.
