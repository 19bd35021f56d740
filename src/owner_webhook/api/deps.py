"""
owner_webhook.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide the decision engine dependency.
- Encapsulate app.state access patterns.
"""

from __future__ import annotations

from fastapi import Request

from owner_webhook.admission.engine import DecisionEngine


def engine_dep(request: Request) -> DecisionEngine:
    # The engine is built once in `owner_webhook.api.app.create_app`.
    return request.app.state.engine  # type: ignore[attr-defined]
