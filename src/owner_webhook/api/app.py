"""
owner_webhook.api.app

FastAPI app factory for the owner-label webhook.

Responsibilities:
- Build the FastAPI application and register routers/middleware.
- Build the immutable ownership policy and the decision engine from settings.
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from owner_webhook import __version__
from owner_webhook.admission.engine import DecisionEngine, OwnershipPolicy
from owner_webhook.admission.identity import get_codec
from owner_webhook.api.routers.health import router as health_router
from owner_webhook.api.routers.mutate import router as mutate_router
from owner_webhook.lookup.base import LabelLookup, StaticLabelLookup
from owner_webhook.observability.logging import configure_logging, get_logger
from owner_webhook.observability.middleware import RequestContextMiddleware
from owner_webhook.settings import Settings

log = get_logger(__name__)


def build_lookup(settings: Settings) -> LabelLookup:
    if settings.lookup_backend == "static":
        return StaticLabelLookup()
    # Imported here so the static backend (tests, local dev) never loads the kubernetes client.
    from owner_webhook.lookup.k8s import KubernetesLabelLookup

    return KubernetesLabelLookup(timeout_seconds=settings.lookup_timeout_seconds)


def create_app(*, settings: Settings, lookup: LabelLookup | None = None) -> FastAPI:
    configure_logging(
        service_name=settings.service_name,
        level=settings.log_level,
        json_logs=settings.env != "dev",
    )

    policy = OwnershipPolicy.build(
        label_key=settings.label_key,
        owners=settings.owners,
        codec=get_codec(settings.identity_codec),
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        log.info(
            "startup",
            env=settings.env,
            label_key=policy.label_key,
            owners=sorted(policy.owners),
            identity_codec=settings.identity_codec,
            lookup_backend=settings.lookup_backend,
        )
        yield
        log.info("shutdown")

    app = FastAPI(
        title="Owner Label Admission Webhook",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.engine = DecisionEngine(policy=policy, lookup=lookup or build_lookup(settings))

    app.add_middleware(RequestContextMiddleware)
    app.include_router(health_router, tags=["health"])
    app.include_router(mutate_router, tags=["admission"])

    return app


# --- Module Notes -----------------------------------------------------------
# The policy and engine are created before the app accepts requests and never change;
# request handlers only read `app.state.engine`.
