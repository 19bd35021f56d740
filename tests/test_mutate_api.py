"""
tests.test_mutate_api

End-to-end AdmissionReview handling over the ASGI app.

Responsibilities:
- Verify verdict encoding (allowed, status, base64 JSON patch, uid echo).
- Verify engine errors are answered as error reviews, never as allowed.
- Smoke-test the health probes.
"""

from __future__ import annotations

import base64
import json
from typing import Any

import httpx
import pytest
from kubernetes import config

from owner_webhook.api.app import create_app
from owner_webhook.lookup import k8s
from owner_webhook.lookup.base import LabelLookupError
from owner_webhook.settings import Settings

from conftest import LABEL_KEY, StubLookup, secret


def _settings() -> Settings:
    return Settings(env="test", owners=["admin"], label_key=LABEL_KEY, lookup_backend="static")


def _review(operation: str, username: str, obj: dict[str, Any], *, uid: str = "7f0c") -> dict[str, Any]:
    request: dict[str, Any] = {
        "uid": uid,
        "kind": {"group": "", "version": "v1", "kind": "Secret"},
        "resource": {"group": "", "version": "v1", "resource": "secrets"},
        "namespace": "team-a",
        "operation": operation,
        "userInfo": {"username": username, "groups": ["system:authenticated"]},
    }
    request["oldObject" if operation == "DELETE" else "object"] = obj
    return {"apiVersion": "admission.k8s.io/v1", "kind": "AdmissionReview", "request": request}


async def _post(app, payload: Any) -> dict[str, Any]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        if isinstance(payload, (bytes, str)):
            r = await client.post("/mutate", content=payload, headers={"content-type": "application/json"})
        else:
            r = await client.post("/mutate", json=payload)
    assert r.status_code == 200
    body = r.json()
    assert body["apiVersion"] == "admission.k8s.io/v1"
    assert body["kind"] == "AdmissionReview"
    return body["response"]


@pytest.mark.asyncio
async def test_create_returns_json_patch() -> None:
    app = create_app(settings=_settings(), lookup=StubLookup())

    response = await _post(app, _review("CREATE", "admin", secret()))

    assert response["uid"] == "7f0c"
    assert response["allowed"] is True
    assert response["patchType"] == "JSONPatch"
    assert json.loads(base64.b64decode(response["patch"])) == [
        {"op": "add", "path": "/metadata/labels", "value": {LABEL_KEY: "admin"}}
    ]


@pytest.mark.asyncio
async def test_owned_update_allowed_without_patch() -> None:
    app = create_app(settings=_settings(), lookup=StubLookup())

    response = await _post(app, _review("UPDATE", "admin", secret(labels={LABEL_KEY: "admin"})))

    assert response == {"uid": "7f0c", "allowed": True}


@pytest.mark.asyncio
async def test_delete_uses_old_object_and_denies_foreign_owner() -> None:
    app = create_app(settings=_settings(), lookup=StubLookup())

    response = await _post(app, _review("DELETE", "admin", secret(labels={LABEL_KEY: "joe"})))

    assert response["allowed"] is False
    assert response["status"]["code"] == 403
    assert response["status"]["reason"] == "Forbidden"
    assert f"{LABEL_KEY}=joe" in response["status"]["message"]
    assert "patch" not in response


@pytest.mark.asyncio
async def test_owner_reference_resolved_through_lookup() -> None:
    lookup = StubLookup({LABEL_KEY: "admin"})
    app = create_app(settings=_settings(), lookup=lookup)
    obj = secret(
        labels={"app": "web"},
        owner_references=[{"apiVersion": "apps/v1", "kind": "Deployment", "name": "web", "uid": "abc"}],
    )

    response = await _post(app, _review("CREATE", "system:serviceaccount:kube-system:replicaset-controller", obj))

    assert response["allowed"] is True
    assert json.loads(base64.b64decode(response["patch"])) == [
        {"op": "add", "path": "/metadata/labels/owner-webhook~1owner", "value": "admin"}
    ]
    assert lookup.calls == [("apps/v1", "Deployment", "team-a", "web")]


@pytest.mark.asyncio
async def test_lookup_failure_is_error_review() -> None:
    lookup = StubLookup(error=LabelLookupError("unable to find mapping for: apps/v1 Deployment"))
    app = create_app(settings=_settings(), lookup=lookup)
    obj = secret(owner_references=[{"apiVersion": "apps/v1", "kind": "Deployment", "name": "web"}])

    response = await _post(app, _review("CREATE", "joe", obj))

    assert response["uid"] == "7f0c"
    assert response["allowed"] is False
    assert response["status"]["code"] == 500
    assert response["status"]["reason"] == "InternalError"
    assert "unable to find mapping" in response["status"]["message"]


@pytest.mark.asyncio
async def test_cluster_client_setup_failure_is_error_review(monkeypatch: pytest.MonkeyPatch) -> None:
    def _no_config() -> None:
        raise config.ConfigException("Service host/port is not set.")

    monkeypatch.setattr(k8s, "_load_config", _no_config)
    app = create_app(settings=_settings(), lookup=k8s.KubernetesLabelLookup())
    obj = secret(owner_references=[{"apiVersion": "apps/v1", "kind": "Deployment", "name": "web"}])

    response = await _post(app, _review("CREATE", "joe", obj))

    assert response["uid"] == "7f0c"
    assert response["allowed"] is False
    assert response["status"]["code"] == 500
    assert "failed to load kubernetes client configuration" in response["status"]["message"]


@pytest.mark.asyncio
async def test_malformed_metadata_is_bad_request() -> None:
    app = create_app(settings=_settings(), lookup=StubLookup())
    obj = {"metadata": {"labels": ["not", "a", "map"]}}

    response = await _post(app, _review("UPDATE", "admin", obj, uid="u-2"))

    assert response["uid"] == "u-2"
    assert response["allowed"] is False
    assert response["status"]["code"] == 400
    assert response["status"]["reason"] == "BadRequest"


@pytest.mark.asyncio
async def test_unparseable_body_is_bad_request() -> None:
    app = create_app(settings=_settings(), lookup=StubLookup())

    response = await _post(app, b"{not json")

    assert response["uid"] == ""
    assert response["allowed"] is False
    assert response["status"]["code"] == 400


@pytest.mark.asyncio
async def test_unknown_operation_keeps_uid() -> None:
    app = create_app(settings=_settings(), lookup=StubLookup())
    payload = _review("PATCH", "admin", secret())

    response = await _post(app, payload)

    assert response["uid"] == "7f0c"
    assert response["status"]["code"] == 400


@pytest.mark.asyncio
async def test_health_endpoints() -> None:
    app = create_app(settings=_settings(), lookup=StubLookup())

    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            r = await client.get("/healthz")
            assert r.status_code == 200
            assert r.json()["status"] == "ok"
            assert r.headers["x-request-id"]

            r = await client.get("/readyz")
            assert r.status_code == 200
            assert r.text == "ok"


# --- Module Notes -----------------------------------------------------------
# httpx ASGITransport does not manage lifespan; only the probe test enters it explicitly.
