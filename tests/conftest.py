"""
tests.conftest

Shared fixtures and helpers for the webhook test suite.

Responsibilities:
- Build engines over canned label lookups.
- Apply the (add-only) JSON patches produced by the engine to plain objects.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping, Sequence
from typing import Any

import pytest

from owner_webhook.admission.engine import DecisionEngine, OwnershipPolicy
from owner_webhook.admission.models import PatchOperation
from owner_webhook.lookup.base import LabelLookupError

LABEL_KEY = "owner-webhook/owner"
OWNERS = ("admin",)


class StubLookup:
    """
    Returns the same label map for every reference and records each call.
    """

    def __init__(self, labels: Mapping[str, str] | None = None, error: Exception | None = None) -> None:
        self.labels = dict(labels or {})
        self.error = error
        self.calls: list[tuple[str, str, str, str]] = []

    def get_labels(self, api_version: str, kind: str, namespace: str, name: str) -> Mapping[str, str]:
        self.calls.append((api_version, kind, namespace, name))
        if self.error is not None:
            raise self.error
        return dict(self.labels)


def _unescape(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def apply_patch(obj: dict[str, Any], patch: Sequence[PatchOperation] | None) -> dict[str, Any]:
    out = copy.deepcopy(obj)
    for op in patch or ():
        assert op.op == "add"
        parts = [_unescape(p) for p in op.path.lstrip("/").split("/")]
        target = out
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        target[parts[-1]] = copy.deepcopy(op.value)
    return out


def secret(
    *,
    labels: Mapping[str, str] | None = None,
    owner_references: list[dict[str, str]] | None = None,
    annotations: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    meta: dict[str, Any] = {"name": "s", "namespace": "team-a"}
    if labels is not None:
        meta["labels"] = dict(labels)
    if owner_references is not None:
        meta["ownerReferences"] = owner_references
    if annotations is not None:
        meta["annotations"] = dict(annotations)
    return {"apiVersion": "v1", "kind": "Secret", "metadata": meta}


@pytest.fixture
def policy() -> OwnershipPolicy:
    return OwnershipPolicy.build(label_key=LABEL_KEY, owners=OWNERS)


@pytest.fixture
def admin_lookup() -> StubLookup:
    return StubLookup({LABEL_KEY: "admin"})


@pytest.fixture
def failing_lookup() -> StubLookup:
    return StubLookup(error=LabelLookupError("failed to get owner object: connection refused"))


@pytest.fixture
def make_engine(policy: OwnershipPolicy):
    def _make(lookup: Any | None = None) -> DecisionEngine:
        return DecisionEngine(policy=policy, lookup=lookup or StubLookup())

    return _make
