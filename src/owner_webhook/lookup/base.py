"""
owner_webhook.lookup.base

Label lookup boundary.

Responsibilities:
- Define the `LabelLookup` protocol and its error type.
- Provide a static, in-memory lookup for tests and local development.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol, runtime_checkable


class LabelLookupError(Exception):
    """
    The referenced object's labels could not be obtained
    (unmappable kind, object not found, API failure or timeout).
    """


@runtime_checkable
class LabelLookup(Protocol):
    def get_labels(self, api_version: str, kind: str, namespace: str, name: str) -> Mapping[str, str]: ...


ObjectKey = tuple[str, str, str, str]


class StaticLabelLookup:
    """
    Canned label maps keyed by (api_version, kind, namespace, name).
    An empty namespace in a key matches cluster-scoped objects.
    """

    def __init__(self, objects: Mapping[ObjectKey, Mapping[str, str]] | None = None) -> None:
        self._objects: dict[ObjectKey, dict[str, str]] = {k: dict(v) for k, v in (objects or {}).items()}

    def get_labels(self, api_version: str, kind: str, namespace: str, name: str) -> Mapping[str, str]:
        for key in ((api_version, kind, namespace, name), (api_version, kind, "", name)):
            if key in self._objects:
                return dict(self._objects[key])
        raise LabelLookupError(f"failed to get owner object: {kind} {namespace}/{name} not found")


# --- Module Notes -----------------------------------------------------------
# Implementations are called synchronously from the request worker thread and must
# bound their own latency (see `KubernetesLabelLookup` timeout handling).
