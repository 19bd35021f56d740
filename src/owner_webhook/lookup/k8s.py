"""
owner_webhook.lookup.k8s

Kubernetes-backed label lookup.

Responsibilities:
- Map (apiVersion, kind) to an API resource via discovery (dynamic client).
- Fetch the referenced object (namespaced or cluster-scoped) and return its labels.
- Bound each call with a request timeout and report failures as `LabelLookupError`.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from typing import Any

import urllib3
from kubernetes import config, dynamic
from kubernetes.client import api_client
from kubernetes.client.exceptions import ApiException
from kubernetes.dynamic.exceptions import ResourceNotFoundError, ResourceNotUniqueError

from owner_webhook.lookup.base import LabelLookupError
from owner_webhook.observability.logging import get_logger

log = get_logger(__name__)


def _load_config() -> None:
    # In-cluster first (service account token); fall back to kubeconfig for local dev.
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()


def _check_api_version(api_version: str) -> None:
    parts = api_version.split("/")
    if not api_version or len(parts) > 2 or not all(parts):
        raise LabelLookupError(f"expected apiVersion to be made of 2 parts but got: {api_version}")


class KubernetesLabelLookup:
    """
    `LabelLookup` over the Kubernetes API.

    The dynamic client is created lazily on first use (thread-safe) unless one is
    injected, so constructing the lookup never talks to the cluster.
    """

    def __init__(self, *, client: Any | None = None, timeout_seconds: float = 5.0) -> None:
        self._client = client
        self._timeout = timeout_seconds
        self._lock = threading.Lock()

    def _dynamic_client(self) -> Any:
        if self._client is not None:
            return self._client
        with self._lock:
            if self._client is None:
                _load_config()
                self._client = dynamic.DynamicClient(api_client.ApiClient())
            return self._client

    def get_labels(self, api_version: str, kind: str, namespace: str, name: str) -> Mapping[str, str]:
        log.debug("owner_lookup", api_version=api_version, owner_kind=kind, namespace=namespace, name=name)
        _check_api_version(api_version)

        try:
            # Client setup (config loading, initial discovery) can fail on any call until it succeeds once.
            client = self._dynamic_client()
        except config.ConfigException as e:
            raise LabelLookupError(f"failed to load kubernetes client configuration: {e}") from e
        except (ApiException, urllib3.exceptions.HTTPError) as e:
            raise LabelLookupError(f"failed to initialise kubernetes client: {e}") from e

        try:
            resource = client.resources.get(api_version=api_version, kind=kind)
        except ResourceNotFoundError as e:
            raise LabelLookupError(f"unable to find mapping for: {api_version} {kind}") from e
        except ResourceNotUniqueError as e:
            raise LabelLookupError(f"ambiguous mapping for: {api_version} {kind}") from e
        except (ApiException, urllib3.exceptions.HTTPError) as e:
            raise LabelLookupError(f"failed while getting discovery api group resources: {e}") from e

        try:
            if resource.namespaced and namespace:
                obj = resource.get(name=name, namespace=namespace, _request_timeout=self._timeout)
            else:
                obj = resource.get(name=name, _request_timeout=self._timeout)
        except (ApiException, urllib3.exceptions.HTTPError) as e:
            raise LabelLookupError(f"failed to get owner object: {e}") from e

        metadata = obj.to_dict().get("metadata") or {}
        return dict(metadata.get("labels") or {})


# --- Module Notes -----------------------------------------------------------
# Discovery (apiVersion + kind -> resource) is done and cached inside the dynamic client,
# so only the first lookup per process pays for it. `timeout_seconds` bounds the object
# get only: the client does not expose a timeout for discovery requests, which use the
# urllib3 pool defaults.
