"""
owner_webhook.admission.models

Typed values flowing through the decision core.

Responsibilities:
- Parse raw object metadata into `ResourceMetadata` (owner references, labels, annotations).
- Define the request (`AdmissionRequest`) and result (`Verdict`) types.
"""

from __future__ import annotations

import enum
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from owner_webhook.admission.errors import MalformedInputError

SERVICE_ACCOUNT_NAME_ANNOTATION = "kubernetes.io/service-account.name"


class Operation(enum.StrEnum):
    create = "CREATE"
    update = "UPDATE"
    delete = "DELETE"
    connect = "CONNECT"

    @classmethod
    def parse(cls, value: Any) -> Operation:
        try:
            return cls(str(value).upper())
        except ValueError as e:
            raise MalformedInputError(f"unsupported admission operation: {value!r}") from e


class OwnerRefSource(enum.StrEnum):
    # Where the reference came from: metadata.ownerReferences or a Secret's service account.
    explicit = "EXPLICIT"
    service_account = "SERVICE_ACCOUNT"


@dataclass(frozen=True, slots=True)
class OwnerReference:
    api_version: str
    kind: str
    name: str
    source: OwnerRefSource = OwnerRefSource.explicit

    @classmethod
    def for_service_account(cls, name: str) -> OwnerReference:
        return cls(api_version="v1", kind="ServiceAccount", name=name, source=OwnerRefSource.service_account)


def _string_map(value: Any, *, field_name: str) -> Mapping[str, str]:
    if value is None:
        return MappingProxyType({})
    if not isinstance(value, dict):
        raise MalformedInputError(f"metadata.{field_name} must be an object")
    for k, v in value.items():
        if not isinstance(k, str) or not isinstance(v, str):
            raise MalformedInputError(f"metadata.{field_name} must map strings to strings")
    return MappingProxyType(dict(value))


def _owner_references(value: Any) -> tuple[OwnerReference, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise MalformedInputError("metadata.ownerReferences must be a list")
    refs: list[OwnerReference] = []
    for item in value:
        if not isinstance(item, dict):
            raise MalformedInputError("metadata.ownerReferences entries must be objects")
        refs.append(
            OwnerReference(
                api_version=str(item.get("apiVersion") or ""),
                kind=str(item.get("kind") or ""),
                name=str(item.get("name") or ""),
            )
        )
    return tuple(refs)


@dataclass(frozen=True, slots=True)
class ResourceMetadata:
    """
    The slice of `metadata` the ownership policy reads.
    """

    labels: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    owner_references: tuple[OwnerReference, ...] = ()
    annotations: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_object(cls, obj: Any) -> ResourceMetadata:
        # Accepts a decoded object, raw JSON bytes/str, or None (no object sent).
        if isinstance(obj, (bytes, str)):
            try:
                obj = json.loads(obj)
            except ValueError as e:
                raise MalformedInputError(f"object is not valid JSON: {e}") from e
        if obj is None:
            return cls()
        if not isinstance(obj, dict):
            raise MalformedInputError("object must be a JSON object")

        meta = obj.get("metadata")
        if meta is None:
            return cls()
        if not isinstance(meta, dict):
            raise MalformedInputError("metadata must be an object")

        return cls(
            labels=_string_map(meta.get("labels"), field_name="labels"),
            owner_references=_owner_references(meta.get("ownerReferences")),
            annotations=_string_map(meta.get("annotations"), field_name="annotations"),
        )


@dataclass(frozen=True, slots=True)
class AdmissionRequest:
    """
    One admission request, already reduced to what the engine needs.
    For DELETE, `metadata` is the prior object's metadata.
    """

    operation: Operation
    principal: str
    kind: str = ""
    namespace: str = ""
    metadata: ResourceMetadata = field(default_factory=ResourceMetadata)
    uid: str = ""


@dataclass(frozen=True, slots=True)
class PatchOperation:
    op: str
    path: str
    value: Any

    def to_dict(self) -> dict[str, Any]:
        return {"op": self.op, "path": self.path, "value": self.value}


@dataclass(frozen=True, slots=True)
class Verdict:
    allowed: bool
    reason: str | None = None
    code: int | None = None
    patch: tuple[PatchOperation, ...] | None = None

    @classmethod
    def allow(cls, patch: tuple[PatchOperation, ...] | None = None) -> Verdict:
        return cls(allowed=True, patch=patch)

    @classmethod
    def deny(cls, reason: str, *, code: int = 403) -> Verdict:
        return cls(allowed=False, reason=reason, code=code)


# --- Module Notes -----------------------------------------------------------
# Mapping values are wrapped in MappingProxyType so verdict computation cannot mutate
# the parsed request.
