"""
owner_webhook.admission.resolver

Ownership resolution for objects created by principals outside the allow-list.

Responsibilities:
- Pick the owner reference to follow (first explicit reference, or a Secret's service account).
- Read the referenced object's owner label through the injected `LabelLookup`.
- Decide whether that owner is in scope.
"""

from __future__ import annotations

from collections.abc import Set
from dataclasses import dataclass

from owner_webhook.admission.errors import CollaboratorError
from owner_webhook.admission.identity import IdentityCodec, OwnerIdentityCodec
from owner_webhook.admission.models import (
    SERVICE_ACCOUNT_NAME_ANNOTATION,
    OwnerReference,
    ResourceMetadata,
)
from owner_webhook.lookup.base import LabelLookup, LabelLookupError
from owner_webhook.observability.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Resolution:
    owner_token: str = ""
    in_scope: bool = False


NOT_IN_SCOPE = Resolution()


def owner_reference_for(metadata: ResourceMetadata, kind: str) -> OwnerReference | None:
    # Only the first owner reference counts, even if a later one would resolve in scope.
    if metadata.owner_references:
        return metadata.owner_references[0]
    if kind == "Secret":
        sa_name = metadata.annotations.get(SERVICE_ACCOUNT_NAME_ANNOTATION)
        if sa_name is not None:
            return OwnerReference.for_service_account(sa_name)
    return None


class OwnershipResolver:
    def __init__(
        self,
        *,
        label_key: str,
        owners: Set[str],
        codec: OwnerIdentityCodec | None = None,
    ) -> None:
        self._label_key = label_key
        self._owners = owners
        self._codec = codec or IdentityCodec()

    def resolve(
        self,
        metadata: ResourceMetadata,
        *,
        kind: str,
        namespace: str,
        lookup: LabelLookup,
    ) -> Resolution:
        ref = owner_reference_for(metadata, kind)
        if ref is None:
            return NOT_IN_SCOPE

        try:
            labels = lookup.get_labels(ref.api_version, ref.kind, namespace, ref.name)
        except (LabelLookupError, TimeoutError) as e:
            log.error(
                "owner_lookup_failed",
                api_version=ref.api_version,
                owner_kind=ref.kind,
                owner_name=ref.name,
                namespace=namespace,
                error=str(e),
            )
            raise CollaboratorError(f"failed to get owner labels: {e}") from e

        # An owner that exists but carries no owner label resolves to "not in scope".
        owner_token = labels.get(self._label_key, "")
        in_scope = bool(owner_token) and self._codec.principal_from_token(owner_token) in self._owners
        log.debug(
            "owner_resolved",
            owner_kind=ref.kind,
            owner_name=ref.name,
            source=ref.source.value,
            owner_token=owner_token,
            in_scope=in_scope,
        )
        return Resolution(owner_token=owner_token, in_scope=in_scope)


# --- Module Notes -----------------------------------------------------------
# The chain is followed one hop only: the owner's own label is expected to have been
# set when the owner itself was admitted.
