"""
owner_webhook.admission.engine

Owner label decision engine.

Responsibilities:
- Allow or deny UPDATE/DELETE (and CONNECT) by in-scope principals based on the owner label.
- Label objects on CREATE with the creating (or resolved) in-scope owner.
- Hold only immutable configuration so one instance serves concurrent requests.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from owner_webhook.admission.identity import IdentityCodec, OwnerIdentityCodec
from owner_webhook.admission.labels import build_label_patch
from owner_webhook.admission.models import AdmissionRequest, Operation, Verdict
from owner_webhook.admission.resolver import OwnershipResolver
from owner_webhook.lookup.base import LabelLookup
from owner_webhook.observability.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class OwnershipPolicy:
    """
    Process-wide policy configuration, fixed at startup.
    """

    label_key: str
    owners: frozenset[str]
    codec: OwnerIdentityCodec = field(default_factory=IdentityCodec)

    @classmethod
    def build(
        cls, *, label_key: str, owners: Iterable[str], codec: OwnerIdentityCodec | None = None
    ) -> OwnershipPolicy:
        return cls(label_key=label_key, owners=frozenset(owners), codec=codec or IdentityCodec())

    def is_in_scope(self, principal: str) -> bool:
        return principal in self.owners


class DecisionEngine:
    def __init__(self, *, policy: OwnershipPolicy, lookup: LabelLookup) -> None:
        self._policy = policy
        self._lookup = lookup
        self._resolver = OwnershipResolver(
            label_key=policy.label_key,
            owners=policy.owners,
            codec=policy.codec,
        )

    def decide(self, request: AdmissionRequest) -> Verdict:
        """
        Evaluate one request.

        Raises `CollaboratorError` when a CREATE needs the owner's labels and the lookup
        fails; every other input combination yields a verdict.
        """
        if request.operation is Operation.create:
            verdict = self._decide_create(request)
        else:
            verdict = self._decide_mutation(request)

        log.info(
            "admission_verdict",
            uid=request.uid,
            operation=request.operation.value,
            principal=request.principal,
            kind=request.kind,
            namespace=request.namespace,
            allowed=verdict.allowed,
            patched=verdict.patch is not None,
            reason=verdict.reason,
        )
        return verdict

    def _decide_mutation(self, request: AdmissionRequest) -> Verdict:
        # Principals outside the allow-list are never restricted by the owner label.
        if not self._policy.is_in_scope(request.principal):
            return Verdict.allow()

        key = self._policy.label_key
        own_token = self._policy.codec.token_from_principal(request.principal)
        label_value = request.metadata.labels.get(key)

        if label_value is None:
            return Verdict.deny(
                f"{request.principal} not allowed to {request.operation.value} "
                f"a resource without the {key} label."
            )
        if label_value != own_token:
            return Verdict.deny(
                f"{request.principal} not allowed to {request.operation.value} "
                f"a resource with another owner in label {key}={label_value}."
            )
        return Verdict.allow()

    def _decide_create(self, request: AdmissionRequest) -> Verdict:
        key = self._policy.label_key
        if self._policy.is_in_scope(request.principal):
            owner_token = self._policy.codec.token_from_principal(request.principal)
        else:
            resolution = self._resolver.resolve(
                request.metadata,
                kind=request.kind,
                namespace=request.namespace,
                lookup=self._lookup,
            )
            if not resolution.in_scope:
                return Verdict.allow()
            owner_token = resolution.owner_token

        labels = request.metadata.labels
        label_value = labels.get(key)
        if label_value is None:
            patch = build_label_patch(labels, key, owner_token)
            log.debug("owner_label_patch", patch=[p.to_dict() for p in patch or ()])
            return Verdict.allow(patch)
        if label_value != owner_token:
            return Verdict.deny(
                f"{request.principal} not allowed to create a resource "
                f"with another owner in label {key}={label_value}."
            )
        return Verdict.allow()


# --- Module Notes -----------------------------------------------------------
# CollaboratorError propagates to the transport, which answers it as an error review
# rather than an allow or deny.
