"""
owner_webhook.api.review

AdmissionReview (admission.k8s.io/v1) wire format.

Responsibilities:
- Validate the inbound review and convert it into an engine `AdmissionRequest`.
- Encode verdicts and engine errors as AdmissionReview responses.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from owner_webhook.admission.errors import EngineError, MalformedInputError
from owner_webhook.admission.labels import encode_patch
from owner_webhook.admission.models import AdmissionRequest, Operation, ResourceMetadata, Verdict

API_VERSION = "admission.k8s.io/v1"
KIND = "AdmissionReview"


class GroupVersionKind(BaseModel):
    group: str = ""
    version: str = ""
    kind: str = ""


class UserInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    username: str = ""
    groups: list[str] = Field(default_factory=list)


class AdmissionRequestBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    uid: str
    kind: GroupVersionKind = Field(default_factory=GroupVersionKind)
    namespace: str = ""
    operation: str
    user_info: UserInfo = Field(default_factory=UserInfo, alias="userInfo")
    object: dict[str, Any] | None = None
    old_object: dict[str, Any] | None = Field(default=None, alias="oldObject")


class AdmissionReview(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    api_version: str = Field(default=API_VERSION, alias="apiVersion")
    kind: str = KIND
    request: AdmissionRequestBody


def parse_review(body: bytes) -> AdmissionReview:
    try:
        return AdmissionReview.model_validate_json(body)
    except ValidationError as e:
        raise MalformedInputError(f"invalid AdmissionReview: {e.error_count()} validation error(s)") from e


def to_admission_request(review: AdmissionReview) -> AdmissionRequest:
    req = review.request
    operation = Operation.parse(req.operation)
    # DELETE carries only the prior object.
    raw = req.old_object if operation is Operation.delete else req.object
    return AdmissionRequest(
        uid=req.uid,
        operation=operation,
        principal=req.user_info.username,
        kind=req.kind.kind,
        namespace=req.namespace,
        metadata=ResourceMetadata.from_object(raw),
    )


def _envelope(response: dict[str, Any]) -> dict[str, Any]:
    return {"apiVersion": API_VERSION, "kind": KIND, "response": response}


def verdict_response(uid: str, verdict: Verdict) -> dict[str, Any]:
    response: dict[str, Any] = {"uid": uid, "allowed": verdict.allowed}
    if not verdict.allowed:
        response["status"] = {
            "code": verdict.code or 403,
            "status": "Failure",
            "reason": "Forbidden",
            "message": verdict.reason or "",
        }
    if verdict.patch:
        response["patchType"] = "JSONPatch"
        response["patch"] = encode_patch(verdict.patch)
    return _envelope(response)


def error_response(uid: str, error: EngineError) -> dict[str, Any]:
    return _envelope(
        {
            "uid": uid,
            "allowed": False,
            "status": {
                "code": error.status_code,
                "status": "Failure",
                "reason": error.reason,
                "message": str(error),
            },
        }
    )


# --- Module Notes -----------------------------------------------------------
# Only the metadata of `object`/`oldObject` is read; the rest of the object is opaque.
