"""
owner_webhook.admission.labels

Owner label patch construction.

Responsibilities:
- Build the minimal JSON-Patch (RFC 6902) that adds the owner label to an object.
- Escape label keys into JSON-Pointer tokens (RFC 6901).
"""

from __future__ import annotations

import base64
import json
from collections.abc import Mapping, Sequence

from owner_webhook.admission.models import PatchOperation

LABELS_PATH = "/metadata/labels"


def escape_pointer_token(token: str) -> str:
    # "~" must be escaped before "/" or the "~1" produced for "/" would be re-escaped.
    return token.replace("~", "~0").replace("/", "~1")


def build_label_patch(
    labels: Mapping[str, str] | None, label_key: str, value: str
) -> tuple[PatchOperation, ...] | None:
    """
    Return the patch adding `label_key=value`, or None when the key is already set.

    An object without labels has no `/metadata/labels` member to add into, so the whole
    map is added; otherwise only the single entry is.
    """
    if not labels:
        return (PatchOperation(op="add", path=LABELS_PATH, value={label_key: value}),)
    if label_key in labels:
        return None
    return (
        PatchOperation(
            op="add",
            path=f"{LABELS_PATH}/{escape_pointer_token(label_key)}",
            value=value,
        ),
    )


def patch_to_json(patch: Sequence[PatchOperation]) -> bytes:
    return json.dumps([p.to_dict() for p in patch], separators=(",", ":")).encode("utf-8")


def encode_patch(patch: Sequence[PatchOperation]) -> str:
    # AdmissionReview carries the patch as base64 of the JSON document.
    return base64.b64encode(patch_to_json(patch)).decode("ascii")


# --- Module Notes -----------------------------------------------------------
# Only "add" operations are produced: an existing owner label is never replaced.
