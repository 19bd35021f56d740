"""
tests.test_labels

Owner label patch construction.
"""

from __future__ import annotations

import base64
import json

from owner_webhook.admission.labels import (
    build_label_patch,
    encode_patch,
    escape_pointer_token,
    patch_to_json,
)
from owner_webhook.admission.models import PatchOperation

from conftest import apply_patch


def test_escape_slash_and_tilde_in_order() -> None:
    assert escape_pointer_token("owner-webhook/owner") == "owner-webhook~1owner"
    assert escape_pointer_token("a~/b") == "a~0~1b"
    assert escape_pointer_token("plain") == "plain"


def test_no_labels_adds_whole_map() -> None:
    for labels in (None, {}):
        patch = build_label_patch(labels, "example.com/owner", "admin")
        assert patch == (PatchOperation(op="add", path="/metadata/labels", value={"example.com/owner": "admin"}),)


def test_existing_labels_add_single_entry() -> None:
    patch = build_label_patch({"app": "web"}, "example.com/owner", "admin")
    assert patch == (PatchOperation(op="add", path="/metadata/labels/example.com~1owner", value="admin"),)

    obj = apply_patch({"metadata": {"labels": {"app": "web"}}}, patch)
    assert obj["metadata"]["labels"] == {"app": "web", "example.com/owner": "admin"}


def test_key_already_present_yields_no_patch() -> None:
    assert build_label_patch({"example.com/owner": "joe"}, "example.com/owner", "admin") is None


def test_patch_serialization() -> None:
    patch = build_label_patch({}, "owner", "admin")
    assert json.loads(patch_to_json(patch)) == [
        {"op": "add", "path": "/metadata/labels", "value": {"owner": "admin"}}
    ]
    assert base64.b64decode(encode_patch(patch)) == patch_to_json(patch)
