"""
tests.test_settings

Environment-driven configuration.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from owner_webhook.settings import Settings


def test_owners_from_comma_separated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OWNER_WEBHOOK_OWNERS", "admin, system:serviceaccount:guku:guku ,")

    settings = Settings()

    assert settings.owners == ["admin", "system:serviceaccount:guku:guku"]
    assert settings.label_key == "owner-webhook/owner"


def test_owners_from_json_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OWNER_WEBHOOK_OWNERS", '["admin", "ops"]')
    monkeypatch.setenv("OWNER_WEBHOOK_LABEL_KEY", "example.com/owner")

    settings = Settings()

    assert settings.owners == ["admin", "ops"]
    assert settings.label_key == "example.com/owner"


def test_missing_owners_is_fatal(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OWNER_WEBHOOK_OWNERS", raising=False)

    with pytest.raises(ValidationError):
        Settings()


def test_empty_owners_is_fatal() -> None:
    with pytest.raises(ValidationError):
        Settings(owners=" , ")
    with pytest.raises(ValidationError):
        Settings(owners=[])


def test_key_file_hidden_from_repr() -> None:
    settings = Settings(owners=["admin"], ssl_keyfile="/tmp/key.pem")
    assert "key.pem" not in repr(settings)


def test_label_safe_owners_must_encode_to_label_values() -> None:
    settings = Settings(owners=["admin", "system:serviceaccount:ops:admin"], identity_codec="label-safe")
    assert settings.identity_codec == "label-safe"

    with pytest.raises(ValidationError, match="user@example.com"):
        Settings(owners=["admin", "user@example.com"], identity_codec="label-safe")
    with pytest.raises(ValidationError):
        Settings(owners=["a" * 64], identity_codec="label-safe")


def test_identity_codec_owners_are_not_checked() -> None:
    settings = Settings(owners=["user@example.com"])
    assert settings.owners == ["user@example.com"]
