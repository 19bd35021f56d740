"""
owner_webhook.admission.identity

Mapping between principal identities and owner label values.

Responsibilities:
- Define the codec interface used by the engine and resolver.
- Provide the identity codec (default) and a label-safe codec.
"""

from __future__ import annotations

import re
from typing import Protocol

# Kubernetes label value: at most 63 chars, alphanumeric at both ends, [-_.] inside.
_LABEL_VALUE = re.compile(r"^(([A-Za-z0-9][-A-Za-z0-9_.]*)?[A-Za-z0-9])?\Z")
LABEL_VALUE_MAX_LENGTH = 63


def is_label_value(value: str) -> bool:
    return len(value) <= LABEL_VALUE_MAX_LENGTH and _LABEL_VALUE.match(value) is not None


class OwnerIdentityCodec(Protocol):
    """
    Contract: `principal_from_token(token_from_principal(p)) == p` for every principal.
    """

    def token_from_principal(self, principal: str) -> str: ...

    def principal_from_token(self, token: str) -> str: ...


class IdentityCodec:
    """
    The label value is the principal string itself.
    """

    def token_from_principal(self, principal: str) -> str:
        return principal

    def principal_from_token(self, token: str) -> str:
        return token


class LabelSafeIdentityCodec:
    """
    Rewrites `:` (not allowed in label values) as `.`.

    Literal `.` and `_` are escaped with a leading `_` so that decoding is unambiguous:
    `system:serviceaccount:team-a:deployer` <-> `system.serviceaccount.team-a.deployer`.

    Other characters, length and the alphanumeric first/last character are not handled;
    `settings.Settings` rejects owners whose token is not a valid label value.
    """

    def token_from_principal(self, principal: str) -> str:
        out: list[str] = []
        for ch in principal:
            if ch == "_":
                out.append("__")
            elif ch == ".":
                out.append("_.")
            elif ch == ":":
                out.append(".")
            else:
                out.append(ch)
        return "".join(out)

    def principal_from_token(self, token: str) -> str:
        out: list[str] = []
        chars = iter(token)
        for ch in chars:
            if ch == "_":
                # A trailing lone "_" cannot come from encoding; keep it as-is.
                out.append(next(chars, "_"))
            elif ch == ".":
                out.append(":")
            else:
                out.append(ch)
        return "".join(out)


_CODECS: dict[str, type] = {
    "identity": IdentityCodec,
    "label-safe": LabelSafeIdentityCodec,
}


def get_codec(name: str) -> OwnerIdentityCodec:
    try:
        return _CODECS[name]()
    except KeyError:
        raise ValueError(f"unknown identity codec: {name!r}") from None


_default = IdentityCodec()


def token_from_principal(principal: str) -> str:
    return _default.token_from_principal(principal)


def principal_from_token(token: str) -> str:
    return _default.principal_from_token(token)


# --- Module Notes -----------------------------------------------------------
# Label values written by one codec are only readable by the same codec; changing
# OWNER_WEBHOOK_IDENTITY_CODEC on a live cluster orphans existing owner labels.
