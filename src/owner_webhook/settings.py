"""
owner_webhook.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for the webhook.
- Fail at startup when the in-scope owner list is missing.
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Annotated, Any, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from owner_webhook.admission.identity import get_codec, is_label_value


class Settings(BaseSettings):
    """
    Read once at process start; the policy built from it never changes afterwards.
    """

    model_config = SettingsConfigDict(env_prefix="OWNER_WEBHOOK_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "owner-webhook"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8443
    # Mounted certificate/key; TLS itself is terminated by uvicorn.
    ssl_certfile: str | None = "/etc/webhook/certs/tls.crt"
    ssl_keyfile: str | None = Field(default="/etc/webhook/certs/tls.key", repr=False)

    # Policy
    owners: Annotated[list[str], NoDecode]
    label_key: str = "owner-webhook/owner"
    identity_codec: Literal["identity", "label-safe"] = "identity"

    # Owner label lookup
    lookup_backend: Literal["kubernetes", "static"] = "kubernetes"
    lookup_timeout_seconds: float = Field(default=5.0, gt=0)

    @field_validator("owners", mode="before")
    @classmethod
    def _split_owners(cls, value: Any) -> Any:
        # Accept "a,b" as well as a JSON list in the environment.
        if isinstance(value, str):
            raw = value.strip()
            if raw.startswith("["):
                value = json.loads(raw)
            else:
                value = raw.split(",")
        if isinstance(value, (list, tuple)):
            value = [str(v).strip() for v in value if str(v).strip()]
            if not value:
                raise ValueError("at least one in-scope owner is required")
        return value

    @field_validator("label_key")
    @classmethod
    def _non_empty_label_key(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("label_key must not be empty")
        return value

    @model_validator(mode="after")
    def _owner_tokens_are_label_values(self) -> Settings:
        # The identity codec keeps the original behaviour and is not checked.
        if self.identity_codec == "label-safe":
            codec = get_codec(self.identity_codec)
            bad = [o for o in self.owners if not is_label_value(codec.token_from_principal(o))]
            if bad:
                raise ValueError(f"owners not encodable as label values: {bad}")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()  # type: ignore[call-arg]


# --- Module Notes -----------------------------------------------------------
# OWNER_WEBHOOK_OWNERS is required; a pydantic ValidationError here stops the process
# before the server binds its port.
