"""Credential Store - Stored provider credentials.

Profiles are namespaced by provider (``"<provider>:<name>"``). The resolver
only reads from the store; login flows that populate it live elsewhere.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any, Literal, Optional, Protocol, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError


class ApiKeyCredential(BaseModel):
    """Static API key, optionally with provider-specific metadata."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["api_key"] = "api_key"
    secret: str
    metadata: dict[str, str] = Field(default_factory=dict)


class TokenCredential(BaseModel):
    """Bearer or session token (e.g. a web session cookie value)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["token"] = "token"
    secret: str


class OAuthPlaceholderCredential(BaseModel):
    """Marks an OAuth login; the real token is exchanged at request time."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["oauth_placeholder"] = "oauth_placeholder"
    label: str = ""


Credential = Annotated[
    Union[ApiKeyCredential, TokenCredential, OAuthPlaceholderCredential],
    Field(discriminator="kind"),
]

_credential_adapter: TypeAdapter = TypeAdapter(Credential)


def parse_credential(data: Any) -> Credential:
    """Validate a raw mapping into a Credential.

    Raises:
        pydantic.ValidationError: If the shape or ``kind`` is invalid
    """
    return _credential_adapter.validate_python(data)


def credential_secret(credential: Credential) -> Optional[str]:
    """Literal secret carried by an api_key or token credential."""
    if isinstance(credential, (ApiKeyCredential, TokenCredential)):
        secret = credential.secret.strip()
        return secret or None
    return None


class CredentialStore(Protocol):
    """Read-only view of stored credentials."""

    def lookup(self, provider: str) -> list[str]:
        """Profile ids namespaced to ``provider``, in store order."""
        ...

    def read(self, profile_id: str) -> Optional[Credential]: ...


class MemoryCredentialStore:
    """In-memory CredentialStore keeping insertion order.

    Raw entries are validated lazily on ``read``; malformed entries are
    logged and treated as missing.

    Example:
        store = MemoryCredentialStore({
            "claude-web:default": {"kind": "token", "secret": "sk-ant-sid..."},
        })
    """

    def __init__(self, profiles: Optional[dict[str, Any]] = None):
        self._profiles: dict[str, Any] = dict(profiles or {})

    def put(self, profile_id: str, credential: Union[Credential, dict[str, Any]]) -> None:
        self._profiles[profile_id] = credential

    def remove(self, profile_id: str) -> None:
        self._profiles.pop(profile_id, None)

    def lookup(self, provider: str) -> list[str]:
        prefix = f"{provider}:"
        return [pid for pid in self._profiles if pid.startswith(prefix)]

    def read(self, profile_id: str) -> Optional[Credential]:
        raw = self._profiles.get(profile_id)
        if raw is None:
            return None
        if isinstance(raw, BaseModel):
            return raw  # type: ignore[return-value]
        try:
            return parse_credential(raw)
        except ValidationError as e:
            logging.warning(
                "[llmgate.auth] Skipping malformed credential %s: %d validation error(s)",
                profile_id,
                e.error_count(),
            )
            return None

    def __len__(self) -> int:
        return len(self._profiles)


__all__ = [
    "ApiKeyCredential",
    "TokenCredential",
    "OAuthPlaceholderCredential",
    "Credential",
    "parse_credential",
    "credential_secret",
    "CredentialStore",
    "MemoryCredentialStore",
]
