"""Web session secrets.

A web provider's stored secret is either a bare token or a JSON object such
as ``{"sessionKey": "...", "cookie": "...", "userAgent": "..."}``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional

DEFAULT_USER_AGENT = "Mozilla/5.0"


@dataclass(frozen=True)
class WebAuth:
    """Authentication state for a browser-session provider.

    Attributes:
        token: Access token, session key or bearer token
        cookie: Raw Cookie header value
        user_agent: User agent the session was captured with
        extra: Remaining provider-specific fields (organizationId, deviceId, ...)
    """

    token: str = ""
    cookie: str = ""
    user_agent: str = DEFAULT_USER_AGENT
    extra: dict[str, Any] = field(default_factory=dict)

    def cookies(self) -> dict[str, str]:
        """Parse the cookie header into a name -> value mapping."""
        result: dict[str, str] = {}
        for part in self.cookie.split(";"):
            name, sep, value = part.strip().partition("=")
            if sep and name.strip():
                result[name.strip()] = value.strip()
        return result

    def cookie_value(self, name: str) -> Optional[str]:
        return self.cookies().get(name)

    def get(self, key: str, default: Any = None) -> Any:
        return self.extra.get(key, default)


_TOKEN_KEYS = ("accessToken", "access_token", "sessionKey", "session_key", "token")


def parse_web_auth(secret: Optional[str]) -> WebAuth:
    """Parse a stored web secret.

    Args:
        secret: JSON object, JSON string, bare token or None

    Returns:
        WebAuth (empty when no secret)
    """
    raw = (secret or "").strip()
    if not raw:
        return WebAuth()
    try:
        data = json.loads(raw)
    except ValueError:
        return WebAuth(token=raw)
    if isinstance(data, str):
        return WebAuth(token=data.strip())
    if not isinstance(data, dict):
        return WebAuth(token=raw)

    token = ""
    for key in _TOKEN_KEYS:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            token = value.strip()
            break
    extra = {
        k: v
        for k, v in data.items()
        if k not in _TOKEN_KEYS and k not in ("cookie", "userAgent", "user_agent")
    }
    return WebAuth(
        token=token,
        cookie=str(data.get("cookie") or ""),
        user_agent=str(data.get("userAgent") or data.get("user_agent") or DEFAULT_USER_AGENT),
        extra=extra,
    )


__all__ = ["WebAuth", "parse_web_auth", "DEFAULT_USER_AGENT"]
