"""Error taxonomy for streamed completions.

Invocation-time failures never escape a stream as exceptions. Internally the
adapter raises StreamError and converts it into a terminal error event at the
stream boundary.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Codes carried by terminal error events."""

    AUTHENTICATION_EXPIRED = "authentication_expired"
    RATE_LIMITED_OR_BLOCKED = "rate_limited_or_blocked"
    NO_RESPONSE_BODY = "no_response_body"
    EMPTY_PROMPT = "empty_prompt"
    PROTOCOL_ERROR = "protocol_error"


class StreamError(Exception):
    """A classified failure raised while producing a stream."""

    def __init__(self, code: ErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def __repr__(self) -> str:
        return f"StreamError({self.code.value!r}, {self.message!r})"


def status_error(status: int, body: str = "", *, provider: str = "") -> StreamError:
    """Map a non-success HTTP status to a StreamError.

    Args:
        status: HTTP status code returned by the provider
        body: Response body (truncated into the message)
        provider: Provider id used in the message

    Returns:
        Classified StreamError
    """
    label = provider or "provider"
    snippet = body.strip()[:200]
    if status == 401:
        return StreamError(
            ErrorCode.AUTHENTICATION_EXPIRED,
            f"{label}: session expired or credentials rejected (HTTP 401); re-authenticate",
        )
    if status in (403, 429):
        return StreamError(
            ErrorCode.RATE_LIMITED_OR_BLOCKED,
            f"{label}: request blocked or rate limited (HTTP {status}): {snippet or 'no details'}",
        )
    return StreamError(
        ErrorCode.PROTOCOL_ERROR,
        f"{label}: unexpected HTTP {status}: {snippet}",
    )


__all__ = ["ErrorCode", "StreamError", "status_error"]
