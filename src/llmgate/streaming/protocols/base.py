"""Provider protocol interface.

A ProviderProtocol describes one provider family's wire format. The generic
StreamAdapter drives it: build the request, pick the raw-frame parser, pull
text and continuity ids out of each payload and classify failures.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from ...auth.web import WebAuth
from ...catalog.types import ProviderConfig
from ...errors import ErrorCode, StreamError, status_error
from ..continuity import ConversationRef
from ..parsers import BinaryFrameParser, FrameParser, LineDelimitedParser
from ..transport import Transport, TransportRequest

# Framing
LINES = "lines"
FRAMES = "frames"

# Text modes
DELTA = "delta"
SNAPSHOT = "snapshot"


@dataclass
class InvocationContext:
    """Everything a protocol needs to build one request.

    Attributes:
        provider: Provider id
        model: Model id
        config: Provider configuration
        prompt: Text of the last user message
        messages: Full message history
        secret: Literal secret (already dereferenced)
        auth: Parsed web session secret
        ref: Continuity ids from the previous turn in this session
        transport: Transport used for the invocation
        extras: Protocol scratch space (e.g. a bearer token found in prepare)
    """

    provider: str
    model: str
    config: ProviderConfig
    prompt: str
    messages: list[dict[str, Any]]
    secret: str = ""
    auth: WebAuth = field(default_factory=WebAuth)
    ref: Optional[ConversationRef] = None
    transport: Optional[Transport] = None
    extras: dict[str, Any] = field(default_factory=dict)

    @property
    def base_url(self) -> str:
        return self.config.base_url.rstrip("/")

    @property
    def conversation_id(self) -> Optional[str]:
        return self.ref.conversation_id if self.ref else None

    @property
    def parent_turn_id(self) -> Optional[str]:
        return self.ref.parent_turn_id if self.ref else None


def message_text(message: dict[str, Any]) -> str:
    """Text of a message whose content is a string or a list of parts."""
    content = message.get("content")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            part.get("text", "")
            for part in content
            if isinstance(part, dict) and part.get("type") == "text"
        )
    return ""


def extract_prompt(messages: list[dict[str, Any]]) -> str:
    """Text of the most recent user message ("" when there is none)."""
    for message in reversed(messages):
        if isinstance(message, dict) and message.get("role") == "user":
            return message_text(message)
    return ""


class ProviderProtocol:
    """Base class for provider protocols.

    Subclasses set the class attributes and override ``build_request`` and
    ``extract_text``; the remaining hooks have working defaults.

    Attributes:
        api: API identifier matched against ProviderConfig.api
        framing: LINES or FRAMES
        text_mode: DELTA (payloads carry increments) or SNAPSHOT (payloads
            carry the whole answer so far)
        require_data_prefix: For LINES framing, only parse ``data:`` lines
        uses_browser: Requests must be issued from a browser session
    """

    api: str = ""
    framing: str = LINES
    text_mode: str = DELTA
    require_data_prefix: bool = True
    uses_browser: bool = False

    def new_parser(self) -> FrameParser:
        if self.framing == FRAMES:
            return BinaryFrameParser()
        return LineDelimitedParser(require_data_prefix=self.require_data_prefix)

    async def prepare(self, ctx: InvocationContext) -> Optional[ConversationRef]:
        """Async setup before the request is built.

        May return continuity ids created during setup (e.g. a new
        conversation); they are committed only if the stream completes.
        """
        return None

    def build_request(self, ctx: InvocationContext) -> TransportRequest:
        raise NotImplementedError

    def extract_text(self, payload: dict[str, Any]) -> Optional[str]:
        raise NotImplementedError

    def extract_ref(self, payload: dict[str, Any]) -> Optional[ConversationRef]:
        return None

    def check_payload(self, payload: dict[str, Any]) -> Optional[StreamError]:
        """Return an error for in-band failure payloads."""
        return None

    def is_done(self, payload: dict[str, Any]) -> bool:
        return False

    def classify_status(self, status: int, body: str) -> StreamError:
        return status_error(status, body, provider=self.api)


def error_message(error: Any) -> str:
    """Human-readable text for an ``error`` field of any shape."""
    if isinstance(error, str):
        return error
    if isinstance(error, dict):
        return str(error.get("message") or error.get("code") or error.get("type") or error)
    return str(error)


def classify_error_text(text: str, default: ErrorCode = ErrorCode.PROTOCOL_ERROR) -> ErrorCode:
    """Pick a taxonomy code from an in-band error message."""
    lower = text.lower()
    if any(
        marker in lower
        for marker in ("unauthenticated", "unauthorized", "expired", "invalid token", "login")
    ):
        return ErrorCode.AUTHENTICATION_EXPIRED
    if any(marker in lower for marker in ("rate limit", "rate_limit", "too many", "limit reached")):
        return ErrorCode.RATE_LIMITED_OR_BLOCKED
    return default


__all__ = [
    "LINES",
    "FRAMES",
    "DELTA",
    "SNAPSHOT",
    "InvocationContext",
    "ProviderProtocol",
    "message_text",
    "extract_prompt",
    "error_message",
    "classify_error_text",
]
