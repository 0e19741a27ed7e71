"""Web providers exposing a plain ``/api/chat`` endpoint (Grok, Gemini, Z).

Responses are newline-delimited JSON with or without the ``data:`` prefix.
"""

from __future__ import annotations

from typing import Any, Optional

from ...errors import StreamError
from ..continuity import ConversationRef
from ..transport import TransportRequest
from .base import InvocationContext, ProviderProtocol, classify_error_text, error_message


class ChatApiWebProtocol(ProviderProtocol):
    api = ""
    uses_browser = True
    require_data_prefix = False

    def message_body(self, ctx: InvocationContext) -> dict[str, Any]:
        return {"message": ctx.prompt}

    def build_request(self, ctx: InvocationContext) -> TransportRequest:
        body: dict[str, Any] = {}
        if ctx.conversation_id:
            body["conversation_id"] = ctx.conversation_id
        body.update(self.message_body(ctx))
        body["model"] = ctx.model
        return TransportRequest.json(
            f"{ctx.base_url}/api/chat",
            body,
            {"Accept": "text/event-stream, application/x-ndjson"},
        )

    def extract_text(self, payload: dict[str, Any]) -> Optional[str]:
        for key in ("text", "content", "delta"):
            value = payload.get(key)
            if isinstance(value, str):
                return value
        return None

    def extract_ref(self, payload: dict[str, Any]) -> Optional[ConversationRef]:
        conversation_id = payload.get("conversation_id") or payload.get("conversationId")
        if isinstance(conversation_id, str) and conversation_id:
            return ConversationRef(conversation_id=conversation_id)
        return None

    def check_payload(self, payload: dict[str, Any]) -> Optional[StreamError]:
        error = payload.get("error")
        if not error:
            return None
        text = error_message(error)
        return StreamError(classify_error_text(text), f"{self.api}: {text}")


class GrokWebProtocol(ChatApiWebProtocol):
    api = "grok-web"


class ZWebProtocol(ChatApiWebProtocol):
    api = "z-web"


class GeminiWebProtocol(ChatApiWebProtocol):
    api = "gemini-web"

    def message_body(self, ctx: InvocationContext) -> dict[str, Any]:
        return {"prompt": {"text": ctx.prompt}}


__all__ = ["ChatApiWebProtocol", "GrokWebProtocol", "ZWebProtocol", "GeminiWebProtocol"]
