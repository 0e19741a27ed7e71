"""Qwen web protocol (chat.qwen.ai, in-page fetch, SSE deltas)."""

from __future__ import annotations

import uuid
from typing import Any, Optional

from ...errors import StreamError
from ..continuity import ConversationRef
from ..transport import TransportRequest
from .base import InvocationContext, ProviderProtocol, classify_error_text, error_message


class QwenWebProtocol(ProviderProtocol):
    api = "qwen-web"
    uses_browser = True

    def build_request(self, ctx: InvocationContext) -> TransportRequest:
        body = {
            "model": ctx.model,
            "input": {
                "messages": [
                    {"role": "user", "content": [{"type": "text", "text": ctx.prompt}]},
                ],
            },
            "parameters": {"result_format": "message", "incremental_output": True},
            "conversation_id": ctx.conversation_id or str(uuid.uuid4()),
        }
        headers = {"Accept": "text/event-stream"}
        if ctx.auth.token:
            headers["Authorization"] = f"Bearer {ctx.auth.token}"
        return TransportRequest.json(f"{ctx.base_url}/api/chat/completions", body, headers)

    def extract_text(self, payload: dict[str, Any]) -> Optional[str]:
        for key in ("text", "content", "delta"):
            value = payload.get(key)
            if isinstance(value, str):
                return value
        return None

    def extract_ref(self, payload: dict[str, Any]) -> Optional[ConversationRef]:
        conversation_id = payload.get("sessionId") or payload.get("conversationId")
        if isinstance(conversation_id, str) and conversation_id:
            return ConversationRef(conversation_id=conversation_id)
        return None

    def check_payload(self, payload: dict[str, Any]) -> Optional[StreamError]:
        error = payload.get("error")
        if not error:
            return None
        text = error_message(error)
        return StreamError(classify_error_text(text), f"qwen-web: {text}")


__all__ = ["QwenWebProtocol"]
