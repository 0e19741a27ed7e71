"""ChatGPT web protocol.

Requests run in the chatgpt.com page. The SSE stream resends the whole
answer in ``message.content.parts[0]`` on every update, so text is handled as
snapshots. Continuity comes from ``conversation_id`` and the assistant
``message.id`` (sent back as ``parent_message_id`` on the next turn). A
cookie-only secret gets its access token and device id from the page's
``/api/auth/session``.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Optional

from ...errors import ErrorCode, StreamError
from ..continuity import ConversationRef
from ..transport import TransportRequest, request_json
from .base import SNAPSHOT, InvocationContext, ProviderProtocol, error_message


def _assistant_message(payload: dict[str, Any]) -> Optional[dict[str, Any]]:
    message = payload.get("message")
    if not isinstance(message, dict):
        return None
    author = message.get("author")
    role = author.get("role") if isinstance(author, dict) else None
    if role not in (None, "assistant"):
        return None
    return message


class ChatGPTWebProtocol(ProviderProtocol):
    api = "chatgpt-web"
    text_mode = SNAPSHOT
    uses_browser = True

    async def prepare(self, ctx: InvocationContext) -> Optional[ConversationRef]:
        """Fetch the page session's access token when the secret is cookie-only."""
        if ctx.auth.token or ctx.transport is None:
            return None
        request = TransportRequest(
            url=f"{ctx.base_url}/api/auth/session",
            method="GET",
            headers={"Accept": "application/json"},
        )
        status, data = await request_json(ctx.transport, request)
        if not 200 <= status < 300 or not isinstance(data, dict):
            logging.warning(
                "[llmgate.chatgpt-web] Session lookup failed (HTTP %s); sending without an access token", status
            )
            return None
        if isinstance(data.get("accessToken"), str) and data["accessToken"]:
            ctx.extras["access_token"] = data["accessToken"]
        if isinstance(data.get("oaiDeviceId"), str) and data["oaiDeviceId"]:
            ctx.extras["device_id"] = data["oaiDeviceId"]
        return None

    def build_request(self, ctx: InvocationContext) -> TransportRequest:
        body: dict[str, Any] = {
            "action": "next",
            "messages": [
                {
                    "id": str(uuid.uuid4()),
                    "author": {"role": "user"},
                    "content": {"content_type": "text", "parts": [ctx.prompt]},
                }
            ],
            "parent_message_id": ctx.parent_turn_id or str(uuid.uuid4()),
            "model": ctx.model,
            "timezone_offset_min": -time.localtime().tm_gmtoff // 60,
            "history_and_training_disabled": False,
            "conversation_mode": {"kind": "primary_assistant", "plugin_ids": None},
            "force_paragen": False,
            "force_rate_limit": False,
            "force_use_sse": True,
        }
        if ctx.conversation_id:
            body["conversation_id"] = ctx.conversation_id

        device_id = (
            ctx.extras.get("device_id")
            or ctx.auth.get("oaiDeviceId")
            or ctx.auth.cookie_value("oai-did")
            or ctx.extras.setdefault("device_id", str(uuid.uuid4()))
        )
        headers = {
            "Accept": "text/event-stream",
            "oai-language": "en-US",
            "oai-device-id": device_id,
            "Referer": f"{ctx.base_url}/",
        }
        access_token = ctx.auth.token or ctx.extras.get("access_token")
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return TransportRequest.json(f"{ctx.base_url}/backend-api/conversation", body, headers)

    def extract_text(self, payload: dict[str, Any]) -> Optional[str]:
        message = _assistant_message(payload)
        if message is None:
            return None
        content = message.get("content")
        parts = content.get("parts") if isinstance(content, dict) else None
        if isinstance(parts, list) and parts and isinstance(parts[0], str):
            return parts[0]
        return None

    def extract_ref(self, payload: dict[str, Any]) -> Optional[ConversationRef]:
        conversation_id = payload.get("conversation_id")
        message = _assistant_message(payload)
        message_id = message.get("id") if message else None
        if not conversation_id and not message_id:
            return None
        return ConversationRef(
            conversation_id=conversation_id if isinstance(conversation_id, str) else None,
            parent_turn_id=message_id if isinstance(message_id, str) else None,
        )

    def check_payload(self, payload: dict[str, Any]) -> Optional[StreamError]:
        error = payload.get("error")
        if not error:
            return None
        text = error_message(error)
        code = ErrorCode.PROTOCOL_ERROR
        if "rate" in text.lower() or "limit" in text.lower():
            code = ErrorCode.RATE_LIMITED_OR_BLOCKED
        return StreamError(code, f"chatgpt-web: {text}")

    def classify_status(self, status: int, body: str) -> StreamError:
        if status == 403:
            return StreamError(
                ErrorCode.RATE_LIMITED_OR_BLOCKED,
                "chatgpt-web: request blocked by bot detection (HTTP 403): "
                f"{body.strip()[:200] or 'unusual activity'}",
            )
        if status == 401:
            return StreamError(
                ErrorCode.AUTHENTICATION_EXPIRED,
                "chatgpt-web: session expired (HTTP 401); log in to chatgpt.com again",
            )
        return super().classify_status(status, body)


__all__ = ["ChatGPTWebProtocol"]
