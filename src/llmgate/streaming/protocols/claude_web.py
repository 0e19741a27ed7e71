"""Claude web protocol.

Direct HTTP to ``https://claude.ai/api`` carrying the ``sessionKey`` cookie.
When the secret names no organization, the first one from
``/api/organizations`` is used. A conversation is created on the first turn
of a session; later turns post to the same conversation.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from ...errors import ErrorCode, StreamError
from ..continuity import ConversationRef
from ..transport import TransportRequest, request_json
from .base import InvocationContext, ProviderProtocol, classify_error_text, error_message

ROOT_PARENT_MESSAGE_UUID = "00000000-0000-4000-8000-000000000000"


class ClaudeWebProtocol(ProviderProtocol):
    api = "claude-web"

    def _api_base(self, ctx: InvocationContext) -> str:
        organization_id = (
            ctx.auth.get("organizationId")
            or ctx.auth.get("organization_id")
            or ctx.extras.get("organization_id")
        )
        base = f"{ctx.base_url}/api"
        if organization_id:
            return f"{base}/organizations/{organization_id}"
        return base

    def _headers(self, ctx: InvocationContext) -> dict[str, str]:
        cookie = ctx.auth.cookie or f"sessionKey={ctx.auth.token}"
        device_id = (
            ctx.auth.get("deviceId")
            or ctx.auth.cookie_value("anthropic-device-id")
            or ctx.extras.setdefault("device_id", str(uuid.uuid4()))
        )
        return {
            "Cookie": cookie,
            "User-Agent": ctx.auth.user_agent,
            "Accept": "text/event-stream",
            "Referer": f"{ctx.base_url}/",
            "Origin": ctx.base_url,
            "anthropic-client-platform": "web_claude_ai",
            "anthropic-device-id": device_id,
        }

    async def _discover_organization(self, ctx: InvocationContext) -> None:
        """Look up the account's first organization when the secret names none.

        Failure is not fatal: requests then go to the organization-less paths.
        """
        if ctx.auth.get("organizationId") or ctx.auth.get("organization_id"):
            return
        headers = self._headers(ctx)
        headers["Accept"] = "application/json"
        request = TransportRequest(url=f"{ctx.base_url}/api/organizations", method="GET", headers=headers)
        try:
            status, data = await request_json(ctx.transport, request)
        except Exception as e:
            logging.warning("[llmgate.claude-web] Failed to discover organization: %s", e)
            return
        if not 200 <= status < 300:
            logging.warning("[llmgate.claude-web] Failed to fetch organizations: HTTP %s", status)
            return
        if isinstance(data, list) and data and isinstance(data[0], dict) and data[0].get("uuid"):
            ctx.extras["organization_id"] = str(data[0]["uuid"])
            logging.info("[llmgate.claude-web] Discovered organization %s", ctx.extras["organization_id"])

    async def prepare(self, ctx: InvocationContext) -> Optional[ConversationRef]:
        if not ctx.auth.token and not ctx.auth.cookie:
            raise StreamError(
                ErrorCode.AUTHENTICATION_EXPIRED,
                "claude-web: no session key; log in to claude.ai",
            )
        await self._discover_organization(ctx)
        if ctx.conversation_id:
            return None
        conversation_uuid = str(uuid.uuid4())
        request = TransportRequest.json(
            f"{self._api_base(ctx)}/chat_conversations",
            {
                "name": f"Conversation {datetime.now(timezone.utc).isoformat()}",
                "uuid": conversation_uuid,
            },
            self._headers(ctx),
        )
        status, data = await request_json(ctx.transport, request)
        if not 200 <= status < 300:
            raise self.classify_status(status, str(data or ""))
        if isinstance(data, dict) and isinstance(data.get("uuid"), str):
            conversation_uuid = data["uuid"]
        ctx.extras["conversation_id"] = conversation_uuid
        return ConversationRef(conversation_id=conversation_uuid)

    def build_request(self, ctx: InvocationContext) -> TransportRequest:
        conversation_id = ctx.extras.get("conversation_id") or ctx.conversation_id
        body = {
            "prompt": ctx.prompt,
            "parent_message_uuid": ROOT_PARENT_MESSAGE_UUID,
            "model": ctx.model,
            "timezone": "UTC",
            "rendering_mode": "messages",
            "attachments": [],
            "files": [],
            "locale": "en-US",
            "personalized_styles": [],
            "sync_sources": [],
            "tools": [],
        }
        return TransportRequest.json(
            f"{self._api_base(ctx)}/chat_conversations/{conversation_id}/completion",
            body,
            self._headers(ctx),
        )

    def extract_text(self, payload: dict[str, Any]) -> Optional[str]:
        kind = payload.get("type")
        if kind == "content_block_delta":
            delta = payload.get("delta") or {}
            text = delta.get("text") if isinstance(delta, dict) else None
            return text if isinstance(text, str) else None
        if kind == "completion":
            text = payload.get("completion")
            return text if isinstance(text, str) else None
        return None

    def check_payload(self, payload: dict[str, Any]) -> Optional[StreamError]:
        kind = payload.get("type")
        if kind == "message_limit":
            limit = payload.get("message_limit") or {}
            if isinstance(limit, dict) and limit.get("type") == "within_limit":
                return None
            return StreamError(ErrorCode.RATE_LIMITED_OR_BLOCKED, "claude-web: message limit reached")
        if kind == "error":
            text = error_message(payload.get("error") or "Claude API error")
            return StreamError(classify_error_text(text), f"claude-web: {text}")
        return None

    def is_done(self, payload: dict[str, Any]) -> bool:
        return payload.get("type") == "message_stop"


__all__ = ["ClaudeWebProtocol", "ROOT_PARENT_MESSAGE_UUID"]
