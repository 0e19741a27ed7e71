"""Transports - How a protocol's request reaches the provider.

- HttpTransport: direct HTTP via httpx streaming
- BrowserTransport: ``fetch`` issued inside an authenticated browser page;
  the response body comes back as an opaque buffer
"""

from __future__ import annotations

import base64
import json
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncContextManager, AsyncIterator, Optional, Protocol

import httpx

from .browser import BrowserSession


@dataclass
class TransportRequest:
    """An outgoing provider request."""

    url: str
    method: str = "POST"
    headers: dict[str, str] = field(default_factory=dict)
    content: Optional[bytes] = None

    @classmethod
    def json(
        cls,
        url: str,
        payload: Any,
        headers: Optional[dict[str, str]] = None,
        method: str = "POST",
    ) -> TransportRequest:
        merged = {"Content-Type": "application/json"}
        merged.update(headers or {})
        return cls(
            url=url,
            method=method,
            headers=merged,
            content=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
        )


class TransportResponse(Protocol):
    status: int

    def aiter_bytes(self) -> AsyncIterator[bytes]: ...

    async def read_text(self) -> str: ...


class Transport(Protocol):
    """Opens a streaming response for a request; closing the context releases it."""

    def open(self, request: TransportRequest) -> AsyncContextManager[TransportResponse]: ...

    async def cookies(self, provider: str) -> list[dict[str, Any]]: ...


async def request_json(transport: Transport, request: TransportRequest) -> tuple[int, Any]:
    """Send a request and read the whole body as JSON (None when not JSON)."""
    async with transport.open(request) as response:
        text = await response.read_text()
    try:
        return response.status, json.loads(text) if text else None
    except ValueError:
        return response.status, None


# ============================================================================
# HTTP
# ============================================================================


class _HttpResponse:
    def __init__(self, response: httpx.Response):
        self._response = response
        self.status = response.status_code

    def aiter_bytes(self) -> AsyncIterator[bytes]:
        return self._response.aiter_bytes()

    async def read_text(self) -> str:
        data = await self._response.aread()
        return data.decode("utf-8", errors="replace")


class HttpTransport:
    """Direct HTTP transport.

    Args:
        timeout: Request timeout in seconds
    """

    def __init__(self, timeout: float = 120.0):
        self.timeout = timeout

    @asynccontextmanager
    async def open(self, request: TransportRequest) -> AsyncIterator[_HttpResponse]:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            async with client.stream(
                request.method,
                request.url,
                headers=request.headers,
                content=request.content,
            ) as response:
                yield _HttpResponse(response)

    async def cookies(self, provider: str) -> list[dict[str, Any]]:
        return []


# ============================================================================
# Browser
# ============================================================================

# Runs in the page; the body travels back base64-encoded
_FETCH_IN_PAGE = """
async ({ url, method, headers, body }) => {
  const init = { method, headers, credentials: "include" };
  if (body) {
    const bin = atob(body);
    const bytes = new Uint8Array(bin.length);
    for (let i = 0; i < bin.length; i++) bytes[i] = bin.charCodeAt(i);
    init.body = bytes;
  }
  const res = await fetch(url, init);
  if (!res.body) return { status: res.status, body: null };
  const buf = new Uint8Array(await res.arrayBuffer());
  let s = "";
  for (let i = 0; i < buf.length; i += 0x8000) {
    s += String.fromCharCode.apply(null, buf.subarray(i, i + 0x8000));
  }
  return { status: res.status, body: btoa(s) };
}
"""


class _BufferedResponse:
    def __init__(self, status: int, body: Optional[bytes], chunk_size: int = 16384):
        self.status = status
        self._body = body
        self._chunk_size = chunk_size

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        if not self._body:
            return
        for start in range(0, len(self._body), self._chunk_size):
            yield self._body[start : start + self._chunk_size]

    async def read_text(self) -> str:
        return (self._body or b"").decode("utf-8", errors="replace")


class BrowserTransport:
    """Issues requests from the provider's page in a BrowserSession."""

    def __init__(self, session: BrowserSession, provider: str):
        self.session = session
        self.provider = provider

    @asynccontextmanager
    async def open(self, request: TransportRequest) -> AsyncIterator[_BufferedResponse]:
        args = {
            "url": request.url,
            "method": request.method,
            "headers": request.headers,
            "body": base64.b64encode(request.content).decode("ascii") if request.content else None,
        }

        async def fetch(page: Any) -> Any:
            return await page.evaluate(_FETCH_IN_PAGE, args)

        result = await self.session.run_in_session(self.provider, fetch)
        body = result.get("body") if isinstance(result, dict) else None
        status = int(result.get("status", 0)) if isinstance(result, dict) else 0
        yield _BufferedResponse(status, base64.b64decode(body) if body else None)

    async def cookies(self, provider: str) -> list[dict[str, Any]]:
        return await self.session.get_cookies(provider)


__all__ = [
    "TransportRequest",
    "TransportResponse",
    "Transport",
    "request_json",
    "HttpTransport",
    "BrowserTransport",
]
