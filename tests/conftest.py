"""Test fixtures and configuration for llmgate tests.

Test Structure:
    tests/
    ├── conftest.py          # Shared fixtures, scripted transport
    └── unit/                # Unit tests (no network, no browser)
        ├── test_adapter.py
        ├── test_catalog.py
        ├── test_config.py
        ├── test_credentials.py
        ├── test_discovery.py
        ├── test_env.py
        ├── test_gateway.py
        ├── test_parsers.py
        ├── test_protocols.py
        ├── test_resolver.py
        └── test_telemetry.py

Running tests:
    pytest tests/unit -v                    # Unit tests only
    pytest -v -m "not integration"          # All except integration
"""

import json
from contextlib import asynccontextmanager
from typing import Any, Optional

import pytest


class ScriptedResponse:
    """Transport response replaying fixed chunks."""

    def __init__(self, status: int = 200, chunks: Optional[list[bytes]] = None, fail_after: Optional[int] = None):
        self.status = status
        self.chunks = list(chunks or [])
        self.fail_after = fail_after
        self.closed = False

    async def aiter_bytes(self):
        for i, chunk in enumerate(self.chunks):
            if self.fail_after is not None and i >= self.fail_after:
                raise ConnectionError("connection reset by peer")
            yield chunk

    async def read_text(self) -> str:
        return b"".join(self.chunks).decode("utf-8")


class ScriptedTransport:
    """Transport returning queued responses and recording requests."""

    def __init__(self, *responses: ScriptedResponse, cookies: Optional[list[dict[str, Any]]] = None):
        self.responses = list(responses)
        self.requests = []
        self._cookies = cookies or []

    @asynccontextmanager
    async def open(self, request):
        self.requests.append(request)
        response = self.responses.pop(0)
        try:
            yield response
        finally:
            response.closed = True

    async def cookies(self, provider: str):
        return list(self._cookies)

    def json_body(self, index: int = -1) -> Any:
        return json.loads(self.requests[index].content.decode("utf-8"))


def sse(*payloads: Any, done: bool = False) -> bytes:
    """Encode payloads as ``data:`` lines."""
    lines = [f"data: {json.dumps(p) if not isinstance(p, str) else p}\n\n" for p in payloads]
    if done:
        lines.append("data: [DONE]\n\n")
    return "".join(lines).encode("utf-8")


@pytest.fixture
def test_env() -> dict[str, str]:
    """Environment in test mode (discovery off)."""
    return {"LLMGATE_ENV": "test"}


@pytest.fixture
def scripted():
    """Factory for ScriptedTransport / ScriptedResponse."""

    class Factory:
        Response = ScriptedResponse
        Transport = ScriptedTransport

        @staticmethod
        def sse(*payloads: Any, done: bool = False) -> bytes:
            return sse(*payloads, done=done)

    return Factory


@pytest.fixture
def openai_config():
    """A minimal OpenAI-compatible provider config."""
    from llmgate.catalog.types import ModelDefinition, ProviderConfig

    return ProviderConfig(
        base_url="http://test.local/v1",
        api="openai-completions",
        models=(ModelDefinition(id="test-model", name="Test Model"),),
        api_key="sk-test",
    )
