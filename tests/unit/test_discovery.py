"""Unit tests for live model discovery."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest


def _mock_client(mock_client_class, data=None, error=None):
    mock_response = MagicMock()
    mock_response.json.return_value = data
    if error is not None:
        mock_response.raise_for_status.side_effect = error

    mock_client = MagicMock()
    mock_client.get = AsyncMock(return_value=mock_response)
    mock_client_class.return_value.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client_class.return_value.__aexit__ = AsyncMock(return_value=None)
    return mock_client


class TestDiscoveryEnabled:
    """Tests for discovery_enabled."""

    def test_test_and_ci_modes_disable(self):
        """Test that test mode, CI and the skip flag disable discovery."""
        from llmgate.discovery import discovery_enabled

        assert discovery_enabled({}) is True
        assert discovery_enabled({"LLMGATE_ENV": "test"}) is False
        assert discovery_enabled({"CI": "true"}) is False
        assert discovery_enabled({"LLMGATE_SKIP_DISCOVERY": "1"}) is False

    def test_explicit_override(self):
        """Test that an explicit flag wins over the environment."""
        from llmgate.discovery import discovery_enabled

        assert discovery_enabled({"LLMGATE_ENV": "test"}, True) is True
        assert discovery_enabled({}, False) is False


class TestAdapters:
    """Tests for individual discovery adapters."""

    @pytest.mark.asyncio
    async def test_ollama_tags(self):
        """Test Ollama /api/tags parsing."""
        from llmgate.discovery import discover_ollama_models

        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = _mock_client(
                mock_client_class, {"models": [{"name": "llama3.3"}, {"name": "deepseek-r1:8b"}]}
            )
            models = await discover_ollama_models("http://127.0.0.1:11434/v1")

        assert mock_client.get.call_args[0][0] == "http://127.0.0.1:11434/api/tags"
        assert [m.id for m in models] == ["llama3.3", "deepseek-r1:8b"]
        assert models[1].reasoning is True

    @pytest.mark.asyncio
    async def test_siliconflow_filters(self):
        """Test that SiliconFlow discovery asks for chat text models."""
        from llmgate.discovery import discover_siliconflow_models

        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = _mock_client(mock_client_class, {"data": [{"id": "Qwen/QwQ-32B"}]})
            models = await discover_siliconflow_models("https://api.siliconflow.com/v1", "sf-key")

        kwargs = mock_client.get.call_args[1]
        assert kwargs["params"] == {"type": "text", "sub_type": "chat"}
        assert kwargs["headers"]["Authorization"] == "Bearer sf-key"
        assert models[0].id == "Qwen/QwQ-32B"

    @pytest.mark.asyncio
    async def test_venice_skips_non_text(self):
        """Test that Venice image models are skipped."""
        from llmgate.discovery import discover_venice_models

        data = {
            "data": [
                {"id": "venice-uncensored", "type": "text", "model_spec": {"availableContextTokens": 32768}},
                {"id": "flux-dev", "type": "image"},
            ]
        }
        with patch("httpx.AsyncClient") as mock_client_class:
            _mock_client(mock_client_class, data)
            models = await discover_venice_models("v-key")

        assert [m.id for m in models] == ["venice-uncensored"]
        assert models[0].context_window == 32768

    @pytest.mark.asyncio
    async def test_chatgpt_web_models(self):
        """Test ChatGPT web /backend-api/models parsing."""
        from llmgate.discovery import discover_chatgpt_web_models

        with patch("httpx.AsyncClient") as mock_client_class:
            _mock_client(mock_client_class, {"models": [{"slug": "gpt-4o", "title": "GPT-4o"}]})
            models = await discover_chatgpt_web_models("at-1")

        assert models[0].id == "gpt-4o"
        assert models[0].name == "GPT-4o (Web)"


class TestFallback:
    """Tests for discover_or_fallback."""

    @pytest.mark.asyncio
    async def test_http_error_falls_back(self):
        """Test a non-2xx status returns the static catalog."""
        import httpx

        from llmgate.catalog.builtin import build_ollama_provider
        from llmgate.discovery import discover_ollama_models, discover_or_fallback

        fallback = build_ollama_provider().models
        error = httpx.HTTPStatusError("boom", request=MagicMock(), response=MagicMock(status_code=500))
        with patch("httpx.AsyncClient") as mock_client_class:
            _mock_client(mock_client_class, error=error)
            models = await discover_or_fallback("ollama", discover_ollama_models, fallback)

        assert models == tuple(fallback)

    @pytest.mark.asyncio
    async def test_empty_result_falls_back(self):
        """Test an empty live catalog returns the static catalog."""
        from llmgate.catalog.types import ModelDefinition
        from llmgate.discovery import discover_or_fallback

        fallback = (ModelDefinition(id="static", name="Static"),)

        async def fetch():
            return []

        assert await discover_or_fallback("vllm", fetch, fallback) == fallback

    @pytest.mark.asyncio
    async def test_timeout_falls_back(self, caplog):
        """Test a hung discovery call is bounded by the timeout."""
        from llmgate.catalog.types import ModelDefinition
        from llmgate.discovery import discover_or_fallback

        fallback = (ModelDefinition(id="static", name="Static"),)

        async def fetch():
            await asyncio.sleep(10)
            return []

        with caplog.at_level("WARNING"):
            models = await discover_or_fallback("venice", fetch, fallback, timeout=0.05)

        assert models == fallback
        assert "venice discovery failed (timed out)" in caplog.text

    @pytest.mark.asyncio
    async def test_live_result_used(self):
        """Test a successful fetch replaces the static catalog."""
        from llmgate.catalog.types import ModelDefinition
        from llmgate.discovery import discover_or_fallback

        live = [ModelDefinition(id="live", name="Live")]

        async def fetch():
            return live

        assert await discover_or_fallback("vllm", fetch, ()) == tuple(live)
