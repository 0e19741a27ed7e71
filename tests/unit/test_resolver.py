"""Unit tests for provider resolution."""

from unittest.mock import AsyncMock, patch

import pytest


def _entry(**kwargs):
    from llmgate.catalog.types import ModelDefinition
    from llmgate.config import ProviderEntry

    models = [ModelDefinition(id=m, name=m) for m in kwargs.pop("models", [])]
    return ProviderEntry(models=models, **kwargs)


# ============================================================================
# Normalization
# ============================================================================


class TestNormalizeProviders:
    """Tests for normalize_providers."""

    def test_wrapped_key_unwrapped(self, test_env):
        """Test that ${NAME} api keys become NAME."""
        from llmgate.resolver import normalize_providers

        result = normalize_providers({"local": _entry(api_key="${LOCAL_KEY}", models=["m"])}, test_env)

        assert result["local"].api_key == "LOCAL_KEY"

    def test_missing_key_filled_from_env_name(self):
        """Test that the variable name (not value) is recorded."""
        from llmgate.resolver import normalize_providers

        env = {"TOGETHER_API_KEY": "tg-secret"}
        result = normalize_providers({"together": _entry(models=["m"])}, env)

        assert result["together"].api_key == "TOGETHER_API_KEY"

    def test_missing_key_filled_from_store(self, test_env):
        """Test the first usable profile in store order is used."""
        from llmgate.auth import MemoryCredentialStore
        from llmgate.resolver import normalize_providers

        store = MemoryCredentialStore(
            {
                "nvidia:broken": {"kind": "api_key"},
                "nvidia:oauth": {"kind": "oauth_placeholder"},
                "nvidia:first": {"kind": "api_key", "secret": "nv-1"},
                "nvidia:second": {"kind": "token", "secret": "nv-2"},
            }
        )
        result = normalize_providers({"nvidia": _entry(models=["m"])}, test_env, store)

        assert result["nvidia"].api_key == "nv-1"

    def test_env_beats_store(self):
        """Test environment variables take precedence over stored profiles."""
        from llmgate.auth import MemoryCredentialStore
        from llmgate.resolver import normalize_providers

        store = MemoryCredentialStore({"nvidia:main": {"kind": "api_key", "secret": "stored"}})
        result = normalize_providers({"nvidia": _entry(models=["m"])}, {"NVIDIA_API_KEY": "x"}, store)

        assert result["nvidia"].api_key == "NVIDIA_API_KEY"

    def test_bedrock_uses_aws_variables(self):
        """Test the aws-sdk auth mode records the AWS variable name."""
        from llmgate.resolver import normalize_providers

        explicit = {"amazon-bedrock": _entry(models=["anthropic.claude"])}

        with_profile = normalize_providers(explicit, {"AWS_PROFILE": "dev"})
        with_nothing = normalize_providers(explicit, {})

        assert with_profile["amazon-bedrock"].api_key == "AWS_PROFILE"
        assert with_nothing["amazon-bedrock"].api_key == "AWS_PROFILE"

    def test_google_aliases_and_idempotence(self, test_env):
        """Test google model ids are canonicalized and a second pass is a no-op."""
        from llmgate.resolver import normalize_providers

        explicit = {"google": _entry(api_key="${GEMINI_API_KEY}", models=["gemini-3-pro", "gemini-2.5-flash"])}

        once = normalize_providers(explicit, test_env)
        twice = normalize_providers(once, test_env)

        assert [m.id for m in once["google"].models] == ["gemini-3-pro-preview", "gemini-2.5-flash"]
        assert once == twice

    def test_input_not_mutated(self, test_env):
        """Test that the caller's entries are left untouched."""
        from llmgate.resolver import normalize_providers

        entry = _entry(api_key="${A_KEY}", models=["m"])
        normalize_providers({"a": entry}, test_env)

        assert entry.api_key == "${A_KEY}"


# ============================================================================
# Full resolution
# ============================================================================


class TestResolveProviders:
    """Tests for resolve_providers."""

    @pytest.mark.asyncio
    async def test_web_providers_always_present(self, test_env):
        """Test web providers are emitted without a secret as needs-login."""
        from llmgate.catalog.builtin import WEB_PROVIDER_BUILDERS
        from llmgate.resolver import resolve_providers

        providers = await resolve_providers({}, test_env)

        assert list(providers) == list(WEB_PROVIDER_BUILDERS)
        assert providers["claude-web"].needs_login
        assert providers["claude-web"].models

    @pytest.mark.asyncio
    async def test_implicit_order_is_fixed(self, test_env):
        """Test implicit providers follow builder order regardless of env order."""
        from llmgate.resolver import resolve_providers

        env = dict(test_env, TOGETHER_API_KEY="t", MINIMAX_API_KEY="m", NVIDIA_API_KEY="n")
        providers = await resolve_providers({}, env)

        ids = list(providers)
        assert ids.index("minimax") < ids.index("together") < ids.index("nvidia") < ids.index("deepseek-web")
        assert providers["minimax"].api_key == "MINIMAX_API_KEY"

    @pytest.mark.asyncio
    async def test_deterministic(self, test_env):
        """Test identical inputs give identical output."""
        from llmgate.auth import MemoryCredentialStore
        from llmgate.resolver import resolve_providers

        env = dict(test_env, VENICE_API_KEY="v", OLLAMA_API_KEY="local")
        store = MemoryCredentialStore({"claude-web:default": {"kind": "token", "secret": "sk-ant-sid"}})
        explicit = {"local": _entry(base_url="http://localhost:8000/v1", api_key="LOCAL_KEY", models=["m"])}

        first = await resolve_providers(explicit, env, store)
        second = await resolve_providers(explicit, env, store)

        assert list(first) == list(second)
        assert {k: v.to_dict() for k, v in first.items()} == {k: v.to_dict() for k, v in second.items()}
        assert first["claude-web"].api_key == "sk-ant-sid"
        assert list(first)[-1] == "local"

    @pytest.mark.asyncio
    async def test_models_without_secret_dropped(self, test_env, caplog):
        """Test explicit providers with models but no secret are skipped."""
        from llmgate.resolver import resolve_providers

        explicit = {
            "orphan": _entry(base_url="http://orphan/v1", models=["m"]),
            "keyless": _entry(base_url="http://keyless/v1"),
        }
        with caplog.at_level("WARNING"):
            providers = await resolve_providers(explicit, test_env)

        assert "orphan" not in providers
        assert "keyless" in providers
        assert "Provider orphan declares models" in caplog.text

    @pytest.mark.asyncio
    async def test_explicit_overrides_implicit(self, test_env):
        """Test explicit fields override the implicit provider field by field."""
        from llmgate.resolver import resolve_providers

        env = dict(test_env, MOONSHOT_API_KEY="ms")
        explicit = {"moonshot": _entry(base_url="https://api.moonshot.cn/v1")}
        providers = await resolve_providers(explicit, env)

        moonshot = providers["moonshot"]
        assert moonshot.base_url == "https://api.moonshot.cn/v1"
        assert moonshot.api == "openai-completions"
        assert moonshot.api_key == "MOONSHOT_API_KEY"
        assert [m.id for m in moonshot.models] == ["kimi-k2.5"]

    @pytest.mark.asyncio
    async def test_oauth_placeholders(self, test_env):
        """Test OAuth-backed portals resolve to placeholder secrets."""
        from llmgate.auth import MemoryCredentialStore
        from llmgate.resolver import resolve_providers

        store = MemoryCredentialStore(
            {
                "minimax-portal:default": {"kind": "oauth_placeholder"},
                "qwen-portal:default": {"kind": "oauth_placeholder"},
            }
        )
        providers = await resolve_providers({}, test_env, store)

        assert providers["minimax-portal"].api_key == "minimax-oauth"
        assert providers["qwen-portal"].api_key == "qwen-oauth"

    @pytest.mark.asyncio
    async def test_cloudflare_from_store_metadata(self, test_env):
        """Test Cloudflare AI Gateway needs account and gateway ids."""
        from llmgate.auth import ApiKeyCredential, MemoryCredentialStore
        from llmgate.resolver import resolve_providers

        store = MemoryCredentialStore()
        store.put("cloudflare-ai-gateway:partial", ApiKeyCredential(secret="cf-0", metadata={"accountId": "acc"}))
        store.put(
            "cloudflare-ai-gateway:full",
            ApiKeyCredential(secret="cf-1", metadata={"account_id": "acc", "gateway_id": "gw"}),
        )
        providers = await resolve_providers({}, test_env, store)

        cloudflare = providers["cloudflare-ai-gateway"]
        assert cloudflare.base_url.endswith("/acc/gw/anthropic")
        assert cloudflare.api_key == "cf-1"

    @pytest.mark.asyncio
    async def test_explicit_vllm_kept_as_is(self, test_env):
        """Test an explicit vLLM entry suppresses the implicit one."""
        from llmgate.resolver import resolve_providers

        env = dict(test_env, VLLM_API_KEY="v")
        explicit = {"vllm": _entry(base_url="http://gpu-box:8000/v1", api_key="VLLM_API_KEY", models=["mine"])}
        providers = await resolve_providers(explicit, env)

        assert providers["vllm"].base_url == "http://gpu-box:8000/v1"
        assert [m.id for m in providers["vllm"].models] == ["mine"]


# ============================================================================
# Discovery during resolution
# ============================================================================


class TestResolveDiscovery:
    """Tests for discovery within resolution."""

    @pytest.mark.asyncio
    async def test_discovery_skipped_in_test_mode(self, test_env):
        """Test that no discovery runs in test mode."""
        from llmgate.resolver import resolve_providers

        with patch("llmgate.resolver.discover_venice_models", new=AsyncMock()) as mock_discover:
            await resolve_providers({}, dict(test_env, VENICE_API_KEY="v"))

        mock_discover.assert_not_called()

    @pytest.mark.asyncio
    async def test_failure_falls_back_to_static_catalog(self):
        """Test a failing discovery keeps the built-in models and other providers."""
        from llmgate.catalog.builtin import build_venice_provider
        from llmgate.resolver import resolve_providers

        env = {"VENICE_API_KEY": "v-secret", "TOGETHER_API_KEY": "t"}
        failing = AsyncMock(side_effect=ConnectionError("unreachable"))
        with patch("llmgate.resolver.discover_venice_models", new=failing):
            providers = await resolve_providers({}, env, discover=True)

        failing.assert_called_once()
        assert failing.call_args[0][0] == "v-secret"
        assert providers["venice"].models == build_venice_provider().models
        assert "together" in providers

    @pytest.mark.asyncio
    async def test_live_catalog_replaces_static(self):
        """Test discovered models replace the built-in list."""
        from llmgate.catalog.types import ModelDefinition
        from llmgate.resolver import resolve_providers

        live = [ModelDefinition(id="llama3.3", name="llama3.3")]
        with patch("llmgate.resolver.discover_ollama_models", new=AsyncMock(return_value=live)):
            providers = await resolve_providers({}, {"OLLAMA_API_KEY": "ollama-local"}, discover=True)

        assert [m.id for m in providers["ollama"].models] == ["llama3.3"]
