"""Tests for configuration management."""

from llmgate.config import (
    DiscoverySettings,
    GatewayConfig,
    ProviderEntry,
    TelemetrySettings,
    load_gateway_config,
)


def test_gateway_config_defaults():
    """Test GatewayConfig defaults."""
    config = GatewayConfig()
    assert config.providers == {}
    assert config.discovery.enabled is None
    assert config.discovery.timeout_sec == 5.0
    assert config.telemetry.enabled is False
    assert config.telemetry.service_name == "llmgate"


def test_provider_entry_from_dict():
    """Test ProviderEntry accepts snake_case and camelCase keys."""
    entry = ProviderEntry.from_dict(
        {
            "baseUrl": "https://api.example.com/v1",
            "api": "openai-completions",
            "apiKey": "EXAMPLE_KEY",
            "models": [
                {"id": "m1", "contextWindow": 32000},
                {"id": "m2", "name": "Model Two", "max_tokens": 1024},
                {"name": "missing id"},
            ],
        }
    )
    assert entry.base_url == "https://api.example.com/v1"
    assert entry.api_key == "EXAMPLE_KEY"
    assert [m.id for m in entry.models] == ["m1", "m2"]
    assert entry.models[0].context_window == 32000
    assert entry.models[1].max_tokens == 1024


def test_load_missing_file(tmp_path):
    """Test loading a nonexistent file returns defaults."""
    config = GatewayConfig.load(tmp_path / "llmgate.toml")
    assert config.providers == {}


def test_load_full_config(tmp_path, monkeypatch):
    """Test loading providers, discovery and telemetry sections."""
    monkeypatch.setenv("LLMGATE_TEST_HOST", "inference.internal")
    config_file = tmp_path / "llmgate.toml"
    config_file.write_text(
        """
[providers.local]
base_url = "http://${LLMGATE_TEST_HOST}:8000/v1"
api = "openai-completions"
api_key = "${LOCAL_API_KEY}"
models = [{ id = "qwen2.5", name = "Qwen 2.5" }]

[providers.amazon-bedrock]
api = "bedrock-converse-stream"
models = [{ id = "anthropic.claude-3-5-sonnet" }]

[discovery]
enabled = false
timeout_sec = 2

[telemetry]
enabled = true
service_name = "gateway-test"
otlp_endpoint = "http://collector:4317"
"""
    )

    config = GatewayConfig.load(config_file)

    local = config.providers["local"]
    assert local.base_url == "http://inference.internal:8000/v1"
    # api_key is kept verbatim for the resolver
    assert local.api_key == "${LOCAL_API_KEY}"
    assert local.models[0].name == "Qwen 2.5"
    assert config.providers["amazon-bedrock"].api_key is None
    assert config.discovery == DiscoverySettings(enabled=False, timeout_sec=2.0)
    assert config.telemetry == TelemetrySettings(
        enabled=True, service_name="gateway-test", otlp_endpoint="http://collector:4317"
    )


def test_api_key_not_expanded_even_when_set(tmp_path, monkeypatch):
    """Test that a set variable is not substituted into api_key."""
    monkeypatch.setenv("LOCAL_API_KEY", "sk-live")
    config_file = tmp_path / "llmgate.toml"
    config_file.write_text(
        """
[providers.local]
base_url = "http://localhost:8000/v1"
api_key = "${LOCAL_API_KEY}"
"""
    )

    config = GatewayConfig.load(config_file)
    assert config.providers["local"].api_key == "${LOCAL_API_KEY}"


def test_env_file_loaded(tmp_path, monkeypatch):
    """Test that .env next to the config is loaded without overriding."""
    monkeypatch.setenv("LLMGATE_TEST_BASE", "placeholder")
    monkeypatch.delenv("LLMGATE_TEST_BASE")
    monkeypatch.setenv("LLMGATE_TEST_KEEP", "from-process")
    (tmp_path / ".env").write_text(
        "# comment\nLLMGATE_TEST_BASE='http://from-dotenv/v1'\nexport LLMGATE_TEST_KEEP=from-file\n"
    )
    config_file = tmp_path / "llmgate.toml"
    config_file.write_text(
        """
[providers.local]
base_url = "${LLMGATE_TEST_BASE}"
"""
    )

    config = GatewayConfig.load(config_file)

    import os

    assert config.providers["local"].base_url == "http://from-dotenv/v1"
    assert os.environ["LLMGATE_TEST_KEEP"] == "from-process"


def test_invalid_toml_raises(tmp_path):
    """Test that a parse failure is reported as RuntimeError."""
    import pytest

    config_file = tmp_path / "llmgate.toml"
    config_file.write_text("[providers.local\nbase_url = ")

    with pytest.raises(RuntimeError, match="Failed to parse"):
        GatewayConfig.load(config_file)


def test_load_gateway_config_searches_upwards(tmp_path):
    """Test that the nearest llmgate.toml in a parent directory is used."""
    (tmp_path / "llmgate.toml").write_text('[providers.up]\nbase_url = "http://up/v1"\n')
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)

    config = load_gateway_config(nested)
    assert "up" in config.providers
