"""Configuration management for llmgate.

Parses llmgate.toml files with support for:
- Explicit provider entries
- Discovery settings
- Telemetry settings

Example llmgate.toml structure:

    [providers.openai]
    base_url = "https://api.openai.com/v1"
    api = "openai-completions"
    api_key = "OPENAI_API_KEY"
    models = [
        { id = "gpt-4o-mini", name = "GPT-4o mini", context_window = 128000 },
    ]

    [providers.amazon-bedrock]
    base_url = "https://bedrock-runtime.us-east-1.amazonaws.com"
    api = "bedrock-converse-stream"
    models = [{ id = "anthropic.claude-3-5-sonnet" }]

    [discovery]
    enabled = true
    timeout_sec = 5

    [telemetry]
    enabled = false
    service_name = "llmgate"

Note: ``api_key`` is kept verbatim. It is either a literal secret or the name
of an environment variable (``${NAME}`` is reduced to ``NAME`` during
resolution), so it is never expanded at load time.
"""

from __future__ import annotations

import logging
import os
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .catalog.types import ModelDefinition

if sys.version_info >= (3, 11):
    import tomllib as toml  # type: ignore
else:
    import tomli as toml  # type: ignore

CONFIG_FILENAME = "llmgate.toml"


def _load_env_file(env_path: Path) -> None:
    """Load environment variables from .env file."""
    if not env_path.exists():
        return

    try:
        with open(env_path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                # Skip empty lines and comments
                if not line or line.startswith("#"):
                    continue

                # Parse KEY=VALUE or KEY='VALUE' or KEY="VALUE"
                if "=" in line:
                    key, _, value = line.partition("=")
                    key = key.strip()
                    if key.startswith("export "):
                        key = key[len("export "):].strip()
                    value = value.strip()

                    # Remove quotes if present
                    if len(value) >= 2 and value[0] in ('"', "'") and value[-1] == value[0]:
                        value = value[1:-1]

                    # Only set if not already in environment
                    if key and key not in os.environ:
                        os.environ[key] = value
    except OSError as e:
        logging.warning("[llmgate.config] Failed to load .env file %s: %s", env_path, e)


def _expand_env_vars(value: Any) -> Any:
    """Recursively expand ${VAR} and $VAR environment variable references."""
    if isinstance(value, str):

        def replace_var(match):
            var_name = match.group(1) or match.group(2)
            return os.environ.get(var_name, match.group(0))

        pattern = r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}|\$([A-Za-z_][A-Za-z0-9_]*)"
        return re.sub(pattern, replace_var, value)
    elif isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_expand_env_vars(item) for item in value]
    else:
        return value


@dataclass
class ProviderEntry:
    """Explicit provider configuration from llmgate.toml.

    Every field is optional; unset fields are filled from the built-in
    catalog when the provider id is known.
    """

    base_url: Optional[str] = None
    api: Optional[str] = None
    api_key: Optional[str] = None
    auth: Optional[str] = None
    models: list[ModelDefinition] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProviderEntry:
        models = []
        for item in data.get("models") or []:
            if not isinstance(item, dict):
                continue
            try:
                models.append(ModelDefinition.from_dict(item))
            except (TypeError, ValueError) as e:
                logging.warning("[llmgate.config] Skipping invalid model entry: %s", e)
        return cls(
            base_url=data.get("base_url") or data.get("baseUrl"),
            api=data.get("api"),
            api_key=data.get("api_key", data.get("apiKey")),
            auth=data.get("auth"),
            models=models,
        )


@dataclass
class DiscoverySettings:
    """Live model discovery settings."""

    enabled: Optional[bool] = None  # None: decided from the environment
    timeout_sec: float = 5.0


@dataclass
class TelemetrySettings:
    """OpenTelemetry settings."""

    enabled: bool = False
    service_name: str = "llmgate"
    otlp_endpoint: Optional[str] = None


@dataclass
class GatewayConfig:
    """Complete llmgate configuration."""

    providers: dict[str, ProviderEntry] = field(default_factory=dict)
    discovery: DiscoverySettings = field(default_factory=DiscoverySettings)
    telemetry: TelemetrySettings = field(default_factory=TelemetrySettings)

    @classmethod
    def load(cls, path: Path = Path(CONFIG_FILENAME)) -> GatewayConfig:
        """Load configuration from a llmgate.toml file.

        Loads the nearest .env file (same directory, current working
        directory, then parent directories) without overriding variables
        already set. Expands ${VAR} references everywhere except provider
        ``api_key`` fields.

        Raises:
            RuntimeError: If the file cannot be parsed
        """
        if not path.exists():
            return cls()

        # Load .env files - search up the directory tree
        env_search_paths = [
            path.parent / ".env",
            Path.cwd() / ".env",
        ]
        current = path.resolve().parent
        while current != current.parent:
            env_search_paths.append(current / ".env")
            current = current.parent

        for env_path in env_search_paths:
            if env_path.exists():
                _load_env_file(env_path)
                break

        try:
            raw_data = toml.loads(path.read_text(encoding="utf-8"))
        except Exception as e:
            raise RuntimeError(f"Failed to parse {path}: {e}") from e

        # api_key stays verbatim; everything else is env-expanded
        raw_keys: dict[str, Any] = {}
        for provider_id, entry in (raw_data.get("providers") or {}).items():
            if isinstance(entry, dict):
                for key in ("api_key", "apiKey"):
                    if key in entry:
                        raw_keys[provider_id] = entry.pop(key)
        data = _expand_env_vars(raw_data)

        config = cls()

        for provider_id, provider_data in (data.get("providers") or {}).items():
            if not isinstance(provider_data, dict):
                # Skip invalid entries - TOML should provide tables
                continue
            entry = ProviderEntry.from_dict(provider_data)
            if provider_id in raw_keys and raw_keys[provider_id] is not None:
                entry.api_key = str(raw_keys[provider_id])
            config.providers[provider_id.strip()] = entry

        if "discovery" in data:
            disc = data["discovery"]
            config.discovery = DiscoverySettings(
                enabled=disc.get("enabled"),
                timeout_sec=float(disc.get("timeout_sec", 5.0)),
            )

        if "telemetry" in data:
            tel = data["telemetry"]
            config.telemetry = TelemetrySettings(
                enabled=bool(tel.get("enabled", False)),
                service_name=tel.get("service_name", "llmgate"),
                otlp_endpoint=tel.get("otlp_endpoint"),
            )

        return config


def load_gateway_config(start_dir: Path = Path(".")) -> GatewayConfig:
    """Load configuration, searching up from start_dir."""
    current = start_dir.resolve()
    while current != current.parent:
        config_path = current / CONFIG_FILENAME
        if config_path.exists():
            return GatewayConfig.load(config_path)
        current = current.parent

    # No config found, return defaults
    return GatewayConfig()


__all__ = [
    "CONFIG_FILENAME",
    "ProviderEntry",
    "DiscoverySettings",
    "TelemetrySettings",
    "GatewayConfig",
    "load_gateway_config",
]
