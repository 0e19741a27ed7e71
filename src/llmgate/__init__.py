"""llmgate - Provider resolution and normalized streaming for LLM agents.

llmgate turns configuration, environment and stored credentials into a map of
usable providers, and streams completions from official APIs and web chat
sessions as one normalized event sequence.

Quick Start:
    ```python
    import asyncio, os
    from llmgate import Gateway, TextDelta, load_gateway_config

    async def main():
        gateway = await Gateway.create(load_gateway_config(), os.environ)
        async for event in gateway.stream_completion("ollama", "llama3.3", prompt="Hi"):
            if isinstance(event, TextDelta):
                print(event.delta, end="")

    asyncio.run(main())
    ```

Module structure:
    - catalog/: ProviderConfig, ModelDefinition, built-in provider catalogs
    - auth/: credentials, environment conventions, web session secrets
    - discovery: live model catalogs with static fallback
    - resolver: the effective provider map
    - streaming/: parsers, protocols, transports, StreamAdapter
    - gateway: resolution + streaming entry point
    - telemetry/: OpenTelemetry tracing
    - cli: command line interface
"""

__version__ = "0.1.0"

# Auth
from .auth import ApiKeyCredential, MemoryCredentialStore, OAuthPlaceholderCredential, TokenCredential

# Catalog
from .catalog import ModelCost, ModelDefinition, ProviderConfig

# Config
from .config import GatewayConfig, ProviderEntry, load_gateway_config

# Errors
from .errors import ErrorCode, StreamError

# Gateway
from .gateway import Gateway

# Resolution
from .resolver import resolve_providers

# Streaming
from .streaming import (
    AbortSignal,
    AssistantMessage,
    ContinuityStore,
    ConversationRef,
    Done,
    ErrorEvent,
    StreamAdapter,
    TextDelta,
    TextStart,
)

# Telemetry
from .telemetry import init_telemetry, shutdown_telemetry

__all__ = [
    "__version__",
    # Auth
    "ApiKeyCredential",
    "TokenCredential",
    "OAuthPlaceholderCredential",
    "MemoryCredentialStore",
    # Catalog
    "ModelCost",
    "ModelDefinition",
    "ProviderConfig",
    # Config
    "GatewayConfig",
    "ProviderEntry",
    "load_gateway_config",
    # Errors
    "ErrorCode",
    "StreamError",
    # Gateway
    "Gateway",
    "resolve_providers",
    # Streaming
    "AbortSignal",
    "AssistantMessage",
    "ContinuityStore",
    "ConversationRef",
    "StreamAdapter",
    "TextStart",
    "TextDelta",
    "Done",
    "ErrorEvent",
    # Telemetry
    "init_telemetry",
    "shutdown_telemetry",
]
