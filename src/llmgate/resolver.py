"""Provider resolution.

Produces the effective provider map from explicit configuration, the process
environment and the credential store.

Secret precedence per provider, highest first:
1. Explicit ``api_key`` (``${NAME}`` reduced to ``NAME``)
2. ``aws-sdk`` auth mode: name of the present AWS variable
3. Environment variable by naming convention (the variable *name* is recorded)
4. First api_key/token profile in the credential store

Resolution never raises for a single provider's failure: discovery falls back
to static catalogs and malformed stored credentials are skipped.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Awaitable, Callable, Mapping, Optional

from opentelemetry import trace

from .auth.credentials import ApiKeyCredential, CredentialStore, credential_secret
from .auth.env import (
    dereference_secret,
    normalize_api_key_config,
    resolve_aws_sdk_api_key_var_name,
    resolve_env_api_key_var_name,
)
from .auth.web import parse_web_auth
from .catalog import builtin
from .catalog.types import OPENAI_COMPLETIONS, ModelDefinition, ProviderConfig
from .config import ProviderEntry
from .discovery import (
    DEFAULT_DISCOVERY_TIMEOUT,
    discover_chatgpt_web_models,
    discover_huggingface_models,
    discover_ollama_models,
    discover_openai_compatible_models,
    discover_or_fallback,
    discover_siliconflow_models,
    discover_venice_models,
    discovery_enabled,
    resolve_ollama_api_base,
)

# Get tracer for resolution spans
tracer = trace.get_tracer(__name__)

AWS_SDK_AUTH = "aws-sdk"

GOOGLE_MODEL_ALIASES = {
    "gemini-3-pro": "gemini-3-pro-preview",
    "gemini-3-flash": "gemini-3-flash-preview",
}

DiscoveryFetch = Callable[[], Awaitable[list[ModelDefinition]]]


def resolve_api_key_from_profiles(provider: str, store: Optional[CredentialStore]) -> Optional[str]:
    """Secret of the first api_key/token profile for ``provider``, in store order."""
    if store is None:
        return None
    for profile_id in store.lookup(provider):
        credential = store.read(profile_id)
        if credential is None:
            continue
        secret = credential_secret(credential)
        if secret:
            return secret
    return None


def _has_profiles(provider: str, store: Optional[CredentialStore]) -> bool:
    return store is not None and len(store.lookup(provider)) > 0


def normalize_google_model_id(model_id: str) -> str:
    return GOOGLE_MODEL_ALIASES.get(model_id, model_id)


def _auth_mode(provider: str, entry: ProviderEntry) -> Optional[str]:
    if entry.auth:
        return entry.auth
    return AWS_SDK_AUTH if provider == "amazon-bedrock" else None


def normalize_providers(
    explicit: Mapping[str, ProviderEntry],
    env: Mapping[str, str],
    store: Optional[CredentialStore] = None,
) -> dict[str, ProviderEntry]:
    """Normalize explicit provider entries.

    - ``${NAME}`` api keys become ``NAME``
    - providers declaring models but no key get one from rules 2-4
    - google model aliases map to the vendor's canonical ids

    Idempotent: normalizing the result again returns an equal mapping. The
    input entries are not modified.
    """
    result: dict[str, ProviderEntry] = {}
    for key, entry in explicit.items():
        provider = key.strip()
        normalized = replace(entry, models=list(entry.models))

        if normalized.api_key:
            normalized.api_key = normalize_api_key_config(normalized.api_key)

        if normalized.models and not (normalized.api_key or "").strip():
            if _auth_mode(provider, normalized) == AWS_SDK_AUTH:
                normalized.api_key = resolve_aws_sdk_api_key_var_name(env)
            else:
                api_key = resolve_env_api_key_var_name(provider, env) or resolve_api_key_from_profiles(
                    provider, store
                )
                if api_key and api_key.strip():
                    normalized.api_key = api_key

        if provider == "google":
            normalized.models = [
                m.with_id(normalize_google_model_id(m.id)) for m in normalized.models
            ]

        result[provider] = normalized
    return result


class _ImplicitProviders:
    """Builds the implicit provider map in a fixed order.

    Providers with live discovery are registered with their static catalog
    and a pending fetch; ``finish`` runs all fetches concurrently.
    """

    def __init__(self, env: Mapping[str, str], store: Optional[CredentialStore]):
        self.env = env
        self.store = store
        self.providers: dict[str, ProviderConfig] = {}
        self.pending: dict[str, DiscoveryFetch] = {}

    def key_for(self, provider: str) -> Optional[str]:
        return resolve_env_api_key_var_name(provider, self.env) or resolve_api_key_from_profiles(
            provider, self.store
        )

    def literal(self, secret: Optional[str]) -> str:
        return dereference_secret(secret, self.env)

    def add(self, provider: str, config: ProviderConfig, secret: Optional[str]) -> None:
        self.providers[provider] = config.with_secret(secret)

    def add_discovered(
        self, provider: str, config: ProviderConfig, secret: Optional[str], fetch: DiscoveryFetch
    ) -> None:
        self.add(provider, config, secret)
        self.pending[provider] = fetch

    async def finish(self, enabled: bool, timeout: float) -> dict[str, ProviderConfig]:
        if enabled and self.pending:
            ids = list(self.pending)
            catalogs = await asyncio.gather(
                *(
                    discover_or_fallback(
                        pid, self.pending[pid], self.providers[pid].models, timeout=timeout
                    )
                    for pid in ids
                )
            )
            for pid, models in zip(ids, catalogs):
                self.providers[pid] = self.providers[pid].with_models(models)
        return self.providers


def _cloudflare_provider(
    builder: _ImplicitProviders,
) -> Optional[ProviderConfig]:
    store = builder.store
    if store is None:
        return None
    for profile_id in store.lookup("cloudflare-ai-gateway"):
        credential = store.read(profile_id)
        if not isinstance(credential, ApiKeyCredential):
            continue
        meta = credential.metadata
        account_id = meta.get("account_id") or meta.get("accountId") or ""
        gateway_id = meta.get("gateway_id") or meta.get("gatewayId") or ""
        config = builtin.build_cloudflare_ai_gateway_provider(account_id, gateway_id)
        if config is None:
            continue
        api_key = (
            resolve_env_api_key_var_name("cloudflare-ai-gateway", builder.env)
            or credential.secret.strip()
        )
        if not api_key:
            continue
        return config.with_secret(api_key)
    return None


async def resolve_implicit_providers(
    explicit: Mapping[str, ProviderEntry],
    env: Mapping[str, str],
    store: Optional[CredentialStore] = None,
    *,
    discover: Optional[bool] = None,
    discovery_timeout: float = DEFAULT_DISCOVERY_TIMEOUT,
) -> dict[str, ProviderConfig]:
    """Providers enabled by the environment or the credential store."""
    b = _ImplicitProviders(env, store)

    key = b.key_for("minimax")
    if key:
        b.add("minimax", builtin.build_minimax_provider(), key)

    if _has_profiles("minimax-portal", store):
        b.add(
            "minimax-portal",
            builtin.build_minimax_portal_provider(),
            builtin.MINIMAX_OAUTH_PLACEHOLDER,
        )

    key = b.key_for("moonshot")
    if key:
        b.add("moonshot", builtin.build_moonshot_provider(), key)

    key = b.key_for("venice")
    if key:
        venice_key = b.literal(key)
        b.add_discovered(
            "venice",
            builtin.build_venice_provider(),
            key,
            lambda: discover_venice_models(venice_key, timeout=discovery_timeout),
        )

    if _has_profiles("qwen-portal", store):
        b.add(
            "qwen-portal",
            builtin.build_qwen_portal_provider(),
            builtin.QWEN_PORTAL_OAUTH_PLACEHOLDER,
        )

    key = b.key_for("xiaomi")
    if key:
        b.add("xiaomi", builtin.build_xiaomi_provider(), key)

    cloudflare = _cloudflare_provider(b)
    if cloudflare is not None:
        b.providers["cloudflare-ai-gateway"] = cloudflare

    key = b.key_for("ollama")
    if key:
        configured = explicit.get("ollama")
        ollama_base = resolve_ollama_api_base(configured.base_url if configured else None)
        b.add_discovered(
            "ollama",
            builtin.build_ollama_provider(ollama_base),
            key,
            lambda: discover_ollama_models(ollama_base, timeout=discovery_timeout),
        )

    # Explicit vLLM configuration is kept as-is
    if "vllm" not in explicit:
        key = b.key_for("vllm")
        if key:
            vllm_key = b.literal(key)
            b.add_discovered(
                "vllm",
                builtin.build_vllm_provider(),
                key,
                lambda: discover_openai_compatible_models(
                    builtin.VLLM_BASE_URL, vllm_key or None, timeout=discovery_timeout
                ),
            )

    key = b.key_for("together")
    if key:
        b.add("together", builtin.build_together_provider(), key)

    key = b.key_for("huggingface")
    if key:
        hf_key = b.literal(key)
        b.add_discovered(
            "huggingface",
            builtin.build_huggingface_provider(),
            key,
            lambda: discover_huggingface_models(hf_key, timeout=discovery_timeout),
        )

    key = b.key_for("qianfan")
    if key:
        b.add("qianfan", builtin.build_qianfan_provider(), key)

    key = b.key_for("nvidia")
    if key:
        b.add("nvidia", builtin.build_nvidia_provider(), key)

    for provider, base_url in (
        ("siliconflow", builtin.SILICONFLOW_GLOBAL_BASE_URL),
        ("siliconflow-cn", builtin.SILICONFLOW_CN_BASE_URL),
    ):
        key = b.key_for(provider)
        if key:
            sf_key = b.literal(key)
            b.add_discovered(
                provider,
                builtin.build_siliconflow_provider(base_url),
                key,
                # Bind loop variables now
                lambda base_url=base_url, sf_key=sf_key: discover_siliconflow_models(
                    base_url, sf_key, timeout=discovery_timeout
                ),
            )

    # Web providers are always present so callers can surface "needs login"
    for provider, build in builtin.WEB_PROVIDER_BUILDERS.items():
        key = b.key_for(provider)
        if provider == "chatgpt-web" and key:
            token = parse_web_auth(b.literal(key)).token
            if token:
                b.add_discovered(
                    provider,
                    build(),
                    key,
                    lambda token=token: discover_chatgpt_web_models(token, timeout=discovery_timeout),
                )
                continue
        b.add(provider, build(), key)

    return await b.finish(discovery_enabled(env, discover), discovery_timeout)


def _from_entry(entry: ProviderEntry) -> ProviderConfig:
    return ProviderConfig(
        base_url=(entry.base_url or "").strip(),
        api=entry.api or OPENAI_COMPLETIONS,
        models=tuple(entry.models),
        api_key=entry.api_key,
        auth=entry.auth,
    )


def merge_provider(implicit: ProviderConfig, entry: ProviderEntry) -> ProviderConfig:
    """Overlay an explicit entry on an implicit provider, field by field."""
    return replace(
        implicit,
        base_url=(entry.base_url or "").strip() or implicit.base_url,
        api=entry.api or implicit.api,
        models=tuple(entry.models) if entry.models else implicit.models,
        api_key=entry.api_key if (entry.api_key or "").strip() else implicit.api_key,
        auth=entry.auth or implicit.auth,
    )


def _keep(provider: str, config: ProviderConfig) -> bool:
    if not config.models or not config.needs_login:
        return True
    return builtin.is_web_provider(provider)


async def resolve_providers(
    explicit: Optional[Mapping[str, ProviderEntry]],
    env: Mapping[str, str],
    store: Optional[CredentialStore] = None,
    *,
    discover: Optional[bool] = None,
    discovery_timeout: float = DEFAULT_DISCOVERY_TIMEOUT,
) -> dict[str, ProviderConfig]:
    """Resolve the effective provider map.

    Args:
        explicit: Provider entries from configuration (``GatewayConfig.providers``)
        env: Environment mapping (usually ``os.environ``)
        store: Credential store, or None
        discover: Force live discovery on (True) or off (False); None decides
            from the environment (off in test/CI mode)
        discovery_timeout: Per-provider discovery timeout in seconds

    Returns:
        Provider id -> ProviderConfig. Implicit providers come first in
        builder order, followed by explicit-only providers in config order.
        Providers with models but no secret are omitted, except always-on web
        providers, which are kept so callers can report "needs login".
    """
    with tracer.start_as_current_span(
        "llmgate.resolve",
        attributes={"llmgate.explicit.count": len(explicit or {})},
    ) as span:
        normalized = normalize_providers(explicit or {}, env, store)
        implicit = await resolve_implicit_providers(
            normalized,
            env,
            store,
            discover=discover,
            discovery_timeout=discovery_timeout,
        )

        merged: dict[str, ProviderConfig] = {}
        for provider, config in implicit.items():
            entry = normalized.get(provider)
            merged[provider] = merge_provider(config, entry) if entry else config
        for provider, entry in normalized.items():
            if provider not in merged:
                merged[provider] = _from_entry(entry)

        result = {}
        for provider, config in merged.items():
            if _keep(provider, config):
                result[provider] = config
            else:
                logging.warning(
                    "[llmgate.resolver] Provider %s declares models but no credentials were found; skipping",
                    provider,
                )

        span.set_attribute("llmgate.providers.count", len(result))
        return result


__all__ = [
    "normalize_providers",
    "normalize_google_model_id",
    "resolve_api_key_from_profiles",
    "resolve_implicit_providers",
    "merge_provider",
    "resolve_providers",
]
