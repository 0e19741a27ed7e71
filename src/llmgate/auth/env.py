"""Environment variable conventions for provider secrets.

The resolver records the *name* of the variable holding a secret so that
transports read the environment themselves. Discovery calls need the literal
value and use ``dereference_secret``.
"""

from __future__ import annotations

import re
from typing import Mapping, Optional

# `${FOO_KEY}` written where the bare variable name was expected
_WRAPPED_ENV_RE = re.compile(r"^\$\{([A-Z0-9_]+)\}$")
_ENV_NAME_RE = re.compile(r"^[A-Z][A-Z0-9_]*$")

AWS_BEARER_TOKEN = "AWS_BEARER_TOKEN_BEDROCK"
AWS_ACCESS_KEY_ID = "AWS_ACCESS_KEY_ID"
AWS_SECRET_ACCESS_KEY = "AWS_SECRET_ACCESS_KEY"
AWS_PROFILE = "AWS_PROFILE"

# Providers whose variables do not follow <PROVIDER>_API_KEY
PROVIDER_ENV_CANDIDATES: dict[str, tuple[str, ...]] = {
    "anthropic": ("ANTHROPIC_OAUTH_TOKEN", "ANTHROPIC_API_KEY"),
    "google": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    "huggingface": ("HUGGINGFACE_HUB_TOKEN", "HF_TOKEN"),
    "github-copilot": ("COPILOT_GITHUB_TOKEN", "GH_TOKEN", "GITHUB_TOKEN"),
    "qwen-portal": ("QWEN_OAUTH_TOKEN", "QWEN_PORTAL_API_KEY"),
    "zai": ("ZAI_API_KEY", "Z_AI_API_KEY"),
    "kimi-coding": ("KIMI_API_KEY", "KIMICODE_API_KEY"),
}


def normalize_api_key_config(value: str) -> str:
    """Reduce ``${NAME}`` to ``NAME``. Any other value is only trimmed.

    Idempotent: normalizing an already-normalized value returns it unchanged.
    """
    trimmed = value.strip()
    match = _WRAPPED_ENV_RE.match(trimmed)
    return match.group(1) if match else trimmed


def is_env_var_name(value: str) -> bool:
    return bool(_ENV_NAME_RE.match(value))


def env_candidates(provider: str) -> tuple[str, ...]:
    """Variable names checked for a provider, in priority order."""
    known = PROVIDER_ENV_CANDIDATES.get(provider)
    if known:
        return known
    return (re.sub(r"[^A-Z0-9]", "_", provider.upper()) + "_API_KEY",)


def resolve_env_api_key_var_name(provider: str, env: Mapping[str, str]) -> Optional[str]:
    """Return the name of the first candidate variable set to a non-blank value."""
    for name in env_candidates(provider):
        if (env.get(name) or "").strip():
            return name
    return None


def resolve_aws_sdk_env_var_name(env: Mapping[str, str]) -> Optional[str]:
    if (env.get(AWS_BEARER_TOKEN) or "").strip():
        return AWS_BEARER_TOKEN
    if (env.get(AWS_ACCESS_KEY_ID) or "").strip() and (env.get(AWS_SECRET_ACCESS_KEY) or "").strip():
        return AWS_ACCESS_KEY_ID
    if (env.get(AWS_PROFILE) or "").strip():
        return AWS_PROFILE
    return None


def resolve_aws_sdk_api_key_var_name(env: Mapping[str, str]) -> str:
    return resolve_aws_sdk_env_var_name(env) or AWS_PROFILE


def dereference_secret(secret: Optional[str], env: Mapping[str, str]) -> str:
    """Turn a recorded secret into the literal value a network call can send.

    Args:
        secret: Either a literal secret or an environment variable name
        env: Environment mapping used during resolution

    Returns:
        The variable's value when ``secret`` names a set variable, otherwise
        the literal secret (empty string when none)
    """
    if not secret:
        return ""
    value = secret.strip()
    if is_env_var_name(value) and value in env:
        return (env.get(value) or "").strip()
    return value


__all__ = [
    "PROVIDER_ENV_CANDIDATES",
    "normalize_api_key_config",
    "is_env_var_name",
    "env_candidates",
    "resolve_env_api_key_var_name",
    "resolve_aws_sdk_env_var_name",
    "resolve_aws_sdk_api_key_var_name",
    "dereference_secret",
]
