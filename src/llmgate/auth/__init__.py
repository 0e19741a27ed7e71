"""Auth module - Stored credentials and environment secret conventions.

- credentials: Credential union, CredentialStore protocol, MemoryCredentialStore
- env: variable naming, ${VAR} normalization, AWS variables
"""

from .credentials import (
    ApiKeyCredential,
    Credential,
    CredentialStore,
    MemoryCredentialStore,
    OAuthPlaceholderCredential,
    TokenCredential,
    credential_secret,
    parse_credential,
)
from .env import (
    dereference_secret,
    normalize_api_key_config,
    resolve_aws_sdk_api_key_var_name,
    resolve_env_api_key_var_name,
)

__all__ = [
    "ApiKeyCredential",
    "Credential",
    "CredentialStore",
    "MemoryCredentialStore",
    "OAuthPlaceholderCredential",
    "TokenCredential",
    "credential_secret",
    "parse_credential",
    "dereference_secret",
    "normalize_api_key_config",
    "resolve_aws_sdk_api_key_var_name",
    "resolve_env_api_key_var_name",
]
