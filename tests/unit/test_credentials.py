"""Unit tests for stored credentials and web session secrets."""

import pytest


class TestCredentialUnion:
    """Tests for the Credential discriminated union."""

    def test_parse_each_kind(self):
        """Test that kind selects the credential model."""
        from llmgate.auth.credentials import (
            ApiKeyCredential,
            OAuthPlaceholderCredential,
            TokenCredential,
            parse_credential,
        )

        assert isinstance(parse_credential({"kind": "api_key", "secret": "k"}), ApiKeyCredential)
        assert isinstance(parse_credential({"kind": "token", "secret": "t"}), TokenCredential)
        assert isinstance(parse_credential({"kind": "oauth_placeholder"}), OAuthPlaceholderCredential)

    def test_unknown_kind_rejected(self):
        """Test that an unknown kind fails validation."""
        from pydantic import ValidationError

        from llmgate.auth.credentials import parse_credential

        with pytest.raises(ValidationError):
            parse_credential({"kind": "password", "secret": "x"})

    def test_credential_secret(self):
        """Test secrets for api_key/token and none for OAuth placeholders."""
        from llmgate.auth.credentials import (
            ApiKeyCredential,
            OAuthPlaceholderCredential,
            TokenCredential,
            credential_secret,
        )

        assert credential_secret(ApiKeyCredential(secret=" k ")) == "k"
        assert credential_secret(TokenCredential(secret="")) is None
        assert credential_secret(OAuthPlaceholderCredential(label="portal")) is None


class TestMemoryCredentialStore:
    """Tests for MemoryCredentialStore."""

    def test_lookup_in_insertion_order(self):
        """Test lookup returns the provider's profiles in store order."""
        from llmgate.auth import MemoryCredentialStore

        store = MemoryCredentialStore(
            {
                "venice:work": {"kind": "api_key", "secret": "w"},
                "together:main": {"kind": "api_key", "secret": "t"},
                "venice:home": {"kind": "api_key", "secret": "h"},
            }
        )

        assert store.lookup("venice") == ["venice:work", "venice:home"]
        assert store.lookup("nvidia") == []
        assert len(store) == 3

    def test_malformed_entry_reads_as_none(self, caplog):
        """Test that a malformed entry is skipped with a warning."""
        from llmgate.auth import MemoryCredentialStore

        store = MemoryCredentialStore({"venice:bad": {"kind": "api_key"}})

        with caplog.at_level("WARNING"):
            assert store.read("venice:bad") is None
        assert "Skipping malformed credential venice:bad" in caplog.text

    def test_put_and_remove(self):
        """Test adding a model instance and removing it."""
        from llmgate.auth import MemoryCredentialStore, TokenCredential

        store = MemoryCredentialStore()
        store.put("claude-web:default", TokenCredential(secret="sk-ant-sid"))

        assert store.read("claude-web:default").secret == "sk-ant-sid"
        store.remove("claude-web:default")
        assert store.read("claude-web:default") is None


class TestWebAuth:
    """Tests for parse_web_auth."""

    def test_bare_token(self):
        """Test a plain string is the token."""
        from llmgate.auth.web import parse_web_auth

        auth = parse_web_auth(" sk-ant-sid01 ")
        assert auth.token == "sk-ant-sid01"
        assert auth.cookie == ""

    def test_json_object(self):
        """Test token keys, cookie, user agent and extras."""
        from llmgate.auth.web import parse_web_auth

        auth = parse_web_auth(
            '{"sessionKey": "sk", "cookie": "a=1; anthropic-device-id=dev-1", '
            '"userAgent": "UA/1", "organizationId": "org-1"}'
        )

        assert auth.token == "sk"
        assert auth.user_agent == "UA/1"
        assert auth.cookie_value("anthropic-device-id") == "dev-1"
        assert auth.get("organizationId") == "org-1"

    def test_empty(self):
        """Test that no secret gives an empty WebAuth."""
        from llmgate.auth.web import parse_web_auth

        auth = parse_web_auth(None)
        assert auth.token == ""
        assert auth.cookies() == {}
