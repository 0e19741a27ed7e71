"""Unit tests for environment secret conventions."""


class TestNormalizeApiKey:
    """Tests for normalize_api_key_config."""

    def test_wrapped_name_unwrapped(self):
        """Test ${NAME} becomes NAME."""
        from llmgate.auth.env import normalize_api_key_config

        assert normalize_api_key_config("${OPENAI_API_KEY}") == "OPENAI_API_KEY"
        assert normalize_api_key_config("  ${OPENAI_API_KEY} ") == "OPENAI_API_KEY"

    def test_idempotent(self):
        """Test normalizing twice equals normalizing once."""
        from llmgate.auth.env import normalize_api_key_config

        for value in ("${A_KEY}", "A_KEY", "sk-literal", "${lower}", ""):
            once = normalize_api_key_config(value)
            assert normalize_api_key_config(once) == once

    def test_other_values_trimmed_only(self):
        """Test that literals and lowercase wrappers are left alone."""
        from llmgate.auth.env import normalize_api_key_config

        assert normalize_api_key_config(" sk-abc ") == "sk-abc"
        assert normalize_api_key_config("${lower}") == "${lower}"


class TestEnvCandidates:
    """Tests for variable name lookup."""

    def test_default_convention(self):
        """Test <PROVIDER>_API_KEY with non-alphanumerics mapped to _."""
        from llmgate.auth.env import env_candidates

        assert env_candidates("siliconflow-cn") == ("SILICONFLOW_CN_API_KEY",)

    def test_known_aliases_in_order(self):
        """Test that the first set alias wins."""
        from llmgate.auth.env import resolve_env_api_key_var_name

        env = {"HF_TOKEN": "hf-1", "HUGGINGFACE_HUB_TOKEN": "hf-2"}
        assert resolve_env_api_key_var_name("huggingface", env) == "HUGGINGFACE_HUB_TOKEN"
        assert resolve_env_api_key_var_name("huggingface", {"HF_TOKEN": "hf-1"}) == "HF_TOKEN"

    def test_blank_values_ignored(self):
        """Test that whitespace-only variables count as unset."""
        from llmgate.auth.env import resolve_env_api_key_var_name

        assert resolve_env_api_key_var_name("together", {"TOGETHER_API_KEY": "  "}) is None


class TestAwsSdk:
    """Tests for AWS variable selection."""

    def test_priority_order(self):
        """Test bearer token, then access key pair, then profile."""
        from llmgate.auth.env import resolve_aws_sdk_env_var_name

        full = {
            "AWS_BEARER_TOKEN_BEDROCK": "t",
            "AWS_ACCESS_KEY_ID": "id",
            "AWS_SECRET_ACCESS_KEY": "secret",
            "AWS_PROFILE": "dev",
        }
        assert resolve_aws_sdk_env_var_name(full) == "AWS_BEARER_TOKEN_BEDROCK"
        del full["AWS_BEARER_TOKEN_BEDROCK"]
        assert resolve_aws_sdk_env_var_name(full) == "AWS_ACCESS_KEY_ID"
        del full["AWS_SECRET_ACCESS_KEY"]
        assert resolve_aws_sdk_env_var_name(full) == "AWS_PROFILE"
        assert resolve_aws_sdk_env_var_name({}) is None

    def test_api_key_name_falls_back_to_profile(self):
        """Test that the recorded name is AWS_PROFILE when nothing is set."""
        from llmgate.auth.env import resolve_aws_sdk_api_key_var_name

        assert resolve_aws_sdk_api_key_var_name({}) == "AWS_PROFILE"


class TestDereference:
    """Tests for dereference_secret."""

    def test_variable_name_resolved(self):
        """Test that a set variable name yields its value."""
        from llmgate.auth.env import dereference_secret

        assert dereference_secret("VENICE_API_KEY", {"VENICE_API_KEY": " v-1 "}) == "v-1"

    def test_literal_passthrough(self):
        """Test that literals and unset names are returned as-is."""
        from llmgate.auth.env import dereference_secret

        assert dereference_secret("sk-abc", {}) == "sk-abc"
        assert dereference_secret("UNSET_NAME", {}) == "UNSET_NAME"
        assert dereference_secret(None, {}) == ""
