"""Unit tests for the settings model.

Tests verify environment variable binding, defaults, and the grouped
per-vendor configuration properties.
"""

import pytest

from statebridge_ai.core.config import (
    AISDKConfig,
    AnthropicConfig,
    MastraConfig,
    OpenAIConfig,
    Settings,
)


class TestSettingsDefaults:
    def test_general_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.log_level == "INFO"
        assert settings.log_format == "detailed"
        assert settings.enable_file_logging is False
        assert settings.http_timeout == 60.0

    def test_provider_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.openai.model == "gpt-4o-mini"
        assert settings.anthropic.model == "claude-3-5-sonnet-latest"
        assert settings.mastra.default_route == "/chat/execute-function"
        assert settings.ai_sdk.default_model == "openai/gpt-4o-mini"
        assert settings.openai.api_key is None


class TestSettingsBinding:
    def test_log_level_binding(self, monkeypatch):
        monkeypatch.setenv("STATEBRIDGE_AI_LOG_LEVEL", "DEBUG")

        assert Settings(_env_file=None).log_level == "DEBUG"

    def test_http_timeout_binding(self, monkeypatch):
        monkeypatch.setenv("STATEBRIDGE_AI_HTTP_TIMEOUT", "12.5")

        assert Settings(_env_file=None).http_timeout == 12.5

    def test_env_names_are_case_sensitive(self, monkeypatch):
        monkeypatch.setenv("statebridge_ai_log_level", "DEBUG")

        assert Settings(_env_file=None).log_level == "INFO"

    def test_api_keys_are_secret(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

        settings = Settings(_env_file=None)

        assert settings.openai_api_key.get_secret_value() == "sk-test"
        assert "sk-test" not in repr(settings)


class TestGroupedConfigs:
    def test_openai_group(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        monkeypatch.setenv("OPENAI_MODEL", "gpt-4o")
        monkeypatch.setenv("OPENAI_BASE_URL", "http://mock/v1")

        config = Settings(_env_file=None).openai

        assert isinstance(config, OpenAIConfig)
        assert config.api_key.get_secret_value() == "sk-test"
        assert config.model == "gpt-4o"
        assert config.base_url == "http://mock/v1"

    def test_anthropic_group(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "ak-test")

        config = Settings(_env_file=None).anthropic

        assert isinstance(config, AnthropicConfig)
        assert config.api_key.get_secret_value() == "ak-test"
        assert config.api_version == "2023-06-01"

    def test_mastra_group(self, monkeypatch):
        monkeypatch.setenv("MASTRA_BASE_URL", "http://mock:4111")
        monkeypatch.setenv("MASTRA_DEFAULT_ROUTE", "/agents/run")

        config = Settings(_env_file=None).mastra

        assert isinstance(config, MastraConfig)
        assert config.base_url == "http://mock:4111"
        assert config.default_route == "/agents/run"
        assert config.api_key is None

    def test_ai_sdk_group_collects_vendor_keys(self, monkeypatch):
        monkeypatch.setenv("GROQ_API_KEY", "gq-test")
        monkeypatch.setenv("AI_SDK_DEFAULT_MODEL", "groq/llama-3.1-8b-instant")

        config = Settings(_env_file=None).ai_sdk

        assert isinstance(config, AISDKConfig)
        assert config.default_model == "groq/llama-3.1-8b-instant"
        assert config.groq_api_key.get_secret_value() == "gq-test"
        assert config.openai_api_key is None

    @pytest.mark.parametrize("prop", ["openai", "anthropic", "mastra", "ai_sdk"])
    def test_groups_are_rebuilt_per_access(self, prop):
        settings = Settings(_env_file=None)

        assert getattr(settings, prop) is not getattr(settings, prop)
