"""
Unit Tests for Runtime Configuration
"""

import pytest
import sys
import os

project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
sys.path.insert(0, os.path.join(project_root, "codegym_ai", "src"))

from codegym_ai.config import DEFAULT_CORS_ORIGINS, Settings
from codegym_ai.errors import ConfigurationError

ENV_VARS = [
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "OPENAI_BASE_URL",
    "CODEGYM_MAX_TOKENS",
    "CODEGYM_TEMPERATURE",
    "CODEGYM_TIMEOUT_SECONDS",
    "CODEGYM_STORAGE_PATH",
    "CODEGYM_CORS_ORIGINS",
    "CODEGYM_LOG_LEVEL",
]


class TestSettings:

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in ENV_VARS:
            monkeypatch.delenv(name, raising=False)

    def test_missing_api_key_is_fatal(self):
        with pytest.raises(ConfigurationError):
            Settings.from_env(load_env_file=False)

    def test_blank_api_key_is_fatal(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "   ")

        with pytest.raises(ConfigurationError):
            Settings.from_env(load_env_file=False)

    def test_defaults(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

        settings = Settings.from_env(load_env_file=False)

        assert settings.openai_api_key == "sk-test"
        assert settings.openai_model == "gpt-4o-mini"
        assert settings.openai_base_url is None
        assert settings.max_tokens == 1200
        assert settings.cors_origins == DEFAULT_CORS_ORIGINS
        assert settings.log_level == "INFO"

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        monkeypatch.setenv("OPENAI_MODEL", "gpt-4o")
        monkeypatch.setenv("CODEGYM_MAX_TOKENS", "800")
        monkeypatch.setenv("CODEGYM_TEMPERATURE", "0.1")
        monkeypatch.setenv("CODEGYM_CORS_ORIGINS", "https://a.example, https://b.example")
        monkeypatch.setenv("CODEGYM_LOG_LEVEL", "debug")

        settings = Settings.from_env(load_env_file=False)

        assert settings.openai_model == "gpt-4o"
        assert settings.max_tokens == 800
        assert settings.temperature == 0.1
        assert settings.cors_origins == ["https://a.example", "https://b.example"]
        assert settings.log_level == "DEBUG"

    def test_malformed_number(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        monkeypatch.setenv("CODEGYM_MAX_TOKENS", "lots")

        with pytest.raises(ConfigurationError) as exc:
            Settings.from_env(load_env_file=False)

        assert "CODEGYM_MAX_TOKENS" in str(exc.value)
