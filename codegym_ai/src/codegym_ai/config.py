"""
Runtime Configuration

Reads settings from the environment (and a local .env file via python-dotenv).
A missing OPENAI_API_KEY is a fatal startup error, not a per-request failure.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from codegym_ai.errors import ConfigurationError

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_STORAGE_PATH = os.path.join(".codegym", "storage.json")
DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:3001",
    "http://127.0.0.1:3000",
]


@dataclass
class Settings:
    """Settings for the model client, storage and HTTP layer."""
    openai_api_key: str
    openai_model: str = DEFAULT_MODEL
    openai_base_url: Optional[str] = None
    max_tokens: int = 1200
    temperature: float = 0.4
    timeout_seconds: float = 60.0
    storage_path: str = DEFAULT_STORAGE_PATH
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            load_env_file: Also load variables from a .env file first

        Returns:
            Settings instance

        Raises:
            ConfigurationError: If the API key is missing or a number is malformed
        """
        if load_env_file:
            load_dotenv()

        api_key = os.getenv("OPENAI_API_KEY", "").strip()
        if not api_key:
            raise ConfigurationError("OPENAI_API_KEY must be set in environment")

        origins = os.getenv("CODEGYM_CORS_ORIGINS")
        cors_origins = (
            [o.strip() for o in origins.split(",") if o.strip()]
            if origins
            else list(DEFAULT_CORS_ORIGINS)
        )

        return cls(
            openai_api_key=api_key,
            openai_model=os.getenv("OPENAI_MODEL", DEFAULT_MODEL),
            openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
            max_tokens=_int_env("CODEGYM_MAX_TOKENS", 1200),
            temperature=_float_env("CODEGYM_TEMPERATURE", 0.4),
            timeout_seconds=_float_env("CODEGYM_TIMEOUT_SECONDS", 60.0),
            storage_path=os.getenv("CODEGYM_STORAGE_PATH", DEFAULT_STORAGE_PATH),
            cors_origins=cors_origins,
            log_level=os.getenv("CODEGYM_LOG_LEVEL", "INFO").upper(),
        )


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")
