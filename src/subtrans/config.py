"""
Settings loaded from the environment (and an optional .env file).
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

from .batching import DEFAULT_MAX_TOKENS
from .errors import QUOTA_COOLDOWN_SECONDS, ConfigurationError
from .retry import RetryPolicy
from .translation import DEFAULT_BASE_URL, DEFAULT_MODEL, language_name

logger = logging.getLogger("subtrans")


@dataclass
class Settings:
    """Runtime configuration for a translation run."""

    api_key: str = ""
    base_url: str | None = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    language: str = "pt-BR"
    max_tokens: int = DEFAULT_MAX_TOKENS
    retry: RetryPolicy = field(default_factory=RetryPolicy)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Raise ConfigurationError for unusable values."""
        language_name(self.language)
        if self.max_tokens <= 0:
            raise ConfigurationError(f"max_tokens must be positive, got {self.max_tokens}")
        if self.retry.max_attempts < 1:
            raise ConfigurationError(f"max_attempts must be at least 1, got {self.retry.max_attempts}")

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "Settings":
        """Build settings from SUBTRANS_* variables, loading .env first."""
        if env_file is not None:
            load_dotenv(env_file)
        else:
            load_dotenv(find_dotenv(usecwd=True))

        retry = RetryPolicy(
            max_attempts=_int_env("SUBTRANS_MAX_ATTEMPTS", RetryPolicy.max_attempts),
            quota_cooldown=_float_env("SUBTRANS_QUOTA_COOLDOWN", QUOTA_COOLDOWN_SECONDS),
        )
        settings = cls(
            api_key=os.getenv("SUBTRANS_API_KEY") or os.getenv("GEMINI_API_KEY", ""),
            base_url=os.getenv("SUBTRANS_BASE_URL") or DEFAULT_BASE_URL,
            model=os.getenv("SUBTRANS_MODEL") or DEFAULT_MODEL,
            language=os.getenv("SUBTRANS_LANGUAGE") or "pt-BR",
            max_tokens=_int_env("SUBTRANS_MAX_TOKENS", DEFAULT_MAX_TOKENS),
            retry=retry,
        )
        logger.debug(
            f"Settings: model={settings.model}, language={settings.language}, "
            f"max_tokens={settings.max_tokens}, max_attempts={retry.max_attempts}"
        )
        return settings


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None
