"""Application settings and configuration management."""
from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    GOOGLE_GEMINI_API_KEY: Optional[str] = None
    OPENAI_API_KEY: Optional[str] = None
    ANTHROPIC_API_KEY: Optional[str] = None

    DEFAULT_PROVIDER: str = "gemini"
    PROVIDER_CONFIG_PATH: str = Field(default="config/providers.yaml")

    SCORE_BATCH_SIZE: int = Field(default=3, ge=1)
    NEUTRAL_SCORE: int = Field(default=50, ge=0, le=100)

    RATE_LIMIT_PER_INTERVAL: int = Field(default=10, ge=1)
    RATE_LIMIT_INTERVAL_S: float = Field(default=60.0, gt=0.0)
    RATE_LIMIT_CONCURRENCY: int = Field(default=5, ge=1)

    CACHE_TTL_S: float = Field(default=300.0, gt=0.0)
    CACHE_MAX_ENTRIES: int = Field(default=100, ge=1)

    HEALTH_CHECK_INTERVAL_S: float = Field(default=300.0, gt=0.0)

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True, extra="ignore")

    def api_key(self, env_name: Optional[str]) -> Optional[str]:
        """Return the credential stored under ``env_name`` if it is set and non-blank."""

        if not env_name:
            return None
        value = getattr(self, env_name, None)
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None


settings = Settings()
