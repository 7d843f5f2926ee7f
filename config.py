"""
Configuration settings for flashdeck-cli.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.core.api_config import ApiConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FLASHDECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Flashcard API
    # ========================================
    api_base_url: str = Field(
        default="http://localhost:5000/api",
        description="Base URL of the flashcard REST API",
    )
    api_token: str | None = Field(
        default=None,
        description="Bearer token issued by /auth/login",
    )
    user_id: int | None = Field(
        default=None,
        description="Numeric id of the signed-in user",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        description="HTTP timeout for API calls",
    )

    # ========================================
    # Learn Sessions
    # ========================================
    cards_per_session: int = Field(
        default=10,
        description="Number of cards pulled for one learn session",
    )
    score_range: int = Field(
        default=5,
        description="Largest score magnitude accepted per answer",
    )
    transition_cooldown_ms: int = Field(
        default=0,
        description="Ignore scores arriving this soon after the previous one (0 disables)",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    def get_api_config(self) -> ApiConfig:
        """Build the HTTP client configuration."""
        return ApiConfig(
            base_url=self.api_base_url,
            token=self.api_token,
            timeout_seconds=self.request_timeout_seconds,
        )

    def has_credentials(self) -> bool:
        """Check whether API calls can be authenticated."""
        return bool(self.api_token)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
