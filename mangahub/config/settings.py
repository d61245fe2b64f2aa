"""
Application Settings.

Centralized configuration using Pydantic Settings with environment variable loading.
Every value has a working default, so the scraping core runs without a .env file;
Redis is only used when REDIS_URL is set.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.1 Safari/605.1.15",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Upstream sources
    # -------------------------------------------------------------------------
    mangareader_base_url: str = Field(
        default="https://mangareader.to",
        description="MangaReader site root",
    )
    hentai20_base_url: str = Field(
        default="https://hentai20.io",
        description="Hentai20 site root",
    )
    omegascans_base_url: str = Field(
        default="https://omegascans.org",
        description="OmegaScans site root (chapter reader pages)",
    )
    omegascans_api_url: str = Field(
        default="https://api.omegascans.org",
        description="OmegaScans JSON API root",
    )

    # -------------------------------------------------------------------------
    # Fetch pipeline
    # -------------------------------------------------------------------------
    request_timeout_seconds: float = Field(
        default=15.0,
        description="Per-request HTTP timeout",
    )
    user_agents: list[str] = Field(
        default_factory=lambda: list(DEFAULT_USER_AGENTS),
        description="User-Agent pool, one picked at random per request",
    )
    retry_attempts: int = Field(
        default=3,
        description="Total attempts per fetch, including the first",
    )
    retry_base_delay_seconds: float = Field(
        default=1.0,
        description="Backoff base; wait before attempt n+1 is base * 2^(n-1)",
    )
    queue_delay_seconds: float = Field(
        default=0.5,
        description="Pause between queued outbound requests",
    )

    # -------------------------------------------------------------------------
    # Cache
    # -------------------------------------------------------------------------
    cache_ttl_seconds: int = Field(
        default=600,
        description="Default in-memory TTL, used for list feeds",
    )
    info_cache_ttl_seconds: int = Field(
        default=3600,
        description="TTL for series info and chapter pages",
    )
    genres_cache_ttl_seconds: int = Field(
        default=86400,
        description="TTL for genre taxonomies",
    )
    home_cache_ttl_seconds: int = Field(
        default=300,
        description="TTL for homepage aggregates",
    )
    redis_cache_ttl_seconds: int = Field(
        default=3600,
        description="TTL for the durable Redis tier",
    )
    redis_url: str | None = Field(default=None, description="Redis connection URL")
    redis_key_prefix: str = Field(
        default="mangahub:cache",
        description="Namespace for durable cache keys",
    )

    # -------------------------------------------------------------------------
    # Pagination
    # -------------------------------------------------------------------------
    page_size: int = Field(
        default=20,
        description="A full page of this many results implies a next page exists",
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    @field_validator(
        "request_timeout_seconds",
        "retry_attempts",
        "cache_ttl_seconds",
        "info_cache_ttl_seconds",
        "genres_cache_ttl_seconds",
        "home_cache_ttl_seconds",
        "redis_cache_ttl_seconds",
        "page_size",
    )
    @classmethod
    def validate_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value

    @field_validator("retry_base_delay_seconds", "queue_delay_seconds")
    @classmethod
    def validate_non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("must not be negative")
        return value

    @field_validator("user_agents")
    @classmethod
    def validate_user_agents(cls, value: list[str]) -> list[str]:
        agents = [agent for agent in value if agent.strip()]
        if not agents:
            raise ValueError("user_agents must contain at least one entry")
        return agents


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload settings if needed.
    """
    return Settings()
