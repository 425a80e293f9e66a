# app/config.py
"""
Centralized configuration with validation.

Uses pydantic-settings to load and validate all environment variables at startup.
Fail fast with clear error messages if config is malformed.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from app.constants import CacheDefaults, FetchDefaults, RateLimits


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str | None = Field(
        default=None,
        description="SQLAlchemy database URL. Unset = results are not persisted.",
    )

    # Upstream fetching
    REDDIT_USER_AGENT: str = Field(
        default=FetchDefaults.USER_AGENT,
        description="User-Agent header sent to Reddit",
    )
    FETCH_MAX_ATTEMPTS: int = Field(
        default=FetchDefaults.MAX_ATTEMPTS,
        ge=1,
        description="Attempts per upstream request before giving up",
    )
    FETCH_TIMEOUT_SECONDS: float = Field(
        default=FetchDefaults.ATTEMPT_TIMEOUT_SECONDS,
        gt=0,
        description="Per-attempt timeout for upstream requests",
    )

    # Rate limiting (shared by all upstream requests in the process)
    RATE_LIMIT_MAX_REQUESTS: int = Field(
        default=RateLimits.MAX_REQUESTS,
        ge=1,
        description="Max upstream requests per sliding window",
    )
    RATE_LIMIT_WINDOW_SECONDS: float = Field(
        default=RateLimits.WINDOW_SECONDS,
        gt=0,
        description="Sliding window length in seconds",
    )
    RATE_LIMIT_MAX_PER_SECOND: float = Field(
        default=RateLimits.MAX_PER_SECOND,
        gt=0,
        description="Sustained request rate cap",
    )

    # Result cache
    CACHE_TTL_SECONDS: int = Field(
        default=CacheDefaults.TTL_SECONDS,
        ge=1,
        description="Time-to-live for cached analytics results",
    )
    CACHE_MAX_ENTRIES: int = Field(
        default=CacheDefaults.MAX_ENTRIES,
        ge=1,
        description="Upper bound on cached entries (memory guard)",
    )

    # LLM insight
    OPENAI_API_KEY: str | None = Field(
        default=None,
        description="OpenAI API key for post insights. Unset = insights disabled.",
    )
    OPENAI_MODEL: str = Field(
        default="gpt-4o-mini",
        description="OpenAI model used for post insights",
    )

    # CORS
    CORS_ORIGINS: str = Field(
        default="http://localhost:5173",
        description="Comma-separated list of allowed CORS origins",
    )

    # Application
    ENVIRONMENT: str = Field(
        default="development",
        description="Environment: development, staging, production",
    )
    LOG_LEVEL: str = Field(default="INFO", description="Root log level")
    LOG_JSON: bool = Field(
        default=False,
        description="Emit single-line JSON logs (production) instead of plain text",
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def fix_database_url(cls, v: str | None) -> str | None:
        """Hosted Postgres provides postgresql:// but SQLAlchemy needs postgresql+psycopg2://"""
        if v and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+psycopg2://", 1)
        return v or None

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings. Call at startup to validate config."""
    return Settings()
