"""Application settings with Pydantic validation and environment loading."""

from __future__ import annotations

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = "asxwatch"
    app_version: str = "1.0.0"
    debug: bool = Field(
        default=False, description="Enable debug mode (disable in production)"
    )
    environment: str = Field(
        default="production",
        description="Environment: development, staging, production",
    )

    # CORS
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Allowed CORS origins (no wildcards with credentials)",
    )

    # Market data API
    market_data_base_url: str = Field(
        default="http://localhost:8000/api/proxy",
        description="Base URL the ticker client calls (normally the proxy)",
    )
    market_key: str = Field(default="asx", description="Market key for quote lookups")
    api_key: str = Field(default="", description="Bearer token for the upstream API")
    upstream_api_base_url: str = Field(
        default="",
        description="Upstream market data API the proxy forwards to",
    )

    # Fetching
    fetch_timeout: float = Field(
        default=30.0, ge=1, le=120, description="Per-request timeout in seconds"
    )
    fetch_max_attempts: int = Field(
        default=3, ge=1, le=10, description="Attempts per fetch including the first"
    )
    fetch_backoff_base: float = Field(
        default=1.0, gt=0, description="Initial retry delay in seconds"
    )
    fetch_backoff_cap: float = Field(
        default=30.0, gt=0, description="Maximum retry delay in seconds"
    )

    # Market clock
    market_timezone: str = Field(default="Australia/Sydney")
    market_open_hour: int = Field(default=10, ge=0, le=23)
    market_close_hour: int = Field(default=16, ge=1, le=24)

    # Refresh policy (seconds)
    open_stale_after: int = Field(default=3 * 60, ge=1)
    open_refetch_every: int = Field(default=60, ge=1)
    closed_stale_after: int = Field(default=60 * 60, ge=1)
    closed_refetch_every: int = Field(default=60 * 60, ge=1)
    refresh_tick_seconds: int = Field(
        default=30, ge=1, description="How often due refreshes are checked"
    )

    # Watch set
    idle_threshold: int = Field(
        default=3 * 60, ge=1, description="Seconds before an idle ticker is evicted"
    )
    cleanup_interval: int = Field(
        default=3 * 60, ge=1, description="Seconds between eviction sweeps"
    )
    trending_count: int = Field(default=6, ge=0, le=20)
    scheduler_enabled: bool = Field(
        default=True, description="Enable background cleanup and refresh jobs"
    )

    # Persistence
    storage_backend: Literal["valkey", "memory"] = Field(default="valkey")
    valkey_url: str = Field(
        default="redis://valkey:6379/0", description="Valkey connection URL"
    )
    watchlist_key: str = Field(default="asx-watchlist")

    # Logging
    log_level: str = Field(
        default="INFO", description="Log level: DEBUG, INFO, WARNING, ERROR"
    )
    log_format: str = Field(default="json", description="Log format: json or text")

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid:
            raise ValueError(f"log_level must be one of {valid}")
        return upper

    @model_validator(mode="after")
    def check_trading_window(self) -> "Settings":
        if self.market_close_hour <= self.market_open_hour:
            raise ValueError("market_close_hour must be after market_open_hour")
        return self

    @property
    def proxy_target(self) -> Optional[str]:
        return self.upstream_api_base_url.rstrip("/") or None

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Cached settings factory."""
    return Settings()


settings = get_settings()
