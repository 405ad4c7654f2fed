"""Service configuration read from environment variables (and an optional .env)."""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings for the API, pricing core, sweep and notifications."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Server ────────────────────────────────────────────
    HOST: str = Field(default="127.0.0.1")
    PORT: int = Field(default=8001)
    LOG_LEVEL: str = Field(default="INFO")

    # ── Database ──────────────────────────────────────────
    DATABASE_URL: str = Field(default="sqlite:///./crypto_alerts.db")
    SQL_ECHO: bool = Field(default=False)

    # ── CoinGecko ─────────────────────────────────────────
    COINGECKO_API_KEY: str | None = Field(default=None)
    COINGECKO_USE_PRO: bool = Field(default=False)
    SINGLE_FETCH_TIMEOUT_SECONDS: float = Field(default=15.0, gt=0)
    PROBE_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0)
    BATCH_FETCH_TIMEOUT_SECONDS: float = Field(default=15.0, gt=0)

    # ── Rate limit (shared call budget) ───────────────────
    RATE_LIMIT_MAX_CALLS: int = Field(default=10, ge=1)
    RATE_LIMIT_WINDOW_SECONDS: float = Field(default=60.0, gt=0)

    # ── Cache tiers ───────────────────────────────────────
    PERSISTENT_CACHE_TTL_SECONDS: float = Field(default=600.0, ge=0)
    MEMORY_CACHE_TTL_SECONDS: float = Field(default=300.0, ge=0)
    STALE_PERSISTENT_MAX_AGE_SECONDS: float = Field(default=3600.0, ge=0)

    # ── Alert sweep ───────────────────────────────────────
    SWEEP_ENABLED: bool = Field(default=True)
    SWEEP_INTERVAL_SECONDS: float = Field(default=900.0, gt=0)
    SWEEP_INDIVIDUAL_FETCH_DELAY_SECONDS: float = Field(default=2.0, ge=0)

    # ── Email notifications ───────────────────────────────
    SMTP_HOST: str | None = Field(default=None)
    SMTP_PORT: int = Field(default=587)
    SMTP_USERNAME: str | None = Field(default=None)
    SMTP_PASSWORD: str | None = Field(default=None)
    SMTP_USE_TLS: bool = Field(default=True)
    ALERT_FROM_ADDRESS: str = Field(default="alerts@pricetracker.local")


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
