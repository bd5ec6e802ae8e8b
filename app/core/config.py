# app/core/config.py
from __future__ import annotations

"""
# Wallpaper Downloads - Centralized Configuration (Pydantic v2)

Single `settings` object with strongly-typed, environment-driven config.

## Goals
- Safe defaults for local/dev; explicit where prod needs secrets.
- Download-grant knobs (TTL, signature length, free-tier quota) in one place.
- Fail-open vs fail-closed rate limiting is an explicit switch, never implicit.

## Usage
    from app.core.config import settings
"""

import logging
from typing import List, Literal, Optional

from dotenv import load_dotenv
from pydantic import AnyHttpUrl, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

log = logging.getLogger(__name__)
load_dotenv()  # harmless in prod; convenient in dev


# ─────────────────────────────────────────────────────────────
# Small helpers
# ─────────────────────────────────────────────────────────────
def _split_csv(v: str | None) -> list[str]:
    """Split a comma-separated string into a trimmed list (empty-safe)."""
    if not v:
        return []
    return [s.strip() for s in str(v).split(",") if s and s.strip()]


# ─────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────
class Settings(BaseSettings):
    """
    Global application settings sourced from environment.

    Security:
        - `SUPABASE_JWT_SECRET` verifies caller access tokens.
        - `DOWNLOAD_SIGNING_SECRET` keys the download-URL signatures.

    Downloads:
        - Grants live `DOWNLOAD_URL_TTL_SECONDS` (10 minutes by default).
        - Free users get `FREE_DOWNLOADS_PER_HOUR` grants per rolling window.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # don't crash on unknown keys
    )

    # ── App meta ──────────────────────────────────────────────
    PROJECT_NAME: str = "Wallpaper Downloads API"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    ENV: Literal["development", "staging", "production"] = "development"
    ENABLE_DOCS: bool = True

    # ── Identity (platform auth service tokens) ───────────────
    SUPABASE_JWT_SECRET: SecretStr = Field(...)
    SUPABASE_JWT_AUDIENCE: str = "authenticated"
    SUPABASE_JWT_ALGORITHM: Literal["HS256", "HS384", "HS512"] = "HS256"

    # ── Database (PostgreSQL) ─────────────────────────────────
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: SecretStr = Field(...)
    POSTGRES_DB: str = "wallpapers"
    DB_POOL_SIZE: int = Field(10, ge=1, le=100)
    DB_MAX_OVERFLOW: int = Field(20, ge=0, le=200)
    DB_POOL_RECYCLE_SECONDS: int = 1800
    DB_ECHO: bool = False

    # ── Redis (usage outbox) ──────────────────────────────────
    REDIS_URL: str = "redis://localhost:6379/0"

    # ── HTTP request throttling (SlowAPI) ─────────────────────
    DEFAULT_RATE_LIMIT: Optional[str] = None  # e.g., "200/minute"
    RATELIMIT_STORAGE_URI: Optional[str] = None

    # ── Download grants ───────────────────────────────────────
    DOWNLOAD_SIGNING_SECRET: SecretStr = Field(...)
    DOWNLOAD_URL_TTL_SECONDS: int = Field(600, ge=60, le=3600)
    DOWNLOAD_SIGNATURE_LENGTH: int = Field(16, ge=8, le=64)
    FREE_DOWNLOADS_PER_HOUR: int = Field(10, ge=1)
    DOWNLOAD_RATE_WINDOW_SECONDS: int = Field(3600, ge=60)
    DOWNLOAD_RATE_LIMIT_FAIL_CLOSED: bool = False

    # ── Usage recording ───────────────────────────────────────
    USAGE_RECORD_MAX_ATTEMPTS: int = Field(3, ge=1, le=10)
    USAGE_RECORD_RETRY_DELAY_SECONDS: float = Field(0.2, ge=0, le=10)
    USAGE_OUTBOX_ENABLED: bool = True
    USAGE_OUTBOX_KEY: str = "outbox:download_events"
    USAGE_OUTBOX_REPLAY_INTERVAL_SECONDS: int = Field(30, ge=1)
    USAGE_OUTBOX_REPLAY_BATCH: int = Field(100, ge=1, le=5000)
    USAGE_OUTBOX_MAX_REPLAYS: int = Field(5, ge=1, le=100)

    # ── URLs & CORS ───────────────────────────────────────────
    PUBLIC_BASE_URL: AnyHttpUrl = "http://localhost:8000"
    BACKEND_CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: ["http://localhost:5173"]
    )

    # ── Validators / normalizers ──────────────────────────────
    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def _assemble_cors_origins(cls, v: str | List[str]):
        if isinstance(v, str):
            return _split_csv(v)
        return v

    # ── Derived / convenience properties ─────────────────────
    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"

    @property
    def DATABASE_URL(self) -> str:
        """Sync DSN."""
        return (
            f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD.get_secret_value()}"
            f"@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def ASYNC_DATABASE_URL(self) -> str:
        """Async SQLAlchemy DSN."""
        return self.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")

    @property
    def TEST_DATABASE_URL(self) -> str:
        """Async test DSN (suffix `_test`)."""
        db_name = self.POSTGRES_DB if self.POSTGRES_DB.endswith("_test") else f"{self.POSTGRES_DB}_test"
        return self.ASYNC_DATABASE_URL.rsplit("/", 1)[0] + f"/{db_name}"

    @property
    def public_base_url_str(self) -> str:
        """`PUBLIC_BASE_URL` as a plain string without trailing slash."""
        return str(self.PUBLIC_BASE_URL).rstrip("/")

    @property
    def ratelimit_storage(self) -> str:
        """Storage URI for SlowAPI; in-memory unless configured."""
        return self.RATELIMIT_STORAGE_URI or "memory://"


# Singleton instance
settings = Settings()
