"""Application settings loaded from environment variables."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_postgres_uri_from_env() -> str:
    """Build Postgres URI from component env vars if POSTGRES_URI is not set.

    Keeps a single source of truth for DB name via .env variables
    (POSTGRES_USER/PASSWORD/HOST/PORT/DB). If POSTGRES_URI is provided, it
    will override this default.
    """
    user = os.getenv("POSTGRES_USER", "postgres")
    password = os.getenv("POSTGRES_PASSWORD", "postgres")
    host = os.getenv("POSTGRES_HOST", "postgres")
    port = os.getenv("POSTGRES_PORT", "5432")
    db = os.getenv("POSTGRES_DB", "visper")
    return f"postgresql+psycopg://{user}:{password}@{host}:{port}/{db}"


class Settings(BaseSettings):
    """Runtime settings for the application."""

    # Chat-completion API used for enrichment
    ai_api_key: str = Field(default="")
    ai_base_url: str = Field(default="https://api.venice.ai/api/v1")
    ai_text_model: str = Field(default="venice-uncensored")
    ai_vision_model: str = Field(default="mistral-31-24b")
    ai_timeout: float = Field(default=60.0)
    ai_log_payloads: bool = Field(default=False)
    # URL scraping budget in seconds
    fetch_timeout: float = Field(default=8.0)
    telegram_bot_token: str = Field(default="")
    public_url: str = Field(default="")
    # Optional direct URI override (env: POSTGRES_URI). If not set, a default
    # is assembled from POSTGRES_USER/PASSWORD/HOST/PORT/DB.
    postgres_uri: str = Field(default_factory=_default_postgres_uri_from_env)
    vault_dir: Path = Field(default=Path("/tmp/vault"))
    product_name: str = Field(default="visper")
    export_max_entries: int = Field(default=2000)
    max_upload_bytes: int = Field(default=10 * 1024 * 1024)
    log_level: str = Field(default="INFO")
    service_name: str = Field(default="api")
    environment: str = Field(default="development")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        # Be lenient with env var names (e.g., POSTGRES_URI vs postgres_uri)
        case_sensitive=False,
        # Allow environment variables that don't have a matching field.
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Return application settings instance."""
    return Settings()


def check_startup(settings: Settings) -> None:
    """Fail fast when credentials required by the collaborators are absent."""
    missing = [
        name
        for name in ("ai_api_key", "telegram_bot_token")
        if not getattr(settings, name, "")
    ]
    if missing:
        env_names = ", ".join(name.upper() for name in missing)
        raise RuntimeError(f"Missing required settings: {env_names}")


__all__ = ["Settings", "get_settings", "check_startup"]
