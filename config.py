# config.py

"""Application configuration utilities.

Values are read from environment variables (and an optional ``.env`` file).
The :func:`get_settings` helper caches the result so repeated lookups do not
re-parse the environment.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from the environment."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite+aiosqlite:///./dev_tables.db"
    secret_key: str | None = None
    qr_token_secret: str | None = None
    qr_token_algorithm: str = "HS256"
    qr_token_ttl_days: int = 365
    restaurant_domain: str = "http://localhost:3000"
    default_restaurant_id: str = "default-restaurant"
    qr_batch_concurrency: int = 4
    qr_expose_error_kind: bool = False
    log_level: str = "INFO"


# Cached singleton to avoid re-reading the environment
@lru_cache
def get_settings() -> Settings:
    """Return settings with environment variable precedence.

    Tests that change the environment must call ``get_settings.cache_clear()``
    before reading settings again.
    """

    return Settings()
