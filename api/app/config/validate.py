"""Startup configuration validation utilities."""

from __future__ import annotations

import logging
from urllib.parse import urlparse

from config import Settings, get_settings

MIN_SECRET_LENGTH = 16

logger = logging.getLogger("api.config")


class ConfigurationError(RuntimeError):
    """Raised when the service cannot run with the supplied configuration."""


def _mask(value: str) -> str:
    """Return a masked representation of ``value`` for logging."""
    if len(value) <= 4:
        return "*" * len(value)
    return value[:2] + "*" * (len(value) - 4) + value[-2:]


def require_secret(secret: str | None, name: str = "QR_TOKEN_SECRET") -> str:
    """Return ``secret`` or raise :class:`ConfigurationError` when it is blank."""

    if not secret or not secret.strip():
        raise ConfigurationError(f"{name} is not configured")
    return secret


def validate_on_boot(settings: Settings | None = None) -> None:
    """Validate the settings the QR token subsystem depends on.

    Logs masked values for audit and raises :class:`ConfigurationError` when
    the signing secret is missing or too short, or when the public domain is
    not an absolute URL.
    """

    settings = settings or get_settings()

    secret = require_secret(settings.qr_token_secret)
    if len(secret) < MIN_SECRET_LENGTH:
        raise ConfigurationError(
            f"QR_TOKEN_SECRET must be at least {MIN_SECRET_LENGTH} characters long"
        )
    logger.info("QR_TOKEN_SECRET=%s", _mask(secret))

    parsed = urlparse(settings.restaurant_domain)
    if not parsed.scheme or not parsed.netloc:
        raise ConfigurationError("RESTAURANT_DOMAIN must be a valid URL")
    logger.info("RESTAURANT_DOMAIN=%s", settings.restaurant_domain)

    if settings.qr_token_ttl_days < 0:
        raise ConfigurationError("QR_TOKEN_TTL_DAYS must not be negative")
    if settings.qr_batch_concurrency < 1:
        raise ConfigurationError("QR_BATCH_CONCURRENCY must be at least 1")


__all__ = ["ConfigurationError", "require_secret", "validate_on_boot"]
