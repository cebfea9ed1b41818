# test_config.py
import logging
import pathlib
import sys

import pytest

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from api.app.config.validate import ConfigurationError, validate_on_boot  # noqa: E402
from config import get_settings  # noqa: E402


def _settings():
    get_settings.cache_clear()
    return get_settings()


def test_defaults(monkeypatch):
    for name in ("QR_TOKEN_TTL_DAYS", "RESTAURANT_DOMAIN", "QR_BATCH_CONCURRENCY"):
        monkeypatch.delenv(name, raising=False)
    settings = _settings()
    assert settings.qr_token_algorithm == "HS256"
    assert settings.qr_token_ttl_days == 365
    assert settings.restaurant_domain == "http://localhost:3000"
    assert settings.default_restaurant_id == "default-restaurant"
    assert settings.qr_batch_concurrency == 4
    assert settings.qr_expose_error_kind is False


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("QR_TOKEN_TTL_DAYS", "30")
    monkeypatch.setenv("QR_EXPOSE_ERROR_KIND", "true")
    settings = _settings()
    assert settings.qr_token_ttl_days == 30
    assert settings.qr_expose_error_kind is True


def test_settings_are_cached():
    assert get_settings() is get_settings()


def test_boot_validation_passes_and_masks_secret(monkeypatch, caplog):
    monkeypatch.setenv("QR_TOKEN_SECRET", "boot-secret-0123456789")
    with caplog.at_level(logging.INFO, logger="api.config"):
        validate_on_boot(_settings())
    messages = " ".join(r.getMessage() for r in caplog.records)
    assert "QR_TOKEN_SECRET=bo" in messages
    assert "boot-secret-0123456789" not in messages


@pytest.mark.parametrize(
    "env",
    [
        {"QR_TOKEN_SECRET": ""},
        {"QR_TOKEN_SECRET": "short"},
        {"RESTAURANT_DOMAIN": "not a url"},
        {"QR_TOKEN_TTL_DAYS": "-1"},
        {"QR_BATCH_CONCURRENCY": "0"},
    ],
)
def test_boot_validation_rejects(monkeypatch, env):
    monkeypatch.setenv("QR_TOKEN_SECRET", "boot-secret-0123456789")
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    with pytest.raises(ConfigurationError):
        validate_on_boot(_settings())


def test_missing_secret_is_rejected(monkeypatch):
    monkeypatch.delenv("QR_TOKEN_SECRET", raising=False)
    with pytest.raises(ConfigurationError):
        validate_on_boot(_settings())
