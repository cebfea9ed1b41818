"""Test configuration for API tests."""
import os
import pathlib
import sys

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import NullPool

sys.path.append(str(pathlib.Path(__file__).resolve().parents[2]))

# Provide default settings so tests can run without requiring a full
# environment configuration.
os.environ.setdefault("QR_TOKEN_SECRET", "test-qr-token-secret-0123456789")
os.environ.setdefault("SECRET_KEY", "x" * 32)

import api.app.db as app_db  # noqa: E402
from api.app.auth import create_access_token  # noqa: E402
from api.app.models_tenant import Base  # noqa: E402
from api.app.repos_sqlalchemy import TablesRepoSQL  # noqa: E402
from api.app.security.qr_tokens import (  # noqa: E402
    QRTokenConfig,
    QRTokenIssuer,
    QRTokenValidator,
)
from api.app.services.table_qr import TableQRService  # noqa: E402
from config import get_settings  # noqa: E402

SECRET = "unit-test-secret-abcdefghijklmnop"
BASE_DOMAIN = "https://dine.example.com"


@pytest.fixture
def anyio_backend() -> str:  # pragma: no cover - required by pytest-anyio
    return "asyncio"


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def qr_config() -> QRTokenConfig:
    return QRTokenConfig(secret=SECRET, base_domain=BASE_DOMAIN)


@pytest.fixture
def tables_db(tmp_path, monkeypatch):
    """Point the app at a throwaway SQLite file with the schema created."""
    url = f"sqlite+aiosqlite:///{tmp_path}/tables.db"
    monkeypatch.setenv("DATABASE_URL", url)
    monkeypatch.setenv("QR_TOKEN_SECRET", SECRET)
    monkeypatch.setenv("RESTAURANT_DOMAIN", BASE_DOMAIN)
    get_settings.cache_clear()
    # Schema is created synchronously so no event loop is needed here
    sync_engine = create_engine(f"sqlite:///{tmp_path}/tables.db")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()
    app_db.configure(url, poolclass=NullPool)
    return app_db.get_sessionmaker()


@pytest.fixture
def repo(tables_db) -> TablesRepoSQL:
    return TablesRepoSQL(tables_db)


@pytest.fixture
def issuer(qr_config, repo) -> QRTokenIssuer:
    return QRTokenIssuer(qr_config, repo)


@pytest.fixture
def validator(qr_config, repo) -> QRTokenValidator:
    return QRTokenValidator(qr_config, repo)


@pytest.fixture
def service(repo, issuer, validator) -> TableQRService:
    return TableQRService(repo, issuer, validator, batch_concurrency=2)


@pytest.fixture
def admin_headers() -> dict:
    token = create_access_token({"sub": "admin@example.com", "role": "super_admin"})
    return {"Authorization": f"Bearer {token}"}
