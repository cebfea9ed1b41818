from __future__ import annotations

"""Dependency helpers wiring the table QR service."""

from config import get_settings

from .. import db
from ..repos_sqlalchemy import TablesRepoSQL
from ..security.qr_tokens import QRTokenConfig, QRTokenIssuer, QRTokenValidator
from ..services.table_qr import TableQRService


def build_table_qr_service() -> TableQRService:
    """Return a :class:`TableQRService` bound to the configured database.

    Raises :class:`~api.app.config.validate.ConfigurationError` when the
    signing secret is missing.
    """
    settings = get_settings()
    config = QRTokenConfig.from_settings(settings)
    repo = TablesRepoSQL(db.get_sessionmaker())
    issuer = QRTokenIssuer(config, repo)
    return TableQRService(
        repo,
        issuer,
        QRTokenValidator(config, repo),
        batch_concurrency=settings.qr_batch_concurrency,
    )


def get_table_qr_service() -> TableQRService:
    """FastAPI dependency returning the table QR service."""
    return build_table_qr_service()


def expose_error_kind() -> bool:
    return get_settings().qr_expose_error_kind
