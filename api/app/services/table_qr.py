"""Table QR operations exposed to routes and operator tooling.

The service ties together the token issuer/validator, the table repository
and the document renderer. It never writes token fields itself; only
:meth:`QRTokenIssuer.issue_and_render` does.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from math import ceil
from typing import Literal, Sequence

from ..domain.qr_token_state import QRTokenState
from ..domain.tables import TableRecord
from ..pdf.qr_documents import DocumentOptions, QRDocumentRenderer
from ..repos.tables_repo import TableNotFound, TablesRepo
from ..security.qr_tokens import (
    QRTokenIssuer,
    QRTokenValidator,
    RenderedToken,
    ValidationResult,
)
from .qr_batch import BatchRegenerator, BatchResult

logger = logging.getLogger("api.qr")

SingleFormat = Literal["image", "document"]
BatchFormat = Literal["archive", "document"]


class TokenNotIssued(ValueError):
    """Raised when a download is requested for tables without a token."""


class NoTablesFound(LookupError):
    pass


class TableQRService:
    """Issue, regenerate, validate and export table QR codes."""

    def __init__(
        self,
        repo: TablesRepo,
        issuer: QRTokenIssuer,
        validator: QRTokenValidator,
        renderer: QRDocumentRenderer | None = None,
        batch_concurrency: int = 4,
    ) -> None:
        self.repo = repo
        self.issuer = issuer
        self.validator = validator
        self.renderer = renderer or QRDocumentRenderer(issuer.build_deep_link)
        self.batch = BatchRegenerator(issuer, concurrency=batch_concurrency)

    async def provision(
        self, table_id: str, restaurant_id: str | None = None
    ) -> RenderedToken:
        """Issue the first token for a newly created table."""
        return await self.issuer.issue_and_render(table_id, restaurant_id)

    async def regenerate(self, table_id: str) -> RenderedToken:
        """Replace ``table_id``'s token, invalidating the previous one at once."""
        table = await self.repo.get(table_id)
        if table is None:
            raise TableNotFound(table_id)
        rendered = await self.issuer.issue_and_render(table_id, table.restaurant_id)
        if table.qr_token:
            logger.info(
                "qr_token_superseded table=%s", table.table_number,
                extra={"table": table.table_number},
            )
        return rendered

    async def regenerate_many(
        self, table_ids: Sequence[str] | None, restaurant_id: str | None = None
    ) -> BatchResult:
        """Regenerate tokens for ``table_ids``, or for every table when empty."""
        ids = list(table_ids) if table_ids else await self.repo.list_ids()
        return await self.batch.regenerate_many(ids, restaurant_id)

    async def validate(self, token: str | None) -> ValidationResult:
        return await self.validator.validate_against_table(token)

    def token_status(self, token: str | None, created_at: datetime | None) -> dict:
        """Describe a stored token for the back office."""
        if not token:
            return {
                "status": QRTokenState.NONE.value,
                "label": "No QR Code",
                "is_active": False,
            }
        verified = self.validator.verify(token)
        if not verified.valid:
            return {
                "status": QRTokenState.INVALID.value,
                "label": "Invalid / Expired",
                "is_active": False,
                "error": verified.error.value if verified.error else None,
            }
        assert verified.payload is not None  # for type checkers
        expires_at = verified.payload.expires_at
        remaining = (expires_at - datetime.now(timezone.utc)).total_seconds()
        return {
            "status": QRTokenState.ACTIVE.value,
            "label": "Active",
            "is_active": True,
            "created_at": created_at.isoformat() if created_at else None,
            "expires_at": expires_at.isoformat(),
            "days_until_expiry": ceil(remaining / 86400),
        }

    def describe(self, table: TableRecord) -> dict:
        data = {
            "id": table.id,
            "table_number": table.table_number,
            "location": table.location,
            "capacity": table.capacity,
            "status": table.status.value,
            "is_active": table.is_active,
            "qr_status": self.token_status(table.qr_token, table.qr_token_created_at),
        }
        if table.qr_token:
            data["qr_url"] = self.issuer.build_deep_link(table.id, table.qr_token)
        return data

    async def get_with_status(self, table_id: str) -> dict:
        table = await self.repo.get(table_id)
        if table is None:
            raise TableNotFound(table_id)
        return self.describe(table)

    async def list_with_status(self) -> list[dict]:
        return [self.describe(t) for t in await self.repo.list()]

    async def download(
        self,
        table_id: str,
        fmt: SingleFormat = "image",
        options: DocumentOptions | None = None,
    ) -> tuple[bytes, str, str]:
        """Return ``(content, media_type, filename)`` for one table."""
        table = await self.repo.get(table_id)
        if table is None:
            raise TableNotFound(table_id)
        if not table.qr_token:
            raise TokenNotIssued("QR code not generated for this table")
        if fmt == "document":
            content = await asyncio.to_thread(
                self.renderer.table_document, table, options
            )
            return content, "application/pdf", f"table-{table.table_number}-qr.pdf"
        content = await asyncio.to_thread(self.renderer.table_image, table)
        return content, "image/png", f"table-{table.table_number}-qr.png"

    async def download_many(
        self,
        table_ids: Sequence[str] | None,
        fmt: BatchFormat = "archive",
        options: DocumentOptions | None = None,
    ) -> tuple[bytes, str, str]:
        """Return ``(content, media_type, filename)`` for several tables.

        Without ``table_ids`` every table is exported. Tables that have never
        been issued a token are skipped.
        """
        tables = await self.repo.list(table_ids)
        if not tables:
            raise NoTablesFound("No tables found")
        with_token = [t for t in tables if t.qr_token]
        if not with_token:
            raise TokenNotIssued("No tables have QR codes generated")
        if fmt == "document":
            content = await asyncio.to_thread(
                self.renderer.batch_document, with_token, options
            )
            return content, "application/pdf", "table-qr-codes.pdf"
        content = await asyncio.to_thread(self.renderer.archive, with_token)
        return content, "application/zip", "table-qr-codes.zip"


__all__ = ["NoTablesFound", "TableQRService", "TokenNotIssued"]
