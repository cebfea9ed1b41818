"""Repository interface for the table fields used by QR access."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Sequence

from ..domain.tables import TableRecord


class TableNotFound(ValueError):
    """Raised when a table id does not resolve to a stored row."""

    def __init__(self, table_id: str) -> None:
        super().__init__(f"Table not found: {table_id}")
        self.table_id = table_id


class TablesRepo(ABC):
    """Contract for table persistence used by token issuance and export."""

    @abstractmethod
    async def get(self, table_id: str) -> TableRecord | None:
        """Return the table with ``table_id`` or ``None``."""
        raise NotImplementedError

    @abstractmethod
    async def list(self, table_ids: Sequence[str] | None = None) -> list[TableRecord]:
        """Return tables for ``table_ids`` in that order, or all by number."""
        raise NotImplementedError

    @abstractmethod
    async def list_ids(self) -> list[str]:
        """Return the ids of every table."""
        raise NotImplementedError

    @abstractmethod
    async def update_qr(
        self,
        table_id: str,
        qr_token: str,
        qr_token_created_at: datetime,
        qr_code: str | None,
    ) -> TableRecord:
        """Replace the table's token fields in one write and return the row.

        Raises :class:`TableNotFound` when no row matches ``table_id``.
        """
        raise NotImplementedError
