"""SQLAlchemy implementation of the tables repository.

Every method opens its own short-lived session from the injected factory so
that concurrent batch workers never share a session.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..domain.tables import TableRecord, TableStatus
from ..models_tenant import Table
from ..repos.tables_repo import TableNotFound, TablesRepo


def _aware(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_record(table: Table) -> TableRecord:
    """Return an immutable snapshot of an ORM ``Table`` row."""
    return TableRecord(
        id=table.id,
        table_number=table.table_number,
        location=table.location,
        capacity=table.capacity,
        status=table.status,
        qr_token=table.qr_token,
        qr_token_created_at=_aware(table.qr_token_created_at),
        qr_code=table.qr_code,
        is_active=table.is_active,
        restaurant_id=table.restaurant_id,
    )


class TablesRepoSQL(TablesRepo):
    """Concrete TablesRepo backed by an ``async_sessionmaker``."""

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        self._sessionmaker = sessionmaker

    async def get(self, table_id: str) -> TableRecord | None:
        async with self._sessionmaker() as session:
            table = await session.get(Table, table_id)
            return to_record(table) if table is not None else None

    async def list(self, table_ids: Sequence[str] | None = None) -> list[TableRecord]:
        """Return tables for ``table_ids`` in the given order.

        Unknown ids are skipped. Without ids every table is returned ordered
        by table number.
        """
        async with self._sessionmaker() as session:
            if not table_ids:
                rows = await session.scalars(select(Table).order_by(Table.table_number))
                return [to_record(t) for t in rows.all()]
            rows = await session.scalars(select(Table).where(Table.id.in_(table_ids)))
            by_id = {t.id: to_record(t) for t in rows.all()}
        return [by_id[tid] for tid in dict.fromkeys(table_ids) if tid in by_id]

    async def list_ids(self) -> list[str]:
        async with self._sessionmaker() as session:
            rows = await session.scalars(select(Table.id).order_by(Table.table_number))
            return list(rows.all())

    async def update_qr(
        self,
        table_id: str,
        qr_token: str,
        qr_token_created_at: datetime,
        qr_code: str | None,
    ) -> TableRecord:
        async with self._sessionmaker() as session:
            # Single UPDATE so the old token is replaced, never cleared first
            result = await session.execute(
                update(Table)
                .where(Table.id == table_id)
                .values(
                    qr_token=qr_token,
                    qr_token_created_at=qr_token_created_at,
                    qr_code=qr_code,
                    updated_at=func.now(),
                )
            )
            if result.rowcount == 0:
                await session.rollback()
                raise TableNotFound(table_id)
            table = await session.get(Table, table_id)
            await session.commit()
            return to_record(table)

    async def create(
        self,
        table_number: int,
        capacity: int = 4,
        location: str | None = None,
        status: TableStatus = TableStatus.AVAILABLE,
        restaurant_id: str | None = None,
    ) -> TableRecord:
        """Insert a table without a token and return it."""
        async with self._sessionmaker() as session:
            table = Table(
                table_number=table_number,
                capacity=capacity,
                location=location,
                status=status,
                restaurant_id=restaurant_id,
            )
            session.add(table)
            await session.commit()
            await session.refresh(table)
            return to_record(table)


__all__ = ["TablesRepoSQL", "to_record"]
