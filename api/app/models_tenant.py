"""Tenant-specific database models.

Only the table columns the QR access subsystem touches are modelled here;
the remaining back-office schema is owned by the CRUD services. The models
are kept isolated from any application wiring so that they can be used in
tests or migrations independently."""

from __future__ import annotations

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import declarative_base

from .domain.tables import TableStatus

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


class Table(Base):
    """Dining tables mapped to signed QR access tokens."""

    __tablename__ = "tables"

    id = Column(String(36), primary_key=True, default=_uuid)
    restaurant_id = Column(String, nullable=True)
    table_number = Column(Integer, nullable=False, unique=True)
    capacity = Column(Integer, nullable=False, default=4)
    location = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    status = Column(Enum(TableStatus), nullable=False, default=TableStatus.AVAILABLE)
    is_active = Column(Boolean, nullable=False, default=True)
    # Current authoritative token; any earlier token for this row is superseded
    qr_token = Column(Text, nullable=True)
    qr_token_created_at = Column(DateTime(timezone=True), nullable=True)
    qr_code = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
