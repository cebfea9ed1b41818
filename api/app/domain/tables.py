"""Snapshots of dining tables as seen by the QR access subsystem."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime


class TableStatus(str, enum.Enum):
    """Occupancy states for a dining table."""

    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    RESERVED = "RESERVED"


@dataclass(frozen=True)
class TableRecord:
    """Read-only copy of the table fields this subsystem reads or writes."""

    id: str
    table_number: int
    location: str | None = None
    capacity: int = 0
    status: TableStatus = TableStatus.AVAILABLE
    qr_token: str | None = None
    qr_token_created_at: datetime | None = None
    qr_code: str | None = None
    is_active: bool = True
    restaurant_id: str | None = None


@dataclass(frozen=True)
class TableContext:
    """Table details handed to a guest after a successful scan."""

    id: str
    table_number: int
    status: TableStatus
    location: str | None
    capacity: int

    @classmethod
    def from_record(cls, table: TableRecord) -> "TableContext":
        return cls(
            id=table.id,
            table_number=table.table_number,
            status=table.status,
            location=table.location,
            capacity=table.capacity,
        )

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "table_number": self.table_number,
            "status": self.status.value,
            "location": self.location,
            "capacity": self.capacity,
        }
