"""Domain models and helpers."""

from .qr_token_state import (
    GUEST_MESSAGE,
    TOKEN_TYPE,
    QRTokenError,
    QRTokenState,
    state_for_error,
)
from .tables import TableContext, TableRecord, TableStatus

__all__ = [
    "GUEST_MESSAGE",
    "TOKEN_TYPE",
    "QRTokenError",
    "QRTokenState",
    "TableContext",
    "TableRecord",
    "TableStatus",
    "state_for_error",
]
