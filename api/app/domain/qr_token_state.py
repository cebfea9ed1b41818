"""Table QR token states and validation outcomes."""

from __future__ import annotations

from enum import Enum

TOKEN_TYPE = "table_qr_access"

# Shown to guests for every rejected token so the reason is not disclosed
GUEST_MESSAGE = "This QR code is no longer valid. Please ask staff for assistance."


class QRTokenState(str, Enum):
    """Lifecycle states for a table's access token.

    ``SUPERSEDED`` and ``EXPIRED`` are both terminal for validation but are
    kept apart so logs and tests can tell a regenerated code from an old one.
    """

    NONE = "none"
    ACTIVE = "active"
    SUPERSEDED = "superseded"
    EXPIRED = "expired"
    INVALID = "invalid"


class QRTokenError(str, Enum):
    """Reasons a presented token is rejected."""

    MALFORMED = "MALFORMED"
    EXPIRED = "EXPIRED"
    SUPERSEDED = "SUPERSEDED"
    NOT_FOUND = "NOT_FOUND"


STATE_FOR_ERROR: dict[QRTokenError, QRTokenState] = {
    QRTokenError.MALFORMED: QRTokenState.INVALID,
    QRTokenError.EXPIRED: QRTokenState.EXPIRED,
    QRTokenError.SUPERSEDED: QRTokenState.SUPERSEDED,
    QRTokenError.NOT_FOUND: QRTokenState.INVALID,
}


def state_for_error(error: QRTokenError) -> QRTokenState:
    """Return the token state implied by a validation ``error``."""

    return STATE_FOR_ERROR[error]
