"""Signed table access tokens.

A token is a compact HS256 JWT bound to one table. Verification happens in
two explicit steps: :meth:`QRTokenValidator.verify` checks signature and
expiry without any I/O, and :meth:`QRTokenValidator.validate_against_table`
then requires the token to equal the table's stored ``qr_token``. The second
step is what invalidates a code the moment a replacement is issued.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import jwt

from config import Settings, get_settings

from ..config.validate import require_secret
from ..domain.qr_token_state import (
    GUEST_MESSAGE,
    TOKEN_TYPE,
    QRTokenError,
    state_for_error,
)
from ..domain.tables import TableContext, TableRecord
from ..qr import qr_data_url
from ..repos.tables_repo import TablesRepo

logger = logging.getLogger("api.qr")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class QRTokenConfig:
    """Signing and link settings shared read-only by issuer and validator."""

    secret: str
    algorithm: str = "HS256"
    ttl: timedelta = timedelta(days=365)
    base_domain: str = "http://localhost:3000"
    default_restaurant_id: str = "default-restaurant"

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "QRTokenConfig":
        settings = settings or get_settings()
        return cls(
            secret=require_secret(settings.qr_token_secret),
            algorithm=settings.qr_token_algorithm,
            ttl=timedelta(days=settings.qr_token_ttl_days),
            base_domain=settings.restaurant_domain,
            default_restaurant_id=settings.default_restaurant_id,
        )


@dataclass(frozen=True)
class TokenPayload:
    """Claims carried inside a table access token."""

    table_id: str
    restaurant_id: str
    type: str
    created_at: str
    issued_at: datetime
    expires_at: datetime

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> "TokenPayload":
        return cls(
            table_id=str(claims["tableId"]),
            restaurant_id=str(claims.get("restaurantId", "")),
            type=claims["type"],
            created_at=claims.get("createdAt", ""),
            issued_at=datetime.fromtimestamp(claims["iat"], timezone.utc),
            expires_at=datetime.fromtimestamp(claims["exp"], timezone.utc),
        )


@dataclass(frozen=True)
class IssuedToken:
    token: str
    created_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class RenderedToken:
    """Outcome of issuing, rendering and persisting a table's token."""

    table: TableRecord
    qr_code: str
    token: str
    created_at: datetime
    url: str


@dataclass(frozen=True)
class VerifyResult:
    valid: bool
    payload: TokenPayload | None = None
    error: QRTokenError | None = None


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    context: TableContext | None = None
    error: QRTokenError | None = None

    @property
    def message(self) -> str | None:
        return GUEST_MESSAGE if self.error is not None else None

    def as_dict(self, expose_kind: bool = False) -> dict:
        if self.valid and self.context is not None:
            return {"valid": True, "table": self.context.as_dict()}
        data: dict[str, Any] = {"valid": False, "message": self.message}
        if expose_kind and self.error is not None:
            data["error_kind"] = self.error.value
        return data


class QRTokenIssuer:
    """Mint table tokens, build deep links and persist rendered artifacts."""

    def __init__(
        self,
        config: QRTokenConfig,
        repo: TablesRepo | None = None,
        encoder: Callable[[str], str] = qr_data_url,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        require_secret(config.secret)
        self.config = config
        self.repo = repo
        self.encoder = encoder
        self.clock = clock

    def issue(
        self,
        table_id: str,
        restaurant_id: str | None = None,
        ttl: timedelta | None = None,
    ) -> IssuedToken:
        """Return a freshly signed token for ``table_id``."""

        created_at = self.clock()
        expires_at = created_at + (self.config.ttl if ttl is None else ttl)
        claims = {
            "tableId": table_id,
            "restaurantId": restaurant_id or self.config.default_restaurant_id,
            "type": TOKEN_TYPE,
            "createdAt": created_at.isoformat(),
            # Two issues within the same second must still differ
            "jti": uuid.uuid4().hex,
            "iat": int(created_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        token = jwt.encode(claims, self.config.secret, algorithm=self.config.algorithm)
        return IssuedToken(token=token, created_at=created_at, expires_at=expires_at)

    def build_deep_link(self, table_id: str, token: str) -> str:
        base = self.config.base_domain.rstrip("/")
        return f"{base}/menu?table={table_id}&token={token}"

    async def issue_and_render(
        self, table_id: str, restaurant_id: str | None = None
    ) -> RenderedToken:
        """Issue a token, render its QR artifact and store both on the table.

        The table's previous token is superseded by the same write. Raises
        :class:`~api.app.repos.tables_repo.TableNotFound` for unknown ids.
        """

        if self.repo is None:
            raise RuntimeError("QRTokenIssuer needs a table repository to persist")
        issued = self.issue(table_id, restaurant_id)
        url = self.build_deep_link(table_id, issued.token)
        qr_code = await asyncio.to_thread(self.encoder, url)
        table = await self.repo.update_qr(
            table_id, issued.token, issued.created_at, qr_code
        )
        return RenderedToken(
            table=table,
            qr_code=qr_code,
            token=issued.token,
            created_at=issued.created_at,
            url=url,
        )


class QRTokenValidator:
    """Check presented tokens cryptographically, then against the table."""

    def __init__(self, config: QRTokenConfig, repo: TablesRepo | None = None) -> None:
        require_secret(config.secret)
        self.config = config
        self.repo = repo

    def verify(self, token: str | None) -> VerifyResult:
        """Check signature, expiry and token type. Performs no I/O."""

        if not token or not isinstance(token, str):
            return VerifyResult(valid=False, error=QRTokenError.MALFORMED)
        try:
            claims = jwt.decode(
                token,
                self.config.secret,
                algorithms=[self.config.algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            return VerifyResult(valid=False, error=QRTokenError.EXPIRED)
        except jwt.InvalidTokenError:
            return VerifyResult(valid=False, error=QRTokenError.MALFORMED)
        if claims.get("type") != TOKEN_TYPE or not claims.get("tableId"):
            return VerifyResult(valid=False, error=QRTokenError.MALFORMED)
        return VerifyResult(valid=True, payload=TokenPayload.from_claims(claims))

    async def validate_against_table(self, token: str | None) -> ValidationResult:
        """Return the table context for ``token`` or a structured rejection.

        Only the token currently stored on the table is accepted, so an older
        token that is still cryptographically valid fails as ``SUPERSEDED``.
        """

        if self.repo is None:
            raise RuntimeError("QRTokenValidator needs a table repository")
        verified = self.verify(token)
        if not verified.valid:
            if verified.error is QRTokenError.EXPIRED:
                # Signature already checked; claims only name the table in the log
                expired = self._expired_payload(token)
                if expired is not None:
                    table = await self.repo.get(expired.table_id)
                    return self._reject(verified.error, table, expired.table_id)
            return self._reject(verified.error)

        assert verified.payload is not None  # for type checkers
        table_id = verified.payload.table_id
        table = await self.repo.get(table_id)
        if table is None:
            return self._reject(QRTokenError.NOT_FOUND, table_id=table_id)
        if table.qr_token != token:
            return self._reject(QRTokenError.SUPERSEDED, table, table_id)
        return ValidationResult(valid=True, context=TableContext.from_record(table))

    def _expired_payload(self, token: str | None) -> TokenPayload | None:
        try:
            claims = jwt.decode(
                token,
                self.config.secret,
                algorithms=[self.config.algorithm],
                options={"require": ["exp", "iat"], "verify_exp": False},
            )
        except jwt.InvalidTokenError:
            return None
        if claims.get("type") != TOKEN_TYPE or not claims.get("tableId"):
            return None
        return TokenPayload.from_claims(claims)

    def _reject(
        self,
        error: QRTokenError | None,
        table: TableRecord | None = None,
        table_id: str | None = None,
    ) -> ValidationResult:
        error = error or QRTokenError.MALFORMED
        number = table.table_number if table is not None else None
        logger.warning(
            "qr_token_rejected table=%s table_id=%s reason=%s state=%s",
            number if number is not None else "-",
            table_id or "-",
            error.value,
            state_for_error(error).value,
            extra={"table": number, "table_id": table_id, "reason": error.value},
        )
        return ValidationResult(valid=False, error=error)


__all__ = [
    "IssuedToken",
    "QRTokenConfig",
    "QRTokenIssuer",
    "QRTokenValidator",
    "RenderedToken",
    "TokenPayload",
    "ValidationResult",
    "VerifyResult",
]
