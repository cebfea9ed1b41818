from __future__ import annotations

"""Public endpoint resolving a scanned table QR code."""

from fastapi import APIRouter, Depends, Query

from .deps.qr import expose_error_kind, get_table_qr_service
from .services.table_qr import TableQRService
from .utils.responses import ok

router = APIRouter()


@router.get("/api/menu/validate-qr")
async def validate_qr(
    token: str = Query(""),
    service: TableQRService = Depends(get_table_qr_service),
    expose_kind: bool = Depends(expose_error_kind),
) -> dict:
    """Return the table for ``token`` or ``{"valid": false, "message": ...}``.

    Rejections still answer 200 so guests see the same response whether the
    code expired, was replaced or never existed.
    """

    result = await service.validate(token or None)
    return ok(result.as_dict(expose_kind=expose_kind))


__all__ = ["router"]
