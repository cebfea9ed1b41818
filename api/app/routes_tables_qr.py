from __future__ import annotations

"""Operator routes for table QR codes: status, regeneration and export."""

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Response

from .auth import QR_ADMIN_ROLES, User, role_required
from .deps.qr import get_table_qr_service
from .pdf.qr_documents import DocumentError
from .repos.tables_repo import TableNotFound
from .schemas_tenant import DocumentOptionsIn, DownloadManyIn, RegenerateManyIn
from .services.qr_batch import BatchUnavailable
from .services.table_qr import NoTablesFound, TableQRService, TokenNotIssued
from .utils.audit import audit
from .utils.responses import ok

router = APIRouter()


def _attachment(content: bytes, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Cache-Control": "no-store",
        },
    )


@router.get("/api/tables/qr")
async def list_table_qr(
    user: User = Depends(role_required(*QR_ADMIN_ROLES)),
    service: TableQRService = Depends(get_table_qr_service),
) -> dict:
    """Return every table with the status of its current QR token."""

    return ok(await service.list_with_status())


@router.get("/api/tables/{table_id}/qr")
async def get_table_qr(
    table_id: str,
    user: User = Depends(role_required(*QR_ADMIN_ROLES)),
    service: TableQRService = Depends(get_table_qr_service),
) -> dict:
    try:
        return ok(await service.get_with_status(table_id))
    except TableNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@router.post("/api/tables/{table_id}/regenerate-qr")
@audit("qr_regenerate")
async def regenerate_table_qr(
    table_id: str,
    user: User = Depends(role_required(*QR_ADMIN_ROLES)),
    service: TableQRService = Depends(get_table_qr_service),
) -> dict:
    """Issue a new token for ``table_id``; the previous code stops working."""

    try:
        rendered = await service.regenerate(table_id)
    except TableNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return ok(
        {
            "table": service.describe(rendered.table),
            "qr_code": rendered.qr_code,
            "qr_url": rendered.url,
            "qr_token_created_at": rendered.created_at.isoformat(),
        }
    )


@router.post("/api/tables/qr/regenerate")
@audit("qr_regenerate_many")
async def regenerate_many_table_qr(
    body: RegenerateManyIn,
    user: User = Depends(role_required(*QR_ADMIN_ROLES)),
    service: TableQRService = Depends(get_table_qr_service),
) -> dict:
    """Regenerate tokens in bulk; per-table failures are reported, not raised."""

    try:
        result = await service.regenerate_many(body.table_ids, body.restaurant_id)
    except BatchUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return ok(result.as_dict())


@router.get("/api/tables/{table_id}/qr-code")
async def download_table_qr(
    table_id: str,
    format: Literal["image", "document"] = "image",
    options: DocumentOptionsIn = Depends(),
    user: User = Depends(role_required(*QR_ADMIN_ROLES)),
    service: TableQRService = Depends(get_table_qr_service),
) -> Response:
    try:
        content, media_type, filename = await service.download(
            table_id, format, options.to_options()
        )
    except TableNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except TokenNotIssued as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except DocumentError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _attachment(content, media_type, filename)


@router.post("/api/tables/qr/download")
@audit("qr_download_many")
async def download_many_table_qr(
    body: DownloadManyIn,
    user: User = Depends(role_required(*QR_ADMIN_ROLES)),
    service: TableQRService = Depends(get_table_qr_service),
) -> Response:
    """Export several tables as a ZIP of PNGs or one PDF."""

    try:
        content, media_type, filename = await service.download_many(
            body.table_ids, body.format, body.to_options()
        )
    except NoTablesFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except TokenNotIssued as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except DocumentError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _attachment(content, media_type, filename)


__all__ = ["router"]
