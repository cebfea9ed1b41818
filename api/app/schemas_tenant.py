"""Pydantic models for table QR requests."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .pdf.qr_documents import DocumentOptions


class RegenerateManyIn(BaseModel):
    """Tables to regenerate; every table when ``table_ids`` is omitted."""

    table_ids: Optional[List[str]] = None
    restaurant_id: Optional[str] = None


class DocumentOptionsIn(BaseModel):
    """Print options shared by single and batch documents."""

    restaurant_name: str = Field("Smart Restaurant", max_length=120)
    include_wifi: bool = False
    wifi_name: str = Field("", max_length=64)
    wifi_password: str = Field("", max_length=64)
    layout: str = "single"

    def to_options(self) -> DocumentOptions:
        return DocumentOptions(
            restaurant_name=self.restaurant_name,
            include_wifi=self.include_wifi,
            wifi_name=self.wifi_name,
            wifi_password=self.wifi_password,
            layout=self.layout,
        )


class DownloadManyIn(DocumentOptionsIn):
    """Batch export request."""

    table_ids: Optional[List[str]] = None
    format: Literal["archive", "document"] = "archive"


__all__ = ["DocumentOptionsIn", "DownloadManyIn", "RegenerateManyIn"]
