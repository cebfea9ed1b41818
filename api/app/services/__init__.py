"""Service layer helpers for the API."""

from .qr_batch import BatchRegenerator, BatchResult, BatchUnavailable
from .table_qr import NoTablesFound, TableQRService, TokenNotIssued

__all__ = [
    "BatchRegenerator",
    "BatchResult",
    "BatchUnavailable",
    "NoTablesFound",
    "TableQRService",
    "TokenNotIssued",
]
