"""Bulk regeneration of table access tokens."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Sequence

from ..security.qr_tokens import QRTokenIssuer

logger = logging.getLogger("api.qr.batch")


class BatchUnavailable(RuntimeError):
    """Raised when no table in a batch could be processed at all."""


@dataclass
class BatchResult:
    """Per-table outcome of one batch call.

    ``success`` and ``failed`` are filled as workers finish, so their order
    carries no meaning.
    """

    success: list[dict] = field(default_factory=list)
    failed: list[dict] = field(default_factory=list)
    total: int = 0

    def as_dict(self) -> dict:
        return {"success": self.success, "failed": self.failed, "total": self.total}


class BatchRegenerator:
    """Drive :meth:`QRTokenIssuer.issue_and_render` across many tables.

    Tables are processed by at most ``concurrency`` workers. Each table is its
    own unit of work: a missing or unwritable row lands in ``failed`` and the
    rest of the batch carries on.
    """

    def __init__(self, issuer: QRTokenIssuer, concurrency: int = 4) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.issuer = issuer
        self.concurrency = concurrency

    async def regenerate_many(
        self, table_ids: Sequence[str], restaurant_id: str | None = None
    ) -> BatchResult:
        result = BatchResult(total=len(table_ids))
        if not table_ids:
            return result

        sem = asyncio.Semaphore(self.concurrency)
        systemic: list[BaseException] = []

        async def worker(table_id: str) -> None:
            async with sem:
                # A started write completes even if the batch is cancelled
                job = asyncio.ensure_future(
                    self.issuer.issue_and_render(table_id, restaurant_id)
                )
                try:
                    rendered = await asyncio.shield(job)
                except asyncio.CancelledError:
                    job.add_done_callback(partial(self._log_detached, table_id))
                    raise
                except ValueError as exc:
                    self._fail(result, table_id, exc)
                except Exception as exc:
                    systemic.append(exc)
                    self._fail(result, table_id, exc)
                else:
                    result.success.append(
                        {
                            "table_id": table_id,
                            "table_number": rendered.table.table_number,
                        }
                    )

        tasks = [asyncio.create_task(worker(tid)) for tid in table_ids]
        await asyncio.gather(*tasks)

        if len(systemic) == result.total:
            raise BatchUnavailable(
                f"QR regeneration unavailable: {systemic[0]}"
            ) from systemic[0]
        logger.info(
            "qr_batch_done total=%s success=%s failed=%s",
            result.total,
            len(result.success),
            len(result.failed),
        )
        return result

    @staticmethod
    def _log_detached(table_id: str, job: asyncio.Future) -> None:
        """Log a failure of a write left running by a cancelled batch."""
        if job.cancelled() or job.exception() is None:
            return
        logger.warning(
            "qr_batch_detached_write_failed table_id=%s error=%s",
            table_id,
            job.exception(),
        )

    @staticmethod
    def _fail(result: BatchResult, table_id: str, exc: BaseException) -> None:
        message = str(exc) or exc.__class__.__name__
        logger.warning("qr_batch_item_failed table_id=%s error=%s", table_id, message)
        result.failed.append({"table_id": table_id, "error": message})


__all__ = ["BatchRegenerator", "BatchResult", "BatchUnavailable"]
