#!/usr/bin/env python3
"""Utilities for managing table QR tokens.

This helper provides five subcommands:

* ``list_tables`` – list tables with the status of their QR token.
* ``regen_qr`` – regenerate the QR token for one table.
* ``bulk_regen`` – regenerate tokens for several (or all) tables.
* ``bulk_add_tables`` – create tables with sequential numbers and issue
  their first token.
* ``export`` – write a ZIP of PNGs or a PDF of QR codes to a file.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from api.app import db  # noqa: E402
from api.app.deps.qr import build_table_qr_service  # noqa: E402
from api.app.pdf.qr_documents import DocumentOptions  # noqa: E402
from api.app.repos_sqlalchemy import TablesRepoSQL  # noqa: E402
from api.app.services.table_qr import TableQRService  # noqa: E402


async def list_tables(service: TableQRService) -> list[dict]:
    """Return every table with its QR token status."""

    return await service.list_with_status()


async def regen_qr(service: TableQRService, table_id: str) -> dict[str, str]:
    """Rotate the token for ``table_id``; the previous code stops working."""

    before = await service.repo.get(table_id)
    rendered = await service.regenerate(table_id)
    return {
        "id": rendered.table.id,
        "table_number": str(rendered.table.table_number),
        "qr_url": rendered.url,
        "replaced": "yes" if before is not None and before.qr_token else "no",
    }


async def bulk_regen(service: TableQRService, table_ids: list[str] | None) -> dict:
    """Regenerate ``table_ids`` (all tables when empty) and return the summary."""

    result = await service.regenerate_many(table_ids or None)
    return result.as_dict()


async def bulk_add_tables(
    service: TableQRService,
    count: int,
    start: int = 1,
    capacity: int = 4,
    location: str | None = None,
) -> list[dict[str, str]]:
    """Insert ``count`` tables numbered from ``start`` and issue their tokens."""

    repo = service.repo
    if not isinstance(repo, TablesRepoSQL):
        raise TypeError(
            f"bulk_add_tables needs a TablesRepoSQL, got {type(repo).__name__}"
        )
    created = []
    for number in range(start, start + count):
        table = await repo.create(
            table_number=number, capacity=capacity, location=location
        )
        rendered = await service.provision(table.id)
        created.append(
            {"id": table.id, "table_number": str(number), "qr_url": rendered.url}
        )
    return created


async def export(
    service: TableQRService,
    out: Path,
    fmt: str = "archive",
    table_ids: list[str] | None = None,
    options: DocumentOptions | None = None,
) -> dict[str, str]:
    """Write the archive or document for ``table_ids`` to ``out``."""

    content, media_type, _ = await service.download_many(table_ids or None, fmt, options)
    out.write_bytes(content)
    return {"path": str(out), "media_type": media_type, "bytes": str(len(content))}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Table QR utilities")
    subparsers = parser.add_subparsers(dest="cmd", required=True)

    subparsers.add_parser("list_tables", help="List tables and their QR status")

    p_regen = subparsers.add_parser("regen_qr", help="Regenerate QR token for a table")
    p_regen.add_argument("--table", required=True, help="Table id")

    p_bulk_regen = subparsers.add_parser(
        "bulk_regen", help="Regenerate QR tokens for many tables"
    )
    p_bulk_regen.add_argument(
        "--table", action="append", dest="tables", help="Table id (repeatable)"
    )

    p_bulk = subparsers.add_parser(
        "bulk_add_tables", help="Add multiple tables with sequential numbers"
    )
    p_bulk.add_argument("--count", type=int, default=10, help="Number of tables")
    p_bulk.add_argument("--start", type=int, default=1, help="First table number")
    p_bulk.add_argument("--capacity", type=int, default=4, help="Seats per table")
    p_bulk.add_argument("--location", help="Location label for the new tables")

    p_export = subparsers.add_parser("export", help="Export QR codes to a file")
    p_export.add_argument("--out", required=True, type=Path, help="Output file")
    p_export.add_argument(
        "--format", choices=["archive", "document"], default="archive"
    )
    p_export.add_argument("--layout", choices=["single", "multiple"], default="single")
    p_export.add_argument("--restaurant-name", default="Smart Restaurant")
    p_export.add_argument("--wifi-name", default="")
    p_export.add_argument("--wifi-password", default="")
    p_export.add_argument(
        "--table", action="append", dest="tables", help="Table id (repeatable)"
    )
    return parser


async def run(args: argparse.Namespace, service: TableQRService) -> object:
    if args.cmd == "list_tables":
        return await list_tables(service)
    if args.cmd == "regen_qr":
        return await regen_qr(service, args.table)
    if args.cmd == "bulk_regen":
        return await bulk_regen(service, args.tables)
    if args.cmd == "bulk_add_tables":
        return await bulk_add_tables(
            service, args.count, args.start, args.capacity, args.location
        )
    options = DocumentOptions(
        restaurant_name=args.restaurant_name,
        include_wifi=bool(args.wifi_name),
        wifi_name=args.wifi_name,
        wifi_password=args.wifi_password,
        layout=args.layout,
    )
    return await export(service, args.out, args.format, args.tables, options)


async def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    db.configure()
    try:
        await db.create_tables()
        result = await run(args, build_table_qr_service())
    finally:
        await db.dispose()
    print(json.dumps(result))


if __name__ == "__main__":
    asyncio.run(main())
