import asyncio
import importlib.util
import json
from pathlib import Path
from types import SimpleNamespace
from zipfile import ZipFile

import pytest

_spec = importlib.util.spec_from_file_location(
    "tenant_qr_tools",
    Path(__file__).resolve().parents[1] / "scripts" / "tenant_qr_tools.py",
)
tenant_qr_tools = importlib.util.module_from_spec(_spec)
assert _spec.loader is not None
_spec.loader.exec_module(tenant_qr_tools)


@pytest.fixture
def cli(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path}/cli.db")
    monkeypatch.setenv("QR_TOKEN_SECRET", "cli-secret-0123456789abcdef")

    def run(*argv: str):
        asyncio.run(tenant_qr_tools.main(list(argv)))
        return json.loads(capsys.readouterr().out)

    return run


def test_add_list_regen_and_export(cli, tmp_path):
    created = cli("bulk_add_tables", "--count", "3", "--location", "Terrace")
    assert [t["table_number"] for t in created] == ["1", "2", "3"]

    listed = cli("list_tables")
    assert [t["qr_status"]["status"] for t in listed] == ["active"] * 3

    first = created[0]
    rotated = cli("regen_qr", "--table", first["id"])
    assert rotated["replaced"] == "yes"
    assert rotated["qr_url"] != first["qr_url"]

    summary = cli("bulk_regen", "--table", first["id"], "--table", "missing")
    assert summary["total"] == 2
    assert len(summary["success"]) == 1
    assert summary["failed"][0]["table_id"] == "missing"

    out = tmp_path / "codes.zip"
    exported = cli("export", "--out", str(out))
    assert exported["media_type"] == "application/zip"
    with ZipFile(out) as zf:
        assert len(zf.namelist()) == 3

    pdf = tmp_path / "codes.pdf"
    cli("export", "--out", str(pdf), "--format", "document", "--layout", "multiple")
    assert pdf.read_bytes().startswith(b"%PDF")


def test_bulk_add_tables_requires_sql_repo():
    service = SimpleNamespace(repo=object())
    with pytest.raises(TypeError, match="TablesRepoSQL"):
        asyncio.run(tenant_qr_tools.bulk_add_tables(service, 1))
