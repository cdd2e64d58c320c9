import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from erp_dal.cli import _run_db_command, build_parser, main
from erp_dal.errors import QueryError


def _fake_db(rows=None, row=None):
    statement = MagicMock()
    statement.all = AsyncMock(return_value=rows or [])
    statement.get = AsyncMock(return_value=row)
    db = MagicMock()
    db.prepare = MagicMock(return_value=statement)
    db.exec = AsyncMock()
    return db


def test_translate_prints_postgres_sql(tmp_path, capsys):
    exit_code = main(
        ["--env-dir", str(tmp_path), "translate", "SELECT * FROM t WHERE d < date('now') AND a = ?"]
    )

    out = capsys.readouterr().out.splitlines()
    assert exit_code == 0
    assert out == ["SELECT * FROM t WHERE d < CURRENT_DATE AND a = $1", "-- placeholders: 1"]


def test_translate_local_mode(tmp_path, capsys):
    main(
        [
            "--env-dir",
            str(tmp_path),
            "translate",
            "SELECT datetime('now','localtime')",
            "--localtime-mode",
            "local",
        ]
    )

    assert capsys.readouterr().out.splitlines()[0] == "SELECT LOCALTIMESTAMP"


def test_translate_error_returns_nonzero(tmp_path):
    assert main(["--env-dir", str(tmp_path), "translate", "SELECT 'open"]) == 1


def test_database_command_without_url_fails(tmp_path):
    assert main(["--env-dir", str(tmp_path), "tables"]) == 1


def test_env_file_supplies_database_url(tmp_path):
    (tmp_path / ".env").write_text("DATABASE_URL=postgresql://app:pw@db/erp\n", encoding="utf-8")
    fake_db = _fake_db(rows=[{"table_name": "clients"}])
    fake_db.__aenter__.return_value = fake_db

    try:
        with patch("erp_dal.cli.Database") as database_cls:
            database_cls.from_env.return_value = fake_db
            exit_code = main(["--env-dir", str(tmp_path), "tables"])
        assert os.environ["DATABASE_URL"] == "postgresql://app:pw@db/erp"
    finally:
        os.environ.pop("DATABASE_URL", None)

    assert exit_code == 0
    fake_db.__aexit__.assert_awaited_once()


def test_statement_error_returns_nonzero(tmp_path):
    fake_db = _fake_db()
    fake_db.prepare.return_value.all = AsyncMock(side_effect=QueryError("all failed: down"))
    fake_db.__aenter__.return_value = fake_db

    with patch("erp_dal.cli.Database") as database_cls:
        database_cls.from_env.return_value = fake_db
        assert main(["--env-dir", str(tmp_path), "tables"]) == 1


@pytest.mark.asyncio
async def test_check_prints_server_time(capsys):
    db = _fake_db(row={"server_time": "2026-01-02 03:04:05", "server_version": "PostgreSQL 16.2"})
    args = build_parser().parse_args(["check"])

    await _run_db_command(args, db)

    out = capsys.readouterr().out
    assert "Connected. Server time: 2026-01-02 03:04:05" in out
    assert "PostgreSQL 16.2" in out
    assert "datetime('now')" in db.prepare.call_args.args[0]


@pytest.mark.asyncio
async def test_columns_output(capsys):
    db = _fake_db(
        rows=[
            {"column_name": "id", "data_type": "text", "is_nullable": "NO"},
            {"column_name": "notes", "data_type": "text", "is_nullable": "YES"},
        ]
    )
    args = build_parser().parse_args(["columns", "clients"])

    await _run_db_command(args, db)

    assert capsys.readouterr().out.splitlines() == [
        "id\ttext\tNOT NULL",
        "notes\ttext\tNULL",
    ]


@pytest.mark.asyncio
async def test_columns_for_unknown_table(capsys):
    args = build_parser().parse_args(["columns", "ghosts", "--schema", "erp"])

    await _run_db_command(args, _fake_db())

    assert capsys.readouterr().out.strip() == "No columns found for erp.ghosts"


@pytest.mark.asyncio
async def test_add_column(capsys):
    db = _fake_db(rows=[{"column_name": "id", "data_type": "text", "is_nullable": "NO"}])
    args = build_parser().parse_args(["add-column", "clients", "notes", "TEXT"])

    await _run_db_command(args, db)

    db.exec.assert_awaited_once_with(
        'ALTER TABLE "public"."clients" ADD COLUMN IF NOT EXISTS "notes" TEXT'
    )
    assert "Added clients.notes" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_add_existing_column(capsys):
    db = _fake_db(rows=[{"column_name": "notes", "data_type": "text", "is_nullable": "YES"}])
    args = build_parser().parse_args(["add-column", "clients", "notes", "TEXT"])

    await _run_db_command(args, db)

    db.exec.assert_not_awaited()
    assert "clients.notes already exists" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_exec_runs_script_file(tmp_path, capsys):
    script = tmp_path / "seed.sql"
    script.write_text("CREATE TABLE IF NOT EXISTS t (id TEXT);\n", encoding="utf-8")
    db = _fake_db()
    args = build_parser().parse_args(["exec", str(script)])

    await _run_db_command(args, db)

    db.exec.assert_awaited_once_with("CREATE TABLE IF NOT EXISTS t (id TEXT);\n")
    assert "Executed" in capsys.readouterr().out
