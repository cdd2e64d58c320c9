import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from common.config.env import load_env_files
from erp_dal.database import Database
from erp_dal.errors import StatementError
from erp_dal.schema import ensure_columns, list_columns, list_tables
from erp_dal.translation import LOCALTIME_LEGACY, LOCALTIME_MODES, translate_sqlite_to_postgres

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="erp-dal", description="ERP database maintenance and statement tooling"
    )
    parser.add_argument(
        "--env-dir",
        type=Path,
        default=None,
        help="Directory holding .env / .env.local (default: current directory)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    subparsers.required = True

    translate_parser = subparsers.add_parser(
        "translate", help="Print the PostgreSQL rendering of a SQLite-style statement"
    )
    translate_parser.add_argument("sql", help="Statement text using ? placeholders")
    translate_parser.add_argument(
        "--localtime-mode",
        choices=sorted(LOCALTIME_MODES),
        default=LOCALTIME_LEGACY,
        help="Rendering of datetime('now','localtime') (default: legacy)",
    )

    subparsers.add_parser("check", help="Verify connectivity and print server details")

    tables_parser = subparsers.add_parser("tables", help="List tables in a schema")
    tables_parser.add_argument("--schema", default="public")

    columns_parser = subparsers.add_parser("columns", help="List the columns of a table")
    columns_parser.add_argument("table")
    columns_parser.add_argument("--schema", default="public")

    add_parser = subparsers.add_parser("add-column", help="Add a column if it is missing")
    add_parser.add_argument("table")
    add_parser.add_argument("column")
    add_parser.add_argument("type", help="Column type, e.g. TEXT or NUMERIC(12, 2)")
    add_parser.add_argument("--schema", default="public")

    exec_parser = subparsers.add_parser("exec", help="Execute a SQL script file")
    exec_parser.add_argument("file", type=Path)

    return parser


def _print_translation(args) -> None:
    translated = translate_sqlite_to_postgres(args.sql, localtime_mode=args.localtime_mode)
    print(translated.sql)
    print(f"-- placeholders: {translated.placeholder_count}")


async def _run_db_command(args, db: Database) -> None:
    if args.command == "check":
        row = await db.prepare(
            "SELECT datetime('now') AS server_time, version() AS server_version"
        ).get()
        print(f"✓ Connected. Server time: {row['server_time']}")
        print(f"  {row['server_version']}")
    elif args.command == "tables":
        for name in await list_tables(db, schema=args.schema):
            print(name)
    elif args.command == "columns":
        columns = await list_columns(db, args.table, schema=args.schema)
        if not columns:
            print(f"No columns found for {args.schema}.{args.table}")
        for column in columns:
            nullable = "NULL" if column.is_nullable else "NOT NULL"
            print(f"{column.name}\t{column.data_type}\t{nullable}")
    elif args.command == "add-column":
        added = await ensure_columns(
            db, args.table, {args.column: args.type}, schema=args.schema
        )
        if added:
            print(f"✓ Added {args.table}.{args.column}")
        else:
            print(f"= {args.table}.{args.column} already exists")
    elif args.command == "exec":
        await db.exec(args.file.read_text(encoding="utf-8"))
        print(f"✓ Executed {args.file}")


async def _run_with_database(args) -> None:
    async with Database.from_env() as db:
        await _run_db_command(args, db)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the erp-dal CLI."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    parser = build_parser()
    args = parser.parse_args(argv)
    load_env_files(args.env_dir)

    try:
        if args.command == "translate":
            _print_translation(args)
        else:
            asyncio.run(_run_with_database(args))
    except StatementError as e:
        logger.error("%s failed: %s", args.command, e)
        return 1
    except (ConnectionError, LookupError, ValueError, OSError) as e:
        logger.error("%s failed: %s", args.command, e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
