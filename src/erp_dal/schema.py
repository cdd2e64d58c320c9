"""Schema inspection and additive migrations.

These replace the one-off scripts that listed a table's columns and added the
ones a newer release expects (``ALTER TABLE ... ADD COLUMN``). Additions are
idempotent: columns that already exist are left untouched.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, List

logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")
# Type names plus an optional modifier list and array suffix, e.g. NUMERIC(12, 2), TEXT[].
_COLUMN_TYPE_RE = re.compile(
    r"^[A-Za-z][A-Za-z0-9_ ]*(\(\s*\d+(\s*,\s*\d+)?\s*\))?(\[\])?"
    r"( DEFAULT [A-Za-z0-9_.'()\- ]+)?$"
)

_LIST_TABLES_SQL = """
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = ? AND table_type = 'BASE TABLE'
    ORDER BY table_name
"""

_LIST_COLUMNS_SQL = """
    SELECT column_name, data_type, is_nullable
    FROM information_schema.columns
    WHERE table_schema = ? AND table_name = ?
    ORDER BY ordinal_position
"""


@dataclass(frozen=True)
class ColumnInfo:
    """A column as reported by information_schema."""

    name: str
    data_type: str
    is_nullable: bool


def quote_identifier(identifier: str) -> str:
    """Validate and double-quote a table or column name."""
    if not isinstance(identifier, str) or not _IDENTIFIER_RE.match(identifier):
        raise ValueError(f"Invalid SQL identifier: {identifier!r}")
    return '"' + identifier + '"'


def validate_column_type(column_type: str) -> str:
    cleaned = " ".join(str(column_type).split())
    if not cleaned or not _COLUMN_TYPE_RE.match(cleaned):
        raise ValueError(f"Unsupported column type definition: {column_type!r}")
    return cleaned


async def list_tables(db, schema: str = "public") -> List[str]:
    rows = await db.prepare(_LIST_TABLES_SQL).all(schema)
    return [row["table_name"] for row in rows]


async def list_columns(db, table: str, schema: str = "public") -> List[ColumnInfo]:
    """Return the columns of ``schema.table`` in ordinal order (empty when absent)."""
    rows = await db.prepare(_LIST_COLUMNS_SQL).all(schema, table)
    return [
        ColumnInfo(
            name=row["column_name"],
            data_type=row["data_type"],
            is_nullable=str(row["is_nullable"]).upper() == "YES",
        )
        for row in rows
    ]


async def ensure_columns(
    db, table: str, columns: Dict[str, str], schema: str = "public"
) -> List[str]:
    """Add every column in ``columns`` that ``table`` does not have yet.

    Args:
        db: Database or Transaction handle.
        table: Target table name.
        columns: Mapping of column name to type definition (e.g. ``{"notes": "TEXT"}``).
        schema: Schema holding the table.

    Returns:
        Names of the columns that were added, in mapping order.
    """
    qualified = f"{quote_identifier(schema)}.{quote_identifier(table)}"
    planned = {name: validate_column_type(col_type) for name, col_type in columns.items()}
    for name in planned:
        quote_identifier(name)

    existing = {column.name for column in await list_columns(db, table, schema)}
    if not existing:
        raise LookupError(f"Table {schema}.{table} does not exist or has no columns.")

    added: List[str] = []
    for name, col_type in planned.items():
        if name in existing:
            continue
        await db.exec(
            f"ALTER TABLE {qualified} ADD COLUMN IF NOT EXISTS {quote_identifier(name)} {col_type}"
        )
        logger.info("Added column %s.%s (%s)", table, name, col_type)
        added.append(name)
    return added
