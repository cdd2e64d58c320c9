"""Prepared-statement handles: ``prepare(sql).all/get/run``.

A :class:`Statement` wraps one SQLite-flavoured template. The PostgreSQL
rendering is computed on first use and cached on the handle; each call then
borrows a connection from its source, runs a single statement and gives the
connection back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, AsyncContextManager, Dict, List, Optional, Protocol, Sequence

from erp_dal.errors import (
    ExecError,
    ParameterCountError,
    QueryError,
    StatementError,
    wrap_driver_error,
)
from erp_dal.statement_kind import has_returning_clause, statement_kind
from erp_dal.tracing import trace_statement
from erp_dal.translation import TranslatedStatement, translate_sqlite_to_postgres

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class _Missing:
    """Marker for an argument the caller could not supply (an omitted optional field)."""

    _instance: Optional["_Missing"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


class ConnectionSource(Protocol):
    """Anything that can lend an asyncpg-compatible connection."""

    localtime_mode: str

    def connection(self) -> AsyncContextManager[Any]: ...


@dataclass(frozen=True)
class MutationResult:
    """Outcome of ``Statement.run``.

    ``last_inserted_id`` is only populated for statements with a RETURNING
    clause whose first row has an ``id`` column; identifiers are generated by
    callers before insertion, so there is no auto-increment value to report.
    """

    rows_affected: int
    last_inserted_id: Any = None
    rows: List[Row] = field(default_factory=list)


def normalize_args(args: Sequence[Any]) -> List[Any]:
    """Replace MISSING markers with None so the driver always sees explicit NULLs."""
    return [None if arg is MISSING else arg for arg in args]


def parse_rows_affected(status: Optional[str]) -> int:
    """Extract the row count from a command status such as ``INSERT 0 3`` or ``UPDATE 2``."""
    if not status:
        return 0
    parts = status.split()
    if parts and parts[-1].isdigit():
        return int(parts[-1])
    return 0


class Statement:
    """Handle around one SQL template bound to a connection source."""

    def __init__(self, source: ConnectionSource, template: str) -> None:
        self._source = source
        self.template = template

    def __repr__(self) -> str:
        return f"Statement({self.template.strip()!r})"

    @cached_property
    def translation(self) -> TranslatedStatement:
        return translate_sqlite_to_postgres(
            self.template, localtime_mode=self._source.localtime_mode
        )

    @property
    def translated(self) -> str:
        """The PostgreSQL text that is sent to the backend."""
        return self.translation.sql

    @cached_property
    def kind(self) -> str:
        return statement_kind(self.translated)

    @cached_property
    def returns_rows(self) -> bool:
        return has_returning_clause(self.translated)

    def bind(self, args: Sequence[Any]) -> List[Any]:
        """Normalize arguments and check them against the placeholder count."""
        params = normalize_args(args)
        expected = self.translation.placeholder_count
        if len(params) != expected:
            raise ParameterCountError(
                expected=expected, received=len(params), template=self.template
            )
        return params

    async def all(self, *args: Any) -> List[Row]:
        """Return every result row in backend order; an empty list when nothing matches."""

        async def _fetch(conn, sql, params):
            records = await conn.fetch(sql, *params)
            return [dict(record) for record in records]

        return await self._execute("all", QueryError, args, _fetch)

    async def get(self, *args: Any) -> Optional[Row]:
        """Return the first result row, or None when nothing matches."""

        async def _fetchrow(conn, sql, params):
            record = await conn.fetchrow(sql, *params)
            return None if record is None else dict(record)

        return await self._execute("get", QueryError, args, _fetchrow)

    async def run(self, *args: Any) -> MutationResult:
        """Execute an INSERT/UPDATE/DELETE and report the affected-row count."""

        async def _mutate(conn, sql, params):
            if self.returns_rows:
                rows = [dict(record) for record in await conn.fetch(sql, *params)]
                last_id = rows[0].get("id") if rows else None
                return MutationResult(rows_affected=len(rows), last_inserted_id=last_id, rows=rows)
            status = await conn.execute(sql, *params)
            return MutationResult(rows_affected=parse_rows_affected(status))

        return await self._execute("run", ExecError, args, _mutate)

    async def _execute(self, operation: str, error_type: type, args, runner):
        sql = self.translated
        params = self.bind(args)

        async def _run():
            async with self._source.connection() as conn:
                return await runner(conn, sql, params)

        try:
            return await trace_statement(operation, sql=sql, kind=self.kind, awaitable=_run())
        except StatementError as exc:
            logger.error("DB query error [%s]: %s", operation, exc.message)
            raise
        except Exception as exc:
            logger.error("DB query error [%s]: %s SQL: %s", operation, exc, self.template)
            raise wrap_driver_error(
                error_type, exc, template=self.template, operation=operation
            ) from exc


async def execute_script(source: ConnectionSource, sql: str) -> None:
    """Run parameterless SQL (DDL, multi-statement bodies) on a borrowed connection."""
    operation = "exec"
    translated = translate_sqlite_to_postgres(
        sql, localtime_mode=source.localtime_mode, placeholders=False
    ).sql

    async def _run():
        async with source.connection() as conn:
            await conn.execute(translated)

    try:
        kind = statement_kind(translated)
        await trace_statement(operation, sql=translated, kind=kind, awaitable=_run())
    except StatementError as exc:
        logger.error("DB exec error: %s", exc.message)
        raise
    except Exception as exc:
        logger.error("DB exec error: %s SQL: %s", exc, sql)
        raise wrap_driver_error(ExecError, exc, template=sql, operation=operation) from exc
