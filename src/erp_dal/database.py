import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Callable, Optional

import asyncpg

from common.sanitization.text import redact_sensitive_info
from erp_dal.codecs import register_text_codecs
from erp_dal.config import DatabaseConfig
from erp_dal.errors import (
    ExecError,
    PoolExhaustedError,
    PoolNotInitializedError,
    wrap_driver_error,
)
from erp_dal.statement import Statement, execute_script

logger = logging.getLogger(__name__)


class Database:
    """Explicit handle around the PostgreSQL connection pool.

    Create one per process at startup, pass it to the code that issues
    statements, and close it on shutdown:

        db = Database.from_env()
        await db.init()
        rows = await db.prepare("SELECT * FROM clients WHERE company_id = ?").all(company_id)
        await db.close()
    """

    def __init__(
        self,
        config: DatabaseConfig,
        *,
        pool_factory: Optional[Callable[..., Any]] = None,
    ) -> None:
        """Initialize the handle; no connection is opened until ``init``."""
        self._config = config
        self._pool_factory = pool_factory or asyncpg.create_pool
        self._pool: Optional[asyncpg.Pool] = None
        self._init_lock = asyncio.Lock()

    @classmethod
    def from_env(cls) -> "Database":
        """Build a handle from ``DATABASE_URL`` and the ``ERP_DB_*`` variables."""
        return cls(DatabaseConfig.from_env())

    @property
    def config(self) -> DatabaseConfig:
        return self._config

    @property
    def localtime_mode(self) -> str:
        return self._config.localtime_mode

    @property
    def is_initialized(self) -> bool:
        return self._pool is not None

    async def init(self) -> None:
        """Create the connection pool (no-op when already initialized)."""
        async with self._init_lock:
            if self._pool is not None:
                return
            config = self._config
            try:
                self._pool = await self._pool_factory(
                    config.dsn,
                    min_size=config.min_size,
                    max_size=config.max_size,
                    max_inactive_connection_lifetime=config.idle_timeout_seconds,
                    command_timeout=config.command_timeout_seconds,
                    statement_cache_size=config.statement_cache_size,
                    ssl=config.build_ssl(),
                    server_settings={"application_name": config.application_name},
                    init=register_text_codecs if config.text_params else None,
                )
            except Exception as e:
                raise ConnectionError(
                    f"Failed to initialize database pool: {redact_sensitive_info(str(e))}"
                ) from e
            logger.info(
                "Database connection pool established: %s (max_size=%d)",
                redact_sensitive_info(config.dsn),
                config.max_size,
            )

    async def close(self) -> None:
        """Drain and close the pool; waits for borrowed connections to come back."""
        if self._pool is None:
            return
        pool, self._pool = self._pool, None
        await pool.close()
        logger.info("Database connection pool closed")

    async def __aenter__(self) -> "Database":
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _require_pool(self):
        if self._pool is None:
            raise PoolNotInitializedError(
                "Database pool not initialized. Call Database.init() first."
            )
        return self._pool

    @asynccontextmanager
    async def connection(self):
        """Borrow one pooled connection for the duration of the block."""
        pool = self._require_pool()
        timeout = self._config.acquire_timeout_seconds
        try:
            conn = await pool.acquire(timeout=timeout)
        except asyncio.TimeoutError as e:
            raise PoolExhaustedError(
                f"No database connection available within {timeout:g}s "
                f"(pool max_size={self._config.max_size}).",
                timeout_seconds=timeout,
                original=e,
            ) from e
        try:
            yield conn
        finally:
            await pool.release(conn)

    def prepare(self, template: str) -> Statement:
        """Return a statement handle for ``template``; no I/O happens here."""
        return Statement(self, template)

    async def exec(self, sql: str) -> None:
        """Execute parameterless SQL such as DDL or a multi-statement script."""
        await execute_script(self, sql)

    @asynccontextmanager
    async def transaction(self, *, isolation: Optional[str] = None, readonly: bool = False):
        """Run several statements on one connection inside an explicit transaction.

        Commits when the block exits normally and rolls back when it raises.
        Statements issued through the yielded scope must be awaited one at a time.
        """
        async with self.connection() as conn:
            tx = conn.transaction(isolation=isolation, readonly=readonly)
            try:
                await tx.start()
            except Exception as e:
                raise wrap_driver_error(
                    ExecError, e, template="BEGIN", operation="transaction"
                ) from e
            try:
                yield Transaction(conn, self.localtime_mode)
            except BaseException:
                try:
                    await tx.rollback()
                except Exception as rollback_exc:
                    logger.warning("Transaction rollback failed: %s", rollback_exc)
                raise
            try:
                await tx.commit()
            except Exception as e:
                raise wrap_driver_error(
                    ExecError, e, template="COMMIT", operation="transaction"
                ) from e


class Transaction:
    """Statement source pinned to the connection of an open transaction."""

    def __init__(self, conn: Any, localtime_mode: str) -> None:
        self._conn = conn
        self.localtime_mode = localtime_mode

    @asynccontextmanager
    async def connection(self):
        yield self._conn

    def prepare(self, template: str) -> Statement:
        return Statement(self, template)

    async def exec(self, sql: str) -> None:
        await execute_script(self, sql)
