"""Fake asyncpg connections and statement sources for shim tests."""

from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import pytest


class FakeConnection:
    """Records calls and answers with canned rows or a command status."""

    def __init__(
        self,
        rows: Optional[List[Dict[str, Any]]] = None,
        status: str = "SELECT 0",
        error: Optional[BaseException] = None,
    ) -> None:
        self.rows = rows or []
        self.status = status
        self.error = error
        self.calls: List[tuple] = []

    async def fetch(self, sql: str, *params: Any):
        self.calls.append(("fetch", sql, params))
        if self.error is not None:
            raise self.error
        return list(self.rows)

    async def fetchrow(self, sql: str, *params: Any):
        self.calls.append(("fetchrow", sql, params))
        if self.error is not None:
            raise self.error
        return self.rows[0] if self.rows else None

    async def execute(self, sql: str, *params: Any) -> str:
        self.calls.append(("execute", sql, params))
        if self.error is not None:
            raise self.error
        return self.status


class FakeSource:
    """Statement source lending a single FakeConnection."""

    def __init__(self, conn: FakeConnection, localtime_mode: str = "legacy") -> None:
        self.conn = conn
        self.localtime_mode = localtime_mode
        self.acquired = 0
        self.released = 0
        self.acquire_error: Optional[BaseException] = None

    @asynccontextmanager
    async def connection(self):
        if self.acquire_error is not None:
            raise self.acquire_error
        self.acquired += 1
        try:
            yield self.conn
        finally:
            self.released += 1


@pytest.fixture
def fake_conn():
    return FakeConnection()


@pytest.fixture
def fake_source(fake_conn):
    return FakeSource(fake_conn)
