"""Statement shim for the ERP back office.

Runs SQLite-flavoured SQL (``?`` placeholders, ``datetime('now')`` helpers)
against a pooled PostgreSQL backend behind a small ``prepare(...).all/get/run``
and ``exec`` surface.
"""

from erp_dal.config import DatabaseConfig
from erp_dal.database import Database, Transaction
from erp_dal.errors import (
    ExecError,
    ParameterCountError,
    PoolExhaustedError,
    PoolNotInitializedError,
    QueryError,
    StatementError,
    TranslationError,
)
from erp_dal.statement import MISSING, MutationResult, Statement
from erp_dal.translation import TranslatedStatement, translate_sqlite_to_postgres

__all__ = [
    "Database",
    "DatabaseConfig",
    "ExecError",
    "MISSING",
    "MutationResult",
    "ParameterCountError",
    "PoolExhaustedError",
    "PoolNotInitializedError",
    "QueryError",
    "Statement",
    "StatementError",
    "Transaction",
    "TranslatedStatement",
    "TranslationError",
    "translate_sqlite_to_postgres",
]
