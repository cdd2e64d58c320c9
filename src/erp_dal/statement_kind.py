"""Statement-type detection for logging, tracing and the returning convention."""

import logging
import re
from contextlib import contextmanager

import sqlglot
from sqlglot import exp

logger = logging.getLogger(__name__)
_sqlglot_logger = logging.getLogger("sqlglot")

_SQL_COMMENT_RE = re.compile(r"(--[^\n]*|/\*.*?\*/)", flags=re.DOTALL)
_LEADING_WORD_RE = re.compile(r"[A-Za-z]+")

_EXPRESSION_KINDS = (
    (exp.Select, "SELECT"),
    (exp.Union, "SELECT"),
    (exp.Insert, "INSERT"),
    (exp.Update, "UPDATE"),
    (exp.Delete, "DELETE"),
    (exp.Create, "CREATE"),
    (exp.Drop, "DROP"),
    (exp.Alter, "ALTER"),
    (exp.TruncateTable, "TRUNCATE"),
)


@contextmanager
def _quiet_sqlglot():
    """Silence sqlglot's unsupported-syntax warnings; the result is only a label."""
    previous = _sqlglot_logger.level
    _sqlglot_logger.setLevel(logging.ERROR)
    try:
        yield
    finally:
        _sqlglot_logger.setLevel(previous)


def _lexical_kind(sql: str) -> str:
    stripped = _SQL_COMMENT_RE.sub(" ", sql).lstrip(" \t\r\n(;")
    match = _LEADING_WORD_RE.match(stripped)
    return match.group(0).upper() if match else "UNKNOWN"


def statement_kind(sql: str) -> str:
    """Return the upper-case statement type of translated PostgreSQL text.

    CTEs report the type of their outer statement (``WITH ... INSERT`` is an
    ``INSERT``). Text that sqlglot cannot parse falls back to its first keyword.
    """
    if not isinstance(sql, str) or not sql.strip():
        return "UNKNOWN"
    try:
        with _quiet_sqlglot():
            expressions = [e for e in sqlglot.parse(sql, read="postgres") if e is not None]
    except Exception:
        logger.debug("Falling back to lexical statement kind")
        expressions = []

    if len(expressions) == 1:
        expression = expressions[0]
        for node_type, kind in _EXPRESSION_KINDS:
            if isinstance(expression, node_type):
                return kind
    elif len(expressions) > 1:
        return "MULTI"
    return _lexical_kind(sql)


def has_returning_clause(sql: str) -> bool:
    """Return True when an INSERT/UPDATE/DELETE returns its affected rows."""
    if not isinstance(sql, str) or "returning" not in sql.lower():
        return False
    try:
        with _quiet_sqlglot():
            expression = sqlglot.parse_one(sql, read="postgres")
    except Exception:
        logger.debug("Falling back to lexical RETURNING detection")
        stripped = _SQL_COMMENT_RE.sub(" ", sql)
        return re.search(r"\bRETURNING\b", stripped, flags=re.IGNORECASE) is not None
    if expression is None:
        return False
    return expression.args.get("returning") is not None
