import logging
from unittest.mock import patch

import pytest

from erp_dal.statement_kind import has_returning_clause, statement_kind


@pytest.mark.parametrize(
    "sql, expected",
    [
        ("SELECT * FROM clients WHERE id = $1", "SELECT"),
        ("select 1 union select 2", "SELECT"),
        ("INSERT INTO clients (id) VALUES ($1)", "INSERT"),
        ("UPDATE invoices SET status = $1 WHERE id = $2", "UPDATE"),
        ("DELETE FROM invoices WHERE id = $1", "DELETE"),
        ("CREATE TABLE t (id TEXT PRIMARY KEY)", "CREATE"),
        ("DROP TABLE IF EXISTS t", "DROP"),
        (
            "WITH moved AS (SELECT id FROM drafts) INSERT INTO invoices (id) SELECT id FROM moved",
            "INSERT",
        ),
        ("-- refresh\nSELECT 1", "SELECT"),
    ],
)
def test_statement_kind(sql, expected):
    assert statement_kind(sql) == expected


def test_multiple_statements():
    assert statement_kind("CREATE TABLE a (id INT); CREATE TABLE b (id INT)") == "MULTI"


@pytest.mark.parametrize("sql", ["", "   ", None])
def test_empty_statement_kind(sql):
    assert statement_kind(sql) == "UNKNOWN"


def test_unparseable_text_uses_first_keyword():
    assert statement_kind("/* maintenance */ VACUUM ANALYZE clients") == "VACUUM"


@pytest.mark.parametrize(
    "sql, expected",
    [
        ("INSERT INTO clients (id) VALUES ($1) RETURNING id", True),
        ("UPDATE clients SET name = $1 WHERE id = $2 RETURNING *", True),
        ("DELETE FROM clients WHERE id = $1 returning id", True),
        ("INSERT INTO clients (id) VALUES ($1)", False),
        ("SELECT 'returning' AS label", False),
        ("UPDATE notes SET body = 'returning soon' WHERE id = $1", False),
    ],
)
def test_has_returning_clause(sql, expected):
    assert has_returning_clause(sql) is expected


@pytest.mark.parametrize(
    "sql, expected",
    [
        ("DO $$ BEGIN PERFORM 1; END $$", "DO"),
        ('CREATE EXTENSION IF NOT EXISTS "pgcrypto"', "CREATE"),
    ],
)
def test_unsupported_syntax_does_not_warn(sql, expected, caplog):
    with caplog.at_level(logging.WARNING):
        assert statement_kind(sql) == expected

    assert not [r for r in caplog.records if r.name.startswith("sqlglot")]


def test_sqlglot_logger_level_is_restored():
    sqlglot_logger = logging.getLogger("sqlglot")
    before = sqlglot_logger.level

    statement_kind("DO $$ BEGIN PERFORM 1; END $$")

    assert sqlglot_logger.level == before


def test_unexpected_parser_failure_falls_back_to_keyword():
    with patch("erp_dal.statement_kind.sqlglot.parse", side_effect=RecursionError("deep")):
        assert statement_kind("UPDATE t SET a = $1") == "UPDATE"

    with patch("erp_dal.statement_kind.sqlglot.parse_one", side_effect=RecursionError("deep")):
        assert has_returning_clause("DELETE FROM t WHERE id = $1 RETURNING id") is True
