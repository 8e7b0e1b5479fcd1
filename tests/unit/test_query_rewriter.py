"""LIMIT injection for bare SELECT statements."""

import pytest

from sqlgate.application.services.query_rewriter import add_limit_clause, is_select_query


def test_appends_limit_and_strips_semicolon() -> None:
    assert add_limit_clause("SELECT * FROM t;  ", 100) == "SELECT * FROM t LIMIT 100"


def test_applying_twice_is_idempotent() -> None:
    once = add_limit_clause("SELECT * FROM t", 50)
    assert add_limit_clause(once, 50) == once


@pytest.mark.parametrize(
    "sql",
    [
        "SELECT * FROM t limit 10",
        "SELECT * FROM t FETCH FIRST 5 ROWS ONLY",
        "SELECT * FROM t OFFSET 5 FETCH NEXT 5 ROWS ONLY",
    ],
)
def test_existing_row_limit_is_kept(sql: str) -> None:
    assert add_limit_clause(sql, 1000) == sql


@pytest.mark.parametrize(
    ("sql", "expected"),
    [
        ("  select 1", True),
        ("SELECT * FROM t", True),
        ("WITH x AS (SELECT 1) SELECT * FROM x", False),
        ("UPDATE t SET a = 1", False),
    ],
)
def test_is_select_query(sql: str, expected: bool) -> None:
    assert is_select_query(sql) is expected
