"""Risk policy evaluator: per-type detection and decisive-policy selection."""

import pytest

from sqlgate.application.services.query_policy_evaluator import check_policy, evaluate_query
from tests.fakes import make_policy


def test_block_policy_decides_over_lower_warn() -> None:
    """90/block and 40/warn both match: risk 90, action block, not allowed."""
    policies = [
        make_policy("warn-keyword", "keyword_block", 40, "warn", blocked_keywords=("users",)),
        make_policy("no-ddl", "ddl_block", 90, "block"),
    ]
    result = evaluate_query("DROP TABLE users", policies)
    assert result.allowed is False
    assert result.risk_score == 90
    assert result.action == "block"
    assert result.decisive_policy_id == "no-ddl"
    assert [m.policy_id for m in result.matched_policies] == ["no-ddl", "warn-keyword"]


def test_warn_only_match_is_allowed_with_warning() -> None:
    policies = [make_policy("limit", "limit_required", 30, "warn", name="Limit")]
    result = evaluate_query("select * from orders", policies)
    assert result.allowed is True
    assert result.risk_score == 30
    assert result.warnings == ("Limit: SELECT without LIMIT clause",)


def test_no_match_is_risk_zero_warn_allowed() -> None:
    result = evaluate_query("SELECT 1 LIMIT 1", [make_policy("ddl", "ddl_block", 90, "block")])
    assert result.allowed is True
    assert result.risk_score == 0
    assert result.action == "warn"
    assert result.matched_policies == ()


def test_tie_is_decided_by_first_in_order() -> None:
    policies = [
        make_policy("first", "limit_required", 50, "warn"),
        make_policy("second", "keyword_block", 50, "block", blocked_keywords=("orders",)),
    ]
    result = evaluate_query("SELECT * FROM orders", policies)
    assert result.decisive_policy_id == "first"
    assert result.allowed is True


def test_inactive_policies_are_ignored() -> None:
    policies = [make_policy("off", "ddl_block", 90, "block", is_active=False)]
    assert evaluate_query("DROP TABLE t", policies).allowed is True


@pytest.mark.parametrize(
    ("query", "fires"),
    [
        ("DELETE FROM users", True),
        ("update users set active = false", True),
        ("DELETE FROM users WHERE id = 1", False),
        ("SELECT * FROM users", False),
    ],
)
def test_where_required(query: str, fires: bool) -> None:
    policy = make_policy("where", "where_required", 80, "block")
    reason = check_policy(policy, query.upper())
    assert (reason == "UPDATE/DELETE without WHERE clause") is fires


def test_table_restrict_names_the_table() -> None:
    policy = make_policy("pii", "table_restrict", 70, "block", restricted_tables=("salaries",))
    assert check_policy(policy, "SELECT * FROM SALARIES") == "Accesses restricted table: salaries"


def test_custom_pattern_matches_case_insensitively() -> None:
    policy = make_policy("star", "custom", 20, "warn", pattern=r"select\s+\*")
    assert check_policy(policy, "SELECT * FROM T") == "Matches custom pattern"


def test_invalid_custom_pattern_never_matches() -> None:
    """An unparsable pattern is skipped instead of failing the evaluation."""
    policies = [
        make_policy("broken", "custom", 99, "block", pattern="(unterminated"),
        make_policy("limit", "limit_required", 10, "warn"),
    ]
    result = evaluate_query("SELECT * FROM t", policies)
    assert result.allowed is True
    assert [m.policy_id for m in result.matched_policies] == ["limit"]


@pytest.mark.parametrize(
    ("query", "keyword"),
    [
        ("DROP VIEW monthly", "DROP"),
        ("truncate table logs", "TRUNCATE"),
        ("ALTER TABLE t ADD COLUMN c int", "ALTER"),
        ("create index ix_t_c on t (c)", "CREATE"),
        ("GRANT SELECT ON t TO bob", "GRANT"),
        ("revoke all on t from bob", "REVOKE"),
    ],
)
def test_ddl_block_covers_every_ddl_keyword(query: str, keyword: str) -> None:
    policy = make_policy("ddl", "ddl_block", 90, "block")
    assert check_policy(policy, query.upper()) == f"Contains DDL keyword: {keyword}"


def test_ddl_block_ignores_plain_select() -> None:
    policy = make_policy("ddl", "ddl_block", 90, "block")
    assert check_policy(policy, "SELECT ID FROM ORDERS") is None


@pytest.mark.parametrize(
    ("query", "fires"),
    [
        ("select * from orders", True),
        ("SELECT * FROM orders LIMIT 5", False),
        ("INSERT INTO orders VALUES (1)", False),
    ],
)
def test_limit_required(query: str, fires: bool) -> None:
    policy = make_policy("limit", "limit_required", 30, "warn")
    reason = check_policy(policy, query.upper())
    assert (reason == "SELECT without LIMIT clause") is fires


def test_keyword_block_reports_keyword_as_configured() -> None:
    policy = make_policy("sleep", "keyword_block", 60, "block", blocked_keywords=("", "pg_sleep"))
    assert check_policy(policy, "SELECT PG_SLEEP(10)") == "Contains blocked keyword: pg_sleep"
    assert check_policy(policy, "SELECT 1") is None


@pytest.mark.parametrize(
    ("policy_type", "overrides", "firing", "quiet"),
    [
        ("ddl_block", {}, "DROP TABLE t", "SELECT 1 LIMIT 1"),
        ("where_required", {}, "DELETE FROM t", "DELETE FROM t WHERE id = 1"),
        ("limit_required", {}, "SELECT * FROM t", "SELECT * FROM t LIMIT 1"),
        ("keyword_block", {"blocked_keywords": ("xp_cmdshell",)}, "EXEC xp_cmdshell 'dir'", "SELECT 1"),
        ("table_restrict", {"restricted_tables": ("salaries",)}, "SELECT * FROM salaries", "SELECT * FROM t"),
        ("custom", {"pattern": r"\bunion\b"}, "SELECT a FROM t UNION SELECT b FROM u", "SELECT a FROM t"),
    ],
)
def test_each_policy_type_blocks_only_matching_statements(
    policy_type: str, overrides: dict, firing: str, quiet: str
) -> None:
    policies = [make_policy(policy_type, policy_type, 75, "block", **overrides)]
    blocked = evaluate_query(firing, policies)
    assert blocked.allowed is False
    assert blocked.decisive_policy_id == policy_type
    assert evaluate_query(quiet, policies).matched_policies == ()
