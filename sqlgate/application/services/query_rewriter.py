"""Row-cap rewriting for bare SELECT statements."""

import re

_LIMIT_RE = re.compile(r"\bLIMIT\s+\d+", re.IGNORECASE)
_FETCH_RE = re.compile(r"FETCH\s+(FIRST|NEXT)\s+\d+", re.IGNORECASE)
_TRAILING_SEMICOLON_RE = re.compile(r";\s*$")


def is_select_query(query: str) -> bool:
    """True when the trimmed statement starts with SELECT (case-insensitive)."""
    return query.strip().upper().startswith("SELECT")


def add_limit_clause(sql: str, max_rows: int) -> str:
    """Append ``LIMIT max_rows`` unless the statement already limits itself.

    Existing ``LIMIT n`` or ANSI ``FETCH FIRST|NEXT n`` clauses are left
    alone, so applying this twice yields the same text. A trailing semicolon
    is removed before appending.
    """
    if _LIMIT_RE.search(sql) or _FETCH_RE.search(sql):
        return sql
    return f"{_TRAILING_SEMICOLON_RE.sub('', sql)} LIMIT {max_rows}"
