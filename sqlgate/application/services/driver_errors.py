"""Translate raw database driver errors into actionable hints.

Checks run in order and the first match wins; an unrecognized message is
returned unchanged.
"""

import re

_TABLE_NAME_RE = re.compile(r"(?:table|relation)\s*:?\s*[\"']?(\w+)[\"']?", re.IGNORECASE)


def enhance_error_message(original_message: str) -> str:
    """Return a user-facing hint for a driver error message."""
    lower = original_message.lower()

    if "no such table" in lower or ("relation" in lower and "does not exist" in lower):
        match = _TABLE_NAME_RE.search(original_message)
        table_name = match.group(1) if match else "unknown"
        return (
            f'Table "{table_name}" not found. Check table name spelling or verify '
            "the table exists in the selected database."
        )

    if "no such column" in lower or ("column" in lower and "does not exist" in lower):
        return (
            "Column not found. Verify column names match the table schema. "
            "Use Schema Explorer to check available columns."
        )

    if "syntax" in lower:
        return (
            f"SQL Syntax Error: {original_message}. "
            "Check for missing commas, quotes, or keywords."
        )

    if "connection refused" in lower or "econnrefused" in lower:
        return (
            "Connection refused. The database server may be offline or the "
            "connection settings are incorrect."
        )

    if "timeout" in lower or "timed out" in lower:
        return (
            "Query timeout. The query took too long. Try optimizing with indexes "
            "or limiting results."
        )

    if "permission denied" in lower or "access denied" in lower:
        return "Access denied. Check that the database user has the required permissions."

    return original_message
