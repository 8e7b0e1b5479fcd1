"""DTOs for gated query execution and the static security check."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

DEFAULT_BLOCKED_KEYWORDS = "DROP, DELETE, TRUNCATE, ALTER, CREATE, GRANT, REVOKE"
DEFAULT_MAX_RESULT_ROWS = 1000


@dataclass(frozen=True)
class ConnectorResult:
    """Raw rows returned by the database connector."""

    rows: list[dict[str, Any]]
    fields: list[str]
    row_count: int


@dataclass(frozen=True)
class QueryResult:
    """Result handed back to the caller of the gate."""

    rows: list[dict[str, Any]]
    fields: list[str]
    row_count: int
    executed_query: str
    duration_ms: int
    risk_score: int = 0
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class SecuritySettingsResult:
    """Per-organization switches for the static SQL guard."""

    organization_id: str
    enable_sql_injection_check: bool = True
    enable_ddl_block: bool = True
    enable_dml_block: bool = False
    max_result_rows: int | None = DEFAULT_MAX_RESULT_ROWS
    blocked_keywords: str = DEFAULT_BLOCKED_KEYWORDS
    updated_at: datetime | None = None

    @property
    def keyword_list(self) -> list[str]:
        """Blocked keywords split on commas, trimmed, empties dropped."""
        return [k.strip() for k in self.blocked_keywords.split(",") if k.strip()]


@dataclass(frozen=True)
class SecuritySettingsUpdate:
    """Partial update of security settings; None leaves a field unchanged."""

    enable_sql_injection_check: bool | None = None
    enable_ddl_block: bool | None = None
    enable_dml_block: bool | None = None
    max_result_rows: int | None = None
    blocked_keywords: str | None = None


@dataclass(frozen=True)
class SecurityCheckResult:
    """Static guard verdict. rule names the check that fired (e.g. 'ddl_block')."""

    blocked: bool
    reason: str | None = None
    rule: str | None = None
    keyword: str | None = None


@dataclass(frozen=True)
class GateDecision:
    """Combined verdict of the static guard and the policy evaluator."""

    allowed: bool
    reason: str | None = None
    rule: str | None = None
    risk_score: int = 0
    max_result_rows: int | None = None
    blocked_by_policy_id: str | None = None
    matched_policies: tuple[dict[str, Any], ...] = ()
    warnings: tuple[str, ...] = field(default_factory=tuple)
