"""DTOs for query risk policies, validation results and execution records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class QueryRiskPolicyResult:
    """Query risk policy read-model.

    organization_id / connection_id of None mean the policy applies globally.
    """

    id: str
    name: str
    description: str | None
    policy_type: str
    pattern: str | None
    blocked_keywords: tuple[str, ...]
    restricted_tables: tuple[str, ...]
    risk_score: int
    action: str
    is_active: bool
    organization_id: str | None = None
    connection_id: str | None = None
    created_by: str | None = None


@dataclass(frozen=True)
class MatchedPolicy:
    """A policy that fired during evaluation, with the reason it fired."""

    policy_id: str
    policy_name: str
    policy_type: str
    risk_score: int
    action: str
    reason: str


@dataclass(frozen=True)
class QueryValidationResult:
    """Outcome of evaluating one statement against a policy set."""

    allowed: bool
    risk_score: int
    action: str
    matched_policies: tuple[MatchedPolicy, ...] = ()
    warnings: tuple[str, ...] = ()
    decisive_policy_id: str | None = None


@dataclass(frozen=True)
class QueryExecutionCreate:
    """Input for recording one gated query attempt (write-once)."""

    raw_query: str
    executed_by: str
    connection_id: str
    status: str
    connection_name: str | None = None
    row_count: int | None = None
    duration_ms: int | None = None
    risk_score: int = 0
    blocked_reason: str | None = None
    blocked_by_policy_id: str | None = None


@dataclass(frozen=True)
class QueryExecutionResult:
    """Query execution record read-model."""

    id: str
    raw_query: str
    executed_by: str
    connection_id: str
    connection_name: str | None
    status: str
    row_count: int | None
    duration_ms: int | None
    risk_score: int
    blocked_reason: str | None
    blocked_by_policy_id: str | None
    executed_at: datetime


@dataclass(frozen=True)
class QueryExecutionFilter:
    """Filters for listing execution records. None means no constraint."""

    executed_by: str | None = None
    connection_id: str | None = None
    status: str | None = None
    start: datetime | None = None
    end: datetime | None = None
    skip: int = 0
    limit: int = 100


@dataclass(frozen=True)
class RiskStats:
    """Aggregate risk figures over a time window."""

    total_executions: int
    blocked_executions: int
    high_risk_executions: int
    average_risk_score: float
    by_status: dict[str, int] = field(default_factory=dict)
