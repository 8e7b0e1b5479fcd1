"""DTOs for query audit entries."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlgate.domain.enums import AuditCategory


@dataclass(frozen=True)
class QueryAuditEntry:
    """One audit record for a gated query attempt.

    Written once by the audit sink; status is SUCCESS or FAILURE.
    execution_status carries the finer-grained execution outcome
    (success, failed, blocked) for the execution record.
    """

    connection_id: str
    query: str
    status: str
    executed_by: str
    execution_status: str
    connection_name: str | None = None
    organization_id: str | None = None
    row_count: int | None = None
    duration_ms: int | None = None
    error_message: str | None = None
    risk_score: int = 0
    blocked_by_policy_id: str | None = None
    category: str = AuditCategory.QUERY.value
    metadata: dict[str, Any] = field(default_factory=dict)
    executed_at: datetime | None = None


@dataclass(frozen=True)
class AuditLogResult:
    """Audit log read-model."""

    id: str
    category: str
    connection_id: str | None
    connection_name: str | None
    query: str | None
    status: str
    row_count: int | None
    duration_ms: int | None
    error_message: str | None
    executed_by: str | None
    organization_id: str | None
    metadata: dict[str, Any] | None
    executed_at: datetime
