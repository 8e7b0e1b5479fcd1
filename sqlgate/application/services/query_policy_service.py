"""Query risk policy administration, validation and execution statistics."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlgate.application.dtos.query_policy import (
    QueryExecutionFilter,
    QueryExecutionResult,
    QueryRiskPolicyResult,
    QueryValidationResult,
    RiskStats,
)
from sqlgate.application.interfaces.repositories import (
    IQueryExecutionRepository,
    IQueryPolicyRepository,
)
from sqlgate.application.services.query_policy_evaluator import evaluate_query
from sqlgate.domain.enums import ExecutionStatus, PolicyAction, PolicyType
from sqlgate.domain.exceptions import ResourceNotFoundException, ValidationException
from sqlgate.shared.telemetry.logging import get_logger
from sqlgate.shared.telemetry.tracing import add_span_attributes, traced
from sqlgate.shared.utils.datetime import ensure_utc

logger = get_logger(__name__)

DEFAULT_HIGH_RISK_THRESHOLD = 70

# Columns that are NOT NULL on query_risk_policy.
REQUIRED_POLICY_FIELDS = ("name", "policy_type", "risk_score", "action", "is_active")


def _validate_policy_fields(fields: dict[str, Any]) -> None:
    """Reject nulls for required columns, unknown type/action values and out-of-range scores."""
    for key in REQUIRED_POLICY_FIELDS:
        if key in fields and fields[key] is None:
            raise ValidationException(f"{key} cannot be null", field=key)
    if "policy_type" in fields and fields["policy_type"] not in PolicyType.values():
        raise ValidationException(
            f"Invalid policy type: {fields['policy_type']}", field="policy_type"
        )
    if "action" in fields and fields["action"] not in PolicyAction.values():
        raise ValidationException(f"Invalid policy action: {fields['action']}", field="action")
    score = fields.get("risk_score")
    if score is not None and not 0 <= score <= 100:
        raise ValidationException("risk_score must be between 0 and 100", field="risk_score")


class QueryPolicyService:
    """Manage query risk policies and evaluate statements against them."""

    def __init__(
        self,
        policy_repo: IQueryPolicyRepository,
        execution_repo: IQueryExecutionRepository,
        high_risk_threshold: int = DEFAULT_HIGH_RISK_THRESHOLD,
    ) -> None:
        self._policy_repo = policy_repo
        self._execution_repo = execution_repo
        self._high_risk_threshold = high_risk_threshold

    @traced("query_policy.validate_query")
    async def validate_query(
        self,
        query: str,
        organization_id: str | None = None,
        connection_id: str | None = None,
    ) -> QueryValidationResult:
        """Evaluate query against active global and scope-matching policies."""
        policies = await self._policy_repo.get_applicable(organization_id, connection_id)
        result = evaluate_query(query, policies)
        add_span_attributes(
            **{
                "query_policy.risk_score": result.risk_score,
                "query_policy.action": result.action,
                "query_policy.matched": len(result.matched_policies),
            }
        )
        return result

    async def create_policy(
        self, created_by: str | None = None, **fields: Any
    ) -> QueryRiskPolicyResult:
        _validate_policy_fields(fields)
        if fields.get("policy_type") == PolicyType.CUSTOM.value and not fields.get("pattern"):
            raise ValidationException("custom policies need a pattern", field="pattern")
        policy = await self._policy_repo.create_policy(created_by, **fields)
        logger.info("Created query policy %s (%s)", policy.id, policy.policy_type)
        return policy

    async def list_policies(
        self,
        organization_id: str | None = None,
        connection_id: str | None = None,
        *,
        include_inactive: bool = True,
    ) -> list[QueryRiskPolicyResult]:
        return await self._policy_repo.list_policies(
            organization_id, connection_id, include_inactive=include_inactive
        )

    async def get_policy(self, policy_id: str) -> QueryRiskPolicyResult:
        policy = await self._policy_repo.get_policy(policy_id)
        if policy is None:
            raise ResourceNotFoundException("query_policy", policy_id)
        return policy

    async def update_policy(self, policy_id: str, **fields: Any) -> QueryRiskPolicyResult:
        _validate_policy_fields(fields)
        updated = await self._policy_repo.update_policy(policy_id, **fields)
        if updated is None:
            raise ResourceNotFoundException("query_policy", policy_id)
        return updated

    async def delete_policy(self, policy_id: str) -> None:
        if not await self._policy_repo.delete_policy(policy_id):
            raise ResourceNotFoundException("query_policy", policy_id)

    async def list_executions(
        self, filters: QueryExecutionFilter
    ) -> list[QueryExecutionResult]:
        return await self._execution_repo.list_executions(filters)

    async def list_blocked_executions(self, limit: int = 100) -> list[QueryExecutionResult]:
        return await self._execution_repo.list_executions(
            QueryExecutionFilter(status=ExecutionStatus.BLOCKED.value, limit=limit)
        )

    async def get_risk_stats(
        self, start: datetime | None = None, end: datetime | None = None
    ) -> RiskStats:
        """Totals, blocked and high-risk counts, and average risk score over [start, end]."""
        start, end = ensure_utc(start), ensure_utc(end)
        if start and end and start > end:
            raise ValidationException("start must not be after end", field="start")
        return await self._execution_repo.get_risk_stats(
            start, end, self._high_risk_threshold
        )
