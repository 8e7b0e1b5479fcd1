"""Query execution repository: insert-only records plus risk aggregates."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sqlgate.application.dtos.query_policy import (
    QueryExecutionCreate,
    QueryExecutionFilter,
    QueryExecutionResult,
    RiskStats,
)
from sqlgate.domain.enums import ExecutionStatus
from sqlgate.infrastructure.persistence.models.query_execution import QueryExecution
from sqlgate.infrastructure.persistence.repositories.base import BaseRepository


def _execution_to_result(e: QueryExecution) -> QueryExecutionResult:
    return QueryExecutionResult(
        id=e.id,
        raw_query=e.raw_query,
        executed_by=e.executed_by,
        connection_id=e.connection_id,
        connection_name=e.connection_name,
        status=e.status,
        row_count=e.row_count,
        duration_ms=e.duration_ms,
        risk_score=e.risk_score,
        blocked_reason=e.blocked_reason,
        blocked_by_policy_id=e.blocked_by_policy_id,
        executed_at=e.executed_at,
    )


class QueryExecutionRepository(BaseRepository[QueryExecution]):
    """Query execution repository. Rows are never updated."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, QueryExecution)

    async def record(self, data: QueryExecutionCreate) -> QueryExecutionResult:
        created = await self.create(
            QueryExecution(
                raw_query=data.raw_query,
                executed_by=data.executed_by,
                connection_id=data.connection_id,
                connection_name=data.connection_name,
                status=data.status,
                row_count=data.row_count,
                duration_ms=data.duration_ms,
                risk_score=data.risk_score,
                blocked_reason=data.blocked_reason,
                blocked_by_policy_id=data.blocked_by_policy_id,
            )
        )
        return _execution_to_result(created)

    async def list_executions(
        self, filters: QueryExecutionFilter
    ) -> list[QueryExecutionResult]:
        q = select(QueryExecution)
        if filters.executed_by:
            q = q.where(QueryExecution.executed_by == filters.executed_by)
        if filters.connection_id:
            q = q.where(QueryExecution.connection_id == filters.connection_id)
        if filters.status:
            q = q.where(QueryExecution.status == filters.status)
        if filters.start:
            q = q.where(QueryExecution.executed_at >= filters.start)
        if filters.end:
            q = q.where(QueryExecution.executed_at <= filters.end)
        q = (
            q.order_by(QueryExecution.executed_at.desc())
            .offset(filters.skip)
            .limit(filters.limit)
        )
        result = await self.db.execute(q)
        return [_execution_to_result(e) for e in result.scalars().all()]

    async def get_risk_stats(
        self,
        start: datetime | None,
        end: datetime | None,
        high_risk_threshold: int,
    ) -> RiskStats:
        conditions = []
        if start:
            conditions.append(QueryExecution.executed_at >= start)
        if end:
            conditions.append(QueryExecution.executed_at <= end)
        result = await self.db.execute(
            select(
                QueryExecution.status,
                func.count(QueryExecution.id),
                func.sum(QueryExecution.risk_score),
                func.count(QueryExecution.id).filter(
                    QueryExecution.risk_score >= high_risk_threshold
                ),
            )
            .where(*conditions)
            .group_by(QueryExecution.status)
        )
        by_status: dict[str, int] = {}
        total = 0
        risk_sum = 0
        high_risk = 0
        for status, count, status_risk_sum, status_high_risk in result.all():
            by_status[status] = count
            total += count
            risk_sum += status_risk_sum or 0
            high_risk += status_high_risk or 0
        return RiskStats(
            total_executions=total,
            blocked_executions=by_status.get(ExecutionStatus.BLOCKED.value, 0),
            high_risk_executions=high_risk,
            average_risk_score=(risk_sum / total) if total else 0.0,
            by_status=by_status,
        )
