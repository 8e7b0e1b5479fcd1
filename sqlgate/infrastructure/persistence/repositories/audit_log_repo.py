"""Audit log repository (insert only; rows are immutable at the ORM level)."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from sqlgate.application.dtos.audit_log import AuditLogResult, QueryAuditEntry
from sqlgate.infrastructure.persistence.models.audit_log import AuditLog


def _audit_to_result(a: AuditLog) -> AuditLogResult:
    return AuditLogResult(
        id=a.id,
        category=a.category,
        connection_id=a.connection_id,
        connection_name=a.connection_name,
        query=a.query,
        status=a.status,
        row_count=a.row_count,
        duration_ms=a.duration_ms,
        error_message=a.error_message,
        executed_by=a.executed_by,
        organization_id=a.organization_id,
        metadata=a.entry_metadata,
        executed_at=a.executed_at,
    )


class AuditLogRepository:
    """Append-only audit log repository."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create_entry(self, entry: QueryAuditEntry) -> AuditLogResult:
        row = AuditLog(
            category=entry.category,
            connection_id=entry.connection_id,
            connection_name=entry.connection_name,
            query=entry.query,
            status=entry.status,
            row_count=entry.row_count,
            duration_ms=entry.duration_ms,
            error_message=entry.error_message,
            executed_by=entry.executed_by,
            organization_id=entry.organization_id,
            entry_metadata=entry.metadata or None,
        )
        if entry.executed_at is not None:
            row.executed_at = entry.executed_at
        self.db.add(row)
        await self.db.flush()
        await self.db.refresh(row)
        return _audit_to_result(row)
