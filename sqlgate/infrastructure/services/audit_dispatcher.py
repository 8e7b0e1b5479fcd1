"""Fire-and-forget audit dispatch.

The gate calls submit() and returns immediately; a single background task
drains a bounded queue into the sink. A full queue, a stopped dispatcher or
a failing sink costs the entry (logged) but never fails the request.
"""

from __future__ import annotations

import asyncio

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sqlgate.application.dtos.audit_log import QueryAuditEntry
from sqlgate.application.dtos.query_policy import QueryExecutionCreate
from sqlgate.application.interfaces.services import IQueryAuditSink
from sqlgate.domain.enums import ExecutionStatus
from sqlgate.infrastructure.persistence.database import get_session_factory
from sqlgate.infrastructure.persistence.repositories.audit_log_repo import AuditLogRepository
from sqlgate.infrastructure.persistence.repositories.query_execution_repo import (
    QueryExecutionRepository,
)
from sqlgate.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class SqlQueryAuditSink:
    """Writes one audit_log row and one query_execution row per entry, in one transaction."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
        self._session_factory = session_factory

    async def write(self, entry: QueryAuditEntry) -> None:
        factory = self._session_factory or get_session_factory()
        async with factory() as session:
            async with session.begin():
                await AuditLogRepository(session).create_entry(entry)
                await QueryExecutionRepository(session).record(
                    QueryExecutionCreate(
                        raw_query=entry.query,
                        executed_by=entry.executed_by,
                        connection_id=entry.connection_id,
                        connection_name=entry.connection_name,
                        status=entry.execution_status,
                        row_count=entry.row_count,
                        duration_ms=entry.duration_ms,
                        risk_score=entry.risk_score,
                        blocked_reason=(
                            entry.error_message
                            if entry.execution_status == ExecutionStatus.BLOCKED.value
                            else None
                        ),
                        blocked_by_policy_id=entry.blocked_by_policy_id,
                    )
                )


class AuditDispatcher:
    """Bounded queue + one drain task. Started and stopped by the app lifespan."""

    def __init__(self, sink: IQueryAuditSink, max_size: int = 1000) -> None:
        self._sink = sink
        self._max_size = max_size
        self._queue: asyncio.Queue[QueryAuditEntry] | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Create the queue and drain task on the running loop (idempotent)."""
        if self.running:
            return
        self._queue = asyncio.Queue(maxsize=self._max_size)
        self._task = asyncio.create_task(self._drain(self._queue), name="audit-dispatcher")
        logger.info("Audit dispatcher started (queue size %d)", self._max_size)

    def submit(self, entry: QueryAuditEntry) -> None:
        """Enqueue entry without waiting. Drops (with a warning) when full or stopped."""
        if self._queue is None or not self.running:
            logger.warning(
                "Audit dispatcher not running; dropping audit entry for connection %s",
                entry.connection_id,
            )
            return
        try:
            self._queue.put_nowait(entry)
        except asyncio.QueueFull:
            logger.warning(
                "Audit queue full (%d); dropping audit entry for connection %s",
                self._max_size,
                entry.connection_id,
            )

    async def _drain(self, queue: asyncio.Queue[QueryAuditEntry]) -> None:
        while True:
            entry = await queue.get()
            try:
                await self._sink.write(entry)
            except Exception:
                logger.exception(
                    "Failed to write audit entry for connection %s (status %s)",
                    entry.connection_id,
                    entry.status,
                )
            finally:
                queue.task_done()

    async def flush(self) -> None:
        """Wait until every queued entry has been handed to the sink."""
        if self._queue is not None and self.running:
            await self._queue.join()

    async def stop(self, timeout: float = 5.0) -> None:
        """Drain what is queued (bounded by timeout), then cancel the drain task."""
        if self._task is None:
            return
        try:
            await asyncio.wait_for(self.flush(), timeout=timeout)
        except TimeoutError:
            pending = self._queue.qsize() if self._queue is not None else 0
            logger.warning("Audit dispatcher stopped with %d entries unwritten", pending)
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Audit dispatcher stopped")
