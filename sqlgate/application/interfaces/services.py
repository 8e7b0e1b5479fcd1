"""Service interfaces (ports) for the application layer.

Protocols define contracts for collaborators the gate and admin services use (DIP).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from sqlgate.application.dtos.audit_log import QueryAuditEntry
    from sqlgate.application.dtos.connection import ConnectionWithCredentials
    from sqlgate.application.dtos.query import ConnectorResult
    from sqlgate.application.dtos.rbac import AccessContext, PermissionDecision


# Database connector interface
class IDatabaseConnector(Protocol):
    """Protocol for executing SQL against a registered target database."""

    async def execute(
        self, connection: ConnectionWithCredentials, sql: str
    ) -> ConnectorResult:
        """Run sql and return rows. Driver errors propagate unchanged."""

    async def dispose(self) -> None:
        """Close pooled connections."""


# Audit sink interface
class IQueryAuditSink(Protocol):
    """Protocol for persisting one audit entry (called by the dispatcher)."""

    async def write(self, entry: QueryAuditEntry) -> None:
        """Persist entry. Errors are handled by the caller."""


# Audit dispatcher interface
class IAuditDispatcher(Protocol):
    """Protocol for fire-and-forget audit submission."""

    def submit(self, entry: QueryAuditEntry) -> None:
        """Enqueue entry without blocking; never raises."""


# Permission checker interface
class IPermissionChecker(Protocol):
    """Protocol for the RBAC resolver as seen by admin services."""

    async def check_permission(
        self,
        user_id: str,
        group_ids: list[str],
        resource: str,
        action: str,
        context: AccessContext | None = None,
    ) -> PermissionDecision:
        """Return allow/deny with a reason."""
