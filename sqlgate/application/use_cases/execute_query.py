"""Query execution gate: security check, row cap, execution, audit.

Steps for one statement:

1. Resolve the target connection (credentials included).
2. Security check: static guard over the organization's settings, then the
   risk policy evaluator. Either can veto.
3. Vetoed statements are never sent to the database; a FAILURE audit entry
   is emitted and PolicyViolationException raised.
4. Bare SELECTs get a LIMIT when a row cap is configured.
5. Execute and time the statement.
6. Success: audit entry submitted without waiting, result returned.
7. Failure: driver message translated into a hint, audit entry carries the
   original message, QueryExecutionException raised.
"""

from __future__ import annotations

import time
from dataclasses import asdict

from sqlgate.application.dtos.audit_log import QueryAuditEntry
from sqlgate.application.dtos.connection import ConnectionWithCredentials
from sqlgate.application.dtos.query import GateDecision, QueryResult
from sqlgate.application.interfaces.repositories import IConnectionRepository
from sqlgate.application.interfaces.services import IAuditDispatcher, IDatabaseConnector
from sqlgate.application.services.driver_errors import enhance_error_message
from sqlgate.application.services.query_policy_service import QueryPolicyService
from sqlgate.application.services.query_rewriter import add_limit_clause, is_select_query
from sqlgate.application.services.security_settings_service import (
    DEFAULT_ORGANIZATION_ID,
    SecuritySettingsService,
)
from sqlgate.application.services.sql_security import SqlSecurityGuard
from sqlgate.domain.enums import AuditStatus, ExecutionStatus
from sqlgate.domain.exceptions import (
    PolicyViolationException,
    QueryExecutionException,
    ResourceNotFoundException,
    SecurityCheckUnavailableException,
)
from sqlgate.shared.telemetry.logging import get_logger
from sqlgate.shared.telemetry.tracing import add_span_attributes, set_span_error, traced
from sqlgate.shared.utils.datetime import elapsed_ms, utc_now

logger = get_logger(__name__)


class QueryExecutionGate:
    """Gate every ad hoc statement before it reaches a target database."""

    def __init__(
        self,
        connection_repo: IConnectionRepository,
        settings_service: SecuritySettingsService,
        policy_service: QueryPolicyService,
        guard: SqlSecurityGuard,
        connector: IDatabaseConnector,
        audit: IAuditDispatcher,
        *,
        fail_open: bool = True,
        fallback_max_result_rows: int = 1000,
    ) -> None:
        self._connection_repo = connection_repo
        self._settings_service = settings_service
        self._policy_service = policy_service
        self._guard = guard
        self._connector = connector
        self._audit = audit
        self._fail_open = fail_open
        self._fallback_max_result_rows = fallback_max_result_rows

    async def check_security(
        self,
        query: str,
        organization_id: str | None = None,
        connection_id: str | None = None,
    ) -> GateDecision:
        """Combine the static guard and the policy evaluator into one verdict.

        Settings and policies are read independently; whichever could be read
        still vetoes. When a part cannot be read the gate either skips it
        (fail open, fallback row cap when settings are missing) or raises
        SecurityCheckUnavailableException, depending on configuration.
        Without an organization both parts resolve the default organization.
        """
        scope = organization_id or DEFAULT_ORGANIZATION_ID
        settings = None
        validation = None
        try:
            settings = await self._settings_service.get_settings(scope)
        except Exception as e:
            self._security_read_failed("settings", e)
        try:
            validation = await self._policy_service.validate_query(
                query, organization_id=scope, connection_id=connection_id
            )
        except Exception as e:
            self._security_read_failed("policies", e)

        max_result_rows = (
            settings.max_result_rows if settings is not None else self._fallback_max_result_rows
        )
        risk_score = validation.risk_score if validation is not None else 0

        if settings is not None:
            static = self._guard.check(query, settings)
            if static.blocked:
                return GateDecision(
                    allowed=False,
                    reason=static.reason,
                    rule=static.rule,
                    risk_score=risk_score,
                    max_result_rows=max_result_rows,
                )

        if validation is None:
            return GateDecision(allowed=True, max_result_rows=max_result_rows)

        matched = tuple(asdict(m) for m in validation.matched_policies)
        if not validation.allowed:
            decisive = next(
                m for m in validation.matched_policies
                if m.policy_id == validation.decisive_policy_id
            )
            return GateDecision(
                allowed=False,
                reason=f"Blocked by policy '{decisive.policy_name}': {decisive.reason}",
                rule=f"policy:{decisive.policy_type}",
                risk_score=risk_score,
                max_result_rows=max_result_rows,
                blocked_by_policy_id=decisive.policy_id,
                matched_policies=matched,
            )
        return GateDecision(
            allowed=True,
            risk_score=risk_score,
            max_result_rows=max_result_rows,
            matched_policies=matched,
            warnings=validation.warnings,
        )

    def _security_read_failed(self, part: str, error: Exception) -> None:
        """Log an unreadable settings/policies read; raise when the gate fails closed."""
        logger.exception("Security check could not read %s", part)
        set_span_error(error)
        if not self._fail_open:
            raise SecurityCheckUnavailableException() from None

    def _emit(
        self,
        connection: ConnectionWithCredentials,
        query: str,
        executed_by: str,
        organization_id: str | None,
        *,
        status: AuditStatus,
        execution_status: ExecutionStatus,
        decision: GateDecision,
        duration_ms: int | None = None,
        row_count: int | None = None,
        error_message: str | None = None,
        executed_query: str | None = None,
    ) -> None:
        metadata: dict = {}
        if decision.rule:
            metadata["rule"] = decision.rule
        if decision.matched_policies:
            metadata["matched_policies"] = [m["policy_id"] for m in decision.matched_policies]
        if executed_query is not None and executed_query != query:
            metadata["executed_query"] = executed_query
        self._audit.submit(
            QueryAuditEntry(
                connection_id=connection.id,
                connection_name=connection.name,
                query=query,
                status=status.value,
                execution_status=execution_status.value,
                executed_by=executed_by,
                organization_id=organization_id,
                duration_ms=duration_ms,
                row_count=row_count,
                error_message=error_message,
                risk_score=decision.risk_score,
                blocked_by_policy_id=decision.blocked_by_policy_id,
                metadata=metadata,
                executed_at=utc_now(),
            )
        )

    @traced("gate.execute_query")
    async def execute_query(
        self,
        connection_id: str,
        raw_query: str,
        executed_by: str,
        organization_id: str | None = None,
    ) -> QueryResult:
        """Run raw_query on connection_id on behalf of executed_by.

        Raises:
            ResourceNotFoundException: Connection does not exist.
            PolicyViolationException: Security check vetoed the statement.
            SecurityCheckUnavailableException: Check could not run and the gate fails closed.
            QueryExecutionException: The database rejected the statement.
        """
        connection = await self._connection_repo.get_with_credentials(connection_id)
        if connection is None:
            raise ResourceNotFoundException("connection", connection_id)

        decision = await self.check_security(raw_query, organization_id, connection_id)
        add_span_attributes(
            **{"gate.allowed": decision.allowed, "gate.risk_score": decision.risk_score}
        )
        if not decision.allowed:
            logger.warning(
                "Query blocked for %s on connection %s (%s)",
                executed_by,
                connection_id,
                decision.rule,
            )
            self._emit(
                connection,
                raw_query,
                executed_by,
                organization_id,
                status=AuditStatus.FAILURE,
                execution_status=ExecutionStatus.BLOCKED,
                decision=decision,
                error_message=decision.reason,
            )
            raise PolicyViolationException(
                reason=decision.reason or "Query blocked by security policy",
                rule=decision.rule or "unknown",
                matched_policies=list(decision.matched_policies),
                risk_score=decision.risk_score,
            )

        final_query = raw_query
        if decision.max_result_rows and is_select_query(final_query):
            final_query = add_limit_clause(final_query, decision.max_result_rows)

        started = time.perf_counter()
        try:
            raw = await self._connector.execute(connection, final_query)
        except Exception as e:
            duration = elapsed_ms(started, time.perf_counter())
            original = str(e) or e.__class__.__name__
            self._emit(
                connection,
                raw_query,
                executed_by,
                organization_id,
                status=AuditStatus.FAILURE,
                execution_status=ExecutionStatus.FAILED,
                decision=decision,
                duration_ms=duration,
                error_message=original,
                executed_query=final_query,
            )
            logger.info("Query failed on connection %s: %s", connection_id, original)
            raise QueryExecutionException(
                enhance_error_message(original), original, connection_id
            ) from e

        duration = elapsed_ms(started, time.perf_counter())
        self._emit(
            connection,
            raw_query,
            executed_by,
            organization_id,
            status=AuditStatus.SUCCESS,
            execution_status=ExecutionStatus.SUCCESS,
            decision=decision,
            duration_ms=duration,
            row_count=raw.row_count,
            executed_query=final_query,
        )
        return QueryResult(
            rows=raw.rows,
            fields=raw.fields,
            row_count=raw.row_count,
            executed_query=final_query,
            duration_ms=duration,
            risk_score=decision.risk_score,
            warnings=decision.warnings,
        )
