"""Presentation-layer dependency injection (composition root).

Provides FastAPI Depends() for DB sessions, the calling principal and
application services. Services are built from infrastructure implementations
here; routes depend only on these dependencies.

Authentication happens upstream: the principal is read from the configured
user and group headers.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from sqlgate.application.dtos.rbac import AccessContext, Principal
from sqlgate.application.interfaces.services import IAuditDispatcher, IDatabaseConnector
from sqlgate.application.services.authorization_service import AuthorizationService
from sqlgate.application.services.query_policy_service import QueryPolicyService
from sqlgate.application.services.rbac_policy_service import RbacPolicyService
from sqlgate.application.services.role_graph import RoleGraph
from sqlgate.application.services.role_service import RoleService
from sqlgate.application.services.security_settings_service import SecuritySettingsService
from sqlgate.application.services.sql_security import SqlSecurityGuard
from sqlgate.application.use_cases.execute_query import QueryExecutionGate
from sqlgate.core.config import get_settings
from sqlgate.infrastructure.persistence.database import get_db, get_db_transactional
from sqlgate.infrastructure.persistence.repositories import (
    ConnectionRepository,
    PermissionRepository,
    QueryExecutionRepository,
    QueryPolicyRepository,
    RbacPolicyRepository,
    RoleAssignmentRepository,
    RoleRepository,
    SecuritySettingsRepository,
)
from sqlgate.shared.utils.datetime import in_timezone, utc_now

# ---- Principal and request context ----


def get_principal(request: Request) -> Principal:
    """Caller identity from the user/group headers. 401 when the user header is missing."""
    settings = get_settings()
    user_id = (request.headers.get(settings.user_header_name) or "").strip()
    if not user_id:
        raise HTTPException(
            status_code=401, detail=f"Missing {settings.user_header_name} header"
        )
    raw_groups = request.headers.get(settings.group_header_name) or ""
    group_ids = tuple(g.strip() for g in raw_groups.split(",") if g.strip())
    return Principal(user_id=user_id, group_ids=group_ids)


def get_access_context(request: Request) -> AccessContext:
    """Client IP and current time (in the condition timezone) for permission conditions."""
    ip = request.client.host if request.client else None
    now = in_timezone(utc_now(), get_settings().rbac_condition_timezone)
    return AccessContext(ip=ip, time=now)


# ---- RBAC ----


def _build_role_graph(db: AsyncSession) -> RoleGraph:
    return RoleGraph(RoleRepository(db), max_depth=get_settings().rbac_max_hierarchy_depth)


def _build_authorization_service(db: AsyncSession) -> AuthorizationService:
    return AuthorizationService(
        role_graph=_build_role_graph(db),
        permission_repo=PermissionRepository(db),
        assignment_repo=RoleAssignmentRepository(db),
    )


async def get_authorization_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AuthorizationService:
    """RBAC resolver over a read session."""
    return _build_authorization_service(db)


def _build_role_service(db: AsyncSession) -> RoleService:
    return RoleService(
        role_repo=RoleRepository(db),
        permission_repo=PermissionRepository(db),
        assignment_repo=RoleAssignmentRepository(db),
        permission_checker=_build_authorization_service(db),
        role_graph=_build_role_graph(db),
    )


async def get_role_service(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
) -> RoleService:
    """Role administration over one transactional session (checks see pending writes)."""
    return _build_role_service(db)


async def get_rbac_policy_service(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
) -> RbacPolicyService:
    """Permission bundles; applying one writes permissions through RoleService on the same session."""
    return RbacPolicyService(RbacPolicyRepository(db), _build_role_service(db))


def require_permission(resource: str, action: str):
    """Dependency factory: require that the calling principal has action on resource."""

    async def _require(
        principal: Annotated[Principal, Depends(get_principal)],
        context: Annotated[AccessContext, Depends(get_access_context)],
        auth_svc: Annotated[AuthorizationService, Depends(get_authorization_service)],
    ) -> Principal:
        await auth_svc.require_permission(
            principal.user_id, list(principal.group_ids), resource, action, context=context
        )
        return principal

    return _require


# ---- Query policies and settings ----


def _build_query_policy_service(db: AsyncSession) -> QueryPolicyService:
    return QueryPolicyService(
        policy_repo=QueryPolicyRepository(db),
        execution_repo=QueryExecutionRepository(db),
        high_risk_threshold=get_settings().high_risk_threshold,
    )


async def get_query_policy_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> QueryPolicyService:
    return _build_query_policy_service(db)


async def get_query_policy_service_for_write(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
) -> QueryPolicyService:
    return _build_query_policy_service(db)


async def get_security_settings_service(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
) -> SecuritySettingsService:
    """Transactional: the first read creates the default row."""
    return SecuritySettingsService(SecuritySettingsRepository(db))


# ---- Query execution gate ----


def get_db_connector(request: Request) -> IDatabaseConnector:
    """Connector created by the lifespan (one engine pool per target connection)."""
    return request.app.state.db_connector


def get_audit_dispatcher(request: Request) -> IAuditDispatcher:
    """Audit dispatcher created and started by the lifespan."""
    return request.app.state.audit_dispatcher


async def get_query_execution_gate(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
    connector: Annotated[IDatabaseConnector, Depends(get_db_connector)],
    audit: Annotated[IAuditDispatcher, Depends(get_audit_dispatcher)],
) -> QueryExecutionGate:
    settings = get_settings()
    return QueryExecutionGate(
        connection_repo=ConnectionRepository(db),
        settings_service=SecuritySettingsService(SecuritySettingsRepository(db)),
        policy_service=_build_query_policy_service(db),
        guard=SqlSecurityGuard(settings.security_message_locale),
        connector=connector,
        audit=audit,
        fail_open=settings.security_fail_open,
        fallback_max_result_rows=settings.security_fallback_max_result_rows,
    )
