"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference application DTOs only; no infrastructure imports.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from sqlgate.application.dtos.audit_log import AuditLogResult, QueryAuditEntry
    from sqlgate.application.dtos.connection import ConnectionWithCredentials
    from sqlgate.application.dtos.query import (
        SecuritySettingsResult,
        SecuritySettingsUpdate,
    )
    from sqlgate.application.dtos.query_policy import (
        QueryExecutionCreate,
        QueryExecutionFilter,
        QueryExecutionResult,
        QueryRiskPolicyResult,
        RiskStats,
    )
    from sqlgate.application.dtos.rbac import (
        GroupRoleResult,
        PermissionCondition,
        PermissionResult,
        PolicyPermission,
        RbacPolicyResult,
        RoleResult,
        UserRoleResult,
    )


# Role repository interface
class IRoleRepository(Protocol):
    """Protocol for role repository (DIP)."""

    async def get_role(self, role_id: str) -> RoleResult | None:
        """Return role by ID (active or not)."""

    async def get_by_ids(self, role_ids: set[str]) -> list[RoleResult]:
        """Return roles for the given ids (batch). Unknown ids are skipped."""

    async def list_roles(
        self,
        organization_id: str | None = None,
        skip: int = 0,
        limit: int = 100,
        *,
        include_inactive: bool = False,
    ) -> list[RoleResult]:
        """Return roles ordered by priority desc, then name."""

    async def create_role(
        self,
        name: str,
        description: str | None = None,
        *,
        role_type: str = "custom",
        parent_role_id: str | None = None,
        priority: int = 0,
        organization_id: str | None = None,
        is_default: bool = False,
    ) -> RoleResult:
        """Create a role."""

    async def update_role(self, role_id: str, **fields: Any) -> RoleResult | None:
        """Update the given fields; return None when the role does not exist."""

    async def delete_role(self, role_id: str) -> bool:
        """Delete role; return True if a row was removed."""


# Permission repository interface
class IPermissionRepository(Protocol):
    """Protocol for permission statements attached to roles."""

    async def get_permission(self, permission_id: str) -> PermissionResult | None:
        """Return permission by ID."""

    async def get_by_role_ids(self, role_ids: list[str]) -> list[PermissionResult]:
        """Return permissions of all given roles (order of role_ids, then creation)."""

    async def create_permission(
        self,
        role_id: str,
        scope: str,
        resource: str,
        action: str,
        *,
        is_allow: bool = True,
        conditions: list[PermissionCondition] | None = None,
    ) -> PermissionResult:
        """Attach a permission to a role."""

    async def delete_permission(self, permission_id: str) -> bool:
        """Delete permission; return True if a row was removed."""

    async def delete_by_role(self, role_id: str) -> int:
        """Delete all permissions of a role; return count."""


# Role assignment repository interface
class IRoleAssignmentRepository(Protocol):
    """Protocol for user-role and group-role grants."""

    async def get_active_user_role_ids(self, user_id: str, as_of: datetime) -> list[str]:
        """Return role ids of approved user grants that have not expired at as_of."""

    async def get_group_role_ids(self, group_ids: list[str]) -> list[str]:
        """Return role ids granted to any of the groups."""

    async def get_user_roles(self, user_id: str) -> list[UserRoleResult]:
        """Return all grants of a user (any approval status)."""

    async def get_user_role(self, user_id: str, role_id: str) -> UserRoleResult | None:
        """Return the grant of role to user, if any."""

    async def get_user_role_by_id(self, user_role_id: str) -> UserRoleResult | None:
        """Return a user grant by ID."""

    async def create_user_role(
        self,
        user_id: str,
        role_id: str,
        granted_by: str,
        *,
        is_temporary: bool = False,
        expires_at: datetime | None = None,
        approval_status: str = "approved",
    ) -> UserRoleResult:
        """Create a user grant."""

    async def set_user_role_status(
        self, user_role_id: str, approval_status: str, reason: str | None = None
    ) -> UserRoleResult | None:
        """Set approval status and reason; None when the grant does not exist."""

    async def delete_user_role(self, user_id: str, role_id: str) -> bool:
        """Revoke role from user; return True if a grant was removed."""

    async def get_group_roles(self, group_id: str) -> list[GroupRoleResult]:
        """Return all grants of a group."""

    async def get_group_role(self, group_id: str, role_id: str) -> GroupRoleResult | None:
        """Return the grant of role to group, if any."""

    async def create_group_role(
        self, group_id: str, role_id: str, granted_by: str
    ) -> GroupRoleResult:
        """Create a group grant."""

    async def delete_group_role(self, group_id: str, role_id: str) -> bool:
        """Revoke role from group; return True if a grant was removed."""

    async def delete_by_role(self, role_id: str) -> int:
        """Delete all user and group grants of a role; return count."""


# RBAC policy (permission bundle) repository interface
class IRbacPolicyRepository(Protocol):
    """Protocol for named permission bundles and the template catalog."""

    async def get_policy(self, policy_id: str) -> RbacPolicyResult | None:
        """Return bundle by ID."""

    async def list_policies(
        self, organization_id: str | None = None, *, templates_only: bool = False
    ) -> list[RbacPolicyResult]:
        """Return bundles ordered by name. organization_id None lists every bundle."""

    async def create_policy(
        self,
        name: str,
        created_by: str,
        *,
        description: str | None = None,
        is_template: bool = False,
        permissions: list[PolicyPermission] | None = None,
        conditions: list[PermissionCondition] | None = None,
        organization_id: str | None = None,
    ) -> RbacPolicyResult:
        """Create a bundle."""


# Query risk policy repository interface
class IQueryPolicyRepository(Protocol):
    """Protocol for query risk policies."""

    async def get_policy(self, policy_id: str) -> QueryRiskPolicyResult | None:
        """Return policy by ID."""

    async def get_applicable(
        self, organization_id: str | None, connection_id: str | None
    ) -> list[QueryRiskPolicyResult]:
        """Return active policies whose scope is global or equals the given ids.

        A None organization_id / connection_id only matches global policies.
        """

    async def list_policies(
        self,
        organization_id: str | None = None,
        connection_id: str | None = None,
        *,
        include_inactive: bool = True,
    ) -> list[QueryRiskPolicyResult]:
        """Return policies filtered by exact scope, ordered by risk score desc."""

    async def create_policy(self, created_by: str | None, **fields: Any) -> QueryRiskPolicyResult:
        """Create a policy."""

    async def update_policy(self, policy_id: str, **fields: Any) -> QueryRiskPolicyResult | None:
        """Update the given fields; None when the policy does not exist."""

    async def delete_policy(self, policy_id: str) -> bool:
        """Delete policy; return True if a row was removed."""


# Query execution repository interface
class IQueryExecutionRepository(Protocol):
    """Protocol for write-once query execution records."""

    async def record(self, data: QueryExecutionCreate) -> QueryExecutionResult:
        """Insert one execution record."""

    async def list_executions(
        self, filters: QueryExecutionFilter
    ) -> list[QueryExecutionResult]:
        """Return execution records, newest first."""

    async def get_risk_stats(
        self,
        start: datetime | None,
        end: datetime | None,
        high_risk_threshold: int,
    ) -> RiskStats:
        """Aggregate counts and average risk over [start, end]."""


# Connection repository interface
class IConnectionRepository(Protocol):
    """Protocol for registered target database connections."""

    async def get_with_credentials(
        self, connection_id: str
    ) -> ConnectionWithCredentials | None:
        """Return connection parameters including the password."""


# Security settings repository interface
class ISecuritySettingsRepository(Protocol):
    """Protocol for per-organization security settings."""

    async def get_by_organization(
        self, organization_id: str
    ) -> SecuritySettingsResult | None:
        """Return settings row for organization, if any."""

    async def create_default(self, organization_id: str) -> SecuritySettingsResult:
        """Insert a row with default values."""

    async def update_settings(
        self, organization_id: str, data: SecuritySettingsUpdate
    ) -> SecuritySettingsResult:
        """Apply non-None fields (creating the row if missing)."""

    async def reset_to_defaults(self, organization_id: str) -> SecuritySettingsResult:
        """Overwrite every field with its default value."""


# Audit log repository interface
class IAuditLogRepository(Protocol):
    """Protocol for write-once audit log rows."""

    async def create_entry(self, entry: QueryAuditEntry) -> AuditLogResult:
        """Insert one audit row."""
