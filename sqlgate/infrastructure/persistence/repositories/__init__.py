"""Repositories: SQLAlchemy implementations of the application ports."""

from sqlgate.infrastructure.persistence.repositories.audit_log_repo import AuditLogRepository
from sqlgate.infrastructure.persistence.repositories.connection_repo import (
    ConnectionRepository,
)
from sqlgate.infrastructure.persistence.repositories.permission_repo import (
    PermissionRepository,
)
from sqlgate.infrastructure.persistence.repositories.query_execution_repo import (
    QueryExecutionRepository,
)
from sqlgate.infrastructure.persistence.repositories.query_policy_repo import (
    QueryPolicyRepository,
)
from sqlgate.infrastructure.persistence.repositories.rbac_policy_repo import (
    RbacPolicyRepository,
)
from sqlgate.infrastructure.persistence.repositories.role_assignment_repo import (
    RoleAssignmentRepository,
)
from sqlgate.infrastructure.persistence.repositories.role_repo import RoleRepository
from sqlgate.infrastructure.persistence.repositories.security_settings_repo import (
    SecuritySettingsRepository,
)

__all__ = [
    "AuditLogRepository",
    "ConnectionRepository",
    "PermissionRepository",
    "QueryExecutionRepository",
    "QueryPolicyRepository",
    "RbacPolicyRepository",
    "RoleAssignmentRepository",
    "RoleRepository",
    "SecuritySettingsRepository",
]
