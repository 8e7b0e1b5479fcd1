"""Persistence models: ORM entities and mixins."""

from sqlgate.infrastructure.persistence.models.audit_log import AuditLog
from sqlgate.infrastructure.persistence.models.connection import Connection
from sqlgate.infrastructure.persistence.models.mixins import (
    CuidMixin,
    OrganizationScopedMixin,
    TimestampMixin,
)
from sqlgate.infrastructure.persistence.models.permission import (
    GroupRole,
    Permission,
    UserRole,
)
from sqlgate.infrastructure.persistence.models.query_execution import QueryExecution
from sqlgate.infrastructure.persistence.models.query_policy import QueryRiskPolicy
from sqlgate.infrastructure.persistence.models.rbac_policy import RbacPolicy
from sqlgate.infrastructure.persistence.models.role import Role
from sqlgate.infrastructure.persistence.models.security_settings import SecuritySettings

__all__ = [
    "AuditLog",
    "Connection",
    "CuidMixin",
    "GroupRole",
    "OrganizationScopedMixin",
    "Permission",
    "QueryExecution",
    "QueryRiskPolicy",
    "RbacPolicy",
    "Role",
    "SecuritySettings",
    "TimestampMixin",
    "UserRole",
]
