"""Domain enumerations for roles, permissions, risk policies and executions."""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class RoleType(_ValuesMixin, str, Enum):
    """Whether a role ships with the system or was created by an administrator."""

    SYSTEM = "system"
    CUSTOM = "custom"


class ResourceScope(_ValuesMixin, str, Enum):
    """Kind of object a permission's resource pattern addresses."""

    SYSTEM = "system"
    ORGANIZATION = "organization"
    DATABASE = "database"
    SCHEMA = "schema"
    TABLE = "table"
    QUERY = "query"


class ConditionType(_ValuesMixin, str, Enum):
    """Contextual condition kinds attached to a permission."""

    IP = "ip"
    TIME = "time"


class ApprovalStatus(_ValuesMixin, str, Enum):
    """Approval state of a user-role grant. Only APPROVED grants resolve."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PolicyType(_ValuesMixin, str, Enum):
    """Detection strategy of a query risk policy."""

    DDL_BLOCK = "ddl_block"
    WHERE_REQUIRED = "where_required"
    LIMIT_REQUIRED = "limit_required"
    KEYWORD_BLOCK = "keyword_block"
    TABLE_RESTRICT = "table_restrict"
    CUSTOM = "custom"


class PolicyAction(_ValuesMixin, str, Enum):
    """Enforcement action of a query risk policy."""

    WARN = "warn"
    BLOCK = "block"
    REQUIRE_APPROVAL = "require_approval"


class ExecutionStatus(_ValuesMixin, str, Enum):
    """Outcome stored on a query execution record."""

    SUCCESS = "success"
    FAILED = "failed"
    BLOCKED = "blocked"
    PENDING_APPROVAL = "pending_approval"


class AuditStatus(_ValuesMixin, str, Enum):
    """Outcome stored on a query audit log row."""

    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


class AuditCategory(_ValuesMixin, str, Enum):
    """Audit log category."""

    QUERY = "query"
    PERMISSION = "permission"
    POLICY = "policy"
