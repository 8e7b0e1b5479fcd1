"""DTOs for roles, permissions, grants and authorization decisions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class RoleResult:
    """Role read-model. parent_role_id links to a single parent (not a DAG)."""

    id: str
    name: str
    description: str | None
    role_type: str
    parent_role_id: str | None
    priority: int
    organization_id: str | None
    is_active: bool
    is_default: bool


@dataclass(frozen=True)
class PermissionCondition:
    """Contextual condition on a permission.

    ip: allowed_ips and/or denied_ips. time: allowed_days (0=Sunday..6=Saturday)
    and/or an inclusive allowed_hours_start..allowed_hours_end range.
    Condition types other than ip/time are carried but never restrict.
    """

    type: str
    allowed_ips: tuple[str, ...] | None = None
    denied_ips: tuple[str, ...] | None = None
    allowed_days: tuple[int, ...] | None = None
    allowed_hours_start: int | None = None
    allowed_hours_end: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PermissionCondition:
        """Build from the stored JSON shape {"type": ..., "config": {...}}."""
        config = data.get("config") or {}

        def _tuple(key: str) -> tuple | None:
            value = config.get(key)
            return tuple(value) if value is not None else None

        return cls(
            type=str(data.get("type", "")),
            allowed_ips=_tuple("allowed_ips"),
            denied_ips=_tuple("denied_ips"),
            allowed_days=_tuple("allowed_days"),
            allowed_hours_start=config.get("allowed_hours_start"),
            allowed_hours_end=config.get("allowed_hours_end"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the stored JSON shape, omitting unset fields."""
        config: dict[str, Any] = {}
        for key in (
            "allowed_ips",
            "denied_ips",
            "allowed_days",
            "allowed_hours_start",
            "allowed_hours_end",
        ):
            value = getattr(self, key)
            if value is not None:
                config[key] = list(value) if isinstance(value, tuple) else value
        return {"type": self.type, "config": config}


@dataclass(frozen=True)
class PermissionResult:
    """Permission statement attached to exactly one role."""

    id: str
    role_id: str
    scope: str
    resource: str
    action: str
    is_allow: bool
    conditions: tuple[PermissionCondition, ...] = ()


@dataclass(frozen=True)
class PolicyPermission:
    """One permission entry inside an RBAC policy bundle."""

    scope: str
    resource: str
    action: str
    is_allow: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PolicyPermission:
        return cls(
            scope=str(data.get("scope", "")),
            resource=str(data.get("resource", "")),
            action=str(data.get("action", "")),
            is_allow=bool(data.get("is_allow", True)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "scope": self.scope,
            "resource": self.resource,
            "action": self.action,
            "is_allow": self.is_allow,
        }


@dataclass(frozen=True)
class RbacPolicyResult:
    """Named permission bundle. Templates (is_template) form the reusable catalog.

    conditions apply to every permission the bundle creates when applied to a role.
    """

    id: str
    name: str
    description: str | None
    is_template: bool
    permissions: tuple[PolicyPermission, ...]
    conditions: tuple[PermissionCondition, ...]
    organization_id: str | None
    created_by: str
    is_active: bool


@dataclass(frozen=True)
class UserRoleResult:
    """User-role grant. Only approved, unexpired grants participate in resolution."""

    id: str
    user_id: str
    role_id: str
    granted_by: str
    is_temporary: bool
    expires_at: datetime | None
    approval_status: str
    approval_reason: str | None


@dataclass(frozen=True)
class GroupRoleResult:
    """Group-role grant."""

    id: str
    group_id: str
    role_id: str
    granted_by: str


@dataclass(frozen=True)
class AccessContext:
    """Request context evaluated against permission conditions."""

    ip: str | None = None
    time: datetime | None = None


@dataclass(frozen=True)
class PermissionDecision:
    """Outcome of a permission check. reason is None for a plain allow."""

    allowed: bool
    reason: str | None = None
    permission_id: str | None = None


@dataclass(frozen=True)
class SimulatedPermission:
    """One resolved (resource, action) pair from a what-if inspection."""

    resource: str
    action: str
    allowed: bool
    role_ids: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Principal:
    """Caller identity as resolved upstream: a user and the groups it belongs to."""

    user_id: str
    group_ids: tuple[str, ...] = ()
