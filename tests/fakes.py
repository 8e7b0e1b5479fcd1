"""In-memory repositories for service tests (no database)."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from itertools import count
from typing import Any

from sqlgate.application.dtos.query_policy import QueryRiskPolicyResult
from sqlgate.application.dtos.rbac import (
    GroupRoleResult,
    PermissionCondition,
    PermissionResult,
    PolicyPermission,
    RbacPolicyResult,
    RoleResult,
    UserRoleResult,
)
from sqlgate.domain.enums import ApprovalStatus

_ids = count(1)

ADMIN_USER = "admin-user"
ADMIN_HEADERS = {"X-User-ID": ADMIN_USER}


def _next_id(prefix: str) -> str:
    return f"{prefix}{next(_ids)}"


def make_role(
    role_id: str,
    parent_role_id: str | None = None,
    *,
    is_active: bool = True,
    name: str | None = None,
) -> RoleResult:
    return RoleResult(
        id=role_id,
        name=name or role_id,
        description=None,
        role_type="custom",
        parent_role_id=parent_role_id,
        priority=0,
        organization_id=None,
        is_active=is_active,
        is_default=False,
    )


def make_permission(
    role_id: str,
    resource: str,
    action: str,
    *,
    is_allow: bool = True,
    conditions: tuple[PermissionCondition, ...] = (),
    permission_id: str | None = None,
) -> PermissionResult:
    return PermissionResult(
        id=permission_id or _next_id("perm"),
        role_id=role_id,
        scope="database",
        resource=resource,
        action=action,
        is_allow=is_allow,
        conditions=conditions,
    )


def make_policy(
    policy_id: str,
    policy_type: str,
    risk_score: int,
    action: str,
    **overrides: Any,
) -> QueryRiskPolicyResult:
    fields: dict[str, Any] = {
        "id": policy_id,
        "name": overrides.pop("name", policy_id),
        "description": None,
        "policy_type": policy_type,
        "pattern": None,
        "blocked_keywords": (),
        "restricted_tables": (),
        "risk_score": risk_score,
        "action": action,
        "is_active": True,
    }
    fields.update(overrides)
    return QueryRiskPolicyResult(**fields)


class FakeRoleRepository:
    def __init__(self, *roles: RoleResult) -> None:
        self.roles: dict[str, RoleResult] = {r.id: r for r in roles}
        self.get_by_ids_calls = 0

    async def get_role(self, role_id: str) -> RoleResult | None:
        return self.roles.get(role_id)

    async def get_by_ids(self, role_ids: set[str]) -> list[RoleResult]:
        self.get_by_ids_calls += 1
        return [self.roles[rid] for rid in role_ids if rid in self.roles]

    async def list_roles(self, organization_id=None, skip=0, limit=100, *, include_inactive=False):
        roles = [r for r in self.roles.values() if include_inactive or r.is_active]
        return roles[skip : skip + limit]

    async def create_role(self, name, description=None, **fields: Any) -> RoleResult:
        role = RoleResult(
            id=_next_id("role"),
            name=name,
            description=description,
            role_type=fields.get("role_type", "custom"),
            parent_role_id=fields.get("parent_role_id"),
            priority=fields.get("priority", 0),
            organization_id=fields.get("organization_id"),
            is_active=True,
            is_default=fields.get("is_default", False),
        )
        self.roles[role.id] = role
        return role

    async def update_role(self, role_id: str, **fields: Any) -> RoleResult | None:
        if role_id not in self.roles:
            return None
        self.roles[role_id] = replace(self.roles[role_id], **fields)
        return self.roles[role_id]

    async def delete_role(self, role_id: str) -> bool:
        return self.roles.pop(role_id, None) is not None


class FakePermissionRepository:
    def __init__(self, *permissions: PermissionResult) -> None:
        self.permissions: list[PermissionResult] = list(permissions)

    async def get_permission(self, permission_id: str) -> PermissionResult | None:
        return next((p for p in self.permissions if p.id == permission_id), None)

    async def get_by_role_ids(self, role_ids: list[str]) -> list[PermissionResult]:
        order = {rid: i for i, rid in enumerate(role_ids)}
        return sorted(
            (p for p in self.permissions if p.role_id in order),
            key=lambda p: order[p.role_id],
        )

    async def create_permission(
        self, role_id, scope, resource, action, *, is_allow=True, conditions=None
    ) -> PermissionResult:
        perm = PermissionResult(
            id=_next_id("perm"),
            role_id=role_id,
            scope=scope,
            resource=resource,
            action=action,
            is_allow=is_allow,
            conditions=tuple(conditions or ()),
        )
        self.permissions.append(perm)
        return perm

    async def delete_permission(self, permission_id: str) -> bool:
        before = len(self.permissions)
        self.permissions = [p for p in self.permissions if p.id != permission_id]
        return len(self.permissions) != before

    async def delete_by_role(self, role_id: str) -> int:
        before = len(self.permissions)
        self.permissions = [p for p in self.permissions if p.role_id != role_id]
        return before - len(self.permissions)


class FakeRoleAssignmentRepository:
    def __init__(self) -> None:
        self.user_roles: list[UserRoleResult] = []
        self.group_roles: list[GroupRoleResult] = []

    def grant_user(
        self,
        user_id: str,
        role_id: str,
        *,
        approval_status: str = ApprovalStatus.APPROVED.value,
        expires_at: datetime | None = None,
    ) -> UserRoleResult:
        grant = UserRoleResult(
            id=_next_id("ur"),
            user_id=user_id,
            role_id=role_id,
            granted_by="test",
            is_temporary=expires_at is not None,
            expires_at=expires_at,
            approval_status=approval_status,
            approval_reason=None,
        )
        self.user_roles.append(grant)
        return grant

    def grant_group(self, group_id: str, role_id: str) -> GroupRoleResult:
        grant = GroupRoleResult(
            id=_next_id("gr"), group_id=group_id, role_id=role_id, granted_by="test"
        )
        self.group_roles.append(grant)
        return grant

    async def get_active_user_role_ids(self, user_id: str, as_of: datetime) -> list[str]:
        return [
            g.role_id
            for g in self.user_roles
            if g.user_id == user_id
            and g.approval_status == ApprovalStatus.APPROVED.value
            and (g.expires_at is None or g.expires_at > as_of)
        ]

    async def get_group_role_ids(self, group_ids: list[str]) -> list[str]:
        return [g.role_id for g in self.group_roles if g.group_id in group_ids]

    async def get_user_roles(self, user_id: str) -> list[UserRoleResult]:
        return [g for g in self.user_roles if g.user_id == user_id]

    async def get_user_role(self, user_id: str, role_id: str) -> UserRoleResult | None:
        return next(
            (g for g in self.user_roles if g.user_id == user_id and g.role_id == role_id), None
        )

    async def get_user_role_by_id(self, user_role_id: str) -> UserRoleResult | None:
        return next((g for g in self.user_roles if g.id == user_role_id), None)

    async def create_user_role(
        self,
        user_id,
        role_id,
        granted_by,
        *,
        is_temporary=False,
        expires_at=None,
        approval_status=ApprovalStatus.APPROVED.value,
    ) -> UserRoleResult:
        grant = UserRoleResult(
            id=_next_id("ur"),
            user_id=user_id,
            role_id=role_id,
            granted_by=granted_by,
            is_temporary=is_temporary,
            expires_at=expires_at,
            approval_status=approval_status,
            approval_reason=None,
        )
        self.user_roles.append(grant)
        return grant

    async def set_user_role_status(
        self, user_role_id: str, approval_status: str, reason: str | None = None
    ) -> UserRoleResult | None:
        for i, g in enumerate(self.user_roles):
            if g.id == user_role_id:
                self.user_roles[i] = replace(
                    g, approval_status=approval_status, approval_reason=reason
                )
                return self.user_roles[i]
        return None

    async def delete_user_role(self, user_id: str, role_id: str) -> bool:
        before = len(self.user_roles)
        self.user_roles = [
            g for g in self.user_roles if not (g.user_id == user_id and g.role_id == role_id)
        ]
        return len(self.user_roles) != before

    async def get_group_roles(self, group_id: str) -> list[GroupRoleResult]:
        return [g for g in self.group_roles if g.group_id == group_id]

    async def get_group_role(self, group_id: str, role_id: str) -> GroupRoleResult | None:
        return next(
            (g for g in self.group_roles if g.group_id == group_id and g.role_id == role_id),
            None,
        )

    async def create_group_role(self, group_id, role_id, granted_by) -> GroupRoleResult:
        grant = GroupRoleResult(
            id=_next_id("gr"), group_id=group_id, role_id=role_id, granted_by=granted_by
        )
        self.group_roles.append(grant)
        return grant

    async def delete_group_role(self, group_id: str, role_id: str) -> bool:
        before = len(self.group_roles)
        self.group_roles = [
            g for g in self.group_roles if not (g.group_id == group_id and g.role_id == role_id)
        ]
        return len(self.group_roles) != before

    async def delete_by_role(self, role_id: str) -> int:
        before = len(self.user_roles) + len(self.group_roles)
        self.user_roles = [g for g in self.user_roles if g.role_id != role_id]
        self.group_roles = [g for g in self.group_roles if g.role_id != role_id]
        return before - len(self.user_roles) - len(self.group_roles)


class FakeRbacPolicyRepository:
    def __init__(self, *policies: RbacPolicyResult) -> None:
        self.policies: dict[str, RbacPolicyResult] = {p.id: p for p in policies}

    async def get_policy(self, policy_id: str) -> RbacPolicyResult | None:
        return self.policies.get(policy_id)

    async def list_policies(self, organization_id=None, *, templates_only=False):
        found = [
            p
            for p in self.policies.values()
            if (organization_id is None or p.organization_id == organization_id)
            and (p.is_template or not templates_only)
        ]
        return sorted(found, key=lambda p: (p.name, p.id))

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
        policy = RbacPolicyResult(
            id=_next_id("rbacpol"),
            name=name,
            description=description,
            is_template=is_template,
            permissions=tuple(permissions or ()),
            conditions=tuple(conditions or ()),
            organization_id=organization_id,
            created_by=created_by,
            is_active=True,
        )
        self.policies[policy.id] = policy
        return policy
