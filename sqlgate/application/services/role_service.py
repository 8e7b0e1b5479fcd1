"""Role administration: roles, permissions, user and group grants.

Granting and revoking roles is itself authorized through the resolver: the
acting principal needs action 'admin' on resource 'role:<role_id>'.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlgate.application.dtos.rbac import (
    AccessContext,
    GroupRoleResult,
    PermissionCondition,
    PermissionResult,
    Principal,
    RoleResult,
    UserRoleResult,
)
from sqlgate.application.interfaces.repositories import (
    IPermissionRepository,
    IRoleAssignmentRepository,
    IRoleRepository,
)
from sqlgate.application.interfaces.services import IPermissionChecker
from sqlgate.application.services.role_graph import RoleGraph
from sqlgate.domain.enums import ApprovalStatus, ResourceScope, RoleType
from sqlgate.domain.exceptions import (
    AuthorizationException,
    ResourceNotFoundException,
    ValidationException,
)
from sqlgate.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

ROLE_ADMIN_ACTION = "admin"


def role_resource(role_id: str) -> str:
    """Resource name guarding grants of one role."""
    return f"role:{role_id}"


class RoleService:
    """Administer roles and grants; delegates permission checks to the resolver."""

    def __init__(
        self,
        role_repo: IRoleRepository,
        permission_repo: IPermissionRepository,
        assignment_repo: IRoleAssignmentRepository,
        permission_checker: IPermissionChecker,
        role_graph: RoleGraph,
    ) -> None:
        self._role_repo = role_repo
        self._permission_repo = permission_repo
        self._assignment_repo = assignment_repo
        self._checker = permission_checker
        self._role_graph = role_graph

    async def _require_role(self, role_id: str) -> RoleResult:
        role = await self._role_repo.get_role(role_id)
        if role is None:
            raise ResourceNotFoundException("role", role_id)
        return role

    async def _require_role_admin(
        self, actor: Principal, role_id: str, context: AccessContext | None
    ) -> None:
        resource = role_resource(role_id)
        decision = await self._checker.check_permission(
            actor.user_id, list(actor.group_ids), resource, ROLE_ADMIN_ACTION, context
        )
        if not decision.allowed:
            raise AuthorizationException(
                resource=resource, action=ROLE_ADMIN_ACTION, reason=decision.reason
            )

    async def _validate_parent(self, role_id: str | None, parent_role_id: str | None) -> None:
        if parent_role_id is None:
            return
        await self._require_role(parent_role_id)
        if role_id is not None and await self._role_graph.would_create_cycle(
            role_id, parent_role_id
        ):
            raise ValidationException(
                f"Role {parent_role_id} cannot be the parent of {role_id}: hierarchy would form a cycle",
                field="parent_role_id",
            )

    # Roles

    async def create_role(
        self,
        name: str,
        description: str | None = None,
        *,
        role_type: str = RoleType.CUSTOM.value,
        parent_role_id: str | None = None,
        priority: int = 0,
        organization_id: str | None = None,
        is_default: bool = False,
    ) -> RoleResult:
        """Create a role, optionally under an existing parent."""
        if role_type not in RoleType.values():
            raise ValidationException(f"Invalid role type: {role_type}", field="role_type")
        await self._validate_parent(None, parent_role_id)
        role = await self._role_repo.create_role(
            name,
            description,
            role_type=role_type,
            parent_role_id=parent_role_id,
            priority=priority,
            organization_id=organization_id,
            is_default=is_default,
        )
        logger.info("Created role %s (%s)", role.id, role.name)
        return role

    async def list_roles(
        self,
        organization_id: str | None = None,
        skip: int = 0,
        limit: int = 100,
        *,
        include_inactive: bool = False,
    ) -> list[RoleResult]:
        return await self._role_repo.list_roles(
            organization_id, skip, limit, include_inactive=include_inactive
        )

    async def get_role(self, role_id: str) -> RoleResult:
        return await self._require_role(role_id)

    async def get_role_hierarchy(self, role_id: str) -> list[RoleResult]:
        """Return [role, parent, ...] as stored."""
        await self._require_role(role_id)
        return await self._role_graph.lineage(role_id)

    async def update_role(self, role_id: str, **fields: Any) -> RoleResult:
        """Update role fields. Setting parent_role_id re-checks the hierarchy for cycles."""
        await self._require_role(role_id)
        if "role_type" in fields and fields["role_type"] not in RoleType.values():
            raise ValidationException(
                f"Invalid role type: {fields['role_type']}", field="role_type"
            )
        if fields.get("parent_role_id") is not None:
            await self._validate_parent(role_id, fields["parent_role_id"])
        updated = await self._role_repo.update_role(role_id, **fields)
        if updated is None:
            raise ResourceNotFoundException("role", role_id)
        return updated

    async def delete_role(self, role_id: str) -> None:
        """Delete role together with its permissions and grants."""
        await self._require_role(role_id)
        await self._permission_repo.delete_by_role(role_id)
        await self._assignment_repo.delete_by_role(role_id)
        await self._role_repo.delete_role(role_id)
        logger.info("Deleted role %s", role_id)

    # Permissions

    async def add_permission(
        self,
        role_id: str,
        resource: str,
        action: str,
        *,
        scope: str = ResourceScope.DATABASE.value,
        is_allow: bool = True,
        conditions: list[PermissionCondition] | None = None,
    ) -> PermissionResult:
        await self._require_role(role_id)
        if scope not in ResourceScope.values():
            raise ValidationException(f"Invalid scope: {scope}", field="scope")
        if not resource or not action:
            raise ValidationException("resource and action are required")
        return await self._permission_repo.create_permission(
            role_id,
            scope,
            resource,
            action,
            is_allow=is_allow,
            conditions=conditions,
        )

    async def list_permissions(self, role_id: str) -> list[PermissionResult]:
        await self._require_role(role_id)
        return await self._permission_repo.get_by_role_ids([role_id])

    async def remove_permission(self, permission_id: str) -> None:
        if not await self._permission_repo.delete_permission(permission_id):
            raise ResourceNotFoundException("permission", permission_id)

    # User grants

    async def assign_role_to_user(
        self,
        actor: Principal,
        user_id: str,
        role_id: str,
        *,
        is_temporary: bool = False,
        expires_at: datetime | None = None,
        requires_approval: bool = False,
        context: AccessContext | None = None,
    ) -> UserRoleResult:
        """Grant role to user. Idempotent: an existing grant is returned unchanged.

        With requires_approval the grant is created pending and does not
        participate in resolution until approved.
        """
        await self._require_role(role_id)
        await self._require_role_admin(actor, role_id, context)
        existing = await self._assignment_repo.get_user_role(user_id, role_id)
        if existing is not None:
            return existing
        status = (
            ApprovalStatus.PENDING.value if requires_approval else ApprovalStatus.APPROVED.value
        )
        grant = await self._assignment_repo.create_user_role(
            user_id,
            role_id,
            actor.user_id,
            is_temporary=is_temporary,
            expires_at=expires_at,
            approval_status=status,
        )
        logger.info(
            "Role %s granted to user %s by %s (%s)", role_id, user_id, actor.user_id, status
        )
        return grant

    async def list_user_roles(self, user_id: str) -> list[UserRoleResult]:
        return await self._assignment_repo.get_user_roles(user_id)

    async def approve_user_role(
        self, actor: Principal, user_role_id: str, context: AccessContext | None = None
    ) -> UserRoleResult:
        grant = await self._require_user_grant(user_role_id)
        await self._require_role_admin(actor, grant.role_id, context)
        updated = await self._assignment_repo.set_user_role_status(
            user_role_id, ApprovalStatus.APPROVED.value, f"Approved by {actor.user_id}"
        )
        if updated is None:
            raise ResourceNotFoundException("user_role", user_role_id)
        return updated

    async def reject_user_role(
        self,
        actor: Principal,
        user_role_id: str,
        reason: str,
        context: AccessContext | None = None,
    ) -> UserRoleResult:
        grant = await self._require_user_grant(user_role_id)
        await self._require_role_admin(actor, grant.role_id, context)
        updated = await self._assignment_repo.set_user_role_status(
            user_role_id, ApprovalStatus.REJECTED.value, reason
        )
        if updated is None:
            raise ResourceNotFoundException("user_role", user_role_id)
        return updated

    async def revoke_role_from_user(
        self,
        actor: Principal,
        user_id: str,
        role_id: str,
        context: AccessContext | None = None,
    ) -> None:
        await self._require_role_admin(actor, role_id, context)
        if not await self._assignment_repo.delete_user_role(user_id, role_id):
            raise ResourceNotFoundException("user_role", f"{user_id}:{role_id}")
        logger.info("Role %s revoked from user %s by %s", role_id, user_id, actor.user_id)

    async def _require_user_grant(self, user_role_id: str) -> UserRoleResult:
        grant = await self._assignment_repo.get_user_role_by_id(user_role_id)
        if grant is None:
            raise ResourceNotFoundException("user_role", user_role_id)
        return grant

    # Group grants

    async def assign_role_to_group(
        self,
        actor: Principal,
        group_id: str,
        role_id: str,
        context: AccessContext | None = None,
    ) -> GroupRoleResult:
        """Grant role to group. Idempotent."""
        await self._require_role(role_id)
        await self._require_role_admin(actor, role_id, context)
        existing = await self._assignment_repo.get_group_role(group_id, role_id)
        if existing is not None:
            return existing
        grant = await self._assignment_repo.create_group_role(group_id, role_id, actor.user_id)
        logger.info("Role %s granted to group %s by %s", role_id, group_id, actor.user_id)
        return grant

    async def list_group_roles(self, group_id: str) -> list[GroupRoleResult]:
        return await self._assignment_repo.get_group_roles(group_id)

    async def revoke_role_from_group(
        self,
        actor: Principal,
        group_id: str,
        role_id: str,
        context: AccessContext | None = None,
    ) -> None:
        await self._require_role_admin(actor, role_id, context)
        if not await self._assignment_repo.delete_group_role(group_id, role_id):
            raise ResourceNotFoundException("group_role", f"{group_id}:{role_id}")
        logger.info("Role %s revoked from group %s by %s", role_id, group_id, actor.user_id)
