"""RBAC policies: named permission bundles and the reusable template catalog.

A bundle is applied to a role by creating one permission per entry, each
carrying the bundle's conditions. Bundles never take part in resolution
directly; only the permissions they produce do.
"""

from __future__ import annotations

from sqlgate.application.dtos.rbac import (
    PermissionCondition,
    PermissionResult,
    PolicyPermission,
    RbacPolicyResult,
)
from sqlgate.application.interfaces.repositories import IRbacPolicyRepository
from sqlgate.application.services.role_service import RoleService
from sqlgate.domain.enums import ResourceScope
from sqlgate.domain.exceptions import ResourceNotFoundException, ValidationException
from sqlgate.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class RbacPolicyService:
    """Create, list and apply permission bundles."""

    def __init__(self, policy_repo: IRbacPolicyRepository, role_service: RoleService) -> None:
        self._policy_repo = policy_repo
        self._role_service = role_service

    async def create_policy(
        self,
        name: str,
        created_by: str,
        *,
        permissions: list[PolicyPermission],
        description: str | None = None,
        is_template: bool = False,
        conditions: list[PermissionCondition] | None = None,
        organization_id: str | None = None,
    ) -> RbacPolicyResult:
        if not name:
            raise ValidationException("name is required", field="name")
        if not permissions:
            raise ValidationException("a policy needs at least one permission", field="permissions")
        for entry in permissions:
            if entry.scope not in ResourceScope.values():
                raise ValidationException(f"Invalid scope: {entry.scope}", field="scope")
            if not entry.resource or not entry.action:
                raise ValidationException("resource and action are required")
        policy = await self._policy_repo.create_policy(
            name,
            created_by,
            description=description,
            is_template=is_template,
            permissions=permissions,
            conditions=conditions,
            organization_id=organization_id,
        )
        logger.info("Created RBAC policy %s (%s) template=%s", policy.id, name, is_template)
        return policy

    async def list_policies(self, organization_id: str | None = None) -> list[RbacPolicyResult]:
        return await self._policy_repo.list_policies(organization_id)

    async def list_templates(self) -> list[RbacPolicyResult]:
        return await self._policy_repo.list_policies(templates_only=True)

    async def get_policy(self, policy_id: str) -> RbacPolicyResult:
        policy = await self._policy_repo.get_policy(policy_id)
        if policy is None:
            raise ResourceNotFoundException("rbac_policy", policy_id)
        return policy

    async def apply_to_role(self, policy_id: str, role_id: str) -> list[PermissionResult]:
        """Materialize the bundle as permissions on role_id.

        Inactive bundles are refused. Returns the created permissions in
        bundle order.
        """
        policy = await self.get_policy(policy_id)
        if not policy.is_active:
            raise ValidationException(f"RBAC policy {policy_id} is inactive", field="policy_id")
        conditions = list(policy.conditions)
        created = []
        for entry in policy.permissions:
            created.append(
                await self._role_service.add_permission(
                    role_id,
                    entry.resource,
                    entry.action,
                    scope=entry.scope,
                    is_allow=entry.is_allow,
                    conditions=conditions,
                )
            )
        logger.info(
            "Applied RBAC policy %s to role %s (%d permissions)", policy_id, role_id, len(created)
        )
        return created
