"""RBAC policy repository. Permission entries and conditions are stored as JSON lists."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sqlgate.application.dtos.rbac import (
    PermissionCondition,
    PolicyPermission,
    RbacPolicyResult,
)
from sqlgate.infrastructure.persistence.models.rbac_policy import RbacPolicy
from sqlgate.infrastructure.persistence.repositories.base import BaseRepository


def _policy_to_result(p: RbacPolicy) -> RbacPolicyResult:
    return RbacPolicyResult(
        id=p.id,
        name=p.name,
        description=p.description,
        is_template=p.is_template,
        permissions=tuple(PolicyPermission.from_dict(e) for e in (p.permissions or [])),
        conditions=tuple(PermissionCondition.from_dict(c) for c in (p.conditions or [])),
        organization_id=p.organization_id,
        created_by=p.created_by,
        is_active=p.is_active,
    )


class RbacPolicyRepository(BaseRepository[RbacPolicy]):
    """RBAC policy (permission bundle) repository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, RbacPolicy)

    async def get_policy(self, policy_id: str) -> RbacPolicyResult | None:
        orm = await self.get_by_id(policy_id)
        return _policy_to_result(orm) if orm else None

    async def list_policies(
        self, organization_id: str | None = None, *, templates_only: bool = False
    ) -> list[RbacPolicyResult]:
        stmt = select(RbacPolicy)
        if organization_id is not None:
            stmt = stmt.where(RbacPolicy.organization_id == organization_id)
        if templates_only:
            stmt = stmt.where(RbacPolicy.is_template.is_(True))
        result = await self.db.execute(stmt.order_by(RbacPolicy.name, RbacPolicy.id))
        return [_policy_to_result(p) for p in result.scalars().all()]

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
        policy = RbacPolicy(
            name=name,
            created_by=created_by,
            description=description,
            is_template=is_template,
            permissions=[e.to_dict() for e in permissions or []],
            conditions=[c.to_dict() for c in conditions] if conditions else None,
            organization_id=organization_id,
        )
        created = await self.create(policy)
        return _policy_to_result(created)
