"""Permission repository. Conditions are stored as a JSON list."""

from __future__ import annotations

from sqlalchemy import case, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from sqlgate.application.dtos.rbac import PermissionCondition, PermissionResult
from sqlgate.infrastructure.persistence.models.permission import Permission
from sqlgate.infrastructure.persistence.repositories.base import BaseRepository


def _permission_to_result(p: Permission) -> PermissionResult:
    """Map ORM Permission to application PermissionResult."""
    return PermissionResult(
        id=p.id,
        role_id=p.role_id,
        scope=p.scope,
        resource=p.resource,
        action=p.action,
        is_allow=p.is_allow,
        conditions=tuple(PermissionCondition.from_dict(c) for c in (p.conditions or [])),
    )


class PermissionRepository(BaseRepository[Permission]):
    """Permission repository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Permission)

    async def get_permission(self, permission_id: str) -> PermissionResult | None:
        orm = await self.get_by_id(permission_id)
        return _permission_to_result(orm) if orm else None

    async def get_by_role_ids(self, role_ids: list[str]) -> list[PermissionResult]:
        """Return permissions grouped by the order of role_ids, then creation order."""
        if not role_ids:
            return []
        role_order = case({rid: i for i, rid in enumerate(role_ids)}, value=Permission.role_id)
        result = await self.db.execute(
            select(Permission)
            .where(Permission.role_id.in_(role_ids))
            .order_by(role_order, Permission.created_at, Permission.id)
        )
        return [_permission_to_result(p) for p in result.scalars().all()]

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
        permission = Permission(
            role_id=role_id,
            scope=scope,
            resource=resource,
            action=action,
            is_allow=is_allow,
            conditions=[c.to_dict() for c in conditions] if conditions else None,
        )
        created = await self.create(permission)
        return _permission_to_result(created)

    async def delete_permission(self, permission_id: str) -> bool:
        orm = await self.get_by_id(permission_id)
        if orm is None:
            return False
        await self.delete(orm)
        return True

    async def delete_by_role(self, role_id: str) -> int:
        result = await self.db.execute(delete(Permission).where(Permission.role_id == role_id))
        return result.rowcount or 0
