"""Role repository. Read methods return RoleResult (DTO)."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sqlgate.application.dtos.rbac import RoleResult
from sqlgate.infrastructure.persistence.models.role import Role
from sqlgate.infrastructure.persistence.repositories.base import BaseRepository


def _role_to_result(r: Role) -> RoleResult:
    """Map ORM Role to application RoleResult."""
    return RoleResult(
        id=r.id,
        name=r.name,
        description=r.description,
        role_type=r.role_type,
        parent_role_id=r.parent_role_id,
        priority=r.priority,
        organization_id=r.organization_id,
        is_active=r.is_active,
        is_default=r.is_default,
    )


class RoleRepository(BaseRepository[Role]):
    """Role repository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Role)

    async def get_role(self, role_id: str) -> RoleResult | None:
        orm = await self.get_by_id(role_id)
        return _role_to_result(orm) if orm else None

    async def get_by_ids(self, role_ids: set[str]) -> list[RoleResult]:
        if not role_ids:
            return []
        result = await self.db.execute(select(Role).where(Role.id.in_(role_ids)))
        return [_role_to_result(r) for r in result.scalars().all()]

    async def list_roles(
        self,
        organization_id: str | None = None,
        skip: int = 0,
        limit: int = 100,
        *,
        include_inactive: bool = False,
    ) -> list[RoleResult]:
        q = select(Role)
        if organization_id:
            q = q.where(Role.organization_id == organization_id)
        if not include_inactive:
            q = q.where(Role.is_active.is_(True))
        q = q.order_by(Role.priority.desc(), Role.name.asc()).offset(skip).limit(limit)
        result = await self.db.execute(q)
        return [_role_to_result(r) for r in result.scalars().all()]

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
        role = Role(
            name=name,
            description=description,
            role_type=role_type,
            parent_role_id=parent_role_id,
            priority=priority,
            organization_id=organization_id,
            is_default=is_default,
            is_active=True,
        )
        created = await self.create(role)
        return _role_to_result(created)

    async def update_role(self, role_id: str, **fields: Any) -> RoleResult | None:
        orm = await self.get_by_id(role_id)
        if orm is None:
            return None
        updated = await self.apply_updates(orm, fields)
        return _role_to_result(updated)

    async def delete_role(self, role_id: str) -> bool:
        orm = await self.get_by_id(role_id)
        if orm is None:
            return False
        await self.delete(orm)
        return True
