"""User-role and group-role grant repository."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from sqlgate.application.dtos.rbac import GroupRoleResult, UserRoleResult
from sqlgate.domain.enums import ApprovalStatus
from sqlgate.infrastructure.persistence.models.permission import GroupRole, UserRole
from sqlgate.infrastructure.persistence.repositories.base import BaseRepository


def _user_role_to_result(ur: UserRole) -> UserRoleResult:
    return UserRoleResult(
        id=ur.id,
        user_id=ur.user_id,
        role_id=ur.role_id,
        granted_by=ur.granted_by,
        is_temporary=ur.is_temporary,
        expires_at=ur.expires_at,
        approval_status=ur.approval_status,
        approval_reason=ur.approval_reason,
    )


def _group_role_to_result(gr: GroupRole) -> GroupRoleResult:
    return GroupRoleResult(
        id=gr.id,
        group_id=gr.group_id,
        role_id=gr.role_id,
        granted_by=gr.granted_by,
    )


class RoleAssignmentRepository(BaseRepository[UserRole]):
    """Grants of roles to users (primary model) and to groups."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, UserRole)

    async def get_active_user_role_ids(self, user_id: str, as_of: datetime) -> list[str]:
        """Approved grants with no expiry or an expiry after as_of."""
        result = await self.db.execute(
            select(UserRole.role_id)
            .where(
                UserRole.user_id == user_id,
                UserRole.approval_status == ApprovalStatus.APPROVED.value,
                or_(UserRole.expires_at.is_(None), UserRole.expires_at > as_of),
            )
            .order_by(UserRole.granted_at, UserRole.id)
        )
        return list(result.scalars().all())

    async def get_group_role_ids(self, group_ids: list[str]) -> list[str]:
        if not group_ids:
            return []
        result = await self.db.execute(
            select(GroupRole.role_id)
            .where(GroupRole.group_id.in_(group_ids))
            .order_by(GroupRole.granted_at, GroupRole.id)
        )
        return list(result.scalars().all())

    async def get_user_roles(self, user_id: str) -> list[UserRoleResult]:
        result = await self.db.execute(
            select(UserRole).where(UserRole.user_id == user_id).order_by(UserRole.granted_at)
        )
        return [_user_role_to_result(ur) for ur in result.scalars().all()]

    async def _get_user_role_entity(self, user_id: str, role_id: str) -> UserRole | None:
        result = await self.db.execute(
            select(UserRole).where(UserRole.user_id == user_id, UserRole.role_id == role_id)
        )
        return result.scalar_one_or_none()

    async def get_user_role(self, user_id: str, role_id: str) -> UserRoleResult | None:
        orm = await self._get_user_role_entity(user_id, role_id)
        return _user_role_to_result(orm) if orm else None

    async def get_user_role_by_id(self, user_role_id: str) -> UserRoleResult | None:
        orm = await self.get_by_id(user_role_id)
        return _user_role_to_result(orm) if orm else None

    async def create_user_role(
        self,
        user_id: str,
        role_id: str,
        granted_by: str,
        *,
        is_temporary: bool = False,
        expires_at: datetime | None = None,
        approval_status: str = ApprovalStatus.APPROVED.value,
    ) -> UserRoleResult:
        created = await self.create(
            UserRole(
                user_id=user_id,
                role_id=role_id,
                granted_by=granted_by,
                is_temporary=is_temporary,
                expires_at=expires_at,
                approval_status=approval_status,
            )
        )
        return _user_role_to_result(created)

    async def set_user_role_status(
        self, user_role_id: str, approval_status: str, reason: str | None = None
    ) -> UserRoleResult | None:
        orm = await self.get_by_id(user_role_id)
        if orm is None:
            return None
        updated = await self.apply_updates(
            orm, {"approval_status": approval_status, "approval_reason": reason}
        )
        return _user_role_to_result(updated)

    async def delete_user_role(self, user_id: str, role_id: str) -> bool:
        orm = await self._get_user_role_entity(user_id, role_id)
        if orm is None:
            return False
        await self.delete(orm)
        return True

    async def get_group_roles(self, group_id: str) -> list[GroupRoleResult]:
        result = await self.db.execute(
            select(GroupRole).where(GroupRole.group_id == group_id).order_by(GroupRole.granted_at)
        )
        return [_group_role_to_result(gr) for gr in result.scalars().all()]

    async def _get_group_role_entity(self, group_id: str, role_id: str) -> GroupRole | None:
        result = await self.db.execute(
            select(GroupRole).where(GroupRole.group_id == group_id, GroupRole.role_id == role_id)
        )
        return result.scalar_one_or_none()

    async def get_group_role(self, group_id: str, role_id: str) -> GroupRoleResult | None:
        orm = await self._get_group_role_entity(group_id, role_id)
        return _group_role_to_result(orm) if orm else None

    async def create_group_role(
        self, group_id: str, role_id: str, granted_by: str
    ) -> GroupRoleResult:
        grant = GroupRole(group_id=group_id, role_id=role_id, granted_by=granted_by)
        self.db.add(grant)
        await self.db.flush()
        await self.db.refresh(grant)
        return _group_role_to_result(grant)

    async def delete_group_role(self, group_id: str, role_id: str) -> bool:
        orm = await self._get_group_role_entity(group_id, role_id)
        if orm is None:
            return False
        await self.db.delete(orm)
        await self.db.flush()
        return True

    async def delete_by_role(self, role_id: str) -> int:
        users = await self.db.execute(delete(UserRole).where(UserRole.role_id == role_id))
        groups = await self.db.execute(delete(GroupRole).where(GroupRole.role_id == role_id))
        return (users.rowcount or 0) + (groups.rowcount or 0)
