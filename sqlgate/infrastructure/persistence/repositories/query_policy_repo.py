"""Query risk policy repository."""

from __future__ import annotations

from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from sqlgate.application.dtos.query_policy import QueryRiskPolicyResult
from sqlgate.infrastructure.persistence.models.query_policy import QueryRiskPolicy
from sqlgate.infrastructure.persistence.repositories.base import BaseRepository


def _policy_to_result(p: QueryRiskPolicy) -> QueryRiskPolicyResult:
    """Map ORM QueryRiskPolicy to application QueryRiskPolicyResult."""
    return QueryRiskPolicyResult(
        id=p.id,
        name=p.name,
        description=p.description,
        policy_type=p.policy_type,
        pattern=p.pattern,
        blocked_keywords=tuple(p.blocked_keywords or ()),
        restricted_tables=tuple(p.restricted_tables or ()),
        risk_score=p.risk_score,
        action=p.action,
        is_active=p.is_active,
        organization_id=p.organization_id,
        connection_id=p.connection_id,
        created_by=p.created_by,
    )


def _normalize_lists(fields: dict[str, Any]) -> dict[str, Any]:
    out = dict(fields)
    for key in ("blocked_keywords", "restricted_tables"):
        if out.get(key) is not None:
            out[key] = list(out[key])
    return out


class QueryPolicyRepository(BaseRepository[QueryRiskPolicy]):
    """Query risk policy repository. Listings are ordered by risk score desc."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, QueryRiskPolicy)

    async def get_policy(self, policy_id: str) -> QueryRiskPolicyResult | None:
        orm = await self.get_by_id(policy_id)
        return _policy_to_result(orm) if orm else None

    async def get_applicable(
        self, organization_id: str | None, connection_id: str | None
    ) -> list[QueryRiskPolicyResult]:
        q = select(QueryRiskPolicy).where(QueryRiskPolicy.is_active.is_(True))
        org_scope = QueryRiskPolicy.organization_id.is_(None)
        if organization_id:
            org_scope = or_(org_scope, QueryRiskPolicy.organization_id == organization_id)
        conn_scope = QueryRiskPolicy.connection_id.is_(None)
        if connection_id:
            conn_scope = or_(conn_scope, QueryRiskPolicy.connection_id == connection_id)
        q = q.where(org_scope, conn_scope).order_by(
            QueryRiskPolicy.risk_score.desc(), QueryRiskPolicy.created_at
        )
        result = await self.db.execute(q)
        return [_policy_to_result(p) for p in result.scalars().all()]

    async def list_policies(
        self,
        organization_id: str | None = None,
        connection_id: str | None = None,
        *,
        include_inactive: bool = True,
    ) -> list[QueryRiskPolicyResult]:
        q = select(QueryRiskPolicy)
        if organization_id:
            q = q.where(QueryRiskPolicy.organization_id == organization_id)
        if connection_id:
            q = q.where(QueryRiskPolicy.connection_id == connection_id)
        if not include_inactive:
            q = q.where(QueryRiskPolicy.is_active.is_(True))
        q = q.order_by(QueryRiskPolicy.risk_score.desc(), QueryRiskPolicy.created_at)
        result = await self.db.execute(q)
        return [_policy_to_result(p) for p in result.scalars().all()]

    async def create_policy(self, created_by: str | None, **fields: Any) -> QueryRiskPolicyResult:
        policy = QueryRiskPolicy(created_by=created_by, **_normalize_lists(fields))
        created = await self.create(policy)
        return _policy_to_result(created)

    async def update_policy(self, policy_id: str, **fields: Any) -> QueryRiskPolicyResult | None:
        orm = await self.get_by_id(policy_id)
        if orm is None:
            return None
        updated = await self.apply_updates(orm, _normalize_lists(fields))
        return _policy_to_result(updated)

    async def delete_policy(self, policy_id: str) -> bool:
        orm = await self.get_by_id(policy_id)
        if orm is None:
            return False
        await self.delete(orm)
        return True
