"""Security settings repository. One row per organization id."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sqlgate.application.dtos.query import (
    DEFAULT_BLOCKED_KEYWORDS,
    DEFAULT_MAX_RESULT_ROWS,
    SecuritySettingsResult,
    SecuritySettingsUpdate,
)
from sqlgate.infrastructure.persistence.models.security_settings import SecuritySettings
from sqlgate.infrastructure.persistence.repositories.base import BaseRepository

_DEFAULTS = {
    "enable_sql_injection_check": True,
    "enable_ddl_block": True,
    "enable_dml_block": False,
    "max_result_rows": DEFAULT_MAX_RESULT_ROWS,
    "blocked_keywords": DEFAULT_BLOCKED_KEYWORDS,
}


def _settings_to_result(s: SecuritySettings) -> SecuritySettingsResult:
    return SecuritySettingsResult(
        organization_id=s.organization_id,
        enable_sql_injection_check=s.enable_sql_injection_check,
        enable_ddl_block=s.enable_ddl_block,
        enable_dml_block=s.enable_dml_block,
        max_result_rows=s.max_result_rows,
        blocked_keywords=s.blocked_keywords,
        updated_at=s.updated_at,
    )


class SecuritySettingsRepository(BaseRepository[SecuritySettings]):
    """Security settings repository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, SecuritySettings)

    async def _get_entity(self, organization_id: str) -> SecuritySettings | None:
        result = await self.db.execute(
            select(SecuritySettings).where(SecuritySettings.organization_id == organization_id)
        )
        return result.scalar_one_or_none()

    async def get_by_organization(
        self, organization_id: str
    ) -> SecuritySettingsResult | None:
        orm = await self._get_entity(organization_id)
        return _settings_to_result(orm) if orm else None

    async def create_default(self, organization_id: str) -> SecuritySettingsResult:
        created = await self.create(SecuritySettings(organization_id=organization_id, **_DEFAULTS))
        return _settings_to_result(created)

    async def update_settings(
        self, organization_id: str, data: SecuritySettingsUpdate
    ) -> SecuritySettingsResult:
        orm = await self._get_entity(organization_id)
        if orm is None:
            orm = await self.create(SecuritySettings(organization_id=organization_id, **_DEFAULTS))
        changes = {k: v for k, v in vars(data).items() if v is not None}
        updated = await self.apply_updates(orm, changes)
        return _settings_to_result(updated)

    async def reset_to_defaults(self, organization_id: str) -> SecuritySettingsResult:
        orm = await self._get_entity(organization_id)
        if orm is None:
            return await self.create_default(organization_id)
        updated = await self.apply_updates(orm, dict(_DEFAULTS))
        return _settings_to_result(updated)
