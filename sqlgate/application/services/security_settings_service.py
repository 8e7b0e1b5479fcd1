"""Security settings: get-or-create, update and reset per organization."""

from __future__ import annotations

from sqlgate.application.dtos.query import SecuritySettingsResult, SecuritySettingsUpdate
from sqlgate.application.interfaces.repositories import ISecuritySettingsRepository
from sqlgate.domain.exceptions import ValidationException
from sqlgate.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

DEFAULT_ORGANIZATION_ID = "default"


class SecuritySettingsService:
    """Read and administer the toggles used by the static SQL guard."""

    def __init__(self, settings_repo: ISecuritySettingsRepository) -> None:
        self._repo = settings_repo

    async def get_settings(
        self, organization_id: str = DEFAULT_ORGANIZATION_ID
    ) -> SecuritySettingsResult:
        """Return settings, creating the default row on first read."""
        settings = await self._repo.get_by_organization(organization_id)
        if settings is None:
            logger.info("Creating default security settings for %s", organization_id)
            settings = await self._repo.create_default(organization_id)
        return settings

    async def update_settings(
        self,
        data: SecuritySettingsUpdate,
        organization_id: str = DEFAULT_ORGANIZATION_ID,
    ) -> SecuritySettingsResult:
        if data.max_result_rows is not None and data.max_result_rows < 1:
            raise ValidationException(
                "max_result_rows must be at least 1", field="max_result_rows"
            )
        return await self._repo.update_settings(organization_id, data)

    async def reset_to_defaults(
        self, organization_id: str = DEFAULT_ORGANIZATION_ID
    ) -> SecuritySettingsResult:
        logger.info("Resetting security settings for %s", organization_id)
        return await self._repo.reset_to_defaults(organization_id)
