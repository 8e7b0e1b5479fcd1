"""Security settings API: read, update, reset the static SQL guard toggles."""

from typing import Annotated

from fastapi import APIRouter, Depends

from sqlgate.api.v1.dependencies import get_security_settings_service, require_permission
from sqlgate.application.dtos.query import SecuritySettingsUpdate
from sqlgate.application.dtos.rbac import Principal
from sqlgate.application.services.security_settings_service import (
    DEFAULT_ORGANIZATION_ID,
    SecuritySettingsService,
)
from sqlgate.schemas.security_settings import (
    SecuritySettingsResponse,
    SecuritySettingsUpdateRequest,
)

router = APIRouter()

SETTINGS_RESOURCE = "security_settings"


@router.get("", response_model=SecuritySettingsResponse)
async def get_security_settings(
    svc: Annotated[SecuritySettingsService, Depends(get_security_settings_service)],
    _: Annotated[Principal, Depends(require_permission(SETTINGS_RESOURCE, "read"))],
    organization_id: str = DEFAULT_ORGANIZATION_ID,
):
    """Return settings (created with defaults on first read)."""
    return SecuritySettingsResponse.model_validate(await svc.get_settings(organization_id))


@router.patch("", response_model=SecuritySettingsResponse)
async def update_security_settings(
    body: SecuritySettingsUpdateRequest,
    svc: Annotated[SecuritySettingsService, Depends(get_security_settings_service)],
    _: Annotated[Principal, Depends(require_permission(SETTINGS_RESOURCE, "manage"))],
    organization_id: str = DEFAULT_ORGANIZATION_ID,
):
    settings = await svc.update_settings(
        SecuritySettingsUpdate(**body.model_dump(exclude_unset=True)), organization_id
    )
    return SecuritySettingsResponse.model_validate(settings)


@router.post("/reset", response_model=SecuritySettingsResponse)
async def reset_security_settings(
    svc: Annotated[SecuritySettingsService, Depends(get_security_settings_service)],
    _: Annotated[Principal, Depends(require_permission(SETTINGS_RESOURCE, "manage"))],
    organization_id: str = DEFAULT_ORGANIZATION_ID,
):
    return SecuritySettingsResponse.model_validate(await svc.reset_to_defaults(organization_id))
