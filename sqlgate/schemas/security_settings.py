"""Security settings API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SecuritySettingsUpdateRequest(BaseModel):
    """Partial update; omitted fields keep their current value."""

    enable_sql_injection_check: bool | None = None
    enable_ddl_block: bool | None = None
    enable_dml_block: bool | None = None
    max_result_rows: int | None = Field(default=None, ge=1)
    blocked_keywords: str | None = Field(
        default=None, description="Comma-separated list, e.g. 'DROP, TRUNCATE'"
    )


class SecuritySettingsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    organization_id: str
    enable_sql_injection_check: bool
    enable_ddl_block: bool
    enable_dml_block: bool
    max_result_rows: int | None
    blocked_keywords: str
    updated_at: datetime | None = None
