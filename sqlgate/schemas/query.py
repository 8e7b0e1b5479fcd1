"""Query execution API schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class QueryExecuteRequest(BaseModel):
    """Request body for POST /queries/execute."""

    connection_id: str = Field(..., min_length=1)
    query: str = Field(..., min_length=1)
    organization_id: str | None = None


class QueryExecuteResponse(BaseModel):
    """Rows and metadata of an executed statement."""

    model_config = ConfigDict(from_attributes=True)

    rows: list[dict[str, Any]]
    fields: list[str]
    row_count: int
    executed_query: str
    duration_ms: int
    risk_score: int
    warnings: list[str]
