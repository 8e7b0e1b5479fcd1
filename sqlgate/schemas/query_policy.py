"""Query risk policy API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from sqlgate.domain.enums import PolicyAction, PolicyType


class QueryPolicyCreate(BaseModel):
    """Request body for creating a risk policy."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=1000)
    policy_type: PolicyType
    pattern: str | None = None
    blocked_keywords: list[str] = Field(default_factory=list)
    restricted_tables: list[str] = Field(default_factory=list)
    risk_score: int = Field(default=50, ge=0, le=100)
    action: PolicyAction = PolicyAction.WARN
    is_active: bool = True
    organization_id: str | None = None
    connection_id: str | None = None

    @model_validator(mode="after")
    def custom_needs_pattern(self) -> "QueryPolicyCreate":
        if self.policy_type == PolicyType.CUSTOM and not self.pattern:
            raise ValueError("custom policies need a pattern")
        return self


class QueryPolicyUpdate(BaseModel):
    """Request body for updating a risk policy (partial)."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=1000)
    pattern: str | None = None
    blocked_keywords: list[str] | None = None
    restricted_tables: list[str] | None = None
    risk_score: int | None = Field(default=None, ge=0, le=100)
    action: PolicyAction | None = None
    is_active: bool | None = None

    @model_validator(mode="after")
    def reject_explicit_nulls(self) -> "QueryPolicyUpdate":
        nulls = [
            f for f in ("name", "risk_score", "action", "is_active")
            if f in self.model_fields_set and getattr(self, f) is None
        ]
        if nulls:
            raise ValueError(f"{', '.join(nulls)} cannot be null")
        return self


class QueryPolicyResponse(BaseModel):
    """Risk policy response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None
    policy_type: str
    pattern: str | None
    blocked_keywords: list[str]
    restricted_tables: list[str]
    risk_score: int
    action: str
    is_active: bool
    organization_id: str | None
    connection_id: str | None
    created_by: str | None


class QueryValidateRequest(BaseModel):
    """Request body for POST /query-policies/validate."""

    query: str = Field(..., min_length=1)
    organization_id: str | None = None
    connection_id: str | None = None


class MatchedPolicyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    policy_id: str
    policy_name: str
    policy_type: str
    risk_score: int
    action: str
    reason: str


class QueryValidateResponse(BaseModel):
    """Evaluation result; nothing is executed."""

    model_config = ConfigDict(from_attributes=True)

    allowed: bool
    risk_score: int
    action: str
    matched_policies: list[MatchedPolicyResponse]


class QueryExecutionResponse(BaseModel):
    """Execution record response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    raw_query: str
    executed_by: str
    connection_id: str
    connection_name: str | None
    status: str
    row_count: int | None
    duration_ms: int | None
    risk_score: int
    blocked_reason: str | None
    blocked_by_policy_id: str | None
    executed_at: datetime


class RiskStatsResponse(BaseModel):
    """Risk aggregates over a time window."""

    model_config = ConfigDict(from_attributes=True)

    total_executions: int
    blocked_executions: int
    high_risk_executions: int
    average_risk_score: float
    by_status: dict[str, int]
