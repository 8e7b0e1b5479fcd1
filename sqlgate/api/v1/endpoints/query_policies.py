"""Query risk policies API: CRUD, dry-run validation, execution history, risk stats."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from sqlgate.api.v1.dependencies import (
    get_query_policy_service,
    get_query_policy_service_for_write,
    require_permission,
)
from sqlgate.application.dtos.query_policy import QueryExecutionFilter
from sqlgate.application.dtos.rbac import Principal
from sqlgate.application.services.query_policy_service import QueryPolicyService
from sqlgate.application.services.security_settings_service import DEFAULT_ORGANIZATION_ID
from sqlgate.domain.enums import ExecutionStatus
from sqlgate.shared.utils.datetime import ensure_utc
from sqlgate.schemas.query_policy import (
    QueryExecutionResponse,
    QueryPolicyCreate,
    QueryPolicyResponse,
    QueryPolicyUpdate,
    QueryValidateRequest,
    QueryValidateResponse,
    RiskStatsResponse,
)

router = APIRouter()

POLICY_RESOURCE = "query_policy"


@router.post("", response_model=QueryPolicyResponse, status_code=201)
async def create_policy(
    body: QueryPolicyCreate,
    svc: Annotated[QueryPolicyService, Depends(get_query_policy_service_for_write)],
    principal: Annotated[Principal, Depends(require_permission(POLICY_RESOURCE, "manage"))],
):
    fields = body.model_dump()
    fields["policy_type"] = body.policy_type.value
    fields["action"] = body.action.value
    policy = await svc.create_policy(created_by=principal.user_id, **fields)
    return QueryPolicyResponse.model_validate(policy)


@router.get("", response_model=list[QueryPolicyResponse])
async def list_policies(
    svc: Annotated[QueryPolicyService, Depends(get_query_policy_service)],
    _: Annotated[Principal, Depends(require_permission(POLICY_RESOURCE, "read"))],
    organization_id: str | None = None,
    connection_id: str | None = None,
    include_inactive: bool = True,
):
    """List policies ordered by risk score (desc)."""
    policies = await svc.list_policies(
        organization_id, connection_id, include_inactive=include_inactive
    )
    return [QueryPolicyResponse.model_validate(p) for p in policies]


@router.post("/validate", response_model=QueryValidateResponse)
async def validate_query(
    body: QueryValidateRequest,
    svc: Annotated[QueryPolicyService, Depends(get_query_policy_service)],
    _: Annotated[Principal, Depends(require_permission(POLICY_RESOURCE, "read"))],
):
    """Evaluate a statement against the applicable policies without executing it.

    Like the execution gate, a missing organization resolves to the default one.
    """
    result = await svc.validate_query(
        body.query,
        organization_id=body.organization_id or DEFAULT_ORGANIZATION_ID,
        connection_id=body.connection_id,
    )
    return QueryValidateResponse.model_validate(result)


@router.get("/executions", response_model=list[QueryExecutionResponse])
async def list_executions(
    svc: Annotated[QueryPolicyService, Depends(get_query_policy_service)],
    _: Annotated[Principal, Depends(require_permission(POLICY_RESOURCE, "read"))],
    executed_by: str | None = None,
    connection_id: str | None = None,
    status: ExecutionStatus | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
):
    executions = await svc.list_executions(
        QueryExecutionFilter(
            executed_by=executed_by,
            connection_id=connection_id,
            status=status.value if status else None,
            start=ensure_utc(start),
            end=ensure_utc(end),
            skip=skip,
            limit=limit,
        )
    )
    return [QueryExecutionResponse.model_validate(e) for e in executions]


@router.get("/executions/blocked", response_model=list[QueryExecutionResponse])
async def list_blocked_executions(
    svc: Annotated[QueryPolicyService, Depends(get_query_policy_service)],
    _: Annotated[Principal, Depends(require_permission(POLICY_RESOURCE, "read"))],
    limit: int = Query(100, ge=1, le=1000),
):
    executions = await svc.list_blocked_executions(limit=limit)
    return [QueryExecutionResponse.model_validate(e) for e in executions]


@router.get("/stats", response_model=RiskStatsResponse)
async def get_risk_stats(
    svc: Annotated[QueryPolicyService, Depends(get_query_policy_service)],
    _: Annotated[Principal, Depends(require_permission(POLICY_RESOURCE, "read"))],
    start: datetime | None = None,
    end: datetime | None = None,
):
    """Totals, blocked and high-risk counts, average risk score."""
    return RiskStatsResponse.model_validate(await svc.get_risk_stats(start, end))


@router.get("/{policy_id}", response_model=QueryPolicyResponse)
async def get_policy(
    policy_id: str,
    svc: Annotated[QueryPolicyService, Depends(get_query_policy_service)],
    _: Annotated[Principal, Depends(require_permission(POLICY_RESOURCE, "read"))],
):
    return QueryPolicyResponse.model_validate(await svc.get_policy(policy_id))


@router.patch("/{policy_id}", response_model=QueryPolicyResponse)
async def update_policy(
    policy_id: str,
    body: QueryPolicyUpdate,
    svc: Annotated[QueryPolicyService, Depends(get_query_policy_service_for_write)],
    _: Annotated[Principal, Depends(require_permission(POLICY_RESOURCE, "manage"))],
):
    fields = body.model_dump(exclude_unset=True)
    if body.action is not None:
        fields["action"] = body.action.value
    policy = await svc.update_policy(policy_id, **fields)
    return QueryPolicyResponse.model_validate(policy)


@router.delete("/{policy_id}", status_code=204)
async def delete_policy(
    policy_id: str,
    svc: Annotated[QueryPolicyService, Depends(get_query_policy_service_for_write)],
    _: Annotated[Principal, Depends(require_permission(POLICY_RESOURCE, "manage"))],
) -> None:
    await svc.delete_policy(policy_id)
