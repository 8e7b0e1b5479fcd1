"""Query execution API: run one statement through the gate.

The caller needs action 'execute' on resource 'connection:<connection_id>'.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from sqlgate.api.v1.dependencies import (
    get_access_context,
    get_authorization_service,
    get_principal,
    get_query_execution_gate,
)
from sqlgate.application.dtos.rbac import AccessContext, Principal
from sqlgate.application.services.authorization_service import AuthorizationService
from sqlgate.application.use_cases.execute_query import QueryExecutionGate
from sqlgate.schemas.query import QueryExecuteRequest, QueryExecuteResponse

router = APIRouter()


def connection_resource(connection_id: str) -> str:
    return f"connection:{connection_id}"


@router.post("/execute", response_model=QueryExecuteResponse)
async def execute_query(
    body: QueryExecuteRequest,
    principal: Annotated[Principal, Depends(get_principal)],
    context: Annotated[AccessContext, Depends(get_access_context)],
    auth_svc: Annotated[AuthorizationService, Depends(get_authorization_service)],
    gate: Annotated[QueryExecutionGate, Depends(get_query_execution_gate)],
):
    """Check RBAC, then security policy, then execute. Blocked statements return 403."""
    await auth_svc.require_permission(
        principal.user_id,
        list(principal.group_ids),
        connection_resource(body.connection_id),
        "execute",
        context=context,
    )
    result = await gate.execute_query(
        body.connection_id,
        body.query,
        principal.user_id,
        organization_id=body.organization_id,
    )
    return QueryExecuteResponse.model_validate(result)
