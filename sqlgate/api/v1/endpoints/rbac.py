"""RBAC API: permission checks, simulation, roles, permissions, user and group grants.

Role, permission and policy-bundle administration requires action 'manage' (reads: 'read')
on resource 'rbac'. Granting a role additionally requires 'admin' on
'role:<role_id>', enforced by RoleService.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from sqlgate.api.v1.dependencies import (
    get_access_context,
    get_authorization_service,
    get_principal,
    get_rbac_policy_service,
    get_role_service,
    require_permission,
)
from sqlgate.application.dtos.rbac import AccessContext, Principal
from sqlgate.application.services.authorization_service import AuthorizationService
from sqlgate.application.services.rbac_policy_service import RbacPolicyService
from sqlgate.application.services.role_service import RoleService
from sqlgate.core.config import get_settings
from sqlgate.schemas.rbac import (
    GroupRoleAssign,
    GroupRoleResponse,
    PermissionCheckRequest,
    PermissionCheckResponse,
    PermissionCreate,
    PermissionResponse,
    RbacPolicyApply,
    RbacPolicyCreate,
    RbacPolicyResponse,
    RoleCreate,
    RoleResponse,
    RoleUpdate,
    SimulatedPermissionResponse,
    SimulateRequest,
    UserRoleAssign,
    UserRoleReject,
    UserRoleResponse,
)
from sqlgate.shared.utils.datetime import in_timezone

router = APIRouter()

RBAC_RESOURCE = "rbac"


@router.post("/check", response_model=PermissionCheckResponse)
async def check_permission(
    body: PermissionCheckRequest,
    auth_svc: Annotated[AuthorizationService, Depends(get_authorization_service)],
    _: Annotated[Principal, Depends(require_permission(RBAC_RESOURCE, "read"))],
):
    """Decide whether a principal may perform an action on a resource."""
    context = None
    if body.ip is not None or body.time is not None:
        context = AccessContext(
            ip=body.ip,
            time=in_timezone(body.time, get_settings().rbac_condition_timezone),
        )
    decision = await auth_svc.check_permission(
        body.user_id, body.group_ids, body.resource, body.action, context=context
    )
    return PermissionCheckResponse(allowed=decision.allowed, reason=decision.reason)


@router.post("/simulate", response_model=list[SimulatedPermissionResponse])
async def simulate_permissions(
    body: SimulateRequest,
    auth_svc: Annotated[AuthorizationService, Depends(get_authorization_service)],
    _: Annotated[Principal, Depends(require_permission(RBAC_RESOURCE, "read"))],
):
    """List the effective (resource, action, allowed) set of a principal."""
    simulated = await auth_svc.simulate_permissions(body.user_id, body.group_ids)
    return [SimulatedPermissionResponse.model_validate(s) for s in simulated]


# ---- Roles ----


@router.post("/roles", response_model=RoleResponse, status_code=201)
async def create_role(
    body: RoleCreate,
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    _: Annotated[Principal, Depends(require_permission(RBAC_RESOURCE, "manage"))],
):
    role = await role_svc.create_role(
        body.name,
        body.description,
        role_type=body.role_type.value,
        parent_role_id=body.parent_role_id,
        priority=body.priority,
        organization_id=body.organization_id,
        is_default=body.is_default,
    )
    return RoleResponse.model_validate(role)


@router.get("/roles", response_model=list[RoleResponse])
async def list_roles(
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    _: Annotated[Principal, Depends(require_permission(RBAC_RESOURCE, "read"))],
    organization_id: str | None = None,
    include_inactive: bool = False,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
):
    """List roles ordered by priority (desc) then name."""
    roles = await role_svc.list_roles(
        organization_id, skip, limit, include_inactive=include_inactive
    )
    return [RoleResponse.model_validate(r) for r in roles]


@router.get("/roles/{role_id}", response_model=RoleResponse)
async def get_role(
    role_id: str,
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    _: Annotated[Principal, Depends(require_permission(RBAC_RESOURCE, "read"))],
):
    return RoleResponse.model_validate(await role_svc.get_role(role_id))


@router.get("/roles/{role_id}/hierarchy", response_model=list[RoleResponse])
async def get_role_hierarchy(
    role_id: str,
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    _: Annotated[Principal, Depends(require_permission(RBAC_RESOURCE, "read"))],
):
    """Return the role followed by its ancestors."""
    chain = await role_svc.get_role_hierarchy(role_id)
    return [RoleResponse.model_validate(r) for r in chain]


@router.patch("/roles/{role_id}", response_model=RoleResponse)
async def update_role(
    role_id: str,
    body: RoleUpdate,
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    _: Annotated[Principal, Depends(require_permission(RBAC_RESOURCE, "manage"))],
):
    role = await role_svc.update_role(role_id, **body.model_dump(exclude_unset=True))
    return RoleResponse.model_validate(role)


@router.delete("/roles/{role_id}", status_code=204)
async def delete_role(
    role_id: str,
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    _: Annotated[Principal, Depends(require_permission(RBAC_RESOURCE, "manage"))],
) -> None:
    """Delete role with its permissions and grants."""
    await role_svc.delete_role(role_id)


# ---- Permissions ----


@router.post(
    "/roles/{role_id}/permissions", response_model=PermissionResponse, status_code=201
)
async def add_permission(
    role_id: str,
    body: PermissionCreate,
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    _: Annotated[Principal, Depends(require_permission(RBAC_RESOURCE, "manage"))],
):
    conditions = [c.to_dto() for c in body.conditions]
    permission = await role_svc.add_permission(
        role_id,
        body.resource,
        body.action,
        scope=body.scope.value,
        is_allow=body.is_allow,
        conditions=conditions,
    )
    return PermissionResponse.model_validate(permission)


@router.get("/roles/{role_id}/permissions", response_model=list[PermissionResponse])
async def list_permissions(
    role_id: str,
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    _: Annotated[Principal, Depends(require_permission(RBAC_RESOURCE, "read"))],
):
    permissions = await role_svc.list_permissions(role_id)
    return [PermissionResponse.model_validate(p) for p in permissions]


@router.delete("/permissions/{permission_id}", status_code=204)
async def remove_permission(
    permission_id: str,
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    _: Annotated[Principal, Depends(require_permission(RBAC_RESOURCE, "manage"))],
) -> None:
    await role_svc.remove_permission(permission_id)


# ---- Policy bundles ----


@router.get("/policies", response_model=list[RbacPolicyResponse])
async def list_rbac_policies(
    policy_svc: Annotated[RbacPolicyService, Depends(get_rbac_policy_service)],
    _: Annotated[Principal, Depends(require_permission(RBAC_RESOURCE, "read"))],
    organization_id: Annotated[str | None, Query()] = None,
):
    """List permission bundles; without organization_id every bundle is returned."""
    policies = await policy_svc.list_policies(organization_id)
    return [RbacPolicyResponse.model_validate(p) for p in policies]


@router.get("/policies/templates", response_model=list[RbacPolicyResponse])
async def list_rbac_policy_templates(
    policy_svc: Annotated[RbacPolicyService, Depends(get_rbac_policy_service)],
    _: Annotated[Principal, Depends(require_permission(RBAC_RESOURCE, "read"))],
):
    templates = await policy_svc.list_templates()
    return [RbacPolicyResponse.model_validate(p) for p in templates]


@router.get("/policies/{policy_id}", response_model=RbacPolicyResponse)
async def get_rbac_policy(
    policy_id: str,
    policy_svc: Annotated[RbacPolicyService, Depends(get_rbac_policy_service)],
    _: Annotated[Principal, Depends(require_permission(RBAC_RESOURCE, "read"))],
):
    return RbacPolicyResponse.model_validate(await policy_svc.get_policy(policy_id))


@router.post("/policies", response_model=RbacPolicyResponse, status_code=201)
async def create_rbac_policy(
    body: RbacPolicyCreate,
    policy_svc: Annotated[RbacPolicyService, Depends(get_rbac_policy_service)],
    principal: Annotated[Principal, Depends(require_permission(RBAC_RESOURCE, "manage"))],
):
    policy = await policy_svc.create_policy(
        body.name,
        principal.user_id,
        permissions=[p.to_dto() for p in body.permissions],
        description=body.description,
        is_template=body.is_template,
        conditions=[c.to_dto() for c in body.conditions],
        organization_id=body.organization_id,
    )
    return RbacPolicyResponse.model_validate(policy)


@router.post(
    "/policies/{policy_id}/apply",
    response_model=list[PermissionResponse],
    status_code=201,
)
async def apply_rbac_policy(
    policy_id: str,
    body: RbacPolicyApply,
    policy_svc: Annotated[RbacPolicyService, Depends(get_rbac_policy_service)],
    _: Annotated[Principal, Depends(require_permission(RBAC_RESOURCE, "manage"))],
):
    """Create one permission on the role per bundle entry, stamped with the bundle conditions."""
    created = await policy_svc.apply_to_role(policy_id, body.role_id)
    return [PermissionResponse.model_validate(p) for p in created]


# ---- User grants ----


@router.post("/user-roles", response_model=UserRoleResponse, status_code=201)
async def assign_role_to_user(
    body: UserRoleAssign,
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    principal: Annotated[Principal, Depends(get_principal)],
    context: Annotated[AccessContext, Depends(get_access_context)],
):
    """Grant a role to a user (idempotent). requires_approval creates a pending grant."""
    grant = await role_svc.assign_role_to_user(
        principal,
        body.user_id,
        body.role_id,
        is_temporary=body.is_temporary,
        expires_at=body.expires_at,
        requires_approval=body.requires_approval,
        context=context,
    )
    return UserRoleResponse.model_validate(grant)


@router.get("/users/{user_id}/roles", response_model=list[UserRoleResponse])
async def list_user_roles(
    user_id: str,
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    _: Annotated[Principal, Depends(require_permission(RBAC_RESOURCE, "read"))],
):
    grants = await role_svc.list_user_roles(user_id)
    return [UserRoleResponse.model_validate(g) for g in grants]


@router.post("/user-roles/{user_role_id}/approve", response_model=UserRoleResponse)
async def approve_user_role(
    user_role_id: str,
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    principal: Annotated[Principal, Depends(get_principal)],
    context: Annotated[AccessContext, Depends(get_access_context)],
):
    grant = await role_svc.approve_user_role(principal, user_role_id, context=context)
    return UserRoleResponse.model_validate(grant)


@router.post("/user-roles/{user_role_id}/reject", response_model=UserRoleResponse)
async def reject_user_role(
    user_role_id: str,
    body: UserRoleReject,
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    principal: Annotated[Principal, Depends(get_principal)],
    context: Annotated[AccessContext, Depends(get_access_context)],
):
    grant = await role_svc.reject_user_role(
        principal, user_role_id, body.reason, context=context
    )
    return UserRoleResponse.model_validate(grant)


@router.delete("/users/{user_id}/roles/{role_id}", status_code=204)
async def revoke_role_from_user(
    user_id: str,
    role_id: str,
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    principal: Annotated[Principal, Depends(get_principal)],
    context: Annotated[AccessContext, Depends(get_access_context)],
) -> None:
    await role_svc.revoke_role_from_user(principal, user_id, role_id, context=context)


# ---- Group grants ----


@router.post("/group-roles", response_model=GroupRoleResponse, status_code=201)
async def assign_role_to_group(
    body: GroupRoleAssign,
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    principal: Annotated[Principal, Depends(get_principal)],
    context: Annotated[AccessContext, Depends(get_access_context)],
):
    grant = await role_svc.assign_role_to_group(
        principal, body.group_id, body.role_id, context=context
    )
    return GroupRoleResponse.model_validate(grant)


@router.get("/groups/{group_id}/roles", response_model=list[GroupRoleResponse])
async def list_group_roles(
    group_id: str,
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    _: Annotated[Principal, Depends(require_permission(RBAC_RESOURCE, "read"))],
):
    grants = await role_svc.list_group_roles(group_id)
    return [GroupRoleResponse.model_validate(g) for g in grants]


@router.delete("/groups/{group_id}/roles/{role_id}", status_code=204)
async def revoke_role_from_group(
    group_id: str,
    role_id: str,
    role_svc: Annotated[RoleService, Depends(get_role_service)],
    principal: Annotated[Principal, Depends(get_principal)],
    context: Annotated[AccessContext, Depends(get_access_context)],
) -> None:
    await role_svc.revoke_role_from_group(principal, group_id, role_id, context=context)
