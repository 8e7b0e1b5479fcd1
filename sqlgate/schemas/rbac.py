"""RBAC API schemas: roles, permissions, grants, checks."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from sqlgate.application.dtos.rbac import PermissionCondition, PolicyPermission
from sqlgate.domain.enums import ResourceScope, RoleType


class PermissionConditionSchema(BaseModel):
    """Contextual condition. ip: allowed_ips/denied_ips; time: days (0=Sunday) and hours.

    Days and hours are read on the wall clock of RBAC_CONDITION_TIMEZONE (UTC by default).
    """

    model_config = ConfigDict(from_attributes=True)

    type: str = Field(..., description="ip or time; other types never restrict")
    allowed_ips: list[str] | None = None
    denied_ips: list[str] | None = None
    allowed_days: list[int] | None = Field(default=None, description="0=Sunday .. 6=Saturday")
    allowed_hours_start: int | None = Field(
        default=None, ge=0, le=23, description="Inclusive start hour in the condition timezone"
    )
    allowed_hours_end: int | None = Field(
        default=None, ge=0, le=23, description="Inclusive end hour in the condition timezone"
    )

    def to_dto(self) -> PermissionCondition:
        def _tuple(values: list | None) -> tuple | None:
            return tuple(values) if values is not None else None

        return PermissionCondition(
            type=self.type,
            allowed_ips=_tuple(self.allowed_ips),
            denied_ips=_tuple(self.denied_ips),
            allowed_days=_tuple(self.allowed_days),
            allowed_hours_start=self.allowed_hours_start,
            allowed_hours_end=self.allowed_hours_end,
        )


class RoleCreate(BaseModel):
    """Request body for creating a role."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=500)
    role_type: RoleType = RoleType.CUSTOM
    parent_role_id: str | None = None
    priority: int = 0
    organization_id: str | None = None
    is_default: bool = False


class RoleUpdate(BaseModel):
    """Request body for updating a role (partial)."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=500)
    parent_role_id: str | None = None
    priority: int | None = None
    is_active: bool | None = None
    is_default: bool | None = None

    @model_validator(mode="after")
    def reject_explicit_nulls(self) -> "RoleUpdate":
        nulls = [
            f for f in ("name", "priority", "is_active", "is_default")
            if f in self.model_fields_set and getattr(self, f) is None
        ]
        if nulls:
            raise ValueError(f"{', '.join(nulls)} cannot be null")
        return self


class RoleResponse(BaseModel):
    """Role list/detail response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None
    role_type: str
    parent_role_id: str | None
    priority: int
    organization_id: str | None
    is_active: bool
    is_default: bool


class PermissionCreate(BaseModel):
    """Request body for attaching a permission to a role."""

    resource: str = Field(..., min_length=1, description="Pattern: '*', exact, or prefix ending in '*'")
    action: str = Field(..., min_length=1)
    scope: ResourceScope = ResourceScope.DATABASE
    is_allow: bool = True
    conditions: list[PermissionConditionSchema] = Field(default_factory=list)


class PermissionResponse(BaseModel):
    """Permission response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    role_id: str
    scope: str
    resource: str
    action: str
    is_allow: bool
    conditions: list[PermissionConditionSchema]


class PolicyPermissionSchema(BaseModel):
    """One permission entry of an RBAC policy bundle."""

    model_config = ConfigDict(from_attributes=True)

    resource: str = Field(..., min_length=1)
    action: str = Field(..., min_length=1)
    scope: ResourceScope = ResourceScope.DATABASE
    is_allow: bool = True

    def to_dto(self) -> PolicyPermission:
        return PolicyPermission(
            scope=self.scope.value, resource=self.resource, action=self.action, is_allow=self.is_allow
        )


class RbacPolicyCreate(BaseModel):
    """Request body for creating an RBAC policy (permission bundle or template)."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=500)
    is_template: bool = False
    permissions: list[PolicyPermissionSchema] = Field(..., min_length=1)
    conditions: list[PermissionConditionSchema] = Field(default_factory=list)
    organization_id: str | None = None


class RbacPolicyResponse(BaseModel):
    """RBAC policy response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None
    is_template: bool
    permissions: list[PolicyPermissionSchema]
    conditions: list[PermissionConditionSchema]
    organization_id: str | None
    created_by: str
    is_active: bool


class RbacPolicyApply(BaseModel):
    """Request body for applying a policy bundle to a role."""

    role_id: str = Field(..., min_length=1)


class UserRoleAssign(BaseModel):
    """Request body for granting a role to a user."""

    user_id: str = Field(..., min_length=1)
    role_id: str = Field(..., min_length=1)
    is_temporary: bool = False
    expires_at: datetime | None = None
    requires_approval: bool = False


class UserRoleReject(BaseModel):
    """Request body for rejecting a pending grant."""

    reason: str = Field(..., min_length=1, max_length=500)


class UserRoleResponse(BaseModel):
    """User-role grant response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    role_id: str
    granted_by: str
    is_temporary: bool
    expires_at: datetime | None
    approval_status: str
    approval_reason: str | None


class GroupRoleAssign(BaseModel):
    """Request body for granting a role to a group."""

    group_id: str = Field(..., min_length=1)
    role_id: str = Field(..., min_length=1)


class GroupRoleResponse(BaseModel):
    """Group-role grant response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    group_id: str
    role_id: str
    granted_by: str


class PermissionCheckRequest(BaseModel):
    """Request body for POST /rbac/check."""

    user_id: str = Field(..., min_length=1)
    group_ids: list[str] = Field(default_factory=list)
    resource: str = Field(..., min_length=1)
    action: str = Field(..., min_length=1)
    ip: str | None = None
    time: datetime | None = Field(
        default=None, description="Evaluated in the condition timezone; naive values are UTC"
    )


class PermissionCheckResponse(BaseModel):
    """Decision with the resolver's reason (None for a plain allow)."""

    allowed: bool
    reason: str | None = None


class SimulateRequest(BaseModel):
    """Request body for POST /rbac/simulate."""

    user_id: str = Field(..., min_length=1)
    group_ids: list[str] = Field(default_factory=list)


class SimulatedPermissionResponse(BaseModel):
    """One resolved (resource, action) pair."""

    model_config = ConfigDict(from_attributes=True)

    resource: str
    action: str
    allowed: bool
    role_ids: list[str] = Field(default_factory=list)
