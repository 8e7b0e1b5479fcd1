"""Authorization service: RBAC permission resolution over the role hierarchy.

Every call reads current grants, roles and permissions; nothing is cached, so
a revoked grant or edited permission takes effect on the next check.
"""

from __future__ import annotations

from datetime import datetime

from sqlgate.application.dtos.rbac import (
    AccessContext,
    PermissionCondition,
    PermissionDecision,
    PermissionResult,
    SimulatedPermission,
)
from sqlgate.application.interfaces.repositories import (
    IPermissionRepository,
    IRoleAssignmentRepository,
)
from sqlgate.application.services.role_graph import RoleGraph
from sqlgate.domain.enums import ConditionType
from sqlgate.domain.exceptions import AuthorizationException
from sqlgate.shared.telemetry.logging import get_logger
from sqlgate.shared.telemetry.tracing import traced
from sqlgate.shared.utils.datetime import utc_now

logger = get_logger(__name__)

REASON_EXPLICIT_DENY = "explicitly denied"
REASON_NO_MATCH = "no matching permission found"


def matches_resource(pattern: str, resource: str) -> bool:
    """Return True if pattern covers resource.

    '*' matches everything, equal strings match, and a pattern ending in '*'
    matches any resource starting with the text before it ('db:*' covers
    'db:sales' and 'db:sales:public' but not 'dbx:sales').
    """
    if pattern == "*" or pattern == resource:
        return True
    if pattern.endswith("*"):
        return resource.startswith(pattern[:-1])
    return False


def _sunday_based_weekday(moment: datetime) -> int:
    """0=Sunday .. 6=Saturday (datetime.weekday() is 0=Monday)."""
    return (moment.weekday() + 1) % 7


def _condition_holds(condition: PermissionCondition, context: AccessContext) -> bool:
    if condition.type == ConditionType.IP.value:
        if context.ip is None:
            return True
        if condition.allowed_ips is not None and context.ip not in condition.allowed_ips:
            return False
        if condition.denied_ips is not None and context.ip in condition.denied_ips:
            return False
        return True
    if condition.type == ConditionType.TIME.value:
        if context.time is None:
            return True
        if (
            condition.allowed_days is not None
            and _sunday_based_weekday(context.time) not in condition.allowed_days
        ):
            return False
        if (
            condition.allowed_hours_start is not None
            and condition.allowed_hours_end is not None
        ):
            hour = context.time.hour
            if hour < condition.allowed_hours_start or hour > condition.allowed_hours_end:
                return False
        return True
    # Unknown condition kinds do not restrict.
    return True


def conditions_hold(
    conditions: tuple[PermissionCondition, ...], context: AccessContext | None
) -> bool:
    """Return True if every condition holds for context (always True without context)."""
    if context is None:
        return True
    return all(_condition_holds(c, context) for c in conditions)


class AuthorizationService:
    """Resolve whether a principal may perform an action on a resource.

    A principal is a user id plus the ids of the groups it belongs to.
    Explicit deny beats allow regardless of which role contributed it;
    no match at all is a deny.
    """

    def __init__(
        self,
        role_graph: RoleGraph,
        permission_repo: IPermissionRepository,
        assignment_repo: IRoleAssignmentRepository,
    ) -> None:
        self._role_graph = role_graph
        self._permission_repo = permission_repo
        self._assignment_repo = assignment_repo

    async def get_effective_role_ids(self, user_id: str, group_ids: list[str]) -> list[str]:
        """Return ids of all roles that apply to the principal (hierarchy included)."""
        granted = list(
            await self._assignment_repo.get_active_user_role_ids(user_id, utc_now())
        )
        if group_ids:
            granted.extend(await self._assignment_repo.get_group_role_ids(group_ids))
        if not granted:
            return []
        roles = await self._role_graph.expand(list(dict.fromkeys(granted)))
        return [r.id for r in roles]

    async def get_effective_permissions(
        self, user_id: str, group_ids: list[str]
    ) -> list[PermissionResult]:
        """Return permissions of every effective role."""
        role_ids = await self.get_effective_role_ids(user_id, group_ids)
        if not role_ids:
            return []
        return await self._permission_repo.get_by_role_ids(role_ids)

    @traced("rbac.check_permission")
    async def check_permission(
        self,
        user_id: str,
        group_ids: list[str],
        resource: str,
        action: str,
        context: AccessContext | None = None,
    ) -> PermissionDecision:
        """Decide whether the principal may perform action on resource.

        Conditions are only evaluated when a context is supplied; a condition
        field is skipped when the matching context field (ip, time) is absent.
        """
        permissions = await self.get_effective_permissions(user_id, group_ids)
        first_allow: PermissionResult | None = None
        first_deny: PermissionResult | None = None
        for perm in permissions:
            if perm.action != action or not matches_resource(perm.resource, resource):
                continue
            if not conditions_hold(perm.conditions, context):
                continue
            if perm.is_allow:
                first_allow = first_allow or perm
            else:
                first_deny = perm
                break
        if first_deny is not None:
            logger.debug(
                "Permission denied for user %s: %s on %s (permission %s)",
                user_id,
                action,
                resource,
                first_deny.id,
            )
            return PermissionDecision(
                allowed=False, reason=REASON_EXPLICIT_DENY, permission_id=first_deny.id
            )
        if first_allow is not None:
            return PermissionDecision(allowed=True, permission_id=first_allow.id)
        return PermissionDecision(allowed=False, reason=REASON_NO_MATCH)

    async def require_permission(
        self,
        user_id: str,
        group_ids: list[str],
        resource: str,
        action: str,
        context: AccessContext | None = None,
    ) -> None:
        """Raise AuthorizationException (Forbidden) unless the principal is allowed."""
        decision = await self.check_permission(
            user_id, group_ids, resource, action, context=context
        )
        if not decision.allowed:
            raise AuthorizationException(resource=resource, action=action, reason=decision.reason)

    @traced("rbac.simulate_permissions")
    async def simulate_permissions(
        self, user_id: str, group_ids: list[str]
    ) -> list[SimulatedPermission]:
        """What-if view: one entry per distinct (resource, action) the principal touches.

        Includes inherited roles. Within a pair a deny wins; conditions are
        not evaluated.
        """
        role_ids = await self.get_effective_role_ids(user_id, group_ids)
        if not role_ids:
            return []
        permissions = await self._permission_repo.get_by_role_ids(role_ids)
        merged: dict[tuple[str, str], tuple[bool, list[str]]] = {}
        for perm in permissions:
            key = (perm.resource, perm.action)
            allowed, sources = merged.get(key, (True, []))
            if perm.role_id not in sources:
                sources.append(perm.role_id)
            merged[key] = (allowed and perm.is_allow, sources)
        return [
            SimulatedPermission(
                resource=resource,
                action=action,
                allowed=allowed,
                role_ids=tuple(sources),
            )
            for (resource, action), (allowed, sources) in merged.items()
        ]
