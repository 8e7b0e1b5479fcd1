"""AuthorizationService: resource matching, deny precedence, conditions, simulation."""

from datetime import UTC, datetime, timedelta

import pytest

from sqlgate.application.dtos.rbac import AccessContext, PermissionCondition
from sqlgate.application.services.authorization_service import (
    REASON_EXPLICIT_DENY,
    REASON_NO_MATCH,
    AuthorizationService,
    conditions_hold,
    matches_resource,
)
from sqlgate.application.services.role_graph import RoleGraph
from sqlgate.domain.exceptions import AuthorizationException
from tests.fakes import (
    FakePermissionRepository,
    FakeRoleAssignmentRepository,
    FakeRoleRepository,
    make_permission,
    make_role,
)


def _service(roles, permissions, assignments) -> AuthorizationService:
    role_repo = FakeRoleRepository(*roles)
    return AuthorizationService(
        role_graph=RoleGraph(role_repo),
        permission_repo=FakePermissionRepository(*permissions),
        assignment_repo=assignments,
    )


@pytest.mark.parametrize(
    ("pattern", "resource", "expected"),
    [
        ("*", "anything:at:all", True),
        ("db:sales", "db:sales", True),
        ("db:*", "db:sales", True),
        ("db:*", "db:sales:public", True),
        ("db:*", "dbx:sales", False),
        ("db:sales", "db:sales:public", False),
    ],
)
def test_matches_resource(pattern: str, resource: str, expected: bool) -> None:
    assert matches_resource(pattern, resource) is expected


async def test_deny_wins_over_allow_from_other_role() -> None:
    """Allow via role A and deny via role B for the same pair resolves to deny."""
    assignments = FakeRoleAssignmentRepository()
    assignments.grant_user("u1", "A")
    assignments.grant_user("u1", "B")
    deny = make_permission("B", "db:sales", "read", is_allow=False)
    svc = _service(
        [make_role("A"), make_role("B")],
        [make_permission("A", "db:*", "read"), deny],
        assignments,
    )
    decision = await svc.check_permission("u1", [], "db:sales", "read")
    assert decision.allowed is False
    assert decision.reason == REASON_EXPLICIT_DENY
    assert decision.permission_id == deny.id


async def test_no_matching_permission_is_denied() -> None:
    assignments = FakeRoleAssignmentRepository()
    assignments.grant_user("u1", "A")
    svc = _service([make_role("A")], [make_permission("A", "db:sales", "read")], assignments)
    decision = await svc.check_permission("u1", [], "db:sales", "write")
    assert decision.allowed is False
    assert decision.reason == REASON_NO_MATCH


async def test_user_without_grants_is_denied() -> None:
    svc = _service([], [], FakeRoleAssignmentRepository())
    decision = await svc.check_permission("nobody", [], "db:sales", "read")
    assert decision.allowed is False
    assert decision.reason == REASON_NO_MATCH


async def test_inherited_permission_and_severed_hierarchy() -> None:
    """Child inherits parent's allow until the parent link is removed."""
    assignments = FakeRoleAssignmentRepository()
    assignments.grant_user("u1", "child")
    role_repo = FakeRoleRepository(make_role("child", "parent"), make_role("parent"))
    svc = AuthorizationService(
        role_graph=RoleGraph(role_repo),
        permission_repo=FakePermissionRepository(make_permission("parent", "db:hr", "read")),
        assignment_repo=assignments,
    )
    assert (await svc.check_permission("u1", [], "db:hr", "read")).allowed is True

    await role_repo.update_role("child", parent_role_id=None)
    assert (await svc.check_permission("u1", [], "db:hr", "read")).allowed is False


async def test_group_grant_contributes_roles() -> None:
    assignments = FakeRoleAssignmentRepository()
    assignments.grant_group("analysts", "A")
    svc = _service([make_role("A")], [make_permission("A", "db:sales", "read")], assignments)
    assert (await svc.check_permission("u1", ["analysts"], "db:sales", "read")).allowed
    assert not (await svc.check_permission("u1", ["other"], "db:sales", "read")).allowed


async def test_pending_and_expired_grants_do_not_resolve() -> None:
    assignments = FakeRoleAssignmentRepository()
    assignments.grant_user("u1", "A", approval_status="pending")
    assignments.grant_user(
        "u2", "A", expires_at=datetime.now(UTC) - timedelta(minutes=1)
    )
    svc = _service([make_role("A")], [make_permission("A", "*", "read")], assignments)
    assert not (await svc.check_permission("u1", [], "db:x", "read")).allowed
    assert not (await svc.check_permission("u2", [], "db:x", "read")).allowed


async def test_ip_condition_limits_allow_when_context_given() -> None:
    assignments = FakeRoleAssignmentRepository()
    assignments.grant_user("u1", "A")
    perm = make_permission(
        "A",
        "db:sales",
        "read",
        conditions=(PermissionCondition(type="ip", allowed_ips=("10.0.0.1",)),),
    )
    svc = _service([make_role("A")], [perm], assignments)
    inside = AccessContext(ip="10.0.0.1")
    outside = AccessContext(ip="192.168.1.5")
    assert (await svc.check_permission("u1", [], "db:sales", "read", inside)).allowed
    assert not (await svc.check_permission("u1", [], "db:sales", "read", outside)).allowed
    # Without a context conditions are not evaluated.
    assert (await svc.check_permission("u1", [], "db:sales", "read")).allowed


def test_time_condition_uses_sunday_based_days_and_inclusive_hours() -> None:
    weekdays_9_to_17 = PermissionCondition(
        type="time",
        allowed_days=(1, 2, 3, 4, 5),
        allowed_hours_start=9,
        allowed_hours_end=17,
    )
    monday_17h = datetime(2025, 1, 6, 17, 30, tzinfo=UTC)
    sunday_10h = datetime(2025, 1, 5, 10, 0, tzinfo=UTC)
    monday_18h = datetime(2025, 1, 6, 18, 0, tzinfo=UTC)
    assert conditions_hold((weekdays_9_to_17,), AccessContext(time=monday_17h))
    assert not conditions_hold((weekdays_9_to_17,), AccessContext(time=sunday_10h))
    assert not conditions_hold((weekdays_9_to_17,), AccessContext(time=monday_18h))


def test_unknown_condition_type_does_not_restrict() -> None:
    geo = PermissionCondition(type="geo")
    assert conditions_hold((geo,), AccessContext(ip="1.2.3.4", time=datetime.now(UTC)))


async def test_require_permission_raises_forbidden() -> None:
    svc = _service([], [], FakeRoleAssignmentRepository())
    with pytest.raises(AuthorizationException) as exc_info:
        await svc.require_permission("u1", [], "rbac", "manage")
    assert exc_info.value.error_code == "PERMISSION_DENIED"
    assert exc_info.value.details["reason"] == REASON_NO_MATCH


async def test_simulate_merges_pairs_and_deny_wins() -> None:
    assignments = FakeRoleAssignmentRepository()
    assignments.grant_user("u1", "child")
    svc = _service(
        [make_role("child", "parent"), make_role("parent")],
        [
            make_permission("child", "db:sales", "read"),
            make_permission("parent", "db:sales", "read", is_allow=False),
            make_permission("parent", "db:hr", "read"),
        ],
        assignments,
    )
    simulated = {(s.resource, s.action): s for s in await svc.simulate_permissions("u1", [])}
    assert simulated[("db:sales", "read")].allowed is False
    assert simulated[("db:sales", "read")].role_ids == ("child", "parent")
    assert simulated[("db:hr", "read")].allowed is True
