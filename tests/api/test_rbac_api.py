"""RBAC endpoints against in-memory role stores."""

import pytest
from fastapi import FastAPI
from httpx import AsyncClient

from sqlgate.api.v1.dependencies import get_rbac_policy_service, get_role_service
from sqlgate.application.services.rbac_policy_service import RbacPolicyService
from sqlgate.application.services.role_graph import RoleGraph
from sqlgate.application.services.role_service import RoleService
from sqlgate.core.config import get_settings
from tests.fakes import ADMIN_HEADERS, FakeRbacPolicyRepository


@pytest.fixture
def role_service(app: FastAPI, rbac_store, auth_service) -> RoleService:
    roles, permissions, assignments = rbac_store
    svc = RoleService(roles, permissions, assignments, auth_service, RoleGraph(roles))
    app.dependency_overrides[get_role_service] = lambda: svc
    return svc


@pytest.fixture
def rbac_policy_service(app: FastAPI, role_service: RoleService) -> RbacPolicyService:
    svc = RbacPolicyService(FakeRbacPolicyRepository(), role_service)
    app.dependency_overrides[get_rbac_policy_service] = lambda: svc
    return svc


async def test_check_without_rbac_read_is_forbidden(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/rbac/check",
        headers={"X-User-ID": "nobody"},
        json={"user_id": "u1", "resource": "db:sales", "action": "read"},
    )
    assert response.status_code == 403
    body = response.json()
    assert body["error"] == "PERMISSION_DENIED"
    assert body["details"]["reason"] == "no matching permission found"


async def test_role_lifecycle_and_inherited_check(
    client: AsyncClient, role_service: RoleService
) -> None:
    """Create parent/child roles, grant child, check an inherited permission."""
    parent = await client.post(
        "/api/v1/rbac/roles", headers=ADMIN_HEADERS, json={"name": "analyst"}
    )
    assert parent.status_code == 201
    parent_id = parent.json()["id"]
    child = await client.post(
        "/api/v1/rbac/roles",
        headers=ADMIN_HEADERS,
        json={"name": "junior", "parent_role_id": parent_id},
    )
    child_id = child.json()["id"]

    perm = await client.post(
        f"/api/v1/rbac/roles/{parent_id}/permissions",
        headers=ADMIN_HEADERS,
        json={"resource": "db:sales:*", "action": "read"},
    )
    assert perm.status_code == 201
    assert perm.json()["conditions"] == []

    grant = await client.post(
        "/api/v1/rbac/user-roles",
        headers=ADMIN_HEADERS,
        json={"user_id": "bob", "role_id": child_id},
    )
    assert grant.status_code == 201
    assert grant.json()["approval_status"] == "approved"

    check = await client.post(
        "/api/v1/rbac/check",
        headers=ADMIN_HEADERS,
        json={"user_id": "bob", "resource": "db:sales:public", "action": "read"},
    )
    assert check.json() == {"allowed": True, "reason": None}

    hierarchy = await client.get(
        f"/api/v1/rbac/roles/{child_id}/hierarchy", headers=ADMIN_HEADERS
    )
    assert [r["name"] for r in hierarchy.json()] == ["junior", "analyst"]


async def test_cyclic_parent_is_rejected(client: AsyncClient, role_service: RoleService) -> None:
    a = (await client.post("/api/v1/rbac/roles", headers=ADMIN_HEADERS, json={"name": "a"})).json()
    b = (
        await client.post(
            "/api/v1/rbac/roles",
            headers=ADMIN_HEADERS,
            json={"name": "b", "parent_role_id": a["id"]},
        )
    ).json()
    response = await client.patch(
        f"/api/v1/rbac/roles/{a['id']}",
        headers=ADMIN_HEADERS,
        json={"parent_role_id": b["id"]},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"


async def test_unknown_role_is_404(client: AsyncClient, role_service: RoleService) -> None:
    response = await client.get("/api/v1/rbac/roles/missing", headers=ADMIN_HEADERS)
    assert response.status_code == 404


async def test_simulate_lists_effective_pairs(
    client: AsyncClient, role_service: RoleService
) -> None:
    response = await client.post(
        "/api/v1/rbac/simulate", headers=ADMIN_HEADERS, json={"user_id": "admin-user"}
    )
    assert response.status_code == 200
    pairs = {(p["resource"], p["action"]) for p in response.json()}
    assert ("*", "execute") in pairs


@pytest.mark.parametrize("field", ["name", "priority", "is_active", "is_default"])
async def test_role_update_rejects_null_for_required_field(
    client: AsyncClient, role_service: RoleService, field: str
) -> None:
    role = (await client.post("/api/v1/rbac/roles", headers=ADMIN_HEADERS, json={"name": "r"})).json()
    response = await client.patch(
        f"/api/v1/rbac/roles/{role['id']}", headers=ADMIN_HEADERS, json={field: None}
    )
    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_ERROR"


async def test_policy_template_applied_to_role_grants_access(
    client: AsyncClient, rbac_policy_service: RbacPolicyService
) -> None:
    created = await client.post(
        "/api/v1/rbac/policies",
        headers=ADMIN_HEADERS,
        json={
            "name": "sales-reader",
            "is_template": True,
            "permissions": [{"resource": "db:sales:*", "action": "read"}],
            "conditions": [{"type": "ip", "allowed_ips": ["10.0.0.1"]}],
        },
    )
    assert created.status_code == 201
    policy = created.json()
    assert policy["created_by"] == "admin-user"
    assert policy["permissions"] == [
        {"resource": "db:sales:*", "action": "read", "scope": "database", "is_allow": True}
    ]

    templates = await client.get("/api/v1/rbac/policies/templates", headers=ADMIN_HEADERS)
    assert [t["id"] for t in templates.json()] == [policy["id"]]
    fetched = await client.get(f"/api/v1/rbac/policies/{policy['id']}", headers=ADMIN_HEADERS)
    assert fetched.json()["name"] == "sales-reader"

    role = (await client.post("/api/v1/rbac/roles", headers=ADMIN_HEADERS, json={"name": "r"})).json()
    applied = await client.post(
        f"/api/v1/rbac/policies/{policy['id']}/apply",
        headers=ADMIN_HEADERS,
        json={"role_id": role["id"]},
    )
    assert applied.status_code == 201
    assert applied.json()[0]["conditions"][0]["allowed_ips"] == ["10.0.0.1"]

    await client.post(
        "/api/v1/rbac/user-roles",
        headers=ADMIN_HEADERS,
        json={"user_id": "carol", "role_id": role["id"]},
    )
    inside = await client.post(
        "/api/v1/rbac/check",
        headers=ADMIN_HEADERS,
        json={"user_id": "carol", "resource": "db:sales:eu", "action": "read", "ip": "10.0.0.1"},
    )
    outside = await client.post(
        "/api/v1/rbac/check",
        headers=ADMIN_HEADERS,
        json={"user_id": "carol", "resource": "db:sales:eu", "action": "read", "ip": "10.9.9.9"},
    )
    assert inside.json()["allowed"] is True
    assert outside.json()["allowed"] is False


async def test_policy_listing_filters_by_organization(
    client: AsyncClient, rbac_policy_service: RbacPolicyService
) -> None:
    for name, org in (("global", None), ("acme", "acme")):
        await client.post(
            "/api/v1/rbac/policies",
            headers=ADMIN_HEADERS,
            json={
                "name": name,
                "organization_id": org,
                "permissions": [{"resource": "*", "action": "read"}],
            },
        )
    scoped = await client.get(
        "/api/v1/rbac/policies", headers=ADMIN_HEADERS, params={"organization_id": "acme"}
    )
    every = await client.get("/api/v1/rbac/policies", headers=ADMIN_HEADERS)
    assert [p["name"] for p in scoped.json()] == ["acme"]
    assert [p["name"] for p in every.json()] == ["acme", "global"]


async def test_policy_without_permissions_is_422(
    client: AsyncClient, rbac_policy_service: RbacPolicyService
) -> None:
    response = await client.post(
        "/api/v1/rbac/policies", headers=ADMIN_HEADERS, json={"name": "empty", "permissions": []}
    )
    assert response.status_code == 422


async def test_unknown_policy_is_404(
    client: AsyncClient, rbac_policy_service: RbacPolicyService
) -> None:
    response = await client.get("/api/v1/rbac/policies/missing", headers=ADMIN_HEADERS)
    assert response.status_code == 404
    assert response.json()["error"] == "RESOURCE_NOT_FOUND"


async def test_creating_policy_requires_rbac_manage(
    client: AsyncClient, rbac_policy_service: RbacPolicyService
) -> None:
    response = await client.post(
        "/api/v1/rbac/policies",
        headers={"X-User-ID": "nobody"},
        json={"name": "x", "permissions": [{"resource": "*", "action": "read"}]},
    )
    assert response.status_code == 403


@pytest.mark.parametrize(("timezone", "allowed"), [("UTC", False), ("Asia/Seoul", True)])
async def test_office_hours_are_read_in_condition_timezone(
    client: AsyncClient,
    role_service: RoleService,
    monkeypatch: pytest.MonkeyPatch,
    timezone: str,
    allowed: bool,
) -> None:
    """01:00 UTC on a Monday is 10:00 in Seoul: inside 09-17 only there."""
    monkeypatch.setenv("RBAC_CONDITION_TIMEZONE", timezone)
    get_settings.cache_clear()
    role = (await client.post("/api/v1/rbac/roles", headers=ADMIN_HEADERS, json={"name": "r"})).json()
    await client.post(
        f"/api/v1/rbac/roles/{role['id']}/permissions",
        headers=ADMIN_HEADERS,
        json={
            "resource": "db:sales",
            "action": "read",
            "conditions": [{"type": "time", "allowed_hours_start": 9, "allowed_hours_end": 17}],
        },
    )
    await client.post(
        "/api/v1/rbac/user-roles",
        headers=ADMIN_HEADERS,
        json={"user_id": "dana", "role_id": role["id"]},
    )
    check = await client.post(
        "/api/v1/rbac/check",
        headers=ADMIN_HEADERS,
        json={
            "user_id": "dana",
            "resource": "db:sales",
            "action": "read",
            "time": "2026-01-05T01:00:00Z",
        },
    )
    assert check.json()["allowed"] is allowed
