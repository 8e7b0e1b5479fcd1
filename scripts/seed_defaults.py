"""Seed default security settings, risk policies and a bootstrap admin role.

Usage:
    python -m scripts.seed_defaults <admin_user_id> [organization_id]
Applies migrations, then seeds idempotently (existing rows with the same
name in the same scope are left untouched). Without organization_id the
risk policies and the admin role are global and the settings row is the
'default' organization's. Requires DATABASE_URL.
"""

import asyncio
import sys

from sqlalchemy.ext.asyncio import AsyncSession

from sqlgate.application.services.security_settings_service import (
    DEFAULT_ORGANIZATION_ID,
    SecuritySettingsService,
)
from sqlgate.core.config import get_settings
from sqlgate.domain.enums import PolicyAction, PolicyType, ResourceScope, RoleType
from sqlgate.infrastructure.persistence.database import (
    dispose_engine,
    get_session_factory,
    run_migrations,
)
from sqlgate.infrastructure.persistence.repositories import (
    PermissionRepository,
    QueryPolicyRepository,
    RoleAssignmentRepository,
    RoleRepository,
    SecuritySettingsRepository,
)

ADMIN_ROLE_NAME = "sqlgate-admin"
ADMIN_ACTIONS = ("read", "manage", "admin", "execute")

DEFAULT_POLICIES = (
    {
        "name": "Block DDL",
        "description": "Schema changes must go through migrations",
        "policy_type": PolicyType.DDL_BLOCK.value,
        "risk_score": 90,
        "action": PolicyAction.BLOCK.value,
    },
    {
        "name": "UPDATE/DELETE need WHERE",
        "description": "Reject unbounded writes",
        "policy_type": PolicyType.WHERE_REQUIRED.value,
        "risk_score": 80,
        "action": PolicyAction.BLOCK.value,
    },
    {
        "name": "SELECT without LIMIT",
        "description": "Large result sets are truncated to max_result_rows",
        "policy_type": PolicyType.LIMIT_REQUIRED.value,
        "risk_score": 30,
        "action": PolicyAction.WARN.value,
    },
)


async def seed_defaults(
    session: AsyncSession, admin_user_id: str, organization_id: str | None = None
) -> None:
    """Seed settings, policies and the admin role inside the caller's transaction."""
    settings = await SecuritySettingsService(SecuritySettingsRepository(session)).get_settings(
        organization_id or DEFAULT_ORGANIZATION_ID
    )
    print(f"Security settings ready for {settings.organization_id}")

    policy_repo = QueryPolicyRepository(session)
    existing = {
        p.name
        for p in await policy_repo.list_policies(organization_id, None, include_inactive=True)
        if p.organization_id == organization_id
    }
    for fields in DEFAULT_POLICIES:
        if fields["name"] in existing:
            continue
        policy = await policy_repo.create_policy(
            admin_user_id, organization_id=organization_id, **fields
        )
        print(f"Created policy {policy.name} ({policy.id})")

    role_repo = RoleRepository(session)
    roles = await role_repo.list_roles(organization_id, 0, 1000, include_inactive=True)
    admin = next(
        (r for r in roles if r.name == ADMIN_ROLE_NAME and r.organization_id == organization_id),
        None,
    )
    if admin is None:
        admin = await role_repo.create_role(
            ADMIN_ROLE_NAME,
            "Full access to RBAC, policies, settings and every connection",
            role_type=RoleType.SYSTEM.value,
            priority=100,
            organization_id=organization_id,
        )
        permission_repo = PermissionRepository(session)
        for action in ADMIN_ACTIONS:
            await permission_repo.create_permission(
                admin.id, ResourceScope.SYSTEM.value, "*", action
            )
        print(f"Created role {admin.name} ({admin.id})")

    assignment_repo = RoleAssignmentRepository(session)
    if await assignment_repo.get_user_role(admin_user_id, admin.id) is None:
        await assignment_repo.create_user_role(admin_user_id, admin.id, granted_by="seed")
        print(f"Granted {admin.name} to {admin_user_id}")


async def main() -> None:
    """Migrate, seed defaults and grant the admin role to the given user."""
    if len(sys.argv) < 2:
        print(
            "Usage: python -m scripts.seed_defaults <admin_user_id> [organization_id]",
            file=sys.stderr,
        )
        sys.exit(1)
    admin_user_id = sys.argv[1]
    organization_id = sys.argv[2] if len(sys.argv) > 2 else None

    get_settings()
    try:
        await run_migrations()
        factory = get_session_factory()
        async with factory() as session:
            async with session.begin():
                await seed_defaults(session, admin_user_id, organization_id)
    finally:
        await dispose_engine()


if __name__ == "__main__":
    asyncio.run(main())
