"""Pytest configuration and fixtures for sqlgate.

HTTP tests run against sqlgate.main:app through httpx's ASGI transport with
service dependencies overridden by in-memory fakes, so no policy store or
target database is needed. The environment is prepared before the app is
imported because create_app() reads settings at import time.
"""

import os

os.environ.setdefault("REQUIRE_DATABASE", "false")
os.environ.setdefault("TELEMETRY_ENABLED", "false")

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from sqlgate.api.v1.dependencies import get_authorization_service  # noqa: E402
from sqlgate.application.services.authorization_service import (  # noqa: E402
    AuthorizationService,
)
from sqlgate.application.services.role_graph import RoleGraph  # noqa: E402
from sqlgate.core.config import get_settings  # noqa: E402
from sqlgate.main import app as fastapi_app  # noqa: E402
from tests.fakes import (  # noqa: E402
    ADMIN_USER,
    FakePermissionRepository,
    FakeRoleAssignmentRepository,
    FakeRoleRepository,
    make_permission,
    make_role,
)


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Each test reads settings from the current environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def app() -> FastAPI:
    """The application with dependency overrides cleared after each test."""
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def rbac_store():
    """In-memory RBAC store: ADMIN_USER holds '*' for read, manage, admin and execute."""
    roles = FakeRoleRepository(make_role("superuser"))
    permissions = FakePermissionRepository(
        *(make_permission("superuser", "*", action) for action in ("read", "manage", "admin", "execute"))
    )
    assignments = FakeRoleAssignmentRepository()
    assignments.grant_user(ADMIN_USER, "superuser")
    return roles, permissions, assignments


@pytest.fixture
def auth_service(rbac_store) -> AuthorizationService:
    roles, permissions, assignments = rbac_store
    return AuthorizationService(RoleGraph(roles), permissions, assignments)


@pytest.fixture
async def client(app: FastAPI, auth_service: AuthorizationService) -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI) with RBAC backed by fakes."""
    app.dependency_overrides[get_authorization_service] = lambda: auth_service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_session():
    """Policy-store session for repository tests. Rolls back after the test.

    Skips when DATABASE_URL is not set. Mark such tests with
    @pytest.mark.requires_db; run without a store via: pytest -m 'not requires_db'.
    """
    from sqlgate.infrastructure.persistence import database

    if not get_settings().database_url:
        pytest.skip("Policy store not configured: set DATABASE_URL")
    await database.run_migrations()
    factory = database.get_session_factory()
    async with factory() as session:
        yield session
        await session.rollback()
    await database.dispose_engine()
