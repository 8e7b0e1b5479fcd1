"""Seed script: the policy-store engine is released even when seeding fails."""

import sys
from unittest.mock import AsyncMock

import pytest

from scripts import seed_defaults


async def test_engine_disposed_when_migration_fails(monkeypatch: pytest.MonkeyPatch) -> None:
    dispose = AsyncMock()
    monkeypatch.setattr(sys, "argv", ["seed_defaults", "admin-user"])
    monkeypatch.setattr(seed_defaults, "run_migrations", AsyncMock(side_effect=RuntimeError("down")))
    monkeypatch.setattr(seed_defaults, "dispose_engine", dispose)

    with pytest.raises(RuntimeError):
        await seed_defaults.main()
    dispose.assert_awaited_once()


async def test_organization_argument_is_passed_through(monkeypatch: pytest.MonkeyPatch) -> None:
    seeded = AsyncMock()
    session = AsyncMock()
    session.begin = lambda: AsyncMock()

    class _Factory:
        def __call__(self):
            return self

        async def __aenter__(self):
            return session

        async def __aexit__(self, *exc):
            return False

    monkeypatch.setattr(sys, "argv", ["seed_defaults", "admin-user", "acme"])
    monkeypatch.setattr(seed_defaults, "run_migrations", AsyncMock())
    monkeypatch.setattr(seed_defaults, "get_session_factory", lambda: _Factory())
    monkeypatch.setattr(seed_defaults, "seed_defaults", seeded)
    monkeypatch.setattr(seed_defaults, "dispose_engine", AsyncMock())

    await seed_defaults.main()
    seeded.assert_awaited_once_with(session, "admin-user", "acme")
