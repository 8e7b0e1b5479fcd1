"""RoleGraph expansion and lineage over an in-memory role store."""

from sqlgate.application.services.role_graph import RoleGraph
from tests.fakes import FakeRoleRepository, make_role


async def test_expand_includes_ancestors_in_first_seen_order() -> None:
    """A granted role brings its parent and grandparent along."""
    repo = FakeRoleRepository(
        make_role("viewer", "analyst"), make_role("analyst", "admin"), make_role("admin")
    )
    roles = await RoleGraph(repo).expand(["viewer"])
    assert [r.id for r in roles] == ["viewer", "analyst", "admin"]


async def test_expand_deduplicates_shared_ancestors() -> None:
    repo = FakeRoleRepository(
        make_role("a", "root"), make_role("b", "root"), make_role("root")
    )
    roles = await RoleGraph(repo).expand(["a", "b", "a"])
    assert [r.id for r in roles] == ["a", "b", "root"]


async def test_expand_terminates_on_cycle() -> None:
    """Stored data with a parent loop still yields each role once."""
    repo = FakeRoleRepository(make_role("x", "y"), make_role("y", "x"))
    roles = await RoleGraph(repo).expand(["x"])
    assert sorted(r.id for r in roles) == ["x", "y"]


async def test_expand_stops_at_inactive_role() -> None:
    """An inactive role contributes nothing and severs the chain above it."""
    repo = FakeRoleRepository(
        make_role("child", "middle"),
        make_role("middle", "top", is_active=False),
        make_role("top"),
    )
    roles = await RoleGraph(repo).expand(["child"])
    assert [r.id for r in roles] == ["child"]


async def test_expand_skips_missing_parent() -> None:
    repo = FakeRoleRepository(make_role("orphan", "gone"))
    roles = await RoleGraph(repo).expand(["orphan"])
    assert [r.id for r in roles] == ["orphan"]


async def test_expand_respects_depth_bound() -> None:
    chain = [make_role(f"r{i}", f"r{i + 1}") for i in range(10)] + [make_role("r10")]
    repo = FakeRoleRepository(*chain)
    roles = await RoleGraph(repo, max_depth=2).expand(["r0"])
    assert [r.id for r in roles] == ["r0", "r1", "r2"]


async def test_lineage_includes_inactive_roles() -> None:
    repo = FakeRoleRepository(
        make_role("child", "parent"), make_role("parent", is_active=False)
    )
    chain = await RoleGraph(repo).lineage("child")
    assert [r.id for r in chain] == ["child", "parent"]


async def test_would_create_cycle() -> None:
    repo = FakeRoleRepository(make_role("a", "b"), make_role("b", "c"), make_role("c"))
    graph = RoleGraph(repo)
    assert await graph.would_create_cycle("c", "a") is True
    assert await graph.would_create_cycle("a", "a") is True
    assert await graph.would_create_cycle("a", "c") is False
