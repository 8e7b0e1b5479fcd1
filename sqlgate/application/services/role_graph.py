"""Role hierarchy expansion.

Roles form a forest through parent_role_id. Expansion loads roles level by
level into an id-keyed arena, so a cyclic or very deep chain in stored data
terminates instead of recursing forever.
"""

from __future__ import annotations

from sqlgate.application.dtos.rbac import RoleResult
from sqlgate.application.interfaces.repositories import IRoleRepository
from sqlgate.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_DEPTH = 32


class RoleGraph:
    """Resolve granted roles into their effective set (self plus ancestors)."""

    def __init__(self, role_repo: IRoleRepository, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self._role_repo = role_repo
        self._max_depth = max_depth

    async def expand(self, role_ids: list[str]) -> list[RoleResult]:
        """Return granted roles and all their ancestors, deduplicated, first-seen order.

        The walk stops at a missing parent, an inactive role, a role already
        visited, or after max_depth levels above the granted roles.
        """
        effective: list[RoleResult] = []
        visited: set[str] = set()
        frontier = list(dict.fromkeys(role_ids))
        depth = 0
        while frontier:
            if depth > self._max_depth:
                logger.warning(
                    "Role hierarchy deeper than %d levels; ignoring ancestors of %s",
                    self._max_depth,
                    frontier,
                )
                break
            wanted = [rid for rid in frontier if rid not in visited]
            if not wanted:
                break
            loaded = {r.id: r for r in await self._role_repo.get_by_ids(set(wanted))}
            next_frontier: list[str] = []
            for rid in wanted:
                visited.add(rid)
                role = loaded.get(rid)
                if role is None or not role.is_active:
                    continue
                effective.append(role)
                if role.parent_role_id and role.parent_role_id not in visited:
                    next_frontier.append(role.parent_role_id)
            frontier = next_frontier
            depth += 1
        return effective

    async def lineage(self, role_id: str) -> list[RoleResult]:
        """Return [role, parent, grandparent, ...] for the admin hierarchy view.

        Unlike expand(), inactive roles are included so the chain is shown as
        stored; a cycle or the depth bound still ends the walk.
        """
        chain: list[RoleResult] = []
        seen: set[str] = set()
        current: str | None = role_id
        while current and current not in seen and len(chain) <= self._max_depth:
            seen.add(current)
            role = await self._role_repo.get_role(current)
            if role is None:
                break
            chain.append(role)
            current = role.parent_role_id
        return chain

    async def would_create_cycle(self, role_id: str, parent_role_id: str) -> bool:
        """Return True if making parent_role_id the parent of role_id closes a loop."""
        if role_id == parent_role_id:
            return True
        chain = await self.lineage(parent_role_id)
        return any(r.id == role_id for r in chain)
