# civic_node/civic_runtime/roles.py
"""
Civic roles registry.

Two fixed roles:
- Admin: granted once, at construction, to the initializing principal.
  There is no entry point that grants or revokes Admin afterwards.
- Member: granted / revoked by an Admin (the facade enforces who may call).

grant() and revoke() are idempotent; the registry itself performs no
authorization, it only stores membership.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, List, Set


class Role(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"


class RoleRegistry:
    def __init__(self, admin: str, members: Iterable[str] = ()):
        if not admin:
            raise ValueError("admin principal is required")
        self._holders: Dict[Role, Set[str]] = {role: set() for role in Role}
        self._holders[Role.ADMIN].add(str(admin))
        for m in members:
            self.grant(Role.MEMBER, m)

    def grant(self, role: Role, principal: str) -> None:
        self._holders[Role(role)].add(str(principal))

    def revoke(self, role: Role, principal: str) -> None:
        self._holders[Role(role)].discard(str(principal))

    def has(self, role: Role, principal: str) -> bool:
        return str(principal) in self._holders[Role(role)]

    def members(self, role: Role) -> List[str]:
        return sorted(self._holders[Role(role)])

    def roles_of(self, principal: str) -> List[str]:
        return [role.value for role in Role if self.has(role, principal)]

    # ------------------------------------------------------------------
    # Snapshot helpers (persistence + transaction rollback)
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {role.value: sorted(holders) for role, holders in self._holders.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RoleRegistry":
        admins = list(data.get(Role.ADMIN.value, []) or [])
        if not admins:
            raise ValueError("snapshot has no admin principal")
        reg = cls(admins[0], data.get(Role.MEMBER.value, []) or [])
        for extra in admins[1:]:
            reg._holders[Role.ADMIN].add(str(extra))
        return reg

    def restore(self, data: Dict[str, Any]) -> None:
        self._holders = RoleRegistry.from_dict(data)._holders
