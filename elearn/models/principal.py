from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller, built from a verified identity-provider token.

    user_id: the token's `sub` claim; also the primary key of the User row
    roles:   platform roles from the `roles` claim (learner, instructor, admin)
    email / first_name / last_name: profile claims used to sync the User row
    """

    user_id: str
    roles: frozenset[str]
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def has_any_role(self, roles: set[str]) -> bool:
        return bool(self.roles & roles)

    def is_admin(self) -> bool:
        return "admin" in self.roles

    @property
    def primary_role(self) -> str:
        """The strongest platform role, used when creating the User row."""
        for role in ("admin", "instructor"):
            if role in self.roles:
                return role
        return "learner"
