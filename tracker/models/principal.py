from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """Caller identity as forwarded by the gateway.

    Carried through the request via FastAPI's dependency system.

        user_id: opaque learner/instructor id (X-User-Id)
        roles:   platform roles (X-User-Roles), e.g. {"instructor"}
    """

    user_id: str
    roles: frozenset[str]

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def can_view_progress_of(self, user_id: str) -> bool:
        return self.user_id == user_id or self.has_role("instructor")
