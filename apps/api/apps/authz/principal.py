"""
Authenticated principal passed explicitly into every service call.
"""
from dataclasses import dataclass, field
from typing import FrozenSet

from apps.core.observability.correlation import set_user_context


@dataclass(frozen=True)
class Principal:
    user_id: int
    permissions: FrozenSet[str] = field(default_factory=frozenset)

    def has(self, permission) -> bool:
        return permission in self.permissions


def principal_from_user(user) -> Principal:
    return Principal(user_id=user.id, permissions=user.permission_set)


def principal_from_request(request) -> Principal:
    """Build the principal for a DRF request and attach it to log context."""
    principal = principal_from_user(request.user)
    set_user_context(principal.user_id, principal.permissions)
    return principal
