"""
PermissionResolver — "can the current actor do X, and which branch are they confined to".

Holds no state of its own: every answer is recomputed from the Identity the
SessionStore currently holds, so it is safe to call on every request.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from console.auth.identity import Identity
from console.auth.permissions import Permission
from console.auth.roles import Role, grant, granted_permissions

if TYPE_CHECKING:
    from console.auth.session import SessionStore


def has_permission(identity: Identity | None, key: Permission | str) -> bool:
    """Pure matrix lookup with the two short-circuits: no actor → False, superadmin → True."""
    if identity is None:
        return False
    if identity.role == Role.SUPER_ADMIN:
        return True
    return grant(identity.role, key)


class PermissionResolver:
    def __init__(self, store: SessionStore):
        self._store = store

    @property
    def identity(self) -> Identity | None:
        return self._store.user

    def has_permission(self, key: Permission | str) -> bool:
        return has_permission(self.identity, key)

    @property
    def is_super_admin(self) -> bool:
        identity = self.identity
        return identity is not None and identity.role == Role.SUPER_ADMIN

    @property
    def is_branch_admin(self) -> bool:
        identity = self.identity
        return identity is not None and identity.role == Role.BRANCH_ADMIN

    @property
    def user_branch_id(self) -> int | None:
        identity = self.identity
        return identity.branch_id if identity is not None else None

    def permissions(self) -> list[str]:
        """Granted keys, sorted — what the front end uses to hide affordances."""
        identity = self.identity
        if identity is None:
            return []
        return sorted(p.value for p in granted_permissions(identity.role))
