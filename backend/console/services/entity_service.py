"""
Entity Service — guarded access to branch-owned records.

Every list, detail read, update and create of a branch-owned record goes
through here. Each call checks the kind's view/manage permission, then runs
the branch scoping predicate over what comes back from (or goes to) the
data source. Authorization failures are outcomes, not exceptions: a list
comes back empty, a detail read comes back None, a write reports DENIED or
NOT_FOUND. Data-source errors (expired token, network) propagate.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from console.auth.permissions import Permission
from console.auth.resolver import PermissionResolver
from console.auth.scoping import (
    ENTITY_PERMISSIONS,
    EntityKind,
    in_scope,
    scope_records,
    scoped_filters,
    stamp_branch,
)
from console.auth.session import SessionStore
from console.datasource.base import DataSource, EntityNotFoundError, Record

logger = logging.getLogger(__name__)

# user accounts that carry console access of their own
ADMIN_USER_TYPES = frozenset({"branch", "superadmin"})


def _is_admin_account(record: Record) -> bool:
    # profiles may carry the role under either key
    return any(record.get(key) in ADMIN_USER_TYPES for key in ("user_type", "role"))


class AccessOutcome(str, Enum):
    OK = "ok"
    DENIED = "denied"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class EntityResult:
    outcome: AccessOutcome
    record: Record | None = None

    @property
    def ok(self) -> bool:
        return self.outcome == AccessOutcome.OK


class EntityService:
    """Scoped reads and writes on behalf of the actor held by one SessionStore."""

    def __init__(self, store: SessionStore, data_source: DataSource):
        self.store = store
        self.data_source = data_source
        self.resolver = PermissionResolver(store)

    def _can_view(self, kind: EntityKind) -> bool:
        return self.store.is_authenticated and self.resolver.has_permission(ENTITY_PERMISSIONS[kind][0])

    def _can_manage(self, kind: EntityKind) -> bool:
        return self.store.is_authenticated and self.resolver.has_permission(ENTITY_PERMISSIONS[kind][1])

    def _can_grant_account(self, kind: EntityKind, *records: Record) -> bool:
        """Creating, editing or promoting a console account needs manage_admin_users."""
        if kind != EntityKind.USER or not any(_is_admin_account(r) for r in records):
            return True
        return self.resolver.has_permission(Permission.MANAGE_ADMIN_USERS)

    @property
    def _actor(self) -> str:
        user = self.store.user
        return f"{user.role.value}:{user.id}" if user else "anonymous"

    async def list(self, kind: EntityKind, filters: dict[str, Any] | None = None) -> list[Record]:
        if not self._can_view(kind):
            return []
        pinned = scoped_filters(self.resolver, filters)
        if pinned is None:
            return []
        rows = await self.data_source.fetch_entities(kind.value, pinned, token=self.store.token)
        return scope_records(self.resolver, kind, rows)

    async def get(self, kind: EntityKind, entity_id: int) -> Record | None:
        rows = await self.list(kind, {"id": entity_id})
        return next((r for r in rows if r.get("id") == entity_id), None)

    async def update(self, kind: EntityKind, entity_id: int, patch: dict[str, Any]) -> EntityResult:
        """
        Apply a patch to one record.

        The target is re-read through the scoped path first, even if the
        caller already holds it, so a stale or forged id cannot reach the
        data source. The patched record must still be in scope, which stops
        a branch admin from moving a record to another branch.
        """
        if not self._can_manage(kind):
            logger.info("Update of %s %s denied for %s: missing permission", kind.value, entity_id, self._actor)
            return EntityResult(AccessOutcome.DENIED)

        current = await self.get(kind, entity_id)
        if current is None:
            return EntityResult(AccessOutcome.NOT_FOUND)

        patch = {k: v for k, v in patch.items() if k != "id"}
        if not self._can_grant_account(kind, current, {**current, **patch}):
            logger.warning("Update of %s %s denied for %s: admin account", kind.value, entity_id, self._actor)
            return EntityResult(AccessOutcome.DENIED)
        if not in_scope(self.resolver, kind, {**current, **patch}):
            logger.warning("Update of %s %s denied for %s: leaves branch scope", kind.value, entity_id, self._actor)
            return EntityResult(AccessOutcome.DENIED)

        try:
            updated = await self.data_source.mutate_entity(kind.value, entity_id, patch, token=self.store.token)
        except EntityNotFoundError:
            return EntityResult(AccessOutcome.NOT_FOUND)
        return EntityResult(AccessOutcome.OK, updated)

    async def create(self, kind: EntityKind, payload: dict[str, Any]) -> EntityResult:
        if not self._can_manage(kind):
            logger.info("Create of %s denied for %s: missing permission", kind.value, self._actor)
            return EntityResult(AccessOutcome.DENIED)

        payload = stamp_branch(self.resolver, {k: v for k, v in payload.items() if k != "id"})
        if not self._can_grant_account(kind, payload):
            logger.warning("Create of %s denied for %s: admin account", kind.value, self._actor)
            return EntityResult(AccessOutcome.DENIED)
        if not in_scope(self.resolver, kind, payload):
            logger.warning("Create of %s denied for %s: outside branch scope", kind.value, self._actor)
            return EntityResult(AccessOutcome.DENIED)

        created = await self.data_source.create_entity(kind.value, payload, token=self.store.token)
        return EntityResult(AccessOutcome.OK, created)
