"""
Branch scoping — the one place branch ownership is compared.

Every branch-owned collection shown or mutated by the console passes
through `scope_records` (lists) or `in_scope` (single records). Screens and
services call these; none of them compare branch ids themselves.

Rule:
    superadmin        → everything, unfiltered
    branch admin (b)  → only records whose branch resolves to b
    anything else     → nothing
A record whose branch cannot be resolved is never visible to a branch admin,
and a branch admin without a branch sees nothing.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable

from console.auth.permissions import Permission
from console.auth.resolver import PermissionResolver
from console.middleware.metrics import scope_hidden_records_total


class EntityKind(str, Enum):
    AGENT = "agents"
    AGENT_APPLICATION = "agent-applications"
    POLICY_HOLDER = "policy-holders"
    CLAIM = "claims"
    LOAN = "loans"
    PREMIUM_PAYMENT = "premium-payments"
    KYC = "kyc"
    USER = "users"


# (view, manage) permission pair consulted before the predicate
ENTITY_PERMISSIONS: dict[EntityKind, tuple[Permission, Permission]] = {
    EntityKind.AGENT: (Permission.VIEW_AGENTS, Permission.MANAGE_AGENTS),
    EntityKind.AGENT_APPLICATION: (
        Permission.VIEW_AGENT_APPLICATIONS, Permission.MANAGE_AGENT_APPLICATIONS,
    ),
    EntityKind.POLICY_HOLDER: (Permission.VIEW_POLICY_HOLDERS, Permission.MANAGE_POLICY_HOLDERS),
    EntityKind.CLAIM: (Permission.VIEW_CLAIMS, Permission.MANAGE_CLAIMS),
    EntityKind.LOAN: (Permission.VIEW_LOANS, Permission.MANAGE_LOANS),
    EntityKind.PREMIUM_PAYMENT: (
        Permission.VIEW_PREMIUM_PAYMENTS, Permission.MANAGE_PREMIUM_PAYMENTS,
    ),
    EntityKind.KYC: (Permission.VIEW_KYC, Permission.MANAGE_KYC),
    EntityKind.USER: (Permission.MANAGE_USERS, Permission.MANAGE_USERS),
}

BRANCH_FIELD = "branch"


def record_branch(record: Any) -> int | None:
    """
    Resolve the owning branch of a record.

    `branch` may be an integer id or an embedded branch object with an
    integer `id` (policy holders carry the latter). Anything else resolves
    to None.
    """
    if not isinstance(record, dict):
        return None
    value = record.get(BRANCH_FIELD)
    if isinstance(value, dict):
        value = value.get("id")
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _visible_branch(resolver: PermissionResolver) -> int | None:
    """The branch a scoped actor may see, or None when they may see nothing."""
    if not resolver.is_branch_admin:
        return None
    return resolver.user_branch_id


def in_scope(resolver: PermissionResolver, kind: EntityKind, record: Any) -> bool:
    if resolver.is_super_admin:
        return True
    branch_id = _visible_branch(resolver)
    if branch_id is None:
        return False
    return record_branch(record) == branch_id


def scope_records(resolver: PermissionResolver, kind: EntityKind,
                  records: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    records = list(records)
    if resolver.is_super_admin:
        return records
    visible = [r for r in records if in_scope(resolver, kind, r)]
    hidden = len(records) - len(visible)
    if hidden:
        scope_hidden_records_total.labels(kind=kind.value).inc(hidden)
    return visible


def scoped_filters(resolver: PermissionResolver,
                   filters: dict[str, Any] | None) -> dict[str, Any] | None:
    """
    Pin the outgoing data-source filter to the actor's branch.

    Returns None when the actor may not see any branch-owned record, so the
    caller can skip the fetch entirely.
    """
    filters = dict(filters or {})
    if resolver.is_super_admin:
        return filters
    branch_id = _visible_branch(resolver)
    if branch_id is None:
        return None
    filters[BRANCH_FIELD] = branch_id
    return filters


def stamp_branch(resolver: PermissionResolver, payload: dict[str, Any]) -> dict[str, Any]:
    """Default a new record's branch to the scoped actor's branch."""
    payload = dict(payload)
    branch_id = _visible_branch(resolver)
    if branch_id is not None and payload.get(BRANCH_FIELD) is None:
        payload[BRANCH_FIELD] = branch_id
    return payload
