"""
Role definitions and the permission matrix.

The matrix is a total table over (Role, Permission): every role row names
every key. SUPER_ADMIN is all-true and is also short-circuited by the
resolver; AGENT and CUSTOMER are reserved roles with nothing granted.

    SUPER_ADMIN  — head office, unscoped
    BRANCH_ADMIN — branch manager, confined to one branch
    AGENT        — reserved
    CUSTOMER     — reserved
"""

from enum import Enum

from console.auth.permissions import Permission


class Role(str, Enum):
    SUPER_ADMIN = "superadmin"
    BRANCH_ADMIN = "branch"
    AGENT = "agent"
    CUSTOMER = "customer"


P = Permission

# ── Branch admin: branch-local operations, no global views, no configuration ──
_BRANCH_ADMIN_GRANTS: dict[Permission, bool] = {
    P.VIEW_ALL_BRANCHES: False,
    P.MANAGE_BRANCHES: False,

    P.VIEW_AGENTS: True,
    P.MANAGE_AGENTS: True,
    P.VIEW_AGENT_APPLICATIONS: True,
    P.MANAGE_AGENT_APPLICATIONS: True,

    P.VIEW_CUSTOMERS: True,
    P.MANAGE_CUSTOMERS: True,
    P.VIEW_ALL_CUSTOMERS: False,

    P.MANAGE_USERS: True,
    P.MANAGE_ADMIN_USERS: False,

    P.VIEW_POLICIES: True,
    P.MANAGE_POLICIES: False,
    P.VIEW_POLICY_HOLDERS: True,
    P.MANAGE_POLICY_HOLDERS: True,
    P.VIEW_ALL_POLICY_HOLDERS: False,

    P.VIEW_PREMIUM_PAYMENTS: True,
    P.MANAGE_PREMIUM_PAYMENTS: True,
    P.VIEW_ALL_PREMIUM_PAYMENTS: False,

    P.VIEW_CLAIMS: True,
    P.MANAGE_CLAIMS: True,
    P.VIEW_ALL_CLAIMS: False,
    P.PROCESS_CLAIMS: True,

    P.VIEW_LOANS: True,
    P.MANAGE_LOANS: True,
    P.VIEW_ALL_LOANS: False,

    P.VIEW_KYC: True,
    P.MANAGE_KYC: True,
    P.VIEW_ALL_KYC: False,

    P.VIEW_UNDERWRITING: True,
    P.MANAGE_UNDERWRITING: False,

    P.MANAGE_CONFIGURATION: False,
}


PERMISSION_MATRIX: dict[Role, dict[Permission, bool]] = {
    Role.SUPER_ADMIN: dict.fromkeys(Permission, True),
    Role.BRANCH_ADMIN: _BRANCH_ADMIN_GRANTS,
    Role.AGENT: dict.fromkeys(Permission, False),
    Role.CUSTOMER: dict.fromkeys(Permission, False),
}


def _check_matrix_is_total() -> None:
    keys = set(Permission)
    for role in Role:
        row = PERMISSION_MATRIX.get(role)
        if row is None:
            raise RuntimeError(f"PERMISSION_MATRIX has no row for role {role.value!r}")
        missing = keys - row.keys()
        if missing:
            names = ", ".join(sorted(p.value for p in missing))
            raise RuntimeError(
                f"PERMISSION_MATRIX row {role.value!r} must decide: {names}"
            )


_check_matrix_is_total()


def grant(role: Role | str | None, key: Permission | str) -> bool:
    """Look up one matrix cell. Unknown roles and unknown keys are denied."""
    try:
        role = Role(role)
        key = Permission(key)
    except ValueError:
        return False
    return PERMISSION_MATRIX[role][key]


def granted_permissions(role: Role | None) -> set[Permission]:
    if role is None:
        return set()
    return {p for p, allowed in PERMISSION_MATRIX[role].items() if allowed}
