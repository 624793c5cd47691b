from console.auth.permissions import Permission
from console.auth.roles import Role, PERMISSION_MATRIX, grant
from console.auth.identity import Identity, IdentityParseError
from console.auth.session import SessionStore, LoginResult
from console.auth.resolver import PermissionResolver, has_permission
from console.auth.guard import RouteGuard, RouteState, ScreenAccess, SCREENS
from console.auth.scoping import EntityKind, in_scope, record_branch, scope_records

__all__ = [
    "Permission", "Role", "PERMISSION_MATRIX", "grant",
    "Identity", "IdentityParseError", "SessionStore", "LoginResult",
    "PermissionResolver", "has_permission",
    "RouteGuard", "RouteState", "ScreenAccess", "SCREENS",
    "EntityKind", "in_scope", "record_branch", "scope_records",
]
