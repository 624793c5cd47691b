"""
Route guard — decides whether a protected screen may render.

    PENDING ──(session not loading)──▶ CHECKING ──▶ ALLOWED
                                               ├──▶ REDIRECT_LOGIN
                                               └──▶ REDIRECT_UNAUTHORIZED

A guard never decides while the SessionStore is loading. Once terminal it
stays put, except that any session change (login, logout, expiry) sends it
back through CHECKING. Ambiguity fails closed: a branch admin without a
branch is sent to /unauthorized.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable
from urllib.parse import urlencode

from console.auth.roles import Role
from console.auth.session import SessionStore
from console.middleware.metrics import route_decisions_total

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
UNAUTHORIZED_PATH = "/unauthorized"
DEFAULT_LANDING_PATH = "/dashboard"


class RouteState(str, Enum):
    PENDING = "pending"
    CHECKING = "checking"
    ALLOWED = "allowed"
    REDIRECT_LOGIN = "redirect_login"
    REDIRECT_UNAUTHORIZED = "redirect_unauthorized"


TERMINAL_STATES = frozenset({
    RouteState.ALLOWED,
    RouteState.REDIRECT_LOGIN,
    RouteState.REDIRECT_UNAUTHORIZED,
})


@dataclass(frozen=True)
class ScreenAccess:
    """What a protected screen declares: it needs a login, and optionally one of these roles."""
    name: str
    path: str
    required_roles: frozenset[Role] | None = None

    def permits(self, role: Role) -> bool:
        return not self.required_roles or role in self.required_roles


def _screen(name: str, *roles: Role) -> ScreenAccess:
    return ScreenAccess(name=name, path=f"/{name}", required_roles=frozenset(roles) if roles else None)


SCREENS: dict[str, ScreenAccess] = {
    s.name: s for s in (
        _screen("dashboard"),
        _screen("policies"),
        _screen("claims"),
        _screen("reports"),
        _screen("payments"),
        _screen("users", Role.SUPER_ADMIN, Role.BRANCH_ADMIN),
        _screen("policy-holders", Role.SUPER_ADMIN, Role.BRANCH_ADMIN),
        _screen("branches", Role.SUPER_ADMIN),
        _screen("settings", Role.SUPER_ADMIN),
        _screen("customers", Role.BRANCH_ADMIN),
        _screen("agents", Role.BRANCH_ADMIN),
        _screen("loans", Role.BRANCH_ADMIN),
    )
}


def safe_return_path(location: str | None) -> str:
    """Only same-site relative paths may be returned to after login."""
    if not location or not location.startswith("/") or location.startswith("//"):
        return DEFAULT_LANDING_PATH
    if "\\" in location or location.startswith(LOGIN_PATH):
        return DEFAULT_LANDING_PATH
    return location


class RouteGuard:
    def __init__(self, store: SessionStore, screen: ScreenAccess,
                 requested_location: str | None = None):
        self.store = store
        self.screen = screen
        self.requested_location = requested_location or screen.path
        self.state = RouteState.PENDING
        self._unsubscribe: Callable[[], None] | None = store.subscribe(self._on_session_change)

    @property
    def redirect_to(self) -> str | None:
        if self.state == RouteState.REDIRECT_LOGIN:
            return f"{LOGIN_PATH}?{urlencode({'next': self.requested_location})}"
        if self.state == RouteState.REDIRECT_UNAUTHORIZED:
            return UNAUTHORIZED_PATH
        return None

    def evaluate(self) -> RouteState:
        if self.store.is_loading:
            self.state = RouteState.PENDING
            return self.state
        if self.state in TERMINAL_STATES:
            return self.state

        self.state = RouteState.CHECKING
        self.state = self._decide()
        route_decisions_total.labels(screen=self.screen.name, state=self.state.value).inc()
        logger.debug("Route %s → %s", self.screen.name, self.state.value)
        return self.state

    def _decide(self) -> RouteState:
        user = self.store.user
        if not self.store.is_authenticated or user is None:
            return RouteState.REDIRECT_LOGIN
        if user.role == Role.BRANCH_ADMIN and user.branch_id is None:
            return RouteState.REDIRECT_UNAUTHORIZED
        if not self.screen.permits(user.role):
            return RouteState.REDIRECT_UNAUTHORIZED
        return RouteState.ALLOWED

    def _on_session_change(self) -> None:
        if self.store.is_loading:
            self.state = RouteState.PENDING
            return
        self.state = RouteState.CHECKING
        self.evaluate()

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
