"""Tests for the route guard state machine and the screen registry."""

import asyncio

import pytest

from console.auth.guard import (
    DEFAULT_LANDING_PATH,
    SCREENS,
    RouteGuard,
    RouteState,
    ScreenAccess,
    safe_return_path,
)
from console.auth.roles import Role
from console.auth.session import SessionStore
from console.auth.storage import MemorySessionStorage


class GatedStorage(MemorySessionStorage):
    """Reads block until the test opens the gate."""

    def __init__(self):
        super().__init__()
        self.gate = asyncio.Event()

    async def read(self, session_id):
        await self.gate.wait()
        return await super().read(session_id)


# ── Screen registry ──────────────────────────────────────────────────────────

class TestScreens:
    def test_open_screens_need_only_a_login(self):
        for name in ("dashboard", "policies", "claims", "reports", "payments"):
            assert SCREENS[name].required_roles is None
            assert SCREENS[name].permits(Role.CUSTOMER)

    def test_head_office_screens(self):
        for name in ("branches", "settings"):
            assert SCREENS[name].permits(Role.SUPER_ADMIN)
            assert not SCREENS[name].permits(Role.BRANCH_ADMIN)

    def test_branch_screens(self):
        for name in ("customers", "agents", "loans"):
            assert SCREENS[name].permits(Role.BRANCH_ADMIN)
            assert not SCREENS[name].permits(Role.SUPER_ADMIN)

    def test_shared_admin_screens(self):
        for name in ("users", "policy-holders"):
            assert SCREENS[name].permits(Role.SUPER_ADMIN)
            assert SCREENS[name].permits(Role.BRANCH_ADMIN)
            assert not SCREENS[name].permits(Role.AGENT)

    def test_paths(self):
        assert SCREENS["policy-holders"].path == "/policy-holders"


class TestSafeReturnPath:
    @pytest.mark.parametrize("location", ["/users", "/policy-holders?page=2", "/dashboard"])
    def test_relative_paths_are_kept(self, location):
        assert safe_return_path(location) == location

    @pytest.mark.parametrize("location", [
        None, "", "users", "https://evil.example/", "//evil.example/x",
        "/\\evil.example", "/login", "/login?next=/users",
    ])
    def test_everything_else_lands_on_the_dashboard(self, location):
        assert safe_return_path(location) == DEFAULT_LANDING_PATH


# ── Guard decisions ──────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestRouteGuard:
    async def test_unauthenticated_redirects_to_login_with_location(self, store):
        await store.restore()
        guard = RouteGuard(store, SCREENS["users"], requested_location="/users")
        assert guard.evaluate() is RouteState.REDIRECT_LOGIN
        assert guard.redirect_to == "/login?next=%2Fusers"

    async def test_requested_location_defaults_to_screen_path(self, store):
        await store.restore()
        guard = RouteGuard(store, SCREENS["claims"])
        guard.evaluate()
        assert guard.redirect_to == "/login?next=%2Fclaims"

    async def test_branch_admin_on_superadmin_screen(self, branch_store):
        guard = RouteGuard(branch_store, SCREENS["branches"])
        assert guard.evaluate() is RouteState.REDIRECT_UNAUTHORIZED
        assert guard.redirect_to == "/unauthorized"

    async def test_superadmin_on_branch_screen(self, superadmin_store):
        guard = RouteGuard(superadmin_store, SCREENS["agents"])
        assert guard.evaluate() is RouteState.REDIRECT_UNAUTHORIZED

    async def test_any_actor_on_open_screen(self, branch_store, superadmin_store):
        for store in (branch_store, superadmin_store):
            guard = RouteGuard(store, SCREENS["dashboard"])
            assert guard.evaluate() is RouteState.ALLOWED
            assert guard.redirect_to is None

    async def test_customer_on_open_screen(self, login_as):
        store = await login_as("ram.customer", "customer-pass")
        assert RouteGuard(store, SCREENS["reports"]).evaluate() is RouteState.ALLOWED
        assert RouteGuard(store, SCREENS["users"]).evaluate() is RouteState.REDIRECT_UNAUTHORIZED

    async def test_screen_with_empty_role_set_behaves_as_unrestricted(self, branch_store):
        screen = ScreenAccess(name="help", path="/help", required_roles=frozenset())
        assert RouteGuard(branch_store, screen).evaluate() is RouteState.ALLOWED

    async def test_pending_while_restore_is_outstanding(self, data_source, branch_identity):
        storage = GatedStorage()
        await storage.write("sid", branch_identity.to_json(), "tok")
        store = SessionStore(storage, data_source, session_id="sid")
        guard = RouteGuard(store, SCREENS["agents"])

        task = asyncio.create_task(store.restore())
        await asyncio.sleep(0)
        assert guard.evaluate() is RouteState.PENDING
        assert guard.redirect_to is None

        storage.gate.set()
        await task
        # the end of loading re-ran the guard
        assert guard.state is RouteState.ALLOWED

    async def test_never_redirects_to_login_before_restore_finishes(self, data_source, branch_identity):
        storage = GatedStorage()
        await storage.write("sid", branch_identity.to_json(), "tok")
        store = SessionStore(storage, data_source, session_id="sid")
        guard = RouteGuard(store, SCREENS["users"])

        seen = []
        store.subscribe(lambda: seen.append(guard.state))
        task = asyncio.create_task(store.restore())
        await asyncio.sleep(0)
        guard.evaluate()
        storage.gate.set()
        await task

        assert RouteState.REDIRECT_LOGIN not in seen
        assert guard.state is RouteState.ALLOWED

    async def test_terminal_state_is_stable(self, branch_store):
        guard = RouteGuard(branch_store, SCREENS["agents"])
        assert guard.evaluate() is RouteState.ALLOWED
        assert guard.evaluate() is RouteState.ALLOWED

    async def test_logout_sends_the_guard_to_login(self, branch_store):
        guard = RouteGuard(branch_store, SCREENS["agents"])
        assert guard.evaluate() is RouteState.ALLOWED

        await branch_store.logout()
        assert guard.state is RouteState.REDIRECT_LOGIN

    async def test_login_re_evaluates_a_redirected_guard(self, store):
        await store.restore()
        guard = RouteGuard(store, SCREENS["policy-holders"])
        assert guard.evaluate() is RouteState.REDIRECT_LOGIN

        await store.login("branch", "password")
        assert guard.state is RouteState.ALLOWED

    async def test_switching_actor_re_evaluates(self, superadmin_store):
        guard = RouteGuard(superadmin_store, SCREENS["settings"])
        assert guard.evaluate() is RouteState.ALLOWED

        await superadmin_store.login("branch", "password")
        assert guard.state is RouteState.REDIRECT_UNAUTHORIZED

    async def test_expiry_sends_the_guard_to_login(self, branch_store):
        guard = RouteGuard(branch_store, SCREENS["loans"])
        guard.evaluate()
        await branch_store.expire()
        assert guard.state is RouteState.REDIRECT_LOGIN

    async def test_closed_guard_stops_listening(self, branch_store):
        guard = RouteGuard(branch_store, SCREENS["agents"])
        guard.evaluate()
        guard.close()
        guard.close()
        await branch_store.logout()
        assert guard.state is RouteState.ALLOWED
