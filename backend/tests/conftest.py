"""Shared test fixtures for the console tests."""

import os

# Configure before anything imports console.config
os.environ["ENVIRONMENT"] = "test"
os.environ["SESSION_BACKEND"] = "memory"
os.environ["DATA_SOURCE"] = "mock"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DEMO_LOGIN_ENABLED"] = "true"

from typing import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from console.api.deps import get_data_source, get_session_storage  # noqa: E402
from console.auth.identity import Identity  # noqa: E402
from console.auth.roles import Role  # noqa: E402
from console.auth.session import SessionStore  # noqa: E402
from console.auth.storage import MemorySessionStorage  # noqa: E402
from console.datasource.mock import MockDataSource  # noqa: E402
from console.main import app  # noqa: E402


def _override(value):
    """Create a dependency override that always returns `value`."""
    async def _dep():
        return value
    return _dep


@pytest.fixture
def data_source() -> MockDataSource:
    return MockDataSource()


@pytest.fixture
def storage() -> MemorySessionStorage:
    return MemorySessionStorage()


@pytest.fixture
def superadmin_identity() -> Identity:
    return Identity(id=1, username="admin", role=Role.SUPER_ADMIN, display_name="Admin Admin")


@pytest.fixture
def branch_identity() -> Identity:
    return Identity(
        id=2, username="branch", role=Role.BRANCH_ADMIN, branch_id=1,
        display_name="Branch Manager", branch_name="Kohalpur Branch",
    )


@pytest.fixture
def store(storage: MemorySessionStorage, data_source: MockDataSource) -> SessionStore:
    return SessionStore(storage, data_source, session_id="sid-1")


@pytest.fixture
def login_as(storage, data_source):
    """Factory: a fresh SessionStore logged in against the mock data source."""
    async def _login_as(username: str, password: str = "password") -> SessionStore:
        store = SessionStore(storage, data_source)
        result = await store.login(username, password)
        assert result.success, result.message
        return store
    return _login_as


@pytest_asyncio.fixture
async def superadmin_store(login_as) -> SessionStore:
    return await login_as("admin")


@pytest_asyncio.fixture
async def branch_store(login_as) -> SessionStore:
    return await login_as("branch")


# ── HTTP clients ─────────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def anon_client(data_source, storage) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with no session."""
    app.dependency_overrides[get_data_source] = _override(data_source)
    app.dependency_overrides[get_session_storage] = _override(storage)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


async def _login(client: AsyncClient, username: str, password: str = "password") -> AsyncClient:
    resp = await client.post("/api/auth/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    return client


@pytest_asyncio.fixture
async def superadmin_client(anon_client: AsyncClient) -> AsyncClient:
    """HTTP client logged in as the head-office superadmin."""
    return await _login(anon_client, "admin")


@pytest_asyncio.fixture
async def branch_client(anon_client: AsyncClient) -> AsyncClient:
    """HTTP client logged in as the Kohalpur (branch 1) manager."""
    return await _login(anon_client, "branch")
