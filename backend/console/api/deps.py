"""
API Dependencies — data source, session store, permission guards.

Every request rebuilds its SessionStore from the session cookie and runs
restore() before any endpoint or guard looks at the actor. A session
established by login is therefore only trusted once the next request has
restored it from persisted state.

The data source and the session storage are process-wide and built lazily
from settings; tests replace them through `app.dependency_overrides`.
"""

from typing import Any, Callable

from fastapi import Depends, HTTPException, Request, Response

from console.auth.permissions import Permission
from console.auth.resolver import PermissionResolver
from console.auth.session import SessionStore
from console.auth.storage import MemorySessionStorage, RedisSessionStorage, SessionStorage
from console.config import Settings, settings
from console.datasource.base import DataSource
from console.datasource.http import HttpDataSource
from console.datasource.mock import MockDataSource
from console.services.entity_service import EntityService


# ── Process-wide collaborators ───────────────────────────────────────────────

def build_data_source(config: Settings = settings) -> DataSource:
    if config.data_source == "http":
        return HttpDataSource(config.core_api_url, timeout=config.core_api_timeout_seconds)
    if config.data_source == "mock":
        return MockDataSource(latency_ms=config.mock_latency_ms)
    raise ValueError(f"Unknown DATA_SOURCE {config.data_source!r}")


def build_session_storage(config: Settings = settings) -> SessionStorage:
    if config.session_backend == "redis":
        return RedisSessionStorage.from_url(
            config.redis_url,
            prefix=config.session_key_prefix,
            ttl_seconds=config.session_ttl_seconds,
        )
    if config.session_backend == "memory":
        return MemorySessionStorage()
    raise ValueError(f"Unknown SESSION_BACKEND {config.session_backend!r}")


def _app_state(request: Request, name: str, factory: Callable[[], Any]) -> Any:
    value = getattr(request.app.state, name, None)
    if value is None:
        value = factory()
        setattr(request.app.state, name, value)
    return value


async def get_data_source(request: Request) -> DataSource:
    return _app_state(request, "data_source", build_data_source)


async def get_session_storage(request: Request) -> SessionStorage:
    return _app_state(request, "session_storage", build_session_storage)


# ── Session ──────────────────────────────────────────────────────────────────

async def get_session_store(
    request: Request,
    storage: SessionStorage = Depends(get_session_storage),
    data_source: DataSource = Depends(get_data_source),
) -> SessionStore:
    """Restore the caller's session from the session cookie."""
    session_id = request.cookies.get(settings.session_cookie_name) or None
    store = SessionStore(storage, data_source, session_id=session_id)
    await store.restore()
    # exception handlers need the store to drop a session the back end rejected
    request.state.session_store = store
    return store


async def require_session(store: SessionStore = Depends(get_session_store)) -> SessionStore:
    if not store.is_authenticated:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return store


async def get_resolver(store: SessionStore = Depends(get_session_store)) -> PermissionResolver:
    return PermissionResolver(store)


async def get_entity_service(
    store: SessionStore = Depends(require_session),
    data_source: DataSource = Depends(get_data_source),
) -> EntityService:
    return EntityService(store, data_source)


def set_session_cookie(response: Response, session_id: str) -> None:
    response.set_cookie(
        settings.session_cookie_name,
        session_id,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(settings.session_cookie_name, httponly=True, samesite="lax")


# ── Permission guards ────────────────────────────────────────────────────────

def require_permission(*perms: Permission):
    """
    FastAPI dependency that checks the actor holds ALL listed permissions.

    Usage:
        @router.get("/branches")
        async def list_branches(store: SessionStore = Depends(require_permission(Permission.VIEW_ALL_BRANCHES))):
            ...
    """
    async def _check(store: SessionStore = Depends(require_session)) -> SessionStore:
        resolver = PermissionResolver(store)
        for p in perms:
            if not resolver.has_permission(p):
                raise HTTPException(
                    status_code=403,
                    detail=f"Insufficient permissions: requires {p.value}",
                )
        return store
    return _check
