"""Authentication API — login, demo login, logout, profile."""

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel

from console.api.deps import (
    clear_session_cookie,
    get_session_store,
    require_session,
    set_session_cookie,
)
from console.auth.guard import safe_return_path
from console.auth.resolver import PermissionResolver
from console.auth.session import ERR_INVALID_CREDENTIALS, LoginResult, SessionStore
from console.config import settings
from console.datasource.seed import DEMO_ACCOUNTS

router = APIRouter(prefix="/api/auth", tags=["auth"])


# ── Request / Response schemas ────────────────────────────────────────────────

class LoginRequest(BaseModel):
    username: str
    password: str
    next: str | None = None  # location the login redirect came from


class DemoLoginRequest(BaseModel):
    role: str
    next: str | None = None


class SessionResponse(BaseModel):
    user: dict
    permissions: list[str]
    redirect_to: str | None = None


# ── Helpers ───────────────────────────────────────────────────────────────────

def _session_payload(store: SessionStore, redirect_to: str | None = None) -> SessionResponse:
    return SessionResponse(
        user=store.user.model_dump(mode="json"),
        permissions=PermissionResolver(store).permissions(),
        redirect_to=redirect_to,
    )


def _finish_login(result: LoginResult, store: SessionStore, response: Response,
                  next_location: str | None) -> SessionResponse:
    if not result.success:
        status = 401 if result.error == ERR_INVALID_CREDENTIALS else 503
        raise HTTPException(status_code=status, detail=result.message)
    set_session_cookie(response, store.session_id)
    return _session_payload(store, safe_return_path(next_location))


# ── Endpoints ─────────────────────────────────────────────────────────────────

@router.post("/login", response_model=SessionResponse)
async def login(body: LoginRequest, response: Response,
                store: SessionStore = Depends(get_session_store)):
    """Authenticate with username + password; sets the session cookie."""
    result = await store.login(body.username, body.password)
    return _finish_login(result, store, response, body.next)


@router.post("/demo-login", response_model=SessionResponse)
async def demo_login(body: DemoLoginRequest, response: Response,
                     store: SessionStore = Depends(get_session_store)):
    """Log in as one of the seeded demo accounts (superadmin or branch)."""
    if not settings.demo_login_enabled:
        raise HTTPException(status_code=404, detail="Not found")
    credentials = DEMO_ACCOUNTS.get(body.role)
    if credentials is None:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid role. Must be one of: {sorted(DEMO_ACCOUNTS)}",
        )
    result = await store.login(*credentials)
    return _finish_login(result, store, response, body.next)


@router.post("/logout")
async def logout(response: Response, store: SessionStore = Depends(get_session_store)):
    """End the session. Always succeeds, even if the back end cannot be told."""
    await store.logout()
    clear_session_cookie(response)
    return {"ok": True}


@router.get("/me", response_model=SessionResponse)
async def me(store: SessionStore = Depends(require_session)):
    """Return the current identity and the permission keys it holds."""
    return _session_payload(store)
