"""
Screens API — runs the route guard for a console screen.

The front end asks before rendering a protected screen. Allowed screens get
the actor and their permission keys; everything else gets a 303 to the
login page (carrying the requested location) or to /unauthorized.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import RedirectResponse

from console.api.deps import get_resolver, get_session_store
from console.auth.guard import SCREENS, RouteGuard, RouteState
from console.auth.resolver import PermissionResolver
from console.auth.session import SessionStore

router = APIRouter(prefix="/api/screens", tags=["screens"])


def _within(location: str | None, path: str) -> bool:
    """True when `location` addresses the screen at `path` (sub-paths and query strings included)."""
    if not location:
        return False
    return location == path or location.startswith((path + "/", path + "?"))


@router.get("")
async def list_screens():
    """Screen registry: path and required roles (null = any authenticated actor)."""
    return [
        {
            "screen": s.name,
            "path": s.path,
            "required_roles": sorted(r.value for r in s.required_roles) if s.required_roles else None,
        }
        for s in SCREENS.values()
    ]


@router.get("/{screen_name}")
async def check_screen(screen_name: str,
                       location: str | None = Query(None, alias="from"),
                       store: SessionStore = Depends(get_session_store),
                       resolver: PermissionResolver = Depends(get_resolver)):
    screen = SCREENS.get(screen_name)
    if screen is None:
        raise HTTPException(status_code=404, detail=f"Unknown screen {screen_name!r}")

    requested = location if _within(location, screen.path) else screen.path
    guard = RouteGuard(store, screen, requested_location=requested)
    try:
        state = guard.evaluate()
    finally:
        guard.close()

    if state != RouteState.ALLOWED:
        return RedirectResponse(guard.redirect_to, status_code=303)
    return {
        "screen": screen.name,
        "state": state.value,
        "user": store.user.model_dump(mode="json"),
        "permissions": resolver.permissions(),
    }
