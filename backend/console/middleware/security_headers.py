"""
Response hardening for the console API.

Every response gets the browser protections the console front end relies
on. Responses that carry identity or branch-owned data (session, screen
guard and entity routes) must never be stored by a browser or proxy, and
HSTS is only sent once the session cookie itself is marked secure.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.types import ASGIApp

from console.config import settings

BASE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}

PRIVATE_HEADERS = {"Cache-Control": "no-store", "Pragma": "no-cache"}

PRIVATE_PREFIXES = ("/api/auth/", "/api/screens/", "/api/entities/")

HSTS_VALUE = "max-age=31536000; includeSubDomains"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, private_prefixes: tuple[str, ...] = PRIVATE_PREFIXES,
                 hsts: bool | None = None):
        super().__init__(app)
        self.private_prefixes = private_prefixes
        self.headers = dict(BASE_HEADERS)
        if hsts is None:
            hsts = settings.session_cookie_secure
        if hsts:
            self.headers["Strict-Transport-Security"] = HSTS_VALUE

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.update(self.headers)
        if request.url.path.startswith(self.private_prefixes):
            response.headers.update(PRIVATE_HEADERS)
        return response
