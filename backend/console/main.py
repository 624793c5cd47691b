import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from console.config import settings
from console.datasource.base import CredentialError, EntityNotFoundError, TransportError
from console.middleware.logging_config import configure_logging

configure_logging(settings.log_level, settings.log_format)

from console.api.auth import router as auth_router  # noqa: E402
from console.api.catalog import router as catalog_router  # noqa: E402
from console.api.deps import clear_session_cookie  # noqa: E402
from console.api.entities import router as entities_router  # noqa: E402
from console.api.metrics import router as metrics_router  # noqa: E402
from console.api.screens import router as screens_router  # noqa: E402

logger = logging.getLogger("console")


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Shutdown: close whatever the dependencies opened lazily
    for name in ("data_source", "session_storage"):
        resource = getattr(app.state, name, None)
        close = getattr(resource, "aclose", None)
        if close is not None:
            await close()


app = FastAPI(
    title="Easy Life Branch Console",
    description="Session identity and branch-scoped authorization for the insurance back office",
    version="0.1.0",
    lifespan=lifespan,
)

# ── CORS ─────────────────────────────────────────────────────────────────────
origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "X-Request-ID"],
)

# ── Security headers middleware ──────────────────────────────────────────────
from console.middleware.security_headers import SecurityHeadersMiddleware  # noqa: E402

app.add_middleware(SecurityHeadersMiddleware)

# ── Login rate limiting middleware ───────────────────────────────────────────
from console.middleware.rate_limit import LoginRateLimitMiddleware  # noqa: E402

app.add_middleware(LoginRateLimitMiddleware)

# ── Request context middleware (request ID + timing) ─────────────────────────
from console.middleware.request_context import RequestContextMiddleware  # noqa: E402

app.add_middleware(RequestContextMiddleware)

# ── Prometheus metrics middleware ────────────────────────────────────────────
from console.middleware.metrics import PrometheusMiddleware  # noqa: E402

app.add_middleware(PrometheusMiddleware)


# ── Data-source errors escaping a handler ────────────────────────────────────

@app.exception_handler(CredentialError)
async def credential_error_handler(request: Request, exc: CredentialError):
    """The back end rejected the session token: drop the session, ask for a new login."""
    store = getattr(request.state, "session_store", None)
    if store is not None:
        await store.expire()
    logger.info("Session expired on %s %s: %s", request.method, request.url.path, exc)
    response = JSONResponse(status_code=401, content={"detail": "Session expired. Please log in again."})
    clear_session_cookie(response)
    return response


@app.exception_handler(TransportError)
async def transport_error_handler(request: Request, exc: TransportError):
    logger.warning("Data source unavailable on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=502, content={"detail": "Data source unavailable. Please retry."})


@app.exception_handler(EntityNotFoundError)
async def not_found_handler(request: Request, exc: EntityNotFoundError):
    return JSONResponse(status_code=404, content={"detail": "Record not found"})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Return detailed error info in development mode so 500s are debuggable."""
    tb = traceback.format_exc()
    logger.error(
        "Unhandled %s on %s %s: %s\n%s",
        type(exc).__name__, request.method, request.url.path, exc, tb,
    )
    detail = f"{type(exc).__name__}: {exc}"
    if settings.environment == "development":
        return JSONResponse(
            status_code=500,
            content={"detail": detail, "traceback": tb.splitlines()[-5:]},
        )
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


# Register API routers
app.include_router(auth_router)
app.include_router(screens_router)
app.include_router(entities_router)
app.include_router(catalog_router)
app.include_router(metrics_router)


@app.get("/api/health")
async def health_check():
    return {
        "status": "healthy",
        "environment": settings.environment,
        "data_source": settings.data_source,
        "session_backend": settings.session_backend,
    }
