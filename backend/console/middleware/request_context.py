"""
Request correlation for console log lines.

An inbound `X-Request-ID` is honoured only when it looks like an id (short,
URL-safe characters); anything else is replaced, so a caller cannot smuggle
text into the logs. The id lives in a ContextVar for the JSON formatter and
is echoed on the response. One access line per request, at warning level
for server errors.
"""

import logging
import re
import time
from contextvars import ContextVar
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

_request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def get_request_id() -> str:
    return _request_id_var.get()


def _inbound_request_id(request: Request) -> str:
    candidate = request.headers.get(REQUEST_ID_HEADER, "")
    return candidate if _VALID_REQUEST_ID.match(candidate) else uuid4().hex


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = _inbound_request_id(request)
        reset_token = _request_id_var.set(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
            level = logging.WARNING if response.status_code >= 500 else logging.INFO
            logger.log(
                level, "%s %s → %d in %.0fms",
                request.method, request.url.path, response.status_code, elapsed_ms,
                extra={"duration_ms": elapsed_ms},
            )
        finally:
            _request_id_var.reset(reset_token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
