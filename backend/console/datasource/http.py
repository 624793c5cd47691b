"""
HttpDataSource — the core insurance API over httpx.

One credential scheme only: `Authorization: Bearer <token>`. A 401 is a
credential problem, not a cue to retry with another header format.
"""

import logging
from typing import Any

import httpx

from console.datasource.base import (
    AuthResult,
    CredentialError,
    EntityNotFoundError,
    Record,
    TransportError,
)

logger = logging.getLogger(__name__)

LOGIN_PATH = "/auth/login/"
LOGOUT_PATH = "/auth/logout/"
BRANCHES_PATH = "/branches/"
POLICIES_PATH = "/policies/"

# console entity kind → core API collection
RESOURCE_PATHS: dict[str, str] = {
    "agents": "/sales-agents/",
    "agent-applications": "/agent-applications/",
    "policy-holders": "/policy-holders/",
    "claims": "/claim-requests/",
    "loans": "/loans/",
    "premium-payments": "/premium-payments/",
    "kyc": "/kyc/",
    "users": "/users/",
}


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _resource_path(kind: str) -> str:
    try:
        return RESOURCE_PATHS[kind]
    except KeyError:
        raise EntityNotFoundError(f"Unknown resource {kind!r}") from None


def _unwrap_list(body: Any) -> list[Record]:
    """Accept a bare list or a paginated {"results": [...]} envelope."""
    if isinstance(body, dict) and "results" in body:
        body = body["results"]
    if not isinstance(body, list) or not all(isinstance(r, dict) for r in body):
        raise TransportError("Expected a list of records")
    return body


class HttpDataSource:
    def __init__(self, base_url: str, timeout: float = 30.0,
                 client: httpx.AsyncClient | None = None):
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, *, token: str | None = None,
                       **kwargs) -> Any:
        headers = _bearer(token) if token else {}
        try:
            resp = await self._client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc

        logger.debug("core API %s %s → %s", method, path, resp.status_code)

        if resp.status_code == 401:
            raise CredentialError("Session token rejected by the core API")
        if resp.status_code == 404:
            raise EntityNotFoundError(f"{method} {path} not found")
        if resp.status_code >= 400:
            raise TransportError(f"{method} {path} returned {resp.status_code}")
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise TransportError(f"{method} {path} returned malformed JSON") from exc

    # ── Auth ──

    async def authenticate(self, username: str, password: str) -> AuthResult:
        try:
            resp = await self._client.post(
                LOGIN_PATH, json={"username": username, "password": password},
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"login request failed: {exc}") from exc

        if resp.status_code in (400, 401, 403):
            raise CredentialError("Invalid username or password")
        if resp.status_code >= 300:
            raise TransportError(f"login returned {resp.status_code}")
        try:
            body = resp.json()
        except ValueError as exc:
            raise TransportError("login returned malformed JSON") from exc

        if not isinstance(body, dict):
            raise TransportError("login response is not an object")
        token = body.get("token") or body.get("access") or body.get("access_token")
        profile = body.get("user")
        if not isinstance(token, str) or not isinstance(profile, dict):
            raise TransportError("login response is missing token or user")
        return AuthResult(profile=profile, token=token)

    async def invalidate_session(self, token: str) -> None:
        await self._request("POST", LOGOUT_PATH, token=token)

    # ── Branch-owned entities ──

    async def fetch_entities(self, kind: str, filters: dict[str, Any] | None = None,
                             *, token: str) -> list[Record]:
        body = await self._request("GET", _resource_path(kind), token=token,
                                   params=filters or None)
        return _unwrap_list(body)

    async def mutate_entity(self, kind: str, entity_id: int, patch: dict[str, Any],
                            *, token: str) -> Record:
        path = f"{_resource_path(kind)}{entity_id}/"
        body = await self._request("PATCH", path, token=token, json=patch)
        if not isinstance(body, dict):
            raise TransportError(f"PATCH {path} did not return a record")
        return body

    async def create_entity(self, kind: str, payload: dict[str, Any],
                            *, token: str) -> Record:
        path = _resource_path(kind)
        body = await self._request("POST", path, token=token, json=payload)
        if not isinstance(body, dict):
            raise TransportError(f"POST {path} did not return a record")
        return body

    # ── Catalog ──

    async def fetch_branches(self, *, token: str) -> list[Record]:
        return _unwrap_list(await self._request("GET", BRANCHES_PATH, token=token))

    async def fetch_policies(self, *, token: str) -> list[Record]:
        return _unwrap_list(await self._request("GET", POLICIES_PATH, token=token))
