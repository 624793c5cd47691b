"""
MockDataSource — in-memory stand-in for the core insurance API.

Serves a private copy of the seed data, checks passwords against bcrypt
hashes and hands out signed access tokens. Every data call validates its
token the way the real back end would, so an expired or revoked token
surfaces as a CredentialError. It applies the filters it is given and
nothing else: branch confinement is the caller's job.
"""

import asyncio
import copy
from functools import lru_cache
from typing import Any

from jose import JWTError

from console.datasource import seed
from console.datasource.base import (
    AuthResult,
    CredentialError,
    EntityNotFoundError,
    Record,
)
from console.datasource.passwords import hash_password, verify_password
from console.datasource.tokens import create_access_token, decode_access_token

_PRIVATE_USER_FIELDS = {"password", "password_hash"}


@lru_cache(maxsize=1)
def _seed_password_hashes() -> dict[str, str]:
    # bcrypt is slow on purpose; hash the seed accounts once per process
    return {u["username"]: hash_password(u["password"]) for u in seed.USERS}


def _public_user(user: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in user.items() if k not in _PRIVATE_USER_FIELDS}


def _field_value(record: Record, key: str) -> Any:
    value = record.get(key)
    if isinstance(value, dict):
        return value.get("id")
    return value


def _matches(record: Record, filters: dict[str, Any]) -> bool:
    # query-string filters arrive as strings, so compare textual forms
    return all(str(_field_value(record, k)) == str(v) for k, v in filters.items())


class MockDataSource:
    def __init__(self, secret_key: str | None = None, latency_ms: int = 0,
                 token_expire_minutes: int | None = None):
        self.secret_key = secret_key
        self.latency_ms = latency_ms
        self.token_expire_minutes = token_expire_minutes
        hashes = _seed_password_hashes()
        self._accounts = [
            {**_public_user(u), "password_hash": hashes[u["username"]]} for u in seed.USERS
        ]
        self._entities: dict[str, list[Record]] = copy.deepcopy(seed.ENTITIES)
        self._entities["users"] = [_public_user(u) for u in seed.USERS]
        self._branches = copy.deepcopy(seed.BRANCHES)
        self._policies = copy.deepcopy(seed.POLICIES)
        self._revoked: set[str] = set()

    async def _delay(self) -> None:
        if self.latency_ms:
            await asyncio.sleep(self.latency_ms / 1000)

    def _check_token(self, token: str) -> None:
        if not token or token in self._revoked:
            raise CredentialError("Session token is no longer valid")
        try:
            decode_access_token(token, self.secret_key)
        except JWTError as exc:
            raise CredentialError("Session token is invalid or expired") from exc

    def _collection(self, kind: str) -> list[Record]:
        try:
            return self._entities[kind]
        except KeyError:
            raise EntityNotFoundError(f"Unknown resource {kind!r}") from None

    # ── Auth ──

    async def authenticate(self, username: str, password: str) -> AuthResult:
        await self._delay()
        account = next((a for a in self._accounts if a["username"] == username), None)
        if account is None or not verify_password(password, account["password_hash"]):
            raise CredentialError("Invalid username or password")
        if not account.get("is_active", True):
            raise CredentialError("Account is disabled")
        token = create_access_token(
            account["id"], account["username"],
            secret_key=self.secret_key, expire_minutes=self.token_expire_minutes,
        )
        return AuthResult(profile=_public_user(account), token=token)

    async def invalidate_session(self, token: str) -> None:
        await self._delay()
        self._revoked.add(token)

    # ── Branch-owned entities ──

    async def fetch_entities(self, kind: str, filters: dict[str, Any] | None = None,
                             *, token: str) -> list[Record]:
        await self._delay()
        self._check_token(token)
        rows = self._collection(kind)
        if filters:
            rows = [r for r in rows if _matches(r, filters)]
        return copy.deepcopy(rows)

    async def mutate_entity(self, kind: str, entity_id: int, patch: dict[str, Any],
                            *, token: str) -> Record:
        await self._delay()
        self._check_token(token)
        record = next((r for r in self._collection(kind) if r.get("id") == entity_id), None)
        if record is None:
            raise EntityNotFoundError(f"{kind} {entity_id} not found")
        record.update({k: v for k, v in patch.items() if k != "id"})
        return copy.deepcopy(record)

    async def create_entity(self, kind: str, payload: dict[str, Any],
                            *, token: str) -> Record:
        await self._delay()
        self._check_token(token)
        rows = self._collection(kind)
        new_id = max((r.get("id", 0) for r in rows), default=0) + 1
        record = {**payload, "id": new_id}
        rows.append(record)
        return copy.deepcopy(record)

    # ── Catalog ──

    async def fetch_branches(self, *, token: str) -> list[Record]:
        await self._delay()
        self._check_token(token)
        return copy.deepcopy(self._branches)

    async def fetch_policies(self, *, token: str) -> list[Record]:
        await self._delay()
        self._check_token(token)
        return copy.deepcopy(self._policies)
