"""
Session persistence — the two artifacts a console session is allowed to keep:
the serialized Identity and the opaque token.

Both are written together, read together and cleared together. Callers
address a session by its id (the value of the session cookie); nothing
else is stored.
"""

from typing import Protocol

import redis.asyncio as aioredis
from redis.exceptions import RedisError


class SessionStorageError(Exception):
    """The session backend could not be read or written."""


class SessionStorage(Protocol):
    async def read(self, session_id: str) -> tuple[str | None, str | None]:
        """Return (identity_json, token); either may be None."""
        ...

    async def write(self, session_id: str, identity_json: str, token: str) -> None:
        ...

    async def clear(self, session_id: str) -> None:
        ...


class MemorySessionStorage:
    """Process-local storage for development and tests."""

    def __init__(self):
        self.identities: dict[str, str] = {}
        self.tokens: dict[str, str] = {}

    async def read(self, session_id: str) -> tuple[str | None, str | None]:
        return self.identities.get(session_id), self.tokens.get(session_id)

    async def write(self, session_id: str, identity_json: str, token: str) -> None:
        self.identities[session_id] = identity_json
        self.tokens[session_id] = token

    async def clear(self, session_id: str) -> None:
        self.identities.pop(session_id, None)
        self.tokens.pop(session_id, None)


class RedisSessionStorage:
    """
    Redis-backed storage.

    Keys: `<prefix>:<session_id>:identity` and `<prefix>:<session_id>:token`,
    always written and deleted inside one MULTI/EXEC pipeline with the same TTL.
    """

    def __init__(self, redis: aioredis.Redis, prefix: str = "console:session",
                 ttl_seconds: int = 8 * 3600):
        self.redis = redis
        self.prefix = prefix
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisSessionStorage":
        return cls(aioredis.from_url(url, decode_responses=True), **kwargs)

    def _keys(self, session_id: str) -> tuple[str, str]:
        base = f"{self.prefix}:{session_id}"
        return f"{base}:identity", f"{base}:token"

    async def read(self, session_id: str) -> tuple[str | None, str | None]:
        identity_key, token_key = self._keys(session_id)
        try:
            identity_json, token = await self.redis.mget(identity_key, token_key)
        except RedisError as exc:
            raise SessionStorageError(f"session read failed: {exc}") from exc
        return identity_json, token

    async def write(self, session_id: str, identity_json: str, token: str) -> None:
        identity_key, token_key = self._keys(session_id)
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.set(identity_key, identity_json, ex=self.ttl_seconds)
            pipe.set(token_key, token, ex=self.ttl_seconds)
            await self._execute(pipe, "write")

    async def clear(self, session_id: str) -> None:
        identity_key, token_key = self._keys(session_id)
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.delete(identity_key, token_key)
            await self._execute(pipe, "clear")

    @staticmethod
    async def _execute(pipe, operation: str) -> None:
        try:
            await pipe.execute()
        except RedisError as exc:
            raise SessionStorageError(f"session {operation} failed: {exc}") from exc

    async def aclose(self) -> None:
        await self.redis.aclose()
