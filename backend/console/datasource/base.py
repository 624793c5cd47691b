"""
DataSource — the capability the authorization core wraps.

The console never talks to the insurance back end directly: login, logout
and every branch-owned read/write go through an object satisfying this
protocol. Implementations raise the errors below; they never decide who may
see what.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

Record = dict[str, Any]


class DataSourceError(Exception):
    """Base class for data-source failures."""


class CredentialError(DataSourceError):
    """Bad username/password, or a token the back end no longer accepts."""


class TransportError(DataSourceError):
    """Network failure, non-2xx response or a malformed payload."""


class EntityNotFoundError(DataSourceError):
    """The addressed record does not exist."""


@dataclass(frozen=True)
class AuthResult:
    profile: dict[str, Any]
    token: str


class DataSource(Protocol):
    async def authenticate(self, username: str, password: str) -> AuthResult:
        ...

    async def invalidate_session(self, token: str) -> None:
        ...

    async def fetch_entities(self, kind: str, filters: dict[str, Any] | None = None,
                             *, token: str) -> list[Record]:
        ...

    async def mutate_entity(self, kind: str, entity_id: int, patch: dict[str, Any],
                            *, token: str) -> Record:
        ...

    async def create_entity(self, kind: str, payload: dict[str, Any],
                            *, token: str) -> Record:
        ...

    async def fetch_branches(self, *, token: str) -> list[Record]:
        ...

    async def fetch_policies(self, *, token: str) -> list[Record]:
        ...
