"""
SessionStore — owns the authenticated identity of one console session.

The store holds exactly one Identity (or none) together with its token and
keeps that pair consistent with the persisted copy. restore(), login() and
logout() are the only mutators; everything else is a read.

Identity and token are always assigned together, in one synchronous step,
after every await of the operation has completed. Under asyncio that makes
the pair atomic for any reader, and the last operation to *resolve* is the
one reflected in state.

`is_loading` is true while a restore() or login() is outstanding. Listeners
registered with subscribe() are called on every loading transition and on
every identity change; the route guard uses this to re-evaluate.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from typing import Callable

from console.auth.identity import Identity, IdentityParseError
from console.auth.storage import SessionStorage, SessionStorageError
from console.datasource.base import CredentialError, DataSource, DataSourceError, TransportError
from console.middleware.metrics import logins_total, session_corruption_total

logger = logging.getLogger(__name__)

MSG_LOGGED_IN = "Logged in successfully"
MSG_INVALID_CREDENTIALS = "Invalid username or password"
MSG_LOGIN_FAILED = "Login failed. Please try again."

ERR_INVALID_CREDENTIALS = "invalid_credentials"
ERR_UNAVAILABLE = "unavailable"


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


@dataclass(frozen=True)
class LoginResult:
    success: bool
    message: str
    user: Identity | None = None
    error: str | None = None  # "invalid_credentials" or "unavailable"


class SessionStore:
    def __init__(self, storage: SessionStorage, data_source: DataSource,
                 session_id: str | None = None):
        self.storage = storage
        self.data_source = data_source
        self.session_id = session_id or new_session_id()
        self._identity: Identity | None = None
        self._token: str | None = None
        self._pending = 0
        self._listeners: list[Callable[[], None]] = []

    # ── Derived values ──

    @property
    def user(self) -> Identity | None:
        return self._identity

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def is_authenticated(self) -> bool:
        return self._identity is not None

    @property
    def is_loading(self) -> bool:
        return self._pending > 0

    # ── Listeners ──

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Register a change listener; returns the matching unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    def _begin_loading(self) -> None:
        self._pending += 1
        if self._pending == 1:
            self._notify()

    def _end_loading(self) -> None:
        self._pending -= 1
        if self._pending == 0:
            self._notify()

    def _set_session(self, identity: Identity | None, token: str | None) -> None:
        if (identity is None) != (token is None):
            raise ValueError("identity and token must be set or cleared together")
        changed = identity != self._identity or token != self._token
        self._identity, self._token = identity, token
        if changed:
            self._notify()

    # ── Lifecycle ──

    async def restore(self) -> None:
        """
        Rehydrate the session from persisted state.

        Both artifacts present and parsable → authenticated. Exactly one of
        them present, or an unparsable Identity → treated as corruption:
        both are cleared and the session is unauthenticated. Neither present
        → unauthenticated. Never raises for bad persisted data.
        """
        self._begin_loading()
        try:
            try:
                identity_json, token = await self.storage.read(self.session_id)
            except SessionStorageError as exc:
                logger.warning("Session restore failed, continuing unauthenticated: %s", exc)
                self._set_session(None, None)
                return

            if not identity_json and not token:
                self._set_session(None, None)
                return

            if not identity_json or not token:
                await self._discard_corrupt("identity and token are not both present")
                return

            try:
                identity = Identity.from_json(identity_json)
            except IdentityParseError as exc:
                await self._discard_corrupt(f"unparsable identity ({exc.__class__.__name__})")
                return

            self._set_session(identity, token)
        finally:
            self._end_loading()

    async def login(self, username: str, password: str) -> LoginResult:
        """
        Verify credentials with the data source and establish a session.

        On any failure the current state is left untouched and a
        user-facing message is returned. On success the session id is
        rotated, both artifacts are persisted, then Identity and token are
        set together.
        """
        self._begin_loading()
        try:
            try:
                result = await self.data_source.authenticate(username, password)
                if not result.token:
                    raise TransportError("authentication response carried no token")
                identity = Identity.from_profile(result.profile)
            except CredentialError:
                logger.info("Login rejected for %r", username)
                logins_total.labels(outcome="invalid_credentials").inc()
                return LoginResult(False, MSG_INVALID_CREDENTIALS, error=ERR_INVALID_CREDENTIALS)
            except (TransportError, IdentityParseError) as exc:
                logger.warning("Login failed for %r: %s", username, exc)
                logins_total.labels(outcome="error").inc()
                return LoginResult(False, MSG_LOGIN_FAILED, error=ERR_UNAVAILABLE)

            previous_session_id = self.session_id
            session_id = new_session_id()
            try:
                await self.storage.write(session_id, identity.to_json(), result.token)
            except SessionStorageError as exc:
                logger.warning("Login failed for %r, session not persisted: %s", username, exc)
                logins_total.labels(outcome="error").inc()
                return LoginResult(False, MSG_LOGIN_FAILED, error=ERR_UNAVAILABLE)

            self.session_id = session_id
            self._set_session(identity, result.token)
            await self._clear_persisted(previous_session_id)

            logger.info("Login: %s (%s)", identity.username, identity.role.value)
            logins_total.labels(outcome="success").inc()
            return LoginResult(True, MSG_LOGGED_IN, identity)
        finally:
            self._end_loading()

    async def logout(self) -> None:
        """Best-effort notify the data source, then always clear local and persisted state."""
        token = self._token
        try:
            if token:
                try:
                    await self.data_source.invalidate_session(token)
                except DataSourceError as exc:
                    logger.info("Logout notification failed, clearing locally: %s", exc)
        finally:
            self._set_session(None, None)
            await self._clear_persisted(self.session_id)

    async def expire(self) -> None:
        """Drop a session whose token the data source no longer accepts."""
        self._set_session(None, None)
        await self._clear_persisted(self.session_id)

    # ── Internals ──

    async def _discard_corrupt(self, reason: str) -> None:
        logger.warning("Discarding corrupt persisted session: %s", reason)
        session_corruption_total.inc()
        self._set_session(None, None)
        await self._clear_persisted(self.session_id)

    async def _clear_persisted(self, session_id: str) -> None:
        try:
            await self.storage.clear(session_id)
        except SessionStorageError as exc:
            logger.warning("Could not clear persisted session: %s", exc)
