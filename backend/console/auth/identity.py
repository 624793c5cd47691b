"""
Identity — the logged-in actor as the console sees it.

Claims come from the profile returned by the data source at login, never
from the token. The token itself is kept next to the Identity by the
SessionStore, not inside it.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from console.auth.roles import Role


class IdentityParseError(ValueError):
    """A profile or persisted Identity could not be turned into an Identity."""


class Identity(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    role: Role
    branch_id: int | None = None
    display_name: str = ""
    branch_name: str | None = None

    @model_validator(mode="after")
    def _branch_scope_matches_role(self):
        if self.role == Role.BRANCH_ADMIN and self.branch_id is None:
            raise ValueError("branch admin identity requires a branch_id")
        if self.role == Role.SUPER_ADMIN and self.branch_id is not None:
            raise ValueError("superadmin identity must not be scoped to a branch")
        return self

    @property
    def is_scoped(self) -> bool:
        return self.branch_id is not None

    # ── (de)serialization ──

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, raw: str | bytes) -> Identity:
        try:
            return cls.model_validate_json(raw)
        except ValidationError as exc:
            raise IdentityParseError(str(exc)) from exc

    @classmethod
    def from_profile(cls, profile: dict[str, Any]) -> Identity:
        """
        Build an Identity from a data-source user profile.

        Accepts the core API shape (`user_type`, `first_name`, `last_name`,
        `branch`) as well as already-normalized keys (`role`, `branch_id`).
        """
        if not isinstance(profile, dict):
            raise IdentityParseError("profile must be an object")

        role_value = profile.get("role", profile.get("user_type"))
        try:
            role = Role(role_value)
        except ValueError as exc:
            raise IdentityParseError(f"unknown role {role_value!r}") from exc

        branch_id = _branch_id_from_profile(profile)
        if role == Role.SUPER_ADMIN:
            branch_id = None

        branch_name = profile.get("branch_name")
        if branch_id is not None and not branch_name:
            branch_name = f"Branch {branch_id}"

        username = str(profile.get("username") or "")
        try:
            return cls(
                id=profile.get("id"),
                username=username,
                role=role,
                branch_id=branch_id,
                display_name=_display_name(profile, username),
                branch_name=branch_name if branch_id is not None else None,
            )
        except ValidationError as exc:
            raise IdentityParseError(str(exc)) from exc


def _branch_id_from_profile(profile: dict[str, Any]) -> int | None:
    raw = profile.get("branch_id", profile.get("branch"))
    if isinstance(raw, dict):
        raw = raw.get("id")
    if raw is None or isinstance(raw, bool):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise IdentityParseError(f"invalid branch id {raw!r}") from exc


def _display_name(profile: dict[str, Any], username: str) -> str:
    full_name = profile.get("full_name")
    if full_name:
        return str(full_name)
    parts = [profile.get("first_name"), profile.get("last_name")]
    joined = " ".join(str(p) for p in parts if p)
    return joined or username
