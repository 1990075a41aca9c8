# src/taskboard_client/auth/session_models.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class Role(StrEnum):
    ADMIN = "ADMIN"
    TASK_CREATOR = "TASK_CREATOR"
    READ_ONLY_USER = "READ_ONLY_USER"

    @classmethod
    def from_wire(cls, raw: str | None) -> Role | None:
        """Decode a server role string. Unknown values map to None rather than failing."""
        if not raw:
            return None
        try:
            return cls(str(raw).strip().upper())
        except ValueError:
            return None


class SessionPhase(StrEnum):
    """
    ANONYMOUS -> AUTHENTICATING -> AUTHENTICATED, and AUTHENTICATED -> ANONYMOUS.

    AUTHENTICATING is never persisted: a restart only observes the other two.
    """

    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True, slots=True)
class Identity:
    id: int
    display_name: str


@dataclass(frozen=True, slots=True)
class LoginResponse:
    """Body returned by /auth/google and /auth/login."""

    user_id: int
    name: str
    jwt: str
    is_admin: bool = False
    is_task_creator: bool = False
    readonly: bool = False
    is_error: bool = False

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> LoginResponse:
        if bool(data.get("isError", False)):
            # Rejected logins may omit every other field.
            return cls(user_id=0, name="", jwt="", is_error=True)
        return cls(
            user_id=int(data["userId"]),
            name=str(data.get("name") or ""),
            jwt=str(data["jwt"]),
            is_admin=bool(data.get("isAdmin", False)),
            is_task_creator=bool(data.get("isTaskCreator", False)),
            readonly=bool(data.get("readonly", False)),
        )

    def roles(self) -> frozenset[Role]:
        """Each flag is tested independently: the result is a union, not a choice."""
        out: set[Role] = set()
        if self.is_admin:
            out.add(Role.ADMIN)
        if self.is_task_creator:
            out.add(Role.TASK_CREATOR)
        if self.readonly:
            out.add(Role.READ_ONLY_USER)
        return frozenset(out)


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    identity: Identity | None = None
    credential: str | None = None
    roles: frozenset[Role] = field(default_factory=frozenset)
    phase: SessionPhase = SessionPhase.ANONYMOUS

    @property
    def authenticated(self) -> bool:
        return self.identity is not None


ANONYMOUS_SESSION = SessionSnapshot()
