# src/taskboard_client/users/user_models.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..auth.session_models import Role


@dataclass(slots=True)
class User:
    """
    An account as seen by user management.

    `role` is a single value here, while a session holds a *set* of roles. The two
    shapes are kept separate on purpose; see DESIGN.md.
    """

    id: int
    name: str
    email: str
    role: Role | None = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> User:
        return cls(
            id=int(data["id"]),
            name=str(data.get("name") or ""),
            email=str(data.get("email") or ""),
            role=Role.from_wire(data.get("role")),
        )
