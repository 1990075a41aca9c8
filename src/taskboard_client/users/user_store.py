# src/taskboard_client/users/user_store.py

from __future__ import annotations

import logging

from ..auth.session_models import Role
from ..core.entity_store import EntityStore
from ..core.errors import ClientValidationError
from ..core.lifecycle import Err, OperationResult, OperationSpec
from .user_models import User

logger = logging.getLogger(__name__)


def _coerce_role(role: Role | str | None) -> Role | None:
    if role is None or role == "":
        return None
    if isinstance(role, Role):
        return role
    parsed = Role.from_wire(role)
    if parsed is None:
        raise ClientValidationError(f"Unknown role: {role}")
    return parsed


class UserStore(EntityStore[User]):
    """
    Accounts for user / role management.

    The server models account creation and role assignment as two calls, and its
    only account update is the role endpoint: `edit` can change the role, nothing else.
    """

    OPERATIONS: dict[str, OperationSpec] = {
        "fetch": OperationSpec("users/fetch"),
        "create": OperationSpec("users/create"),
        "assign_role": OperationSpec("users/assign_role"),
        "delete": OperationSpec("users/delete"),
    }

    async def fetch(self) -> OperationResult:
        async def call() -> list[User]:
            rows = await self._gateway.request("GET", "/users")
            return [User.from_payload(r) for r in rows or []]

        return await self._run(self.OPERATIONS["fetch"], call, apply=self._replace_all)

    async def create(self, name: str, email: str, role: Role | str | None = None) -> OperationResult:
        """
        Create the account, then assign `role` if one is given.

        The created account is appended as soon as the first call succeeds. If the
        role call then fails, that failure is returned and the account stays listed.
        """
        spec = self.OPERATIONS["create"]
        if not (name or "").strip() or not (email or "").strip():
            return self._fail_fast(spec, ClientValidationError("Name and email are required"))
        try:
            wanted = _coerce_role(role)
        except ClientValidationError as exc:
            return self._fail_fast(spec, exc)

        async def call() -> User:
            return User.from_payload(
                await self._gateway.request("POST", "/users", json={"name": name.strip(), "email": email.strip()})
            )

        created = await self._run(spec, call, apply=self._append)
        if isinstance(created, Err) or wanted is None:
            return created
        return await self._assign_role(created.payload.id, wanted)

    async def edit(self, user_id: int, role: Role | str | None) -> OperationResult:
        """Role-only edit. A missing role fails before any request is sent."""
        spec = self.OPERATIONS["assign_role"]
        try:
            wanted = _coerce_role(role)
        except ClientValidationError as exc:
            return self._fail_fast(spec, exc)
        if wanted is None:
            return self._fail_fast(spec, ClientValidationError("Role is required to update"))
        return await self._assign_role(user_id, wanted)

    async def _assign_role(self, user_id: int, role: Role) -> OperationResult:
        async def call() -> User:
            return User.from_payload(
                await self._gateway.request("PUT", f"/users/{int(user_id)}/role", params={"role": role.value.upper()})
            )

        return await self._run(self.OPERATIONS["assign_role"], call, apply=self._splice)

    async def delete(self, user_id: int) -> OperationResult:
        async def call() -> int:
            await self._gateway.request("DELETE", f"/users/{int(user_id)}")
            return int(user_id)

        return await self._run(self.OPERATIONS["delete"], call, apply=self._remove)
