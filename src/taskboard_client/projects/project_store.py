# src/taskboard_client/projects/project_store.py

from __future__ import annotations

import logging
from typing import Any

from ..auth.gate import ProjectScope, project_scope
from ..core.entity_store import EntityStore
from ..core.errors import ClientValidationError
from ..core.lifecycle import OperationResult, OperationSpec, RefreshScope
from .project_models import Project, ProjectDraft

logger = logging.getLogger(__name__)


class ProjectStore(EntityStore[Project]):
    """
    Projects visible to the current session.

    Every mutation is applied only after the server confirms it.
    """

    OPERATIONS: dict[str, OperationSpec] = {
        "fetch_all": OperationSpec("projects/fetch_all"),
        "fetch_owned": OperationSpec("projects/fetch_owned"),
        "fetch_one": OperationSpec("projects/fetch_one"),
        "create": OperationSpec("projects/create"),
        "edit": OperationSpec("projects/edit"),
        "delete": OperationSpec("projects/delete"),
        "assign_user": OperationSpec("projects/assign_user", RefreshScope.RECORD),
    }

    # ---- reads ----

    async def fetch_all(self) -> OperationResult:
        async def call() -> list[Project]:
            rows = await self._gateway.request("GET", "/projects")
            return [Project.from_payload(r) for r in rows or []]

        return await self._run(self.OPERATIONS["fetch_all"], call, apply=self._replace_all)

    async def fetch_owned(self, user_id: int) -> OperationResult:
        async def call() -> list[Project]:
            rows = await self._gateway.request("GET", f"/projects/user/{int(user_id)}")
            return [Project.from_payload(r) for r in rows or []]

        return await self._run(self.OPERATIONS["fetch_owned"], call, apply=self._replace_all)

    async def fetch_visible(self) -> OperationResult:
        """
        List the projects this session may see: all for ADMIN, owned otherwise.

        The scope is recomputed from the session's roles on every call.
        """
        scope = project_scope(self._session.roles)
        if scope is ProjectScope.ALL:
            return await self.fetch_all()

        identity = self._session.identity
        if identity is None:
            return self._fail_fast(
                self.OPERATIONS["fetch_owned"], ClientValidationError("Not logged in")
            )
        return await self.fetch_owned(identity.id)

    async def fetch_one(self, project_id: int) -> OperationResult:
        async def call() -> Project:
            return Project.from_payload(await self._gateway.request("GET", f"/projects/{int(project_id)}"))

        return await self._run(self.OPERATIONS["fetch_one"], call, apply=self._splice)

    # ---- mutations ----

    async def create(self, draft: ProjectDraft) -> OperationResult:
        if not draft.name.strip():
            return self._fail_fast(self.OPERATIONS["create"], ClientValidationError("Project name is required"))

        async def call() -> Project:
            return Project.from_payload(await self._gateway.request("POST", "/projects", json=draft.to_payload()))

        return await self._run(self.OPERATIONS["create"], call, apply=self._append)

    async def edit(self, project_id: int, draft: ProjectDraft) -> OperationResult:
        async def call() -> Project:
            return Project.from_payload(
                await self._gateway.request("PUT", f"/projects/{int(project_id)}", json=draft.to_payload())
            )

        return await self._run(self.OPERATIONS["edit"], call, apply=self._splice)

    async def delete(self, project_id: int) -> OperationResult:
        async def call() -> int:
            await self._gateway.request("DELETE", f"/projects/{int(project_id)}")
            return int(project_id)

        return await self._run(self.OPERATIONS["delete"], call, apply=self._remove)

    async def assign_user(self, project_id: int, user_id: int) -> OperationResult:
        """Assign, then re-read the project so denormalized fields are current."""

        async def call() -> int:
            await self._gateway.request("POST", f"/projects/{int(project_id)}/assign/{int(user_id)}")
            return int(project_id)

        async def refresh(pid: Any) -> OperationResult:
            return await self.fetch_one(int(pid))

        return await self._run(self.OPERATIONS["assign_user"], call, refresh=refresh)
