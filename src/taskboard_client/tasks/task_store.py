# src/taskboard_client/tasks/task_store.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..auth.gate import TaskScope, task_scope
from ..core.entity_store import EntityStore
from ..core.errors import ClientValidationError, InvalidStatusTransition
from ..core.lifecycle import OperationResult, OperationSpec, RefreshScope
from .task_models import NewTask, Task, TaskStatus, TaskUpdate

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ScopeKey:
    """Which slice of tasks the collection currently holds."""

    scope: TaskScope
    key: int  # user id for OWNER, project id for PROJECT


class TaskStore(EntityStore[Task]):
    """
    Tasks for either one project (admin / task creator) or one user (read-only).

    Refresh rules:
    - create / delete: apply locally, then re-fetch the owning scope so server-computed
      names (owner, assignee) are fresh
    - update / update_status: the response is the full record, spliced in place
    - status never changes locally before the server confirms it
    """

    OPERATIONS: dict[str, OperationSpec] = {
        "fetch_owner": OperationSpec("tasks/fetch_owner"),
        "fetch_project": OperationSpec("tasks/fetch_project"),
        "create": OperationSpec("tasks/create", RefreshScope.COLLECTION),
        "update": OperationSpec("tasks/update"),
        "update_status": OperationSpec("tasks/update_status"),
        "delete": OperationSpec("tasks/delete", RefreshScope.COLLECTION),
    }

    def __init__(self, gateway, session) -> None:
        super().__init__(gateway, session)
        self.scope: ScopeKey | None = None

    # ---- reads ----

    async def fetch_owner_tasks(self, user_id: int) -> OperationResult:
        """Personal scope: tasks visible to / assigned to this user."""

        async def call() -> list[Task]:
            rows = await self._gateway.request("GET", f"/tasks/owner/{int(user_id)}")
            return [Task.from_payload(r) for r in rows or []]

        def apply(tasks: list[Task]) -> None:
            self._replace_all(tasks)
            self.scope = ScopeKey(TaskScope.OWNER, int(user_id))

        return await self._run(self.OPERATIONS["fetch_owner"], call, apply=apply)

    async def fetch_project_tasks(self, project_id: int) -> OperationResult:
        async def call() -> list[Task]:
            rows = await self._gateway.request("GET", f"/tasks/{int(project_id)}")
            return [Task.from_payload(r) for r in rows or []]

        def apply(tasks: list[Task]) -> None:
            self._replace_all(tasks)
            self.scope = ScopeKey(TaskScope.PROJECT, int(project_id))

        return await self._run(self.OPERATIONS["fetch_project"], call, apply=apply)

    async def fetch_visible(self, project_id: int | None = None) -> OperationResult:
        """
        Fetch the scope this session is entitled to.

        A READ_ONLY_USER session always gets its personal list, even when a project id
        is supplied; other sessions need a project id.
        """
        scope = task_scope(self._session.roles)
        if scope is TaskScope.OWNER:
            identity = self._session.identity
            if identity is None:
                return self._fail_fast(self.OPERATIONS["fetch_owner"], ClientValidationError("Not logged in"))
            return await self.fetch_owner_tasks(identity.id)

        if project_id is None:
            return self._fail_fast(
                self.OPERATIONS["fetch_project"], ClientValidationError("A project id is required")
            )
        return await self.fetch_project_tasks(project_id)

    async def _refresh_owning_scope(self, project_id: int | None) -> OperationResult | None:
        if project_id is None and self.scope is not None and self.scope.scope is TaskScope.PROJECT:
            project_id = self.scope.key
        if project_id is None and task_scope(self._session.roles) is TaskScope.PROJECT:
            logger.debug("No project scope to refresh; keeping local collection")
            return None
        return await self.fetch_visible(project_id)

    # ---- mutations ----

    async def create(self, new_task: NewTask) -> OperationResult:
        if not new_task.description.strip():
            return self._fail_fast(self.OPERATIONS["create"], ClientValidationError("Description is required"))

        async def call() -> Task:
            return Task.from_payload(await self._gateway.request("POST", "/tasks", json=new_task.to_payload()))

        async def refresh(created: Any) -> OperationResult | None:
            return await self._refresh_owning_scope(created.project_id)

        return await self._run(self.OPERATIONS["create"], call, apply=self._append, refresh=refresh)

    async def update(self, task_id: int, update: TaskUpdate) -> OperationResult:
        async def call() -> Task:
            return Task.from_payload(
                await self._gateway.request("PUT", f"/tasks/{int(task_id)}", json=update.to_payload())
            )

        return await self._run(self.OPERATIONS["update"], call, apply=self._splice)

    async def update_status(
            self,
            task_id: int,
            actor_id: int,
            project_id: int,
            target_status: TaskStatus,
    ) -> OperationResult:
        """
        Forward-only status change.

        A backward or same-status move of a cached task is rejected before any request.
        Uncached tasks are sent as-is and the server decides.
        """
        spec = self.OPERATIONS["update_status"]
        target_status = TaskStatus(target_status)
        cached = self.get(int(task_id))
        if cached is not None and not cached.status.can_advance_to(target_status):
            return self._fail_fast(spec, InvalidStatusTransition(int(task_id), cached.status, target_status))

        async def call() -> Task:
            body = {
                "taskId": int(task_id),
                "userId": int(actor_id),
                "projectId": int(project_id),
                "status": target_status.value,
            }
            return Task.from_payload(await self._gateway.request("PUT", "/tasks/update-status", json=body))

        return await self._run(spec, call, apply=self._splice)

    async def delete(self, task_id: int) -> OperationResult:
        cached = self.get(int(task_id))
        project_id = cached.project_id if cached is not None else None

        async def call() -> int:
            await self._gateway.request("DELETE", f"/tasks/{int(task_id)}")
            return int(task_id)

        async def refresh(_deleted: Any) -> OperationResult | None:
            return await self._refresh_owning_scope(project_id)

        return await self._run(self.OPERATIONS["delete"], call, apply=self._remove, refresh=refresh)
