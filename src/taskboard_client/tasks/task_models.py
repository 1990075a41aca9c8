# src/taskboard_client/tasks/task_models.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from typing import Any

from ..projects.project_models import format_date, parse_date


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    Ordering is strictly forward: NOT_STARTED -> IN_PROGRESS -> COMPLETED.
    """

    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)

    def can_advance_to(self, target: TaskStatus) -> bool:
        return target.rank > self.rank

    @classmethod
    def from_wire(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.NOT_STARTED
        return cls(str(raw).strip().upper())


_STATUS_ORDER: tuple[TaskStatus, ...] = (
    TaskStatus.NOT_STARTED,
    TaskStatus.IN_PROGRESS,
    TaskStatus.COMPLETED,
)


def _opt_int(raw: Any) -> int | None:
    return int(raw) if raw is not None else None


@dataclass(slots=True)
class Task:
    id: int
    description: str
    due_date: date | None
    status: TaskStatus
    project_id: int
    owner_id: int | None
    owner_name: str
    assignee_id: int | None = None
    assignee_name: str | None = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> Task:
        return cls(
            id=int(data["id"]),
            description=str(data.get("description") or ""),
            due_date=parse_date(data.get("dueDate")),
            status=TaskStatus.from_wire(data.get("status")),
            project_id=int(data["projectId"]),
            owner_id=_opt_int(data.get("ownerId")),
            owner_name=str(data.get("ownerName") or ""),
            assignee_id=_opt_int(data.get("assigneeId")),
            assignee_name=data.get("assigneeName"),
        )


@dataclass(slots=True)
class NewTask:
    """POST /tasks body. The server always creates tasks as NOT_STARTED."""

    description: str
    project_id: int
    owner_id: int
    due_date: date | None = None
    assignee_id: int | None = None  # must reference a READ_ONLY_USER account

    def to_payload(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "dueDate": format_date(self.due_date),
            "projectId": self.project_id,
            "ownerId": self.owner_id,
            "assigneeId": self.assignee_id or None,
        }


@dataclass(slots=True)
class TaskUpdate:
    """
    PUT /tasks/{id} body: administrative override.

    Unlike the status-update path, status here is not constrained to move forward.
    """

    description: str
    due_date: date | None = None
    assignee_id: int | None = None
    status: TaskStatus | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "dueDate": format_date(self.due_date),
            "assigneeId": self.assignee_id,
            "status": self.status.value if self.status is not None else None,
        }
