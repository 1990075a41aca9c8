# src/taskboard_client/projects/project_models.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any


def parse_date(raw: Any) -> date | None:
    """ISO date (or datetime) string -> date. Empty -> None."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, date):
        return raw
    return date.fromisoformat(str(raw)[:10])


def format_date(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass(slots=True)
class Project:
    id: int
    name: str
    description: str
    start_date: date | None
    end_date: date | None
    owner_id: int | None
    owner_name: str
    created_at: str | None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> Project:
        owner = data.get("ownerId")
        return cls(
            id=int(data["id"]),
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            start_date=parse_date(data.get("startDate")),
            end_date=parse_date(data.get("endDate")),
            owner_id=int(owner) if owner is not None else None,
            owner_name=str(data.get("ownerName") or ""),
            created_at=data.get("createdAt"),
        )


@dataclass(slots=True)
class ProjectDraft:
    """
    Body for create/edit.

    owner_id must reference a TASK_CREATOR account. The server enforces it; callers
    are expected to only offer eligible accounts.
    """

    name: str
    description: str
    owner_id: int
    start_date: date
    end_date: date | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "ownerId": self.owner_id,
            "startDate": format_date(self.start_date),
            "endDate": format_date(self.end_date),
        }
