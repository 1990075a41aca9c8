# src/taskboard_client/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..auth.authenticator import Authenticator
from ..auth.session_store import SessionStore
from ..projects.project_store import ProjectStore
from ..remote.gateway import RemoteGateway
from ..tasks.task_store import TaskStore
from ..users.user_store import UserStore


@dataclass
class AppState:
    """Everything a view needs. The view never talks to the gateway directly."""

    settings: Any

    session: SessionStore
    gateway: RemoteGateway
    auth: Authenticator

    projects: ProjectStore
    tasks: TaskStore
    users: UserStore

    async def aclose(self) -> None:
        await self.gateway.aclose()
