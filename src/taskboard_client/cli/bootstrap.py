# src/taskboard_client/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- builds the gateway first and the session second, then binds the gateway's
  credential provider to the session (late binding, no construction cycle),
- rehydrates a stored session and wires the entity stores into AppState.
"""

from __future__ import annotations

import logging

import httpx

from ..auth.authenticator import Authenticator
from ..auth.session_storage import InMemoryStorage, JsonFileStorage
from ..auth.session_store import SessionStore
from ..config import get_settings
from ..core.ports import KeyValueStorage
from ..core.state import AppState
from ..projects.project_store import ProjectStore
from ..remote.gateway import RemoteGateway
from ..tasks.task_store import TaskStore
from ..users.user_store import UserStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.session_path.parent.mkdir(parents=True, exist_ok=True)


def _build_storage(settings) -> KeyValueStorage:
    if getattr(settings, "persist_session", True):
        return JsonFileStorage(settings.session_path)
    return InMemoryStorage()


def create_initial_state(
        *,
        settings=None,
        storage: KeyValueStorage | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings, storage and transport injectable makes the app easy to test.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    if storage is None:
        _ensure_local_dirs(settings)
        storage = _build_storage(settings)

    gateway = RemoteGateway(
        settings.api_base_url,
        api_prefix=settings.api_prefix,
        timeout_seconds=settings.request_timeout_seconds,
        transport=transport,
    )

    session = SessionStore(storage)
    gateway.set_credential_provider(session.credential_provider)
    session.restore()

    state = AppState(
        settings=settings,
        session=session,
        gateway=gateway,
        auth=Authenticator(gateway, session),
        projects=ProjectStore(gateway, session),
        tasks=TaskStore(gateway, session),
        users=UserStore(gateway, session),
    )
    logger.debug("AppState ready api=%s%s", settings.api_base_url, settings.api_prefix)
    return state
