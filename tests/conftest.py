# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest
import pytest_asyncio

from taskboard_client.auth.session_storage import InMemoryStorage
from taskboard_client.auth.session_store import SessionStore
from taskboard_client.cli.bootstrap import create_initial_state
from taskboard_client.core.state import AppState
from taskboard_client.remote.gateway import RemoteGateway

from .fakes import FakeApi


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and the gateway.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the developer's environment / .env.
    """
    return SimpleNamespace(
        app_name="taskboard-test",
        log_level="DEBUG",
        api_base_url="http://testserver",
        api_prefix="/api",
        request_timeout_seconds=5.0,
        data_dir=tmp_path,
        session_path=tmp_path / "session.json",
        persist_session=False,
    )


@pytest.fixture()
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture()
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture()
def session(storage: InMemoryStorage) -> SessionStore:
    return SessionStore(storage)


@pytest_asyncio.fixture()
async def gateway(api: FakeApi, session: SessionStore):
    gw = RemoteGateway("http://testserver", api_prefix="/api", transport=api.transport())
    gw.set_credential_provider(session.credential_provider)
    yield gw
    await gw.aclose()


@pytest_asyncio.fixture()
async def state(settings: SimpleNamespace, storage: InMemoryStorage, api: FakeApi):
    """
    AppState wired exactly like production, except for the transport and storage.
    """
    app: AppState = create_initial_state(settings=settings, storage=storage, transport=api.transport())
    yield app
    await app.aclose()
