# tests/test_authenticator.py

from __future__ import annotations

import pytest

from taskboard_client.auth.session_models import ANONYMOUS_SESSION, Role, SessionPhase
from taskboard_client.cli.bootstrap import create_initial_state
from taskboard_client.core.errors import AuthenticationError, ClientValidationError
from taskboard_client.core.state import AppState

from .fakes import FakeApi, FlakyStorage, login_payload


@pytest.mark.asyncio
async def test_email_login_completes_session(state: AppState, api: FakeApi, storage) -> None:
    api.on("POST", "/auth/login", json_body=login_payload(user_id=7, name="Ann", jwt="t1", creator=True))

    snap = await state.auth.login_with_email("ann@example.com")

    assert snap.roles == frozenset({Role.TASK_CREATOR})
    assert state.session.phase is SessionPhase.AUTHENTICATED
    assert storage.get_item("token") == "t1"
    request = api.requests[-1]
    assert request.url.params["email"] == "ann@example.com"
    assert "Authorization" not in request.headers


@pytest.mark.asyncio
async def test_google_login_posts_token(state: AppState, api: FakeApi) -> None:
    api.on("POST", "/auth/google", json_body=login_payload(admin=True))

    await state.auth.login_with_google("google-id-token")

    assert api.last_json() == {"token": "google-id-token"}
    assert state.session.roles == frozenset({Role.ADMIN})


@pytest.mark.asyncio
async def test_rejected_login_raises_and_keeps_anonymous(state: AppState, api: FakeApi, storage) -> None:
    api.on("POST", "/auth/login", json_body={"isError": True})

    with pytest.raises(AuthenticationError):
        await state.auth.login_with_email("nobody@example.com")

    assert state.session.snapshot == ANONYMOUS_SESSION
    assert storage.get_item("token") is None


@pytest.mark.asyncio
async def test_server_error_during_login_keeps_previous_session(state: AppState, api: FakeApi) -> None:
    state.session.complete_login(login_payload(readonly=True))
    before = state.session.snapshot
    api.on("POST", "/auth/google", status=502)

    with pytest.raises(AuthenticationError):
        await state.auth.login_with_google("tok")

    assert state.session.snapshot == before


@pytest.mark.asyncio
async def test_blank_email_fails_before_network(state: AppState, api: FakeApi) -> None:
    with pytest.raises(ClientValidationError):
        await state.auth.login_with_email("   ")
    assert api.requests == []


@pytest.mark.asyncio
async def test_unwritable_storage_fails_login_cleanly(settings, api: FakeApi) -> None:
    storage = FlakyStorage(fail_on_write=1)
    app = create_initial_state(settings=settings, storage=storage, transport=api.transport())
    api.on("POST", "/auth/login", json_body=login_payload(admin=True))
    try:
        with pytest.raises(AuthenticationError):
            await app.auth.login_with_email("ann@example.com")
    finally:
        await app.aclose()

    assert app.session.phase is SessionPhase.ANONYMOUS
    assert storage.snapshot() == {}
