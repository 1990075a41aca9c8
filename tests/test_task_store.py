# tests/test_task_store.py

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from taskboard_client.core.errors import ClientValidationError, InvalidStatusTransition, RemoteError
from taskboard_client.core.lifecycle import Err, Ok, RefreshScope
from taskboard_client.core.state import AppState
from taskboard_client.tasks.task_models import NewTask, TaskStatus, TaskUpdate
from taskboard_client.tasks.task_store import TaskStore

from .fakes import FakeApi, login_payload, task_payload


async def _load_project_tasks(state: AppState, api: FakeApi, *tasks: dict) -> None:
    api.on("GET", "/api/tasks/3", json_body=list(tasks))
    result = await state.tasks.fetch_project_tasks(3)
    assert isinstance(result, Ok)


def test_refresh_scopes_are_declared_per_operation() -> None:
    ops = TaskStore.OPERATIONS
    assert ops["create"].refresh is RefreshScope.COLLECTION
    assert ops["delete"].refresh is RefreshScope.COLLECTION
    assert ops["update"].refresh is RefreshScope.NONE
    assert ops["update_status"].refresh is RefreshScope.NONE


@pytest.mark.asyncio
async def test_read_only_user_only_requests_personal_scope(state: AppState, api: FakeApi) -> None:
    state.session.complete_login(login_payload(user_id=7, readonly=True))
    api.on("GET", "/api/tasks/owner/7", json_body=[task_payload(1)])
    api.on("GET", "/api/tasks/3", json_body=[task_payload(99)])

    await state.tasks.fetch_visible(project_id=3)

    assert api.calls() == [("GET", "/api/tasks/owner/7")]
    assert [t.id for t in state.tasks.items] == [1]


@pytest.mark.asyncio
async def test_project_manager_requests_project_scope(state: AppState, api: FakeApi) -> None:
    state.session.complete_login(login_payload(user_id=7, creator=True))
    api.on("GET", "/api/tasks/3", json_body=[task_payload(1), task_payload(2)])

    await state.tasks.fetch_visible(project_id=3)

    assert api.calls() == [("GET", "/api/tasks/3")]
    assert len(state.tasks.items) == 2


@pytest.mark.asyncio
async def test_project_scope_requires_project_id(state: AppState, api: FakeApi) -> None:
    state.session.complete_login(login_payload(admin=True))
    result = await state.tasks.fetch_visible()
    assert isinstance(result, Err)
    assert isinstance(result.error, ClientValidationError)
    assert api.requests == []


@pytest.mark.asyncio
async def test_create_appends_not_started_and_refreshes_project(state: AppState, api: FakeApi) -> None:
    state.session.complete_login(login_payload(user_id=7, creator=True))
    api.on("POST", "/api/tasks", json_body=task_payload(10, description="x"))
    api.on("GET", "/api/tasks/3", json_body=[task_payload(10, description="x", ownerName="Ann K.")])

    result = await state.tasks.create(NewTask(description="x", project_id=3, owner_id=7, assignee_id=None))

    assert isinstance(result, Ok)
    assert result.payload.status is TaskStatus.NOT_STARTED
    assert api.calls() == [("POST", "/api/tasks"), ("GET", "/api/tasks/3")]
    assert api.requests[0].headers["Authorization"] == "Bearer t1"
    assert [t.id for t in state.tasks.items] == [10]
    assert state.tasks.items[0].owner_name == "Ann K."


@pytest.mark.asyncio
async def test_create_body_shape(state: AppState, api: FakeApi) -> None:
    state.session.complete_login(login_payload(user_id=7, creator=True))
    api.on("POST", "/api/tasks", json_body=task_payload(10))
    api.on("GET", "/api/tasks/3", json_body=[task_payload(10)])

    await state.tasks.create(NewTask(description="x", project_id=3, owner_id=7, assignee_id=None))

    assert api.requests[0].method == "POST"
    assert json.loads(api.requests[0].content) == {
        "description": "x",
        "dueDate": None,
        "projectId": 3,
        "ownerId": 7,
        "assigneeId": None,
    }


@pytest.mark.asyncio
async def test_status_update_success_splices_server_record(state: AppState, api: FakeApi) -> None:
    state.session.complete_login(login_payload(user_id=7, creator=True))
    await _load_project_tasks(state, api, task_payload(9), task_payload(10), task_payload(11))
    api.on("PUT", "/api/tasks/update-status", json_body=task_payload(10, status="IN_PROGRESS"))

    result = await state.tasks.update_status(10, 7, 3, TaskStatus.IN_PROGRESS)

    assert isinstance(result, Ok)
    assert api.last_json() == {"taskId": 10, "userId": 7, "projectId": 3, "status": "IN_PROGRESS"}
    assert [t.id for t in state.tasks.items] == [9, 10, 11]
    assert state.tasks.items[1].status is TaskStatus.IN_PROGRESS
    # No follow-up fetch for status updates.
    assert api.calls()[-1] == ("PUT", "/api/tasks/update-status")


@pytest.mark.asyncio
async def test_status_update_failure_leaves_record(state: AppState, api: FakeApi) -> None:
    state.session.complete_login(login_payload(user_id=7, creator=True))
    await _load_project_tasks(state, api, task_payload(10))
    api.on("PUT", "/api/tasks/update-status", status=500, json_body={"message": "db down"})

    result = await state.tasks.update_status(10, 7, 3, TaskStatus.IN_PROGRESS)

    assert isinstance(result, Err)
    assert isinstance(result.error, RemoteError)
    assert state.tasks.error == "db down"
    assert state.tasks.items[0].status is TaskStatus.NOT_STARTED
    with pytest.raises(RemoteError):
        result.unwrap()


@pytest.mark.asyncio
async def test_completed_task_cannot_move_back(state: AppState, api: FakeApi) -> None:
    state.session.complete_login(login_payload(user_id=7, creator=True))
    await _load_project_tasks(state, api, task_payload(10, status="COMPLETED"))
    sent_before = len(api.requests)

    result = await state.tasks.update_status(10, 7, 3, TaskStatus.IN_PROGRESS)

    assert isinstance(result, Err)
    assert isinstance(result.error, InvalidStatusTransition)
    assert len(api.requests) == sent_before
    assert state.tasks.items[0].status is TaskStatus.COMPLETED


@pytest.mark.asyncio
async def test_same_status_is_not_a_forward_move(state: AppState, api: FakeApi) -> None:
    state.session.complete_login(login_payload(user_id=7, creator=True))
    await _load_project_tasks(state, api, task_payload(10, status="IN_PROGRESS"))

    result = await state.tasks.update_status(10, 7, 3, TaskStatus.IN_PROGRESS)

    assert isinstance(result, Err)
    assert isinstance(result.error, InvalidStatusTransition)


@pytest.mark.asyncio
async def test_general_update_may_move_status_backwards(state: AppState, api: FakeApi) -> None:
    state.session.complete_login(login_payload(user_id=7, admin=True))
    await _load_project_tasks(state, api, task_payload(10, status="COMPLETED"))
    api.on("PUT", "/api/tasks/10", json_body=task_payload(10, status="IN_PROGRESS", description="redo"))

    result = await state.tasks.update(10, TaskUpdate(description="redo", status=TaskStatus.IN_PROGRESS))

    assert isinstance(result, Ok)
    assert api.last_json() == {"description": "redo", "dueDate": None, "assigneeId": None, "status": "IN_PROGRESS"}
    assert state.tasks.items[0].status is TaskStatus.IN_PROGRESS
    assert state.tasks.items[0].description == "redo"


@pytest.mark.asyncio
async def test_delete_for_read_only_user_refreshes_personal_list(state: AppState, api: FakeApi) -> None:
    state.session.complete_login(login_payload(user_id=7, readonly=True))
    api.on("GET", "/api/tasks/owner/7", json_body=[task_payload(1), task_payload(2)])
    await state.tasks.fetch_visible()

    api.on("DELETE", "/api/tasks/1", status=204)
    api.on("GET", "/api/tasks/owner/7", json_body=[task_payload(2)])
    result = await state.tasks.delete(1)

    assert isinstance(result, Ok)
    assert api.calls()[-2:] == [("DELETE", "/api/tasks/1"), ("GET", "/api/tasks/owner/7")]
    assert all(path != "/api/tasks/3" for _, path in api.calls())
    assert [t.id for t in state.tasks.items] == [2]


@pytest.mark.asyncio
async def test_failed_delete_does_not_refresh(state: AppState, api: FakeApi) -> None:
    state.session.complete_login(login_payload(user_id=7, creator=True))
    await _load_project_tasks(state, api, task_payload(1))
    api.on("DELETE", "/api/tasks/1", status=403)

    result = await state.tasks.delete(1)

    assert isinstance(result, Err)
    assert api.calls()[-1] == ("DELETE", "/api/tasks/1")
    assert [t.id for t in state.tasks.items] == [1]


@pytest.mark.asyncio
async def test_loading_tracks_any_in_flight_operation(state: AppState, api: FakeApi) -> None:
    state.session.complete_login(login_payload(user_id=7, creator=True))
    release = asyncio.Event()

    async def slow(_request: httpx.Request) -> httpx.Response:
        await release.wait()
        return httpx.Response(200, json=[task_payload(1)])

    api.on("GET", "/api/tasks/3", handler=slow)
    api.on("GET", "/api/tasks/4", handler=slow)

    first = asyncio.create_task(state.tasks.fetch_project_tasks(3))
    second = asyncio.create_task(state.tasks.fetch_project_tasks(4))
    await asyncio.sleep(0.01)
    assert state.tasks.loading is True

    release.set()
    await asyncio.gather(first, second)

    assert state.tasks.loading is False
    assert state.tasks.error is None


@pytest.mark.asyncio
async def test_crashed_operation_does_not_stay_loading(state: AppState, api: FakeApi) -> None:
    state.session.complete_login(login_payload(user_id=7, creator=True))

    def crash(_request: httpx.Request) -> httpx.Response:
        raise RuntimeError("handler bug")

    api.on("GET", "/api/tasks/3", handler=crash)

    with pytest.raises(RuntimeError):
        await state.tasks.fetch_project_tasks(3)

    assert state.tasks.loading is False


@pytest.mark.asyncio
async def test_cancelled_operation_does_not_stay_loading(state: AppState, api: FakeApi) -> None:
    state.session.complete_login(login_payload(user_id=7, creator=True))
    never = asyncio.Event()

    async def hang(_request: httpx.Request) -> httpx.Response:
        await never.wait()
        return httpx.Response(200, json=[])

    api.on("GET", "/api/tasks/3", handler=hang)

    pending = asyncio.create_task(state.tasks.fetch_project_tasks(3))
    await asyncio.sleep(0.01)
    assert state.tasks.loading is True

    pending.cancel()
    with pytest.raises(asyncio.CancelledError):
        await pending

    assert state.tasks.loading is False
