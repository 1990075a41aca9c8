# tests/test_gate.py

from __future__ import annotations

from itertools import chain, combinations

import pytest

from taskboard_client.auth.gate import (
    GuardOutcome,
    ProjectScope,
    TaskScope,
    guard,
    permit,
    project_scope,
    resolve_route,
    task_scope,
)
from taskboard_client.auth.session_models import Role
from taskboard_client.auth.session_store import SessionStore

from .fakes import login_payload


def _role_sets() -> list[frozenset[Role]]:
    roles = list(Role)
    subsets = chain.from_iterable(combinations(roles, n) for n in range(len(roles) + 1))
    return [frozenset(s) for s in subsets]


def test_permit_is_non_empty_intersection() -> None:
    for required in _role_sets():
        for current in _role_sets():
            assert permit(required, current) == bool(required & current)


def test_permit_empty_requirement_never_allows() -> None:
    assert permit(set(), set(Role)) is False


def test_guard_checks_authentication_before_roles(session: SessionStore) -> None:
    assert guard("/roles", session) is GuardOutcome.LOGIN
    assert guard("/projects/3/tasks", session) is GuardOutcome.LOGIN


def test_guard_role_mismatch_is_unauthorized(session: SessionStore) -> None:
    session.complete_login(login_payload(readonly=True))

    assert guard("/tasks", session) is GuardOutcome.ALLOW
    assert guard("/dashboard", session) is GuardOutcome.ALLOW
    assert guard("/projects", session) is GuardOutcome.UNAUTHORIZED
    assert guard("/roles", session) is GuardOutcome.UNAUTHORIZED


def test_guard_public_and_unknown_routes(session: SessionStore) -> None:
    assert guard("/login", session) is GuardOutcome.ALLOW
    assert guard("/unauthorized", session) is GuardOutcome.ALLOW
    assert resolve_route("/nope") is None
    assert guard("/nope", session) is GuardOutcome.ALLOW


def test_restored_session_without_roles_is_unauthorized(storage, session: SessionStore) -> None:
    storage.set_item("token", "t1")
    storage.set_item("userId", "7")
    storage.set_item("fullName", "Ann")
    assert session.restore() is True

    assert guard("/dashboard", session) is GuardOutcome.UNAUTHORIZED


def test_route_patterns_match_path_params() -> None:
    route = resolve_route("/projects/42/tasks")
    assert route is not None
    assert route.pattern == "/projects/{projectId}/tasks"
    assert resolve_route("/projects").pattern == "/projects"  # type: ignore[union-attr]


@pytest.mark.parametrize(
    ("roles", "expected"),
    [
        ({Role.ADMIN}, ProjectScope.ALL),
        ({Role.ADMIN, Role.TASK_CREATOR}, ProjectScope.ALL),
        ({Role.TASK_CREATOR}, ProjectScope.OWNED),
        ({Role.READ_ONLY_USER}, ProjectScope.OWNED),
        (set(), ProjectScope.OWNED),
    ],
)
def test_project_scope(roles, expected) -> None:
    assert project_scope(roles) is expected


@pytest.mark.parametrize(
    ("roles", "expected"),
    [
        ({Role.READ_ONLY_USER}, TaskScope.OWNER),
        ({Role.ADMIN, Role.READ_ONLY_USER}, TaskScope.OWNER),
        ({Role.ADMIN}, TaskScope.PROJECT),
        ({Role.TASK_CREATOR}, TaskScope.PROJECT),
    ],
)
def test_task_scope(roles, expected) -> None:
    assert task_scope(roles) is expected
