# src/taskboard_client/auth/gate.py

"""
Authorization gate.

`permit` is the single role predicate. It is used twice:
- navigation guard: may this session open a route at all?
- scope selection: which slice of a collection may a store request?
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

from ..core.ports import SessionView
from .session_models import Role

ALL_ROLES: frozenset[Role] = frozenset(Role)
PROJECT_MANAGERS: frozenset[Role] = frozenset({Role.ADMIN, Role.TASK_CREATOR})


def permit(required_roles: Iterable[Role], current_roles: Iterable[Role]) -> bool:
    """True iff the two role sets intersect."""
    return not set(required_roles).isdisjoint(current_roles)


class GuardOutcome(StrEnum):
    ALLOW = "allow"
    LOGIN = "login"
    UNAUTHORIZED = "unauthorized"


@dataclass(frozen=True, slots=True)
class Route:
    pattern: str
    required_roles: frozenset[Role] | None  # None -> public

    @property
    def public(self) -> bool:
        return self.required_roles is None

    def matches(self, path: str) -> bool:
        want = [p for p in self.pattern.split("/") if p]
        got = [p for p in path.split("?", 1)[0].split("/") if p]
        if len(want) != len(got):
            return False
        for w, g in zip(want, got):
            if w.startswith("{") and w.endswith("}"):
                continue
            if w != g:
                return False
        return True


ROUTES: tuple[Route, ...] = (
    Route("/login", None),
    Route("/unauthorized", None),
    Route("/dashboard", ALL_ROLES),
    Route("/projects/{projectId}/tasks", PROJECT_MANAGERS),
    Route("/tasks", frozenset({Role.READ_ONLY_USER})),
    Route("/projects", PROJECT_MANAGERS),
    Route("/users", PROJECT_MANAGERS),
    Route("/roles", frozenset({Role.ADMIN})),
)


def resolve_route(path: str) -> Route | None:
    for route in ROUTES:
        if route.matches(path):
            return route
    return None


def guard(route: Route | str, session: SessionView) -> GuardOutcome:
    """
    Decide whether `session` may open `route`.

    Authentication is checked before roles, so an anonymous user is sent to login
    rather than to the unauthorized page. Unknown paths are treated as public;
    "not found" is the router's job, not the gate's.
    """
    if isinstance(route, str):
        resolved = resolve_route(route)
        if resolved is None:
            return GuardOutcome.ALLOW
        route = resolved

    if route.public:
        return GuardOutcome.ALLOW
    if session.identity is None:
        return GuardOutcome.LOGIN
    if not permit(route.required_roles or frozenset(), session.roles):
        return GuardOutcome.UNAUTHORIZED
    return GuardOutcome.ALLOW


# ---- data scoping ----


class ProjectScope(StrEnum):
    ALL = "all"
    OWNED = "owned"


class TaskScope(StrEnum):
    OWNER = "owner"
    PROJECT = "project"


def project_scope(current_roles: Iterable[Role]) -> ProjectScope:
    """Admins list every project; everyone else lists the projects they own."""
    return ProjectScope.ALL if permit({Role.ADMIN}, current_roles) else ProjectScope.OWNED


def task_scope(current_roles: Iterable[Role]) -> TaskScope:
    """Read-only users only ever see their personal task list, whatever else they hold."""
    return TaskScope.OWNER if permit({Role.READ_ONLY_USER}, current_roles) else TaskScope.PROJECT
