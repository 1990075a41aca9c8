# src/taskboard_client/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from datetime import date
from typing import cast

from ..auth.gate import GuardOutcome, guard
from ..auth.session_models import Role
from ..core.errors import ClientValidationError, RemoteError, TaskboardError, friendly_error_message
from ..core.lifecycle import Err, OperationResult
from ..core.state import AppState
from ..projects.project_models import Project, ProjectDraft
from ..tasks.task_models import NewTask, Task, TaskStatus, TaskUpdate
from ..users.user_models import User

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], Awaitable[str]]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], Awaitable[str]]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /login, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return await h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return await h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- helpers ----


def _check_route(state: AppState, path: str) -> str | None:
    """Navigation guard for a command. Returns a reply when access is refused."""
    outcome = guard(path, state.session)
    if outcome is GuardOutcome.LOGIN:
        return "Please log in first: /login <email>"
    if outcome is GuardOutcome.UNAUTHORIZED:
        return f"Not authorized for {path}."
    return None


def _tasks_route(state: AppState, project_id: int | None) -> str:
    if state.session.has_role(Role.READ_ONLY_USER):
        return "/tasks"
    if project_id is None:
        # No project known yet: the caller must at least be allowed on /projects.
        return "/projects"
    return f"/projects/{project_id}/tasks"


def _failure(state: AppState, err: TaskboardError) -> str:
    if isinstance(err, RemoteError) and err.is_unauthorized:
        state.session.invalidate(f"server answered {err.status_code}")
    return friendly_error_message(err)


def _report(state: AppState, result: OperationResult, ok_text: str) -> str:
    if isinstance(result, Err):
        return _failure(state, result.error)
    return ok_text


def _int_arg(args: list[str], idx: int, what: str) -> int:
    try:
        return int(args[idx])
    except (IndexError, ValueError):
        raise ClientValidationError(f"{what} must be a number") from None


def _date_arg(raw: str, what: str) -> date:
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise ClientValidationError(f"{what} must be YYYY-MM-DD") from None


def _fmt_project(p: Project) -> str:
    span = f"{p.start_date or '?'}..{p.end_date or ''}"
    return f"#{p.id} {p.name} [{span}] owner={p.owner_name or p.owner_id}"


def _fmt_task(t: Task) -> str:
    due = f" due {t.due_date}" if t.due_date else ""
    who = f" -> {t.assignee_name}" if t.assignee_name else ""
    return f"#{t.id} [{t.status.value}] {t.description}{due} (project {t.project_id}){who}"


def _fmt_user(u: User) -> str:
    return f"#{u.id} {u.name} <{u.email}> {u.role.value if u.role else '-'}"


def _listing(title: str, rows: list[str]) -> str:
    if not rows:
        return f"{title}: none."
    return "\n".join([f"{title}:", *[f"  {r}" for r in rows]])


# ---- session ----


async def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


async def cmd_whoami(state: AppState, args: list[str]) -> str:
    snap = state.session.snapshot
    if snap.identity is None:
        return f"Not logged in. API: {state.settings.api_base_url}"
    roles = ", ".join(sorted(r.value for r in snap.roles)) or "(none until next login)"
    return (
        "Session:\n"
        f"  User: {snap.identity.display_name} (id {snap.identity.id})\n"
        f"  Roles: {roles}\n"
        f"  API: {state.settings.api_base_url}"
    )


async def cmd_login(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /login <email>"
    if emit:
        emit("Logging in...")
    try:
        snap = await state.auth.login_with_email(args[0])
    except TaskboardError as exc:
        return friendly_error_message(exc)
    roles = ", ".join(sorted(r.value for r in snap.roles)) or "-"
    name = snap.identity.display_name if snap.identity else "?"
    return f"Welcome, {name}. Roles: {roles}"


async def cmd_google(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /google <id_token>"
    try:
        snap = await state.auth.login_with_google(args[0])
    except TaskboardError as exc:
        return friendly_error_message(exc)
    name = snap.identity.display_name if snap.identity else "?"
    return f"Welcome, {name}."


async def cmd_logout(state: AppState, args: list[str]) -> str:
    state.auth.logout()
    return "Logged out."


# ---- projects ----


async def cmd_projects(state: AppState, args: list[str]) -> str:
    if denied := _check_route(state, "/projects"):
        return denied
    result = await state.projects.fetch_visible()
    if isinstance(result, Err):
        return _failure(state, result.error)
    return _listing("Projects", [_fmt_project(p) for p in state.projects.items])


def _project_draft(args: list[str]) -> ProjectDraft:
    """<owner_id> <start> [end|-] <name...> [| description]"""
    if len(args) < 4:
        raise ClientValidationError("Usage: <owner_id> <start YYYY-MM-DD> <end|-> <name> [| description]")
    owner_id = _int_arg(args, 0, "owner_id")
    start = _date_arg(args[1], "start")
    end = None if args[2] == "-" else _date_arg(args[2], "end")
    name, _, description = " ".join(args[3:]).partition("|")
    return ProjectDraft(
        name=name.strip(),
        description=description.strip(),
        owner_id=owner_id,
        start_date=start,
        end_date=end,
    )


async def cmd_project_add(state: AppState, args: list[str]) -> str:
    if denied := _check_route(state, "/projects"):
        return denied
    try:
        draft = _project_draft(args)
    except ClientValidationError as exc:
        return str(exc)
    result = await state.projects.create(draft)
    return _report(state, result, "Project created.")


async def cmd_project_edit(state: AppState, args: list[str]) -> str:
    if denied := _check_route(state, "/projects"):
        return denied
    try:
        project_id = _int_arg(args, 0, "project_id")
        draft = _project_draft(args[1:])
    except ClientValidationError as exc:
        return str(exc)
    result = await state.projects.edit(project_id, draft)
    return _report(state, result, f"Project #{project_id} updated.")


async def cmd_project_delete(state: AppState, args: list[str]) -> str:
    if denied := _check_route(state, "/projects"):
        return denied
    try:
        project_id = _int_arg(args, 0, "project_id")
    except ClientValidationError as exc:
        return str(exc)
    result = await state.projects.delete(project_id)
    return _report(state, result, f"Project #{project_id} deleted.")


async def cmd_project_assign(state: AppState, args: list[str]) -> str:
    if denied := _check_route(state, "/projects"):
        return denied
    try:
        project_id = _int_arg(args, 0, "project_id")
        user_id = _int_arg(args, 1, "user_id")
    except ClientValidationError as exc:
        return str(exc)
    result = await state.projects.assign_user(project_id, user_id)
    return _report(state, result, f"User #{user_id} assigned to project #{project_id}.")


# ---- tasks ----


async def cmd_tasks(state: AppState, args: list[str]) -> str:
    project_id = int(args[0]) if args and args[0].isdigit() else None
    if denied := _check_route(state, _tasks_route(state, project_id)):
        return denied
    result = await state.tasks.fetch_visible(project_id)
    if isinstance(result, Err):
        return _failure(state, result.error)
    return _listing("Tasks", [_fmt_task(t) for t in state.tasks.items])


async def cmd_task_add(state: AppState, args: list[str]) -> str:
    """/task-add <project_id> <description...> [@assignee_id]"""
    try:
        project_id = _int_arg(args, 0, "project_id")
    except ClientValidationError as exc:
        return str(exc)
    if denied := _check_route(state, _tasks_route(state, project_id)):
        return denied
    identity = state.session.identity
    if identity is None:
        return "Please log in first: /login <email>"

    words = args[1:]
    assignee_id = None
    if words and words[-1].startswith("@") and words[-1][1:].isdigit():
        assignee_id = int(words.pop()[1:])

    new_task = NewTask(
        description=" ".join(words),
        project_id=project_id,
        owner_id=identity.id,
        assignee_id=assignee_id,
    )
    result = await state.tasks.create(new_task)
    return _report(state, result, "Task created.")


async def cmd_task_edit(state: AppState, args: list[str]) -> str:
    """/task-edit <task_id> <STATUS> <description...>"""
    try:
        task_id = _int_arg(args, 0, "task_id")
        # The override replaces the status, so it has to be stated explicitly.
        status = TaskStatus(args[1].strip().upper())
    except (ClientValidationError, ValueError, IndexError):
        return "Usage: /task-edit <task_id> <NOT_STARTED|IN_PROGRESS|COMPLETED> <description>"
    cached = state.tasks.get(task_id)
    if denied := _check_route(state, _tasks_route(state, cached.project_id if cached else None)):
        return denied
    update = TaskUpdate(
        description=" ".join(args[2:]) or (cached.description if cached else ""),
        due_date=cached.due_date if cached else None,
        assignee_id=cached.assignee_id if cached else None,
        status=status,
    )
    result = await state.tasks.update(task_id, update)
    return _report(state, result, f"Task #{task_id} updated.")


async def cmd_task_status(state: AppState, args: list[str]) -> str:
    """/task-status <task_id> <IN_PROGRESS|COMPLETED>"""
    try:
        task_id = _int_arg(args, 0, "task_id")
        target = TaskStatus.from_wire(args[1])
    except (ClientValidationError, ValueError, IndexError):
        return "Usage: /task-status <task_id> <IN_PROGRESS|COMPLETED>"

    identity = state.session.identity
    cached = state.tasks.get(task_id)
    if denied := _check_route(state, _tasks_route(state, cached.project_id if cached else None)):
        return denied
    if identity is None:
        return "Please log in first: /login <email>"
    if cached is None:
        return f"Task #{task_id} is not loaded. Use /tasks first."

    result = await state.tasks.update_status(task_id, identity.id, cached.project_id, target)
    return _report(state, result, f"Task #{task_id} is now {target.value}.")


async def cmd_task_delete(state: AppState, args: list[str]) -> str:
    try:
        task_id = _int_arg(args, 0, "task_id")
    except ClientValidationError as exc:
        return str(exc)
    cached = state.tasks.get(task_id)
    if denied := _check_route(state, _tasks_route(state, cached.project_id if cached else None)):
        return denied
    result = await state.tasks.delete(task_id)
    return _report(state, result, f"Task #{task_id} deleted.")


# ---- users ----


async def cmd_users(state: AppState, args: list[str]) -> str:
    if denied := _check_route(state, "/users"):
        return denied
    result = await state.users.fetch()
    if isinstance(result, Err):
        return _failure(state, result.error)
    return _listing("Users", [_fmt_user(u) for u in state.users.items])


async def cmd_user_add(state: AppState, args: list[str]) -> str:
    """/user-add <email> <ROLE|-> <name...>"""
    if denied := _check_route(state, "/users"):
        return denied
    if len(args) < 3:
        return "Usage: /user-add <email> <ADMIN|TASK_CREATOR|READ_ONLY_USER|-> <name>"
    role = None if args[1] == "-" else args[1]
    result = await state.users.create(" ".join(args[2:]), args[0], role)
    return _report(state, result, "User created.")


async def cmd_user_role(state: AppState, args: list[str]) -> str:
    if denied := _check_route(state, "/users"):
        return denied
    try:
        user_id = _int_arg(args, 0, "user_id")
    except ClientValidationError as exc:
        return str(exc)
    role = args[1] if len(args) > 1 else None
    result = await state.users.edit(user_id, role)
    return _report(state, result, f"User #{user_id} role updated.")


async def cmd_user_delete(state: AppState, args: list[str]) -> str:
    if denied := _check_route(state, "/users"):
        return denied
    try:
        user_id = _int_arg(args, 0, "user_id")
    except ClientValidationError as exc:
        return str(exc)
    result = await state.users.delete(user_id)
    return _report(state, result, f"User #{user_id} deleted.")


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("whoami", cmd_whoami, help_text="Show the current session.", aliases=["status"])
registry.register("login", cmd_login, help_text="Log in by email: /login <email>.")
registry.register("google", cmd_google, help_text="Log in with a Google ID token: /google <id_token>.")
registry.register("logout", cmd_logout, help_text="Clear the session.")
registry.register("projects", cmd_projects, help_text="List visible projects.")
registry.register(
    "project-add", cmd_project_add, help_text="/project-add <owner_id> <start> <end|-> <name> [| description]."
)
registry.register(
    "project-edit", cmd_project_edit, help_text="/project-edit <id> <owner_id> <start> <end|-> <name> [| description]."
)
registry.register("project-delete", cmd_project_delete, help_text="/project-delete <id>.")
registry.register("project-assign", cmd_project_assign, help_text="/project-assign <project_id> <user_id>.")
registry.register("tasks", cmd_tasks, help_text="List tasks: /tasks [project_id].")
registry.register("task-add", cmd_task_add, help_text="/task-add <project_id> <description> [@assignee_id].")
registry.register("task-edit", cmd_task_edit, help_text="/task-edit <task_id> <STATUS> <description>.")
registry.register("task-status", cmd_task_status, help_text="/task-status <task_id> <IN_PROGRESS|COMPLETED>.")
registry.register("task-delete", cmd_task_delete, help_text="/task-delete <task_id>.")
registry.register("users", cmd_users, help_text="List user accounts.")
registry.register("user-add", cmd_user_add, help_text="/user-add <email> <ROLE|-> <name>.")
registry.register("user-role", cmd_user_role, help_text="/user-role <user_id> <ROLE>.")
registry.register("user-delete", cmd_user_delete, help_text="/user-delete <user_id>.")
