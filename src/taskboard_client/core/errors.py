# src/taskboard_client/core/errors.py

"""
Error taxonomy shared by the session, gateway and entity stores.

- ClientValidationError: caught locally, no request was sent.
- AuthenticationError: login rejected or login round trip failed; session unchanged.
- RemoteError: non-2xx response or transport failure (status_code is None).

Authorization denial is not modelled as an exception: see auth.gate.GuardOutcome.
"""

from __future__ import annotations

from typing import Any


class TaskboardError(Exception):
    """Base class for every error this client reports to a caller."""


class ClientValidationError(TaskboardError):
    pass


class InvalidStatusTransition(ClientValidationError):
    def __init__(self, task_id: int, current: Any, target: Any) -> None:
        self.task_id = task_id
        self.current = current
        self.target = target
        super().__init__(f"Task {task_id} cannot move from {current} to {target}")


class AuthenticationError(TaskboardError):
    pass


class RemoteError(TaskboardError):
    def __init__(self, message: str, *, status_code: int | None = None, detail: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail

    @property
    def is_transport(self) -> bool:
        return self.status_code is None

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code in (401, 403)


def friendly_error_message(err: BaseException) -> str:
    msg = str(err).strip() or err.__class__.__name__
    if isinstance(err, RemoteError):
        if err.is_transport:
            return f"Could not reach the server: {msg}"
        if err.is_unauthorized:
            return "Your session is no longer valid. Please log in again."
        return f"Server rejected the request ({err.status_code}): {msg}"
    if isinstance(err, AuthenticationError):
        return f"Login failed: {msg}"
    if isinstance(err, ClientValidationError):
        return msg
    return f"Unexpected error: {msg}"
