# src/taskboard_client/core/lifecycle.py

"""
Request lifecycle events for entity-store operations.

Every async operation emits `Pending`, then exactly one of `Ok` / `Err`.
Stores consume these with an explicit `match` rather than by inspecting names.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Generic, TypeVar

from .errors import TaskboardError

T = TypeVar("T")


class RefreshScope(StrEnum):
    """
    What a successful mutation does after its own response is applied.

    - NONE: the response is authoritative, apply it as-is.
    - RECORD: re-read the single affected record and splice it in.
    - COLLECTION: re-fetch the owning scope (server-computed list fields).
    """

    NONE = "none"
    RECORD = "record"
    COLLECTION = "collection"


@dataclass(frozen=True, slots=True)
class OperationSpec:
    name: str
    refresh: RefreshScope = RefreshScope.NONE


@dataclass(frozen=True, slots=True)
class Pending:
    operation: str


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    operation: str
    payload: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.payload


@dataclass(frozen=True, slots=True)
class Err:
    operation: str
    reason: str
    error: TaskboardError

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self) -> Any:
        raise self.error


OperationResult = Ok[Any] | Err
LifecycleEvent = Pending | Ok[Any] | Err
