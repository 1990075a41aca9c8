# src/taskboard_client/core/ports.py

"""
Ports (interfaces) used by the core.

The session store, gateway and entity stores depend on Protocols instead of concrete
implementations, so durable storage and transport are swappable in tests.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Awaitable, Protocol

JsonPayload = Any
# Decoded JSON body: dict, list, scalar, or None for an empty body.

CredentialProvider = Callable[[], str | None]
# Resolved at send time, never at gateway construction time.


class KeyValueStorage(Protocol):
    """Durable string storage with localStorage-like semantics."""

    def get_item(self, key: str) -> str | None: ...
    def set_item(self, key: str, value: str) -> None: ...
    def remove_item(self, key: str) -> None: ...


class JsonGateway(Protocol):
    """What entity stores need from the remote gateway."""

    def request(
            self,
            method: str,
            path: str,
            *,
            json: JsonPayload = None,
            params: Mapping[str, Any] | None = None,
            protected: bool = True,
    ) -> Awaitable[JsonPayload]: ...


class SessionView(Protocol):
    """Read-only view of the session used for scope selection inside stores."""

    @property
    def roles(self) -> frozenset[Any]: ...

    @property
    def identity(self) -> Any | None: ...
