# src/taskboard_client/auth/session_store.py

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from ..core.errors import AuthenticationError
from ..core.ports import KeyValueStorage
from .session_models import (
    ANONYMOUS_SESSION,
    Identity,
    LoginResponse,
    Role,
    SessionPhase,
    SessionSnapshot,
)
from .session_storage import FULL_NAME_KEY, SESSION_KEYS, TOKEN_KEY, USER_ID_KEY

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Current identity, bearer credential and role set.

    Invariants:
    - authenticated == (identity is not None)
    - roles only ever come from the most recent successful login response
    - durable storage is written by this class and nobody else
    """

    def __init__(self, storage: KeyValueStorage) -> None:
        self._storage = storage
        self._state: SessionSnapshot = ANONYMOUS_SESSION
        self._phase_before_login: SessionPhase | None = None

    # ---- read side ----

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._state

    @property
    def identity(self) -> Identity | None:
        return self._state.identity

    @property
    def credential(self) -> str | None:
        return self._state.credential

    @property
    def roles(self) -> frozenset[Role]:
        return self._state.roles

    @property
    def phase(self) -> SessionPhase:
        return self._state.phase

    @property
    def authenticated(self) -> bool:
        return self._state.authenticated

    def has_role(self, role: Role) -> bool:
        return role in self._state.roles

    def credential_provider(self) -> str | None:
        """Late-bound accessor handed to the gateway; resolved on every send."""
        return self._state.credential

    # ---- transitions ----

    def restore(self) -> bool:
        """
        Rehydrate identity + credential from durable storage.

        The credential is NOT re-validated against the server; it is used until the
        server rejects it. Roles stay empty until the next successful login.
        """
        token = (self._storage.get_item(TOKEN_KEY) or "").strip()
        raw_user_id = (self._storage.get_item(USER_ID_KEY) or "").strip()
        name = self._storage.get_item(FULL_NAME_KEY) or ""

        if not token or not raw_user_id:
            logger.debug("No stored session to restore.")
            return False
        try:
            user_id = int(raw_user_id)
        except ValueError:
            logger.warning("Stored session has a malformed user id; ignoring it.")
            return False

        self._state = SessionSnapshot(
            identity=Identity(id=user_id, display_name=name),
            credential=token,
            roles=frozenset(),
            phase=SessionPhase.AUTHENTICATED,
        )
        logger.info("Session restored user_id=%s (roles pending next login)", user_id)
        return True

    def begin_login(self) -> None:
        self._phase_before_login = self._state.phase
        self._state = SessionSnapshot(
            identity=self._state.identity,
            credential=self._state.credential,
            roles=self._state.roles,
            phase=SessionPhase.AUTHENTICATING,
        )

    def abort_login(self) -> None:
        """Undo begin_login(); every other field was never touched."""
        if self._state.phase is not SessionPhase.AUTHENTICATING:
            return
        previous = self._phase_before_login or ANONYMOUS_SESSION.phase
        self._phase_before_login = None
        self._state = SessionSnapshot(
            identity=self._state.identity,
            credential=self._state.credential,
            roles=self._state.roles,
            phase=previous,
        )

    def complete_login(self, response: LoginResponse | Mapping[str, Any]) -> SessionSnapshot:
        if not isinstance(response, LoginResponse):
            try:
                response = LoginResponse.from_payload(response)
            except (KeyError, TypeError, ValueError) as exc:
                self.abort_login()
                raise AuthenticationError(f"Malformed login response: {exc}") from exc

        if response.is_error or not response.jwt:
            self.abort_login()
            raise AuthenticationError("Login was rejected by the server.")

        identity = Identity(id=response.user_id, display_name=response.name)
        roles = response.roles()

        try:
            self._persist(
                {
                    TOKEN_KEY: response.jwt,
                    FULL_NAME_KEY: response.name,
                    USER_ID_KEY: str(response.user_id),
                }
            )
        except OSError as exc:
            self.abort_login()
            raise AuthenticationError(f"Could not save the session: {exc}") from exc

        self._phase_before_login = None
        self._state = SessionSnapshot(
            identity=identity,
            credential=response.jwt,
            roles=roles,
            phase=SessionPhase.AUTHENTICATED,
        )
        logger.info(
            "Login completed user_id=%s roles=%s",
            identity.id,
            ",".join(sorted(r.value for r in roles)) or "-",
        )
        return self._state

    def _persist(self, values: dict[str, str]) -> None:
        """Write all session keys or none: on failure the previous values are put back."""
        previous = {key: self._storage.get_item(key) for key in SESSION_KEYS}
        try:
            for key, value in values.items():
                self._storage.set_item(key, value)
        except OSError:
            try:
                for key, old in previous.items():
                    if old is None:
                        self._storage.remove_item(key)
                    else:
                        self._storage.set_item(key, old)
            except OSError:
                logger.warning("Could not roll back the stored session after a failed write.")
            raise

    def set_credentials(self, identity: Identity | None, credential: str | None) -> None:
        """
        Narrow hydration path: identity, credential and the authenticated flag only.

        Roles are left exactly as they are; this path is never a source of role truth.
        Nothing is written to durable storage.
        """
        self._state = SessionSnapshot(
            identity=identity,
            credential=credential,
            roles=self._state.roles,
            phase=SessionPhase.AUTHENTICATED if identity is not None else SessionPhase.ANONYMOUS,
        )

    def logout(self) -> None:
        """Clear session + durable keys. Idempotent."""
        was_authenticated = self._state.authenticated
        for key in SESSION_KEYS:
            self._storage.remove_item(key)
        self._state = ANONYMOUS_SESSION
        self._phase_before_login = None
        if was_authenticated:
            logger.info("Logged out.")

    def invalidate(self, reason: str = "credential rejected") -> None:
        """The server rejected the credential: same end state as logout()."""
        if self._state.authenticated:
            logger.info("Session invalidated: %s", reason)
        self.logout()
