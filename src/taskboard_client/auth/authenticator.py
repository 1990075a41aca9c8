# src/taskboard_client/auth/authenticator.py

from __future__ import annotations

import logging

from ..core.errors import AuthenticationError, ClientValidationError, RemoteError
from ..core.ports import JsonGateway
from .session_models import SessionSnapshot
from .session_store import SessionStore

logger = logging.getLogger(__name__)


class Authenticator:
    """
    Login round trips against the unprotected /auth endpoints.

    Token issuance itself (Google sign-in, email lookup) happens server-side; this
    class only exchanges the proof for a bearer credential and hands the response
    to SessionStore.complete_login(). On any failure the session is left as it was.
    """

    def __init__(self, gateway: JsonGateway, session: SessionStore) -> None:
        self._gateway = gateway
        self._session = session

    async def login_with_google(self, id_token: str) -> SessionSnapshot:
        id_token = (id_token or "").strip()
        if not id_token:
            raise ClientValidationError("Google ID token is required")
        return await self._login(
            "google",
            "/auth/google",
            json={"token": id_token},
        )

    async def login_with_email(self, email: str) -> SessionSnapshot:
        email = (email or "").strip()
        if not email:
            raise ClientValidationError("Email is required")
        return await self._login(
            "email",
            "/auth/login",
            params={"email": email},
        )

    async def _login(
            self,
            method_name: str,
            path: str,
            *,
            json: dict[str, str] | None = None,
            params: dict[str, str] | None = None,
    ) -> SessionSnapshot:
        self._session.begin_login()
        try:
            payload = await self._gateway.request(
                "POST", path, json=json, params=params, protected=False
            )
        except RemoteError as exc:
            self._session.abort_login()
            logger.info("Login (%s) failed: %s", method_name, exc)
            raise AuthenticationError(str(exc)) from exc

        if not isinstance(payload, dict):
            self._session.abort_login()
            raise AuthenticationError("Unexpected login response")

        # complete_login() restores the previous phase itself when it rejects.
        return self._session.complete_login(payload)

    def logout(self) -> None:
        self._session.logout()
