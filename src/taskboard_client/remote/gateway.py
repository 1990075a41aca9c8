# src/taskboard_client/remote/gateway.py

"""
Remote gateway: the single HTTP client of the app.

Responsibilities:
- prefix protected paths with the API prefix (default /api)
- attach `Authorization: Bearer <credential>` to requests under that prefix, reading
  the credential through a provider at send time
- turn non-2xx responses and transport failures into RemoteError

Non-responsibilities: retries, credential refresh, redirect on 401.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from ..core.errors import RemoteError
from ..core.ports import CredentialProvider, JsonPayload

logger = logging.getLogger(__name__)


def _no_credential() -> str | None:
    return None


def _error_detail(response: httpx.Response) -> tuple[str, Any]:
    try:
        data = response.json()
    except ValueError:
        text = response.text.strip()
        return (text[:200] or response.reason_phrase or "Request failed"), text
    if isinstance(data, dict):
        msg = data.get("message") or data.get("error_description") or data.get("error")
        if msg:
            return str(msg), data
    return (response.reason_phrase or "Request failed"), data


class RemoteGateway:
    def __init__(
            self,
            base_url: str,
            *,
            api_prefix: str = "/api",
            timeout_seconds: float = 15.0,
            transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._credential_provider: CredentialProvider = _no_credential
        cleaned = (api_prefix or "").strip().strip("/")
        if not cleaned:
            # Without a prefix every request, /auth included, would carry the bearer.
            raise ValueError("api_prefix must not be empty")
        self._api_prefix = f"/{cleaned}"

        base = httpx.URL(base_url.rstrip("/"))
        # Requests are matched on the full URL path, which includes any base path.
        self._protected_path = f"{base.path.rstrip('/')}{self._api_prefix}/"

        self._client = httpx.AsyncClient(
            base_url=base,
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
            headers={"Accept": "application/json"},
            event_hooks={"request": [self._attach_credential]},
        )

    @property
    def api_prefix(self) -> str:
        return self._api_prefix

    def set_credential_provider(self, provider: CredentialProvider) -> None:
        """Bind once the session exists; the gateway is usually built before it."""
        self._credential_provider = provider

    def is_protected(self, url: httpx.URL) -> bool:
        return url.path.startswith(self._protected_path)

    async def _attach_credential(self, request: httpx.Request) -> None:
        if not self.is_protected(request.url):
            return
        token = self._credential_provider()
        if token:
            request.headers["Authorization"] = f"Bearer {token}"

    async def request(
            self,
            method: str,
            path: str,
            *,
            json: JsonPayload = None,
            params: Mapping[str, Any] | None = None,
            protected: bool = True,
    ) -> JsonPayload:
        """
        Send one request and return the decoded JSON body (None for an empty body).

        `protected=True` places `path` under the API prefix.
        """
        if not path.startswith("/"):
            path = "/" + path
        url = f"{self._api_prefix}{path}" if protected else path

        try:
            response = await self._client.request(
                method.upper(),
                url,
                json=json,
                params=dict(params) if params else None,
            )
        except httpx.HTTPError as exc:
            logger.info("%s %s failed: %s", method.upper(), url, exc.__class__.__name__)
            raise RemoteError(str(exc) or exc.__class__.__name__) from exc

        if response.is_error:
            message, detail = _error_detail(response)
            logger.info("%s %s -> %s %s", method.upper(), url, response.status_code, message)
            raise RemoteError(message, status_code=response.status_code, detail=detail)

        logger.debug("%s %s -> %s", method.upper(), url, response.status_code)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteError(
                "Server returned a non-JSON body",
                status_code=response.status_code,
                detail=response.text[:200],
            ) from exc

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> RemoteGateway:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
