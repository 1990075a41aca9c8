# src/taskboard_client/auth/session_storage.py

"""
Durable key/value storage for the session.

Only the SessionStore writes here; the bootstrap reads through SessionStore.restore().
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

# Well-known keys, cleared together on logout.
TOKEN_KEY = "token"
USER_ID_KEY = "userId"
FULL_NAME_KEY = "fullName"

SESSION_KEYS = (TOKEN_KEY, USER_ID_KEY, FULL_NAME_KEY)


class InMemoryStorage:
    """Process-local storage (persistence disabled, tests)."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = str(value)

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        return dict(self._data)


class JsonFileStorage:
    """
    One JSON object on disk, rewritten atomically on every change.

    The file holds a bearer credential, so it is chmod 0600 where the OS allows.
    A missing or unreadable file is treated as empty storage.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._data: dict[str, str] = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text("utf-8"))
        except (OSError, ValueError):
            logger.warning("Session file %s is unreadable; starting empty.", self._path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items() if v is not None}

    def _flush(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(json.dumps(self._data, ensure_ascii=False, indent=2), "utf-8")
        os.replace(tmp, self._path)
        with contextlib.suppress(OSError):
            os.chmod(self._path, 0o600)

    def get_item(self, key: str) -> str | None:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = str(value)
        self._flush()

    def remove_item(self, key: str) -> None:
        if key not in self._data:
            return
        del self._data[key]
        self._flush()
