# src/taskboard_client/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time (the bearer credential lives in the session, not here).
- The only remote setting is the API base URL, with a local default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKBOARD"

DEFAULT_API_URL = "http://localhost:8080"
DEFAULT_API_PREFIX = "/api"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


# Real environment always wins over .env values.
load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def normalize_prefix(raw: str) -> str:
    """'/api/', 'api', '/api' -> '/api'. Empty input -> ''."""
    cleaned = (raw or "").strip().strip("/")
    return f"/{cleaned}" if cleaned else ""


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Remote API ----
    api_base_url: str
    api_prefix: str
    request_timeout_seconds: float

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    session_path: Path
    persist_session: bool

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "taskboard") or "taskboard"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        # REACT_APP_API_URL is accepted so an existing frontend .env can be reused as-is.
        api_base_url = (
            _first_env(_k("API_URL"), "REACT_APP_API_URL", default=DEFAULT_API_URL) or DEFAULT_API_URL
        ).strip().rstrip("/")
        # The prefix is what separates protected endpoints from /auth; it cannot be empty.
        api_prefix = normalize_prefix(_env(_k("API_PREFIX"), DEFAULT_API_PREFIX)) or DEFAULT_API_PREFIX
        request_timeout_seconds = max(0.1, _env_float(_k("REQUEST_TIMEOUT_SECONDS"), 15.0))

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskboard"))
        session_path = _env_path(_k("SESSION_PATH"), data_dir / "session.json")
        persist_session = _env_bool(_k("PERSIST_SESSION"), True)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            api_base_url=api_base_url,
            api_prefix=api_prefix,
            request_timeout_seconds=request_timeout_seconds,
            data_dir=data_dir,
            session_path=session_path,
            persist_session=persist_session,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
