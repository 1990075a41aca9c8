# config.example.py

"""
Documentation-only module (safe to commit).

Configuration is loaded from environment variables, optionally via a local .env file
(gitignored). Nothing here is secret: the bearer credential is obtained at login and
kept in the session file, never in configuration.
"""

ENV_VARS = {
    # App / logging
    "TASKBOARD_APP_NAME": "App display name (default: taskboard).",
    "TASKBOARD_LOG_LEVEL": "Console logging level (default: INFO).",
    # Remote API
    "TASKBOARD_API_URL": "API base URL (default: http://localhost:8080).",
    "REACT_APP_API_URL": "Fallback for TASKBOARD_API_URL, shared with the web frontend's .env.",
    "TASKBOARD_API_PREFIX": "Path prefix of protected endpoints (default: /api).",
    "TASKBOARD_REQUEST_TIMEOUT_SECONDS": "Per-request timeout in seconds (default: 15).",
    # Local data
    "TASKBOARD_DATA_DIR": "Local data directory (default: .local/taskboard).",
    "TASKBOARD_SESSION_PATH": "Session file (default: <data dir>/session.json).",
    "TASKBOARD_PERSIST_SESSION": "Keep the session across restarts (true/false, default: true).",
}
