# src/taskboard_client/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "taskboard.log"

# Loggers that report every request / lifecycle event. Command replies already
# carry the outcome, so the console only shows their warnings.
_PER_REQUEST_LOGGERS = (
    "taskboard_client.remote",
    "taskboard_client.core.entity_store",
)

# HTTP transport libraries log one line per request.
_TRANSPORT_LOGGERS = ("httpx", "httpcore")


def _under(name: str, prefix: str) -> bool:
    return name == prefix or name.startswith(prefix + ".")


class _ConsoleNoiseFilter(logging.Filter):
    """
    Console view of the log stream:
    - taskboard_client logs pass, except per-request chatter below WARNING
    - httpx / httpcore pass from WARNING
    - anything else (py.warnings included) only from ERROR
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        if name.startswith("taskboard_client."):
            if any(_under(name, p) for p in _PER_REQUEST_LOGGERS):
                return record.levelno >= logging.WARNING
            return True

        if any(_under(name, p) for p in _TRANSPORT_LOGGERS):
            return record.levelno >= logging.WARNING

        return record.levelno >= logging.ERROR


def _formatter() -> logging.Formatter:
    return logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(_formatter())
    handler.addFilter(_ConsoleNoiseFilter())
    return handler


def _file_handler(log_file: Path, level: int) -> logging.Handler:
    handler = logging.FileHandler(str(log_file), encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(_formatter())
    return handler


def setup_logging(
    *,
    log_dir: str | Path = ".local/taskboard",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Route logs to stderr (filtered, for the interactive console) and to
    <log_dir>/taskboard.log (unfiltered). Returns the log file path.

    Call once, before the first log line. Calling again replaces the handlers.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    root.addHandler(_console_handler(console_level))
    root.addHandler(_file_handler(log_file, file_level))

    logging.captureWarnings(True)

    # Per-request INFO lines from the transport stay out of the file too.
    for name in _TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_file
