# src/todo_sync/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "todo_sync.log"

_BACKEND_LOGGER = "todo_sync.tasks.task_backend"


class _ConsoleNoiseFilter(logging.Filter):
    """Console gets our own records; the simulated backend and everything else only when loud."""

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name == _BACKEND_LOGGER or name.startswith(_BACKEND_LOGGER + "."):
            return record.levelno >= logging.WARNING
        if name.startswith("todo_sync."):
            return True
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/todo_sync",
    console_level: int = logging.WARNING,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Send filtered records to stderr and every record to <log_dir>/todo_sync.log.

    Replaces handlers already on the root logger, so calling it twice is harmless.
    Returns the log file path.
    """
    log_file = Path(log_dir) / LOG_FILE_NAME
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    return log_file
