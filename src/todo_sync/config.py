# src/todo_sync/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing required at import time: every value has a default.
- Bad values fall back to defaults instead of crashing the console.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TODO_SYNC"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_optional_int(name: str) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError:
        return None


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


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    data_dir: Path

    # ---- Simulated backend ----
    backend_latency_seconds: float
    backend_failure_rate: float
    backend_seed: int | None
    seed_demo_tasks: bool

    # ---- Sync engine ----
    strict_operations: bool
    title_max_length: int
    description_max_length: int

    @staticmethod
    def from_env(*, dotenv: bool = True) -> "Settings":
        if dotenv:
            load_dotenv(override=False)

        app_name = _env(_k("APP_NAME"), "todo-sync").strip() or "todo-sync"
        log_level = _env(_k("LOG_LEVEL"), "WARNING")
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/todo_sync"))

        latency = max(0.0, _env_float(_k("BACKEND_LATENCY_SECONDS"), 0.8))
        failure_rate = min(1.0, max(0.0, _env_float(_k("BACKEND_FAILURE_RATE"), 0.10)))
        seed = _env_optional_int(_k("BACKEND_SEED"))
        seed_demo_tasks = _env_bool(_k("SEED_DEMO_TASKS"), True)

        strict_operations = _env_bool(_k("STRICT_OPERATIONS"), True)
        title_max_length = max(1, _env_int(_k("TITLE_MAX_LENGTH"), 100))
        description_max_length = max(0, _env_int(_k("DESCRIPTION_MAX_LENGTH"), 500))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            backend_latency_seconds=latency,
            backend_failure_rate=failure_rate,
            backend_seed=seed,
            seed_demo_tasks=seed_demo_tasks,
            strict_operations=strict_operations,
            title_max_length=title_max_length,
            description_max_length=description_max_length,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Process-wide settings, built on first use."""
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
