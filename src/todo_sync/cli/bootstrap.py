# src/todo_sync/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures the local (gitignored) data directory exists,
- wires the simulated task service and the sync engine into AppState.
"""

from __future__ import annotations

import logging

from ..config import Settings, get_settings
from ..core.ports import OutcomeReporter, TaskBackend
from ..core.state import AppState
from ..tasks.sync_engine import SyncEngine
from ..tasks.task_backend import MockTaskBackend, demo_tasks, random_failures

logger = logging.getLogger(__name__)


def build_backend(settings: Settings) -> MockTaskBackend:
    return MockTaskBackend(
        latency_seconds=settings.backend_latency_seconds,
        fail=random_failures(settings.backend_failure_rate, seed=settings.backend_seed),
        tasks=demo_tasks() if settings.seed_demo_tasks else None,
    )


def create_initial_state(
    *,
    settings: Settings | None = None,
    backend: TaskBackend | None = None,
    reporter: OutcomeReporter | None = None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings and backend injectable makes the app easier to test and avoids hidden global
    config reads. If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    settings.data_dir.mkdir(parents=True, exist_ok=True)

    if backend is None:
        backend = build_backend(settings)

    engine = SyncEngine(
        backend,
        reporter=reporter,
        strict=settings.strict_operations,
        title_max_length=settings.title_max_length,
        description_max_length=settings.description_max_length,
    )
    logger.info(
        "State ready (latency=%.2fs failure_rate=%.2f strict=%s)",
        settings.backend_latency_seconds,
        settings.backend_failure_rate,
        settings.strict_operations,
    )
    return AppState(settings=settings, backend=backend, engine=engine)
