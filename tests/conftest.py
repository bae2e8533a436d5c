# tests/conftest.py

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import pytest

from todo_sync.config import Settings
from todo_sync.tasks.sync_engine import SyncEngine
from todo_sync.tasks.task_models import Task

from .fakes import RecordingReporter, ScriptedBackend, TickingClock, make_task


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """
    Settings built directly instead of from the environment,
    to keep unit tests isolated and deterministic.
    """
    return Settings(
        app_name="todo-sync-test",
        log_level="DEBUG",
        data_dir=tmp_path / "data",
        backend_latency_seconds=0.0,
        backend_failure_rate=0.0,
        backend_seed=1,
        seed_demo_tasks=True,
        strict_operations=True,
        title_max_length=100,
        description_max_length=500,
    )


@pytest.fixture()
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture()
def seed_tasks() -> list[Task]:
    """Three tasks: t1 oldest (active), t2 (completed), t3 newest (active)."""
    return [
        make_task("t1", title="oldest", created_at=datetime(2024, 1, 1, tzinfo=UTC)),
        make_task("t2", title="middle", completed=True, created_at=datetime(2024, 1, 2, tzinfo=UTC)),
        make_task("t3", title="newest", created_at=datetime(2024, 1, 3, tzinfo=UTC)),
    ]


@pytest.fixture()
def backend(seed_tasks: list[Task], clock: TickingClock) -> ScriptedBackend:
    return ScriptedBackend(seed_tasks, clock=clock)


@pytest.fixture()
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture()
def engine(backend: ScriptedBackend, reporter: RecordingReporter) -> SyncEngine:
    return SyncEngine(backend, reporter=reporter)
