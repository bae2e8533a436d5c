# src/todo_sync/tasks/task_backend.py

"""
In-memory task service with simulated network conditions.

Every call:
- waits the configured latency (on success and on failure alike),
- asks the failure injector whether to fail with a transient error,
- only then looks at the data (so an injected failure never reveals whether an id exists).

The store is process-local; nothing is persisted.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import replace
from datetime import UTC, datetime

from ..core.ports import Clock, FailureInjector, Sleeper
from .errors import CreateError, DeleteError, FetchError, NotFoundError, UpdateError
from .task_filters import sort_newest_first
from .task_models import ApiResponse, Task, TaskPatch

logger = logging.getLogger(__name__)

DEFAULT_LATENCY_SECONDS = 0.8
DEFAULT_FAILURE_RATE = 0.10


def never_fail(operation: str) -> bool:
    return False


def always_fail(operation: str) -> bool:
    return True


def fail_on(*operations: str) -> FailureInjector:
    """Fail every call of the named operations ("list", "create", "update", "delete")."""
    targets = frozenset(operations)

    def _inject(operation: str) -> bool:
        return operation in targets

    return _inject


def random_failures(probability: float = DEFAULT_FAILURE_RATE, *, seed: int | None = None) -> FailureInjector:
    """
    Uniform random failures with the given probability.

    Pass a seed to get a reproducible sequence of failures.
    """
    p = min(1.0, max(0.0, float(probability)))
    rng = random.Random(seed)

    def _inject(operation: str) -> bool:
        return rng.random() < p

    return _inject


def _utc_now() -> datetime:
    return datetime.now(UTC)


def demo_tasks() -> list[Task]:
    """The three sample tasks the demo service starts with."""
    return [
        Task(
            id="1",
            title="Complete project documentation",
            description="Write comprehensive README and code comments for the portfolio project",
            completed=False,
            created_at=datetime(2024, 1, 15, 10, 0, tzinfo=UTC),
            updated_at=datetime(2024, 1, 15, 10, 0, tzinfo=UTC),
        ),
        Task(
            id="2",
            title="Review TypeScript best practices",
            description="Study advanced TypeScript patterns for better code organization",
            completed=True,
            created_at=datetime(2024, 1, 14, 14, 30, tzinfo=UTC),
            updated_at=datetime(2024, 1, 15, 9, 15, tzinfo=UTC),
        ),
        Task(
            id="3",
            title="Design system implementation",
            description="Create consistent UI components with Tailwind CSS",
            completed=False,
            created_at=datetime(2024, 1, 16, 8, 45, tzinfo=UTC),
            updated_at=datetime(2024, 1, 16, 8, 45, tzinfo=UTC),
        ),
    ]


class MockTaskBackend:
    """
    Mock task service implementing the TaskBackend port.

    :param latency_seconds: artificial delay before every call settles.
    :param fail: failure injector; defaults to random failures at DEFAULT_FAILURE_RATE.
    :param clock: source of "now" for timestamps and ids.
    :param sleep: awaitable sleep, replaceable in tests.
    :param tasks: initial contents.
    """

    def __init__(
        self,
        *,
        latency_seconds: float = DEFAULT_LATENCY_SECONDS,
        fail: FailureInjector | None = None,
        clock: Clock | None = None,
        sleep: Sleeper | None = None,
        tasks: list[Task] | None = None,
    ) -> None:
        self.latency_seconds = max(0.0, float(latency_seconds))
        self._fail = fail if fail is not None else random_failures(DEFAULT_FAILURE_RATE)
        self._clock = clock or _utc_now
        self._sleep = sleep or asyncio.sleep
        self._tasks: list[Task] = list(tasks or [])
        self._last_id_ms = 0
        logger.info(
            "MockTaskBackend ready tasks=%d latency=%.3fs", len(self._tasks), self.latency_seconds
        )

    # ---- simulation helpers ----

    async def _simulate_latency(self) -> None:
        if self.latency_seconds > 0:
            await self._sleep(self.latency_seconds)

    def _should_fail(self, operation: str) -> bool:
        failed = bool(self._fail(operation))
        if failed:
            logger.debug("Simulated failure op=%s", operation)
        return failed

    def _next_id(self, now: datetime) -> str:
        # Millisecond timestamps, bumped so two creates in the same ms never collide.
        now_ms = int(now.timestamp() * 1000)
        self._last_id_ms = max(now_ms, self._last_id_ms + 1)
        return str(self._last_id_ms)

    def _index_of(self, task_id: str) -> int:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i
        return -1

    def snapshot(self) -> list[Task]:
        """Backend-side view of the data (newest first). Not part of the service contract."""
        return sort_newest_first(self._tasks)

    # ---- service API ----

    async def list(self) -> ApiResponse[list[Task]]:
        await self._simulate_latency()
        if self._should_fail("list"):
            raise FetchError()
        return ApiResponse(data=sort_newest_first(self._tasks), message="Todos fetched successfully")

    async def create(self, title: str, description: str | None = None) -> ApiResponse[Task]:
        await self._simulate_latency()
        if self._should_fail("create"):
            raise CreateError()

        now = self._clock()
        task = Task(
            id=self._next_id(now),
            title=title.strip(),
            description=(description or "").strip(),
            completed=False,
            created_at=now,
            updated_at=now,
        )
        self._tasks.append(task)
        logger.debug("Created task id=%s", task.id)
        return ApiResponse(data=task, message="Todo created successfully")

    async def update(self, task_id: str, patch: TaskPatch) -> ApiResponse[Task]:
        await self._simulate_latency()
        if self._should_fail("update"):
            raise UpdateError()

        idx = self._index_of(task_id)
        if idx == -1:
            raise NotFoundError()

        current = self._tasks[idx]
        updated = replace(current, **patch.provided(), updated_at=max(self._clock(), current.updated_at))
        self._tasks[idx] = updated
        logger.debug("Updated task id=%s fields=%s", task_id, sorted(patch.provided()))
        return ApiResponse(data=updated, message="Todo updated successfully")

    async def delete(self, task_id: str) -> ApiResponse[None]:
        await self._simulate_latency()
        if self._should_fail("delete"):
            raise DeleteError()

        idx = self._index_of(task_id)
        if idx == -1:
            raise NotFoundError()

        del self._tasks[idx]
        logger.debug("Deleted task id=%s", task_id)
        return ApiResponse(data=None, message="Todo deleted successfully")
