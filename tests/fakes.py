# tests/fakes.py

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta

from todo_sync.tasks.errors import NotFoundError
from todo_sync.tasks.task_models import ApiResponse, OperationOutcome, Task, TaskPatch


class TickingClock:
    """Deterministic clock: every call returns a time one second after the previous one."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(seconds=1)) -> None:
        self.now = start or datetime(2024, 2, 1, 12, 0, tzinfo=UTC)
        self.step = step

    def __call__(self) -> datetime:
        self.now = self.now + self.step
        return self.now


def make_task(
    task_id: str,
    *,
    title: str | None = None,
    completed: bool = False,
    created_at: datetime | None = None,
    description: str = "",
) -> Task:
    ts = created_at or datetime(2024, 1, 1, tzinfo=UTC)
    return Task(
        id=task_id,
        title=title or f"task {task_id}",
        description=description,
        completed=completed,
        created_at=ts,
        updated_at=ts,
    )


@dataclass(slots=True)
class RecordingReporter:
    """Fake OutcomeReporter: keeps every outcome for assertions."""

    outcomes: list[OperationOutcome] = field(default_factory=list)

    def report(self, outcome: OperationOutcome) -> None:
        self.outcomes.append(outcome)

    @property
    def last(self) -> OperationOutcome:
        return self.outcomes[-1]


class ScriptedBackend:
    """
    In-memory TaskBackend used for engine unit tests.

    - no latency, no randomness
    - errors are scripted per call: fail_next["update"] = UpdateError()
    - fail_ids makes delete of specific ids fail (for bulk delete)
    - gate holds every call until the test releases it (for in-flight assertions)
    """

    def __init__(self, tasks: list[Task] | None = None, clock: TickingClock | None = None) -> None:
        self.tasks: dict[str, Task] = {t.id: t for t in tasks or []}
        self.clock = clock or TickingClock()
        self.calls: list[tuple] = []
        self.fail_next: dict[str, Exception] = {}
        self.fail_ids: dict[str, Exception] = {}
        self.gate: asyncio.Event | None = None
        self._seq = 100

    async def _enter(self, op: str, *args) -> None:
        self.calls.append((op, *args))
        if self.gate is not None:
            await self.gate.wait()
        err = self.fail_next.pop(op, None)
        if err is not None:
            raise err

    async def list(self) -> ApiResponse[list[Task]]:
        await self._enter("list")
        data = sorted(self.tasks.values(), key=lambda t: t.created_at, reverse=True)
        return ApiResponse(data=data, message="Todos fetched successfully")

    async def create(self, title: str, description: str | None = None) -> ApiResponse[Task]:
        await self._enter("create", title, description)
        self._seq += 1
        now = self.clock()
        task = Task(
            id=str(self._seq),
            title=title.strip(),
            description=(description or "").strip(),
            completed=False,
            created_at=now,
            updated_at=now,
        )
        self.tasks[task.id] = task
        return ApiResponse(data=task, message="Todo created successfully")

    async def update(self, task_id: str, patch: TaskPatch) -> ApiResponse[Task]:
        await self._enter("update", task_id, patch)
        current = self.tasks.get(task_id)
        if current is None:
            raise NotFoundError()
        updated = replace(current, **patch.provided(), updated_at=self.clock())
        self.tasks[task_id] = updated
        return ApiResponse(data=updated, message="Todo updated successfully")

    async def delete(self, task_id: str) -> ApiResponse[None]:
        await self._enter("delete", task_id)
        err = self.fail_ids.get(task_id)
        if err is not None:
            raise err
        if task_id not in self.tasks:
            raise NotFoundError()
        del self.tasks[task_id]
        return ApiResponse(data=None, message="Todo deleted successfully")
