# src/todo_sync/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The sync engine depends on Protocols instead of concrete implementations.
This keeps the backend swappable (mock service, test double, real client later)
and lets tests drive both success and failure branches deterministically.
"""

from collections.abc import Callable
from datetime import datetime
from typing import Awaitable, Protocol

from ..tasks.task_models import ApiResponse, OperationOutcome, SyncSnapshot, Task, TaskPatch

FailureInjector = Callable[[str], bool]
# Called with the backend operation name ("list", "create", "update", "delete").
# Returning True makes that call fail with a simulated transient error.

Clock = Callable[[], datetime]
Sleeper = Callable[[float], Awaitable[None]]
StateListener = Callable[[SyncSnapshot], None]


class TaskBackend(Protocol):
    """
    Asynchronous task service.

    Every call resolves to an ApiResponse envelope or raises an ApiError subclass
    (FetchError, CreateError, UpdateError, DeleteError, NotFoundError).
    """

    async def list(self) -> ApiResponse[list[Task]]: ...

    async def create(self, title: str, description: str | None = None) -> ApiResponse[Task]: ...

    async def update(self, task_id: str, patch: TaskPatch) -> ApiResponse[Task]: ...

    async def delete(self, task_id: str) -> ApiResponse[None]: ...


class OutcomeReporter(Protocol):
    """
    View-side port: how the engine surfaces success/failure of an operation.

    The view decides how to present it (toast, console line, nothing at all).
    """

    def report(self, outcome: OperationOutcome) -> None: ...
