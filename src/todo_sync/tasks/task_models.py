# src/todo_sync/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import StrEnum
from typing import Any, ClassVar, Generic, TypeVar

T = TypeVar("T")


class TaskFilter(StrEnum):
    """Which slice of the collection the view is looking at."""

    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, raw: TaskFilter | str | None) -> TaskFilter:
        if isinstance(raw, TaskFilter):
            return raw
        value = (raw or "").strip().lower()
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown filter: {raw!r} (expected all, active or completed)") from None


class OperationKind(StrEnum):
    NONE = "none"
    FETCH = "fetch"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(slots=True, frozen=True)
class Task:
    id: str
    title: str
    description: str
    completed: bool
    created_at: datetime
    updated_at: datetime


@dataclass(slots=True, frozen=True)
class TaskPatch:
    """
    Partial update for a Task.

    A field left as None is "not provided" and keeps its current value on the backend.
    An empty description ("") is a real value and clears the description.
    """

    title: str | None = None
    description: str | None = None
    completed: bool | None = None

    def is_empty(self) -> bool:
        return self.title is None and self.description is None and self.completed is None

    def provided(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


@dataclass(slots=True, frozen=True)
class ActiveOperation:
    """
    The single in-flight operation.

    kind=NONE means idle. target_id is only set for update/delete of one task.
    """

    kind: OperationKind = OperationKind.NONE
    target_id: str | None = None

    IDLE: ClassVar[ActiveOperation]

    @property
    def is_idle(self) -> bool:
        return self.kind == OperationKind.NONE

    def targets(self, task_id: str) -> bool:
        return not self.is_idle and self.target_id == task_id


ActiveOperation.IDLE = ActiveOperation()


@dataclass(slots=True, frozen=True)
class ApiResponse(Generic[T]):
    data: T
    message: str
    success: bool = True


@dataclass(slots=True, frozen=True)
class TaskCounts:
    all: int = 0
    active: int = 0
    completed: int = 0


@dataclass(slots=True, frozen=True)
class SyncSnapshot:
    """Immutable view of the engine state handed to listeners."""

    tasks: tuple[Task, ...]
    visible: tuple[Task, ...]
    active_operation: ActiveOperation
    filter: TaskFilter
    counts: TaskCounts
    last_error: Exception | None = None


@dataclass(slots=True, frozen=True)
class OperationOutcome:
    """
    What the engine reports after an operation settles.

    fields lists the patch fields for update outcomes, so a view can tell a completion
    toggle from a content edit.
    """

    operation: OperationKind
    success: bool
    message: str
    target_id: str | None = None
    error: Exception | None = None
    count: int | None = None
    fields: tuple[str, ...] = field(default_factory=tuple)
