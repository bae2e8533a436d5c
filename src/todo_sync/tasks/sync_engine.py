# src/todo_sync/tasks/sync_engine.py

from __future__ import annotations

"""
Client-side sync engine.

Owns the local task collection and the single active-operation descriptor:
- forwards user intents to the injected TaskBackend,
- applies results only after the backend confirms them (no optimistic writes),
- reports every outcome through an OutcomeReporter,
- pushes an immutable SyncSnapshot to listeners on every state change.

The descriptor is reset in a finally block, so it is idle again once any call settles.
"""

import asyncio
import contextlib
import logging
from collections.abc import Callable

from ..core.ports import OutcomeReporter, StateListener, TaskBackend
from .errors import (
    ApiError,
    BulkDeleteError,
    BusyError,
    CreateError,
    DeleteError,
    FetchError,
    TaskValidationError,
    UpdateError,
    friendly_error_message,
)
from .task_filters import count_tasks, filter_tasks, sort_newest_first
from .task_models import (
    ActiveOperation,
    OperationKind,
    OperationOutcome,
    SyncSnapshot,
    Task,
    TaskCounts,
    TaskFilter,
    TaskPatch,
)

logger = logging.getLogger(__name__)

DEFAULT_TITLE_MAX_LENGTH = 100
DEFAULT_DESCRIPTION_MAX_LENGTH = 500

_WRAP_ERRORS: dict[OperationKind, type[ApiError]] = {
    OperationKind.FETCH: FetchError,
    OperationKind.CREATE: CreateError,
    OperationKind.UPDATE: UpdateError,
    OperationKind.DELETE: DeleteError,
}


class _NullReporter:
    """Default reporter. The engine already logs every outcome itself."""

    def report(self, outcome: OperationOutcome) -> None:
        return None


class SyncEngine:
    """
    Sync engine over a TaskBackend.

    :param backend: task service (explicit dependency, no global instance).
    :param reporter: where operation outcomes go; defaults to none (outcomes are still logged).
    :param strict: reject a new mutating call with BusyError while another one is in flight.
    """

    def __init__(
        self,
        backend: TaskBackend,
        *,
        reporter: OutcomeReporter | None = None,
        strict: bool = True,
        title_max_length: int = DEFAULT_TITLE_MAX_LENGTH,
        description_max_length: int = DEFAULT_DESCRIPTION_MAX_LENGTH,
    ) -> None:
        self._backend = backend
        self._reporter: OutcomeReporter = reporter or _NullReporter()
        self.strict = strict
        self.title_max_length = max(1, int(title_max_length))
        self.description_max_length = max(0, int(description_max_length))

        self._tasks: list[Task] = []
        self._active = ActiveOperation.IDLE
        self._filter = TaskFilter.ALL
        self._last_error: Exception | None = None
        self._listeners: list[StateListener] = []

    # ---- read side ----

    @property
    def tasks(self) -> tuple[Task, ...]:
        """Collection in display order (newest first)."""
        return tuple(sort_newest_first(self._tasks))

    @property
    def active_operation(self) -> ActiveOperation:
        return self._active

    @property
    def is_busy(self) -> bool:
        return not self._active.is_idle

    @property
    def filter(self) -> TaskFilter:
        return self._filter

    @property
    def last_error(self) -> Exception | None:
        return self._last_error

    @property
    def counts(self) -> TaskCounts:
        return count_tasks(self._tasks)

    def get_task(self, task_id: str) -> Task | None:
        for t in self._tasks:
            if t.id == task_id:
                return t
        return None

    def visible_tasks(self) -> tuple[Task, ...]:
        return tuple(filter_tasks(self.tasks, self._filter))

    def set_filter(self, selection: TaskFilter | str) -> TaskFilter:
        self._filter = TaskFilter.parse(selection)
        self._notify()
        return self._filter

    def snapshot(self) -> SyncSnapshot:
        ordered = self.tasks
        return SyncSnapshot(
            tasks=ordered,
            visible=tuple(filter_tasks(ordered, self._filter)),
            active_operation=self._active,
            filter=self._filter,
            counts=count_tasks(ordered),
            last_error=self._last_error,
        )

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a snapshot listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return _unsubscribe

    # ---- internal helpers ----

    def _notify(self) -> None:
        if not self._listeners:
            return
        snap = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snap)
            except Exception:
                logger.exception("State listener failed.")

    def _report(self, outcome: OperationOutcome) -> None:
        try:
            self._reporter.report(outcome)
        except Exception:
            logger.exception("Outcome reporter failed op=%s", outcome.operation.value)

    def _begin(self, kind: OperationKind, target_id: str | None = None) -> None:
        if self.strict and not self._active.is_idle:
            logger.info(
                "Rejecting %s while %s is in flight (target=%s)",
                kind.value,
                self._active.kind.value,
                self._active.target_id,
            )
            raise BusyError()
        self._active = ActiveOperation(kind=kind, target_id=target_id)
        logger.debug("Operation started op=%s target=%s", kind.value, target_id)
        self._notify()

    def _finish(self) -> None:
        self._active = ActiveOperation.IDLE
        self._notify()

    def _failed(self, kind: OperationKind, exc: Exception, *, target_id: str | None = None, fields=()) -> ApiError:
        """Normalize a backend failure, remember it and report it."""
        if isinstance(exc, ApiError):
            err = exc
        else:
            logger.exception("Unexpected backend error op=%s target=%s", kind.value, target_id)
            err = _WRAP_ERRORS[kind](friendly_error_message(exc, kind.value), details={"cause": repr(exc)})

        self._last_error = err
        logger.info("Operation failed op=%s target=%s code=%s: %s", kind.value, target_id, err.code, err.message)
        self._report(
            OperationOutcome(
                operation=kind,
                success=False,
                message=err.message,
                target_id=target_id,
                error=err,
                fields=tuple(fields),
            )
        )
        return err

    def _succeeded(self, outcome: OperationOutcome) -> None:
        self._last_error = None
        logger.info("Operation ok op=%s target=%s", outcome.operation.value, outcome.target_id)
        self._report(outcome)

    def _validate_title(self, title: str) -> str:
        clean = (title or "").strip()
        if not clean:
            raise TaskValidationError("title", "Title must not be empty.")
        if len(clean) > self.title_max_length:
            raise TaskValidationError("title", f"Title must be at most {self.title_max_length} characters.")
        return clean

    def _validate_description(self, description: str) -> str:
        clean = description.strip()
        if len(clean) > self.description_max_length:
            raise TaskValidationError(
                "description", f"Description must be at most {self.description_max_length} characters."
            )
        return clean

    def _rejected(self, kind: OperationKind, exc: TaskValidationError) -> None:
        logger.debug("Rejected %s locally: %s", kind.value, exc.message)
        self._finish()

    # ---- operations ----

    async def fetch_all(self) -> bool:
        """Replace the collection with the backend's list. Failures are reported, not raised."""
        self._begin(OperationKind.FETCH)
        try:
            response = await self._backend.list()
        except Exception as exc:
            self._failed(OperationKind.FETCH, exc)
            return False
        else:
            self._tasks = sort_newest_first(response.data)
            self._succeeded(
                OperationOutcome(
                    operation=OperationKind.FETCH,
                    success=True,
                    message=response.message,
                    count=len(self._tasks),
                )
            )
            return True
        finally:
            self._finish()

    async def create_task(self, title: str, description: str | None = None) -> Task:
        """
        Create a task on the backend and insert it at the head of the collection.

        Blank or over-long input raises TaskValidationError without a backend call.
        Backend failures are reported and re-raised, so the caller can keep its form input.
        """
        self._begin(OperationKind.CREATE)
        try:
            clean_title = self._validate_title(title)
            clean_desc = self._validate_description(description) if description else None
        except TaskValidationError as exc:
            self._rejected(OperationKind.CREATE, exc)
            raise

        try:
            response = await self._backend.create(clean_title, clean_desc)
        except Exception as exc:
            err = self._failed(OperationKind.CREATE, exc)
            if err is exc:
                raise
            raise err from exc
        else:
            task = response.data
            # Newest task, so the head keeps the collection in display order.
            self._tasks = [task] + [t for t in self._tasks if t.id != task.id]
            self._succeeded(
                OperationOutcome(
                    operation=OperationKind.CREATE,
                    success=True,
                    message="Task created successfully!",
                    target_id=task.id,
                )
            )
            return task
        finally:
            self._finish()

    async def update_task(self, task_id: str, patch: TaskPatch) -> Task:
        """
        Send a partial update and replace the local task with the backend's version.

        Used for content edits and completion toggles alike. Failures are reported and re-raised.
        """
        self._begin(OperationKind.UPDATE, task_id)
        try:
            if patch.is_empty():
                raise TaskValidationError("patch", "Nothing to update.")
            if patch.title is not None or patch.description is not None:
                patch = TaskPatch(
                    title=self._validate_title(patch.title) if patch.title is not None else None,
                    description=(
                        self._validate_description(patch.description) if patch.description is not None else None
                    ),
                    completed=patch.completed,
                )
        except TaskValidationError as exc:
            self._rejected(OperationKind.UPDATE, exc)
            raise

        fields = tuple(sorted(patch.provided()))
        try:
            response = await self._backend.update(task_id, patch)
        except Exception as exc:
            err = self._failed(OperationKind.UPDATE, exc, target_id=task_id, fields=fields)
            if err is exc:
                raise
            raise err from exc
        else:
            task = response.data
            self._tasks = [task if t.id == task_id else t for t in self._tasks]
            self._succeeded(
                OperationOutcome(
                    operation=OperationKind.UPDATE,
                    success=True,
                    message="Task updated successfully!",
                    target_id=task_id,
                    fields=fields,
                )
            )
            return task
        finally:
            self._finish()

    async def toggle_task(self, task_id: str) -> Task:
        """Flip completion of a known task (same backend call as any other update)."""
        current = self.get_task(task_id)
        if current is None:
            raise TaskValidationError("id", f"Unknown task id: {task_id}")
        return await self.update_task(task_id, TaskPatch(completed=not current.completed))

    async def delete_task(self, task_id: str) -> bool:
        """Delete one task. Failures (NotFoundError included) are reported, not raised."""
        self._begin(OperationKind.DELETE, task_id)
        try:
            await self._backend.delete(task_id)
        except Exception as exc:
            self._failed(OperationKind.DELETE, exc, target_id=task_id)
            return False
        else:
            self._tasks = [t for t in self._tasks if t.id != task_id]
            self._succeeded(
                OperationOutcome(
                    operation=OperationKind.DELETE,
                    success=True,
                    message="Task deleted successfully!",
                    target_id=task_id,
                )
            )
            return True
        finally:
            self._finish()

    async def bulk_delete_completed(self) -> int:
        """
        Delete every completed task concurrently.

        All deletes must succeed for the collection to change. On any failure a single
        BulkDeleteError is reported and nothing is removed locally, even for ids the backend
        did delete; those ids are listed in the error details and disappear on the next fetch.

        Returns the number of tasks removed locally.
        """
        self._begin(OperationKind.DELETE)
        try:
            ids = [t.id for t in self._tasks if t.completed]
            results = await asyncio.gather(
                *(self._backend.delete(task_id) for task_id in ids),
                return_exceptions=True,
            )

            failures: dict[str, Exception] = {}
            for task_id, result in zip(ids, results):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                if isinstance(result, Exception):
                    failures[task_id] = result

            if failures:
                deleted_remotely = [task_id for task_id in ids if task_id not in failures]
                if deleted_remotely:
                    logger.warning(
                        "Bulk delete partially applied on backend; local collection unchanged deleted=%s",
                        deleted_remotely,
                    )
                err = BulkDeleteError(
                    details={
                        "failed": {
                            task_id: (e.to_dict() if isinstance(e, ApiError) else {"message": str(e)})
                            for task_id, e in failures.items()
                        },
                        "deleted_remotely": deleted_remotely,
                    }
                )
                self._failed(OperationKind.DELETE, err)
                return 0

            removed = set(ids)
            self._tasks = [t for t in self._tasks if t.id not in removed]
            self._succeeded(
                OperationOutcome(
                    operation=OperationKind.DELETE,
                    success=True,
                    message=f"{len(ids)} completed task(s) deleted!",
                    count=len(ids),
                )
            )
            return len(ids)
        finally:
            self._finish()
