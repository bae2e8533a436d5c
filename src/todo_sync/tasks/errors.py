# src/todo_sync/tasks/errors.py

"""
Error taxonomy for the task backend and the sync engine.

Backend errors (ApiError subclasses) carry a human-readable message and a stable code.
Local errors (validation, busy) are raised by the engine before any backend call.
"""

from __future__ import annotations

from typing import Any

FETCH_ERROR = "FETCH_ERROR"
CREATE_ERROR = "CREATE_ERROR"
UPDATE_ERROR = "UPDATE_ERROR"
DELETE_ERROR = "DELETE_ERROR"
NOT_FOUND = "NOT_FOUND"
VALIDATION_ERROR = "VALIDATION_ERROR"
BUSY = "BUSY"


class TodoSyncError(Exception):
    code: str = "ERROR"
    default_message: str = "Something went wrong."
    retryable: bool = False

    def __init__(self, message: str | None = None, *, code: str | None = None, details: Any = None) -> None:
        self.message = (message or self.default_message).strip()
        if code is not None:
            self.code = code
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"message": self.message, "code": self.code}
        if self.details is not None:
            out["details"] = self.details
        return out


class ApiError(TodoSyncError):
    """Raised at the backend boundary."""


class FetchError(ApiError):
    code = FETCH_ERROR
    default_message = "Failed to fetch todos. Please check your connection."
    retryable = True


class CreateError(ApiError):
    code = CREATE_ERROR
    default_message = "Failed to create todo. Please try again."
    retryable = True


class UpdateError(ApiError):
    code = UPDATE_ERROR
    default_message = "Failed to update todo. Please try again."
    retryable = True


class DeleteError(ApiError):
    code = DELETE_ERROR
    default_message = "Failed to delete todo. Please try again."
    retryable = True


class NotFoundError(ApiError):
    # Same id will keep failing; the task is gone on the backend.
    code = NOT_FOUND
    default_message = "Todo not found"


class BulkDeleteError(DeleteError):
    default_message = "Failed to delete completed tasks. Please try again."


class TaskValidationError(TodoSyncError):
    code = VALIDATION_ERROR
    default_message = "Invalid task input."

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(message, details={"field": field})


class BusyError(TodoSyncError):
    code = BUSY
    default_message = "Another operation is still in progress. Please wait."
    retryable = True


_FALLBACK_MESSAGES = {
    "fetch": "Failed to load tasks. Please refresh the page.",
    "create": "Failed to create task. Please try again.",
    "update": "Failed to update task. Please try again.",
    "delete": "Failed to delete task. Please try again.",
}


def friendly_error_message(err: BaseException, operation: str | None = None) -> str:
    """Turn any exception into text a user can read."""
    if isinstance(err, TodoSyncError) and err.message:
        return err.message
    fallback = _FALLBACK_MESSAGES.get(str(operation or ""))
    if fallback:
        return fallback
    return str(err).strip() or TodoSyncError.default_message
