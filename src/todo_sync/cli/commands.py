# src/todo_sync/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from ..core.state import AppState
from ..tasks.errors import ApiError, TaskValidationError, TodoSyncError, friendly_error_message
from ..tasks.task_models import Task, TaskFilter, TaskPatch

CommandEmitter = Callable[[str], None]
CommandHandler = Callable[[AppState, list[str], CommandEmitter | None], Awaitable[str]]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return await handler(state, args, emit)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- formatting helpers ----


def format_timestamp(ts) -> str:
    return ts.astimezone().strftime("%b %d, %H:%M")


def format_task(task: Task, position: int | None = None) -> str:
    mark = "x" if task.completed else " "
    prefix = f"#{position} " if position is not None else ""
    line = f"{prefix}[{mark}] {task.title}  (id={task.id}, created {format_timestamp(task.created_at)})"
    if task.description:
        line += f"\n      {task.description}"
    return line


def render_tasks(state: AppState) -> str:
    engine = state.engine
    counts = engine.counts
    if counts.all == 0:
        return "No tasks yet. Start by adding your first task with /add <title>."

    header = (
        f"Filter: {engine.filter.value}  "
        f"(all {counts.all} | active {counts.active} | completed {counts.completed})"
    )
    visible = engine.visible_tasks()
    if not visible:
        label = "" if engine.filter == TaskFilter.ALL else f"{engine.filter.value} "
        return f"{header}\nNo {label}tasks found."

    lines = [header]
    lines.extend(format_task(t, i) for i, t in enumerate(visible, start=1))
    if counts.completed:
        lines.append(f"Use /clear to delete {counts.completed} completed task(s).")
    return "\n".join(lines)


def _split_title_description(args: list[str]) -> tuple[str, str | None]:
    """'/add buy milk | two bottles' -> ('buy milk', 'two bottles')."""
    raw = " ".join(args)
    if "|" not in raw:
        return raw.strip(), None
    title, description = raw.split("|", 1)
    return title.strip(), description.strip()


def resolve_task_id(state: AppState, ref: str) -> str:
    """
    Accept either a task id or "#N" (1-based position in the visible list).
    """
    ref = ref.strip()
    if ref.startswith("#"):
        try:
            pos = int(ref[1:])
        except ValueError:
            raise TaskValidationError("id", f"Bad position: {ref}") from None
        visible = state.engine.visible_tasks()
        if pos < 1 or pos > len(visible):
            raise TaskValidationError("id", f"No task at position {ref} (visible: {len(visible)}).")
        return visible[pos - 1].id
    if not ref:
        raise TaskValidationError("id", "Task id is required.")
    return ref


# ---- commands ----


async def cmd_help(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return registry.build_help()


async def cmd_list(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return render_tasks(state)


async def cmd_add(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /add <title>                 -> create a task
    /add <title> | <description> -> create a task with a description
    """
    title, description = _split_title_description(args)
    if not title:
        return "Usage: /add <title> [| description]"
    if emit:
        emit("Creating...")
    try:
        task = await state.engine.create_task(title, description)
    except TaskValidationError as e:
        return e.message
    except ApiError:
        # Already reported; keep what the user typed so it can be re-sent as is.
        line = f"/add {title}" + (f" | {description}" if description else "")
        return f"Your input was kept, retry with: {line}"
    return format_task(task)


async def cmd_edit(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /edit <id|#N> <title> [| description]
    """
    if len(args) < 2:
        return "Usage: /edit <id|#N> <title> [| description]"
    try:
        task_id = resolve_task_id(state, args[0])
    except TaskValidationError as e:
        return e.message
    title, description = _split_title_description(args[1:])
    try:
        task = await state.engine.update_task(task_id, TaskPatch(title=title, description=description))
    except TaskValidationError as e:
        return e.message
    except ApiError:
        return "Edit not saved."
    return format_task(task)


async def cmd_toggle(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /toggle <id|#N>"
    try:
        task_id = resolve_task_id(state, args[0])
        task = await state.engine.toggle_task(task_id)
    except TaskValidationError as e:
        return e.message
    except ApiError:
        return "Task status unchanged."
    return format_task(task)


async def cmd_rm(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /rm <id|#N>"
    try:
        task_id = resolve_task_id(state, args[0])
    except TaskValidationError as e:
        return e.message
    ok = await state.engine.delete_task(task_id)
    return render_tasks(state) if ok else "Task not deleted."


async def cmd_clear(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if state.engine.counts.completed == 0:
        return "No completed tasks to clear."
    await state.engine.bulk_delete_completed()
    return render_tasks(state)


async def cmd_filter(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /filter                        -> show current filter
    /filter all|active|completed   -> switch filter
    """
    if not args:
        return f"Filter is {state.engine.filter.value}. Use /filter all|active|completed."
    try:
        state.engine.set_filter(args[0])
    except ValueError as e:
        return str(e)
    return render_tasks(state)


async def cmd_refresh(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if emit:
        emit("Loading your tasks...")
    ok = await state.engine.fetch_all()
    if not ok:
        return "Tasks not refreshed; showing the last loaded list.\n" + render_tasks(state)
    return render_tasks(state)


async def cmd_status(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    engine = state.engine
    settings = state.settings
    op = engine.active_operation
    busy = "idle" if op.is_idle else f"{op.kind.value}" + (f" ({op.target_id})" if op.target_id else "")
    last_error = engine.last_error
    err = friendly_error_message(last_error) if last_error is not None else "none"
    if isinstance(last_error, TodoSyncError):
        retry = "retryable" if last_error.retryable else "not retryable"
        err = f"{err} [{last_error.code}, {retry}]"
    counts = engine.counts
    return (
        "Status:\n"
        f"  Operation: {busy}\n"
        f"  Tasks: {counts.all} (active {counts.active}, completed {counts.completed})\n"
        f"  Filter: {engine.filter.value}\n"
        f"  Last error: {err}\n"
        f"  Backend latency: {settings.backend_latency_seconds:.2f}s, "
        f"failure rate: {settings.backend_failure_rate:.0%}\n"
        f"  Strict operations: {'ON' if engine.strict else 'OFF'}"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="Show tasks for the current filter.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task: /add <title> [| description].", aliases=["new"])
registry.register("edit", cmd_edit, help_text="Edit a task: /edit <id|#N> <title> [| description].")
registry.register("toggle", cmd_toggle, help_text="Mark a task done/undone: /toggle <id|#N>.", aliases=["done"])
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <id|#N>.", aliases=["del", "delete"])
registry.register("clear", cmd_clear, help_text="Delete all completed tasks.")
registry.register("filter", cmd_filter, help_text="Filter tasks: /filter all | active | completed.")
registry.register("refresh", cmd_refresh, help_text="Reload tasks from the service.", aliases=["fetch"])
registry.register("status", cmd_status, help_text="Show engine state and backend settings.")
