# src/todo_sync/tasks/task_filters.py

"""Pure read-side helpers: ordering, filtering and per-filter counts."""

from __future__ import annotations

from collections.abc import Iterable

from .task_models import Task, TaskCounts, TaskFilter


def sort_newest_first(tasks: Iterable[Task]) -> list[Task]:
    # sorted() is stable, so tasks sharing created_at keep their relative order.
    return sorted(tasks, key=lambda t: t.created_at, reverse=True)


def matches_filter(task: Task, selection: TaskFilter) -> bool:
    if selection == TaskFilter.ACTIVE:
        return not task.completed
    if selection == TaskFilter.COMPLETED:
        return task.completed
    return True


def filter_tasks(tasks: Iterable[Task], selection: TaskFilter | str) -> list[Task]:
    selection = TaskFilter.parse(selection)
    return [t for t in tasks if matches_filter(t, selection)]


def count_tasks(tasks: Iterable[Task]) -> TaskCounts:
    total = 0
    completed = 0
    for t in tasks:
        total += 1
        if t.completed:
            completed += 1
    return TaskCounts(all=total, active=total - completed, completed=completed)
