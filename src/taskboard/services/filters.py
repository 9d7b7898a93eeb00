"""Category filtering and grouping of hydrated task lists."""

from __future__ import annotations

from typing import Iterable, Sequence

from ..models import MAX_TASK_CATEGORIES, TaskCategory, TaskStatus
from ..schemas import FilterSelection, FilterType, TaskView, normalise_categories

# Selections showing every task, optionally narrowed by ``FilterSelection.category``.
UNFILTERED_TYPES = frozenset({FilterType.ALL, FilterType.TEAM})


def filter_tasks(tasks: Sequence[TaskView], selection: FilterSelection | None = None) -> list[TaskView]:
    """Return the tasks visible under ``selection``, preserving input order."""

    selection = selection or FilterSelection()
    if selection.type in UNFILTERED_TYPES:
        if selection.category is None:
            return list(tasks)
        category = selection.category
    else:
        category = TaskCategory(selection.type.value)
    return [task for task in tasks if category in task.categories]


def toggle_category(
    categories: Iterable[TaskCategory | str],
    category: TaskCategory | str,
    checked: bool,
) -> list[TaskCategory]:
    """Add or remove ``category``; a full set is returned unchanged when adding."""

    current = normalise_categories(categories)
    value = TaskCategory(category)
    if checked:
        if value in current or len(current) >= MAX_TASK_CATEGORIES:
            return current
        return [*current, value]
    return [item for item in current if item is not value]


def group_by_status(tasks: Iterable[TaskView]) -> dict[TaskStatus, list[TaskView]]:
    columns: dict[TaskStatus, list[TaskView]] = {status: [] for status in TaskStatus}
    for task in tasks:
        columns[task.status].append(task)
    return columns


__all__ = ["UNFILTERED_TYPES", "filter_tasks", "group_by_status", "toggle_category"]
