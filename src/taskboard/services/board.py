"""Facade consumed by presentation code: filtered task list, mutations and the confirmation gate."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..errors import ConfirmationRequiredError, NotFoundError, ValidationError
from ..models import TaskCategory, TaskStatus, UserRole
from ..schemas import FilterSelection, FilterType, Identity, TaskDraft, TaskStatistics, TaskUpdate, TaskView
from .filters import filter_tasks, group_by_status
from .session import SessionState
from .tasks import TaskStore
from .transitions import ConfirmationAction, plan_toggle, resolve_confirmation

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ToggleOutcome:
    """Result of a toggle or confirmation; ``task`` is ``None`` once deleted."""

    task_id: int
    applied: bool
    task: TaskView | None = None
    options: tuple[ConfirmationAction, ...] = ()

    @property
    def requires_confirmation(self) -> bool:
        return not self.applied


class TaskBoard:
    def __init__(
        self,
        store: TaskStore,
        session: SessionState,
        *,
        selection: FilterSelection | None = None,
    ) -> None:
        self._store = store
        self._session = session
        self._selection = selection or FilterSelection()
        self._pending_task_id: int | None = None

    @property
    def store(self) -> TaskStore:
        return self._store

    @property
    def tasks(self) -> list[TaskView]:
        return self._store.tasks

    @property
    def selection(self) -> FilterSelection:
        return self._selection

    @property
    def visible_tasks(self) -> list[TaskView]:
        return filter_tasks(self._store.tasks, self._selection)

    @property
    def columns(self) -> dict[TaskStatus, list[TaskView]]:
        return group_by_status(self.visible_tasks)

    @property
    def statistics(self) -> TaskStatistics:
        return TaskStatistics.from_tasks(self.visible_tasks)

    @property
    def identity(self) -> Identity | None:
        return self._session.identity

    @property
    def role(self) -> UserRole | None:
        return self._session.role

    @property
    def pending_confirmation(self) -> int | None:
        """Id of the done task whose toggle awaits a ``ConfirmationAction``."""
        return self._pending_task_id

    def set_filter(
        self,
        selection: FilterSelection | FilterType | str,
        category: TaskCategory | str | None = None,
    ) -> list[TaskView]:
        if isinstance(selection, FilterSelection):
            self._selection = selection
        else:
            self._selection = FilterSelection(
                type=FilterType(selection),
                category=TaskCategory(category) if category is not None else None,
            )
        return self.visible_tasks

    async def load(self, project_id: str | None = None) -> list[TaskView]:
        project = project_id or self._store.project_id
        if project is None and self.identity is not None:
            project = self.identity.project_id
        await self._store.fetch(project)
        return self.visible_tasks

    async def create(self, draft: TaskDraft) -> TaskView:
        identity = self.identity
        if identity is None:
            raise ValidationError("Sign in before creating tasks.", details={"field": "created_by"})
        return await self._store.create(
            draft,
            creator_id=identity.id,
            project_id=self._store.project_id or identity.project_id,
        )

    async def update(self, task_id: int, changes: TaskUpdate | dict[str, Any]) -> TaskView | None:
        return await self._store.update(task_id, changes)

    async def delete(self, task_id: int) -> None:
        await self._store.delete(task_id)
        if self._pending_task_id == task_id:
            self._pending_task_id = None

    async def toggle_status(self, task_id: int) -> ToggleOutcome:
        task = next((view for view in self._store.tasks if view.id == task_id), None)
        if task is None:
            task = await self._store.get(task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id} does not exist.", details={"task_id": task_id})

        decision = plan_toggle(task.status)
        if decision.target is None:
            self._pending_task_id = task_id
            logger.info("Toggle of completed task %s awaits confirmation", task_id)
            return ToggleOutcome(task_id=task_id, applied=False, task=task, options=decision.options)

        updated = await self._store.set_status(task_id, decision.target)
        return ToggleOutcome(task_id=task_id, applied=True, task=updated)

    async def confirm(self, action: ConfirmationAction | str) -> ToggleOutcome:
        task_id = self._pending_task_id
        if task_id is None:
            raise ConfirmationRequiredError("No toggle is awaiting confirmation.")
        target = resolve_confirmation(action)
        if target is None:
            await self._store.delete(task_id)
            self._pending_task_id = None
            return ToggleOutcome(task_id=task_id, applied=True)
        updated = await self._store.set_status(task_id, target)
        self._pending_task_id = None
        return ToggleOutcome(task_id=task_id, applied=True, task=updated)

    def cancel_confirmation(self) -> None:
        self._pending_task_id = None


__all__ = ["TaskBoard", "ToggleOutcome"]
