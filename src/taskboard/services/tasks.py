"""Task store: remote task CRUD with refetch-after-write and batched name hydration."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Iterable

from pydantic import ValidationError as PydanticValidationError

from ..core.config import Settings
from ..core.context import bind_operation_id, reset_operation_id
from ..core.retry import RetryPolicy
from ..errors import ApplicationError, NotFoundError, ValidationError
from ..models import TaskCategory, TaskStatus, utcnow
from ..remote import RemoteStore
from ..schemas import TaskDraft, TaskInsert, TaskRecord, TaskUpdate, TaskView
from .membership import ProjectMembershipResolver
from .transitions import coerce_status, next_status

logger = logging.getLogger(__name__)

# ``TaskUpdate`` field -> ``task`` column
_UPDATE_COLUMNS = {
    "title": "title",
    "status": "task_status",
    "priority": "priority",
    "categories": "task_category",
    "icon": "icon",
    "deadline": "deadline",
    "one_line": "one_line",
    "memo": "memo",
    "related_url": "related_url",
}
_NULLABLE_COLUMNS = frozenset({"icon", "related_url"})


class RefreshPolicy(str, Enum):
    """How the snapshot is re-synchronised after a successful write."""

    FULL = "full"
    ROW = "row"


class TaskStore:
    """Holds the current task snapshot of one project.

    Every mutation runs under a per-store lock, so writes and the refetches
    that follow them are applied in the order they were issued. With
    ``RefreshPolicy.FULL`` the whole project is re-read after each write;
    ``RefreshPolicy.ROW`` re-reads only the affected row.
    """

    def __init__(
        self,
        remote: RemoteStore,
        membership: ProjectMembershipResolver | None = None,
        *,
        project_id: str | None = None,
        retry: RetryPolicy | None = None,
        refresh_policy: RefreshPolicy | str = RefreshPolicy.FULL,
        upcoming_window_days: int = 7,
    ) -> None:
        self._remote = remote
        self._membership = membership or ProjectMembershipResolver(remote)
        self._project_id = project_id
        self._retry = retry or RetryPolicy()
        self._refresh_policy = RefreshPolicy(refresh_policy)
        self._upcoming_window_days = upcoming_window_days
        self._tasks: tuple[TaskView, ...] = ()
        self._lock = asyncio.Lock()
        self._last_error: ApplicationError | None = None

    @classmethod
    def from_settings(
        cls,
        remote: RemoteStore,
        settings: Settings,
        *,
        membership: ProjectMembershipResolver | None = None,
        project_id: str | None = None,
    ) -> "TaskStore":
        return cls(
            remote,
            membership,
            project_id=project_id,
            retry=RetryPolicy(retries=settings.task_fetch_retries, delay=settings.task_retry_delay_seconds),
            refresh_policy=settings.refresh_policy,
            upcoming_window_days=settings.upcoming_window_days,
        )

    @property
    def tasks(self) -> list[TaskView]:
        return list(self._tasks)

    @property
    def project_id(self) -> str | None:
        return self._project_id

    @property
    def refresh_policy(self) -> RefreshPolicy:
        return self._refresh_policy

    @property
    def last_error(self) -> ApplicationError | None:
        """Failure of the most recent mutation; cleared by the next successful one."""
        return self._last_error

    def _require_project(self, project_id: str | None = None) -> str:
        resolved = project_id or self._project_id
        if not resolved:
            raise ValidationError("No project selected.", details={"field": "project_id"})
        return resolved

    @asynccontextmanager
    async def _mutation(self, action: str, task_id: int | None = None) -> AsyncIterator[None]:
        async with self._lock:
            token = bind_operation_id()
            try:
                yield
            except ApplicationError as exc:
                self._last_error = exc
                logger.error(
                    "Task %s failed: %s",
                    action,
                    exc.message,
                    extra={"task_id": task_id, "error_code": exc.code},
                )
                raise
            else:
                self._last_error = None
            finally:
                reset_operation_id(token)

    # -- reads

    async def _hydrate(self, records: Iterable[TaskRecord]) -> list[TaskView]:
        records = list(records)
        user_ids = sorted({user_id for record in records for user_id in record.referenced_user_ids()})
        names: dict[str, str] = {}
        if user_ids:
            users = await self._retry.run(
                lambda: self._remote.list_users_by_ids(user_ids),
                description="user name lookup",
            )
            names = {user.id: user.user_name for user in users}
        return [TaskView.from_record(record, names) for record in records]

    async def _query(self, description: str, **filters: Any) -> list[TaskView]:
        project_id = self._require_project()
        records = await self._retry.run(
            lambda: self._remote.list_tasks(project_id, **filters),
            description=description,
        )
        return await self._hydrate(records)

    async def _refetch(self) -> list[TaskView]:
        views = await self._query("task fetch")
        self._tasks = tuple(views)
        logger.debug("Task snapshot replaced", extra={"project_id": self._project_id, "count": len(views)})
        return views

    async def fetch(self, project_id: str | None = None) -> list[TaskView]:
        """Read every task of the project, hydrate names and replace the snapshot."""

        resolved = self._require_project(project_id)
        async with self._lock:
            if resolved != self._project_id:
                self._tasks = ()
            self._project_id = resolved
            return list(await self._refetch())

    async def get(self, task_id: int) -> TaskView | None:
        record = await self._retry.run(lambda: self._remote.get_task(task_id), description="task lookup")
        if record is None:
            return None
        return (await self._hydrate([record]))[0]

    async def list_by_category(self, category: TaskCategory | str) -> list[TaskView]:
        return await self._query("task category query", category=TaskCategory(category))

    async def list_by_assignee(self, user_id: str) -> list[TaskView]:
        return await self._query(
            "task assignee query",
            assigned_to=user_id,
            order_by="deadline",
            descending=False,
        )

    async def list_by_status(self, status: TaskStatus | str) -> list[TaskView]:
        return await self._query(
            "task status query",
            status=coerce_status(status),
            order_by="priority",
            descending=False,
        )

    async def list_upcoming(self, days: int | None = None, *, now: datetime | None = None) -> list[TaskView]:
        """Open tasks whose deadline falls within the next ``days`` days."""

        start = now or utcnow()
        window = self._upcoming_window_days if days is None else days
        return await self._query(
            "upcoming task query",
            exclude_status=TaskStatus.DONE,
            deadline_from=start,
            deadline_to=start + timedelta(days=window),
            order_by="deadline",
            descending=False,
        )

    # -- synchronisation after writes

    def _replace_row(self, view: TaskView) -> None:
        tasks = list(self._tasks)
        for index, existing in enumerate(tasks):
            if existing.id == view.id:
                tasks[index] = view
                break
        else:
            tasks.insert(0, view)
        self._tasks = tuple(tasks)

    async def _sync_record(self, record: TaskRecord) -> TaskView:
        if record.project_id != self._project_id:
            # rows of other projects never enter the snapshot
            return (await self._hydrate([record]))[0]
        if self._refresh_policy is RefreshPolicy.FULL:
            views = await self._refetch()
            match = next((view for view in views if view.id == record.id), None)
            if match is not None:
                return match
            return (await self._hydrate([record]))[0]
        view = (await self._hydrate([record]))[0]
        self._replace_row(view)
        return view

    async def _sync(self, task_id: int, *, record: TaskRecord | None = None, deleted: bool = False) -> TaskView | None:
        if deleted:
            if self._refresh_policy is RefreshPolicy.FULL and self._project_id is not None:
                await self._refetch()
            else:
                self._tasks = tuple(view for view in self._tasks if view.id != task_id)
            return None
        if record is None:
            record = await self._retry.run(lambda: self._remote.get_task(task_id), description="task re-read")
            if record is None:
                self._tasks = tuple(view for view in self._tasks if view.id != task_id)
                return None
        return await self._sync_record(record)

    async def _load_record(self, task_id: int) -> TaskRecord:
        record = await self._retry.run(lambda: self._remote.get_task(task_id), description="task lookup")
        if record is None:
            raise NotFoundError(f"Task {task_id} does not exist.", details={"task_id": task_id})
        return record

    async def _write_columns(self, task_id: int, columns: dict[str, Any]) -> TaskView | None:
        record = await self._retry.run(
            lambda: self._remote.update_task(task_id, columns),
            description=f"task {task_id} update",
        )
        logger.info("Task %s updated", task_id, extra={"columns": sorted(columns)})
        return await self._sync(task_id, record=record)

    # -- mutations

    async def create(self, draft: TaskDraft, *, creator_id: str, project_id: str | None = None) -> TaskView:
        """Persist ``draft`` for ``creator_id`` and re-synchronise the snapshot."""

        if not draft.title.strip():
            raise ValidationError("Task title must not be empty.", details={"field": "title"})
        if not draft.categories:
            raise ValidationError("A task needs at least one category.", details={"field": "categories"})
        resolved_project = self._require_project(project_id)

        async with self._mutation("create"):
            if self._project_id is None:
                self._project_id = resolved_project
            assignee_id = await self._membership.resolve_assignee_id(draft.assigned_to, resolved_project)
            if assignee_id is None:
                if draft.assigned_to:
                    logger.warning(
                        "Assignee %r is not an active member; assigning to creator",
                        draft.assigned_to,
                        extra={"project_id": resolved_project},
                    )
                assignee_id = creator_id
            values = TaskInsert(
                title=draft.title.strip(),
                task_status=draft.status,
                priority=draft.priority,
                task_category=draft.categories,
                icon=draft.icon,
                created_by=creator_id,
                assigned_to=assignee_id,
                deadline=draft.deadline,
                one_line=draft.one_line,
                memo=draft.memo,
                related_url=draft.related_url,
                project_id=resolved_project,
            )
            # inserts are not idempotent, so they are never retried
            record = await self._remote.insert_task(values)
            logger.info("Task %s created", record.id, extra={"project_id": resolved_project})
            return await self._sync_record(record)

    def _coerce_update(self, changes: TaskUpdate | dict[str, Any]) -> TaskUpdate:
        if isinstance(changes, TaskUpdate):
            return changes
        try:
            return TaskUpdate.model_validate(changes)
        except PydanticValidationError as exc:
            raise ValidationError("Invalid task update.", details=exc.errors(include_url=False)) from exc

    async def update(self, task_id: int, changes: TaskUpdate | dict[str, Any]) -> TaskView | None:
        """Persist the given fields of ``task_id`` and re-synchronise the snapshot."""

        update = self._coerce_update(changes)
        provided = update.model_dump(exclude_unset=True)
        columns: dict[str, Any] = {}
        for field, column in _UPDATE_COLUMNS.items():
            if field not in provided:
                continue
            value = provided[field]
            if value is None and column not in _NULLABLE_COLUMNS:
                continue
            columns[column] = value

        async with self._mutation("update", task_id):
            assignee_name = provided.get("assigned_to")
            if assignee_name:
                project_id = self._project_id or (await self._load_record(task_id)).project_id
                assignee_id = await self._membership.resolve_assignee_id(assignee_name, project_id)
                if assignee_id is None:
                    logger.warning(
                        "Assignee %r is not an active member; keeping current assignee",
                        assignee_name,
                        extra={"task_id": task_id},
                    )
                else:
                    columns["assigned_to"] = assignee_id
            if not columns:
                return await self._sync(task_id)
            return await self._write_columns(task_id, columns)

    async def delete(self, task_id: int) -> None:
        async with self._mutation("delete", task_id):
            await self._retry.run(lambda: self._remote.delete_task(task_id), description=f"task {task_id} delete")
            logger.info("Task %s deleted", task_id)
            await self._sync(task_id, deleted=True)

    async def toggle_status(self, task_id: int) -> TaskView | None:
        """Advance ``task_id`` one step along the status cycle.

        ``done`` wraps straight to ``todo`` here; the confirmation gate for
        leaving ``done`` is enforced by ``TaskBoard.toggle_status``, which is
        the entry point presentation code should use.
        """

        async with self._mutation("toggle", task_id):
            record = await self._load_record(task_id)
            target = next_status(record.task_status)
            logger.debug("Task %s status %s -> %s", task_id, record.task_status.value, target.value)
            return await self._write_columns(task_id, {"task_status": target})

    async def set_status(self, task_id: int, status: TaskStatus | str) -> TaskView | None:
        """Set the status directly, bypassing the cycle."""

        target = coerce_status(status)
        async with self._mutation("set_status", task_id):
            return await self._write_columns(task_id, {"task_status": target})


__all__ = ["RefreshPolicy", "TaskStore"]
