"""Repository for interacting with task persistence models."""

from __future__ import annotations

from datetime import datetime

import sqlalchemy as sa
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import Task, TaskCategory, TaskStatus
from .base import BaseRepository

_ORDERABLE_COLUMNS = {
    "created_at": Task.created_at,
    "deadline": Task.deadline,
    "priority": Task.priority,
}


class TaskRepository(BaseRepository[Task]):
    """Concrete repository encapsulating ``Task`` persistence operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Task)

    async def list_for_project(
        self,
        project_id: str,
        *,
        category: TaskCategory | None = None,
        assigned_to: str | None = None,
        status: TaskStatus | None = None,
        exclude_status: TaskStatus | None = None,
        deadline_from: datetime | None = None,
        deadline_to: datetime | None = None,
        order_by: str = "created_at",
        descending: bool = True,
    ) -> list[Task]:
        """Return the project's tasks matching the provided filters."""
        query = select(Task).where(Task.project_id == project_id)
        if category is not None:
            # Categories are stored as a JSON array of closed tag values.
            query = query.where(
                sa.cast(Task.task_category, sa.String).like(f'%"{TaskCategory(category).value}"%')
            )
        if assigned_to is not None:
            query = query.where(Task.assigned_to == assigned_to)
        if status is not None:
            query = query.where(Task.task_status == status)
        if exclude_status is not None:
            query = query.where(Task.task_status != exclude_status)
        if deadline_from is not None:
            query = query.where(Task.deadline >= deadline_from)
        if deadline_to is not None:
            query = query.where(Task.deadline <= deadline_to)

        column = _ORDERABLE_COLUMNS.get(order_by)
        if column is None:
            raise ValueError(f"Unsupported task ordering: {order_by!r}")
        if descending:
            query = query.order_by(column.desc(), Task.id.desc())
        else:
            query = query.order_by(column.asc(), Task.id.asc())

        result = await self.session.execute(query)
        return list(result.scalars().all())
