"""Interface of the remote relational store the synchronization layer talks to."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol, Sequence

from ..models import TaskCategory, TaskStatus, UserRole
from ..schemas import (
    ProjectMemberRecord,
    ProjectRecord,
    TaskInsert,
    TaskRecord,
    UserCreate,
    UserRecord,
)


class RemoteStore(Protocol):
    """Opaque async CRUD backend exposing the ``task``, ``users``, ``project`` and ``project_members`` tables.

    Implementations raise ``TransientFailureError`` for network/server failures,
    ``DatabaseIntegrityError`` for constraint violations and return ``None`` for
    missing single rows. Mutations of a row that does not exist raise
    ``NotFoundError``.
    """

    async def list_tasks(
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
    ) -> list[TaskRecord]: ...

    async def get_task(self, task_id: int) -> TaskRecord | None: ...

    async def insert_task(self, values: TaskInsert) -> TaskRecord: ...

    async def update_task(self, task_id: int, values: dict[str, Any]) -> TaskRecord: ...

    async def delete_task(self, task_id: int) -> None: ...

    async def get_user(self, user_id: str) -> UserRecord | None: ...

    async def list_users_by_ids(self, user_ids: Sequence[str]) -> list[UserRecord]: ...

    async def insert_user(self, values: UserCreate) -> UserRecord: ...

    async def set_user_active(self, user_id: str, is_active: bool) -> None: ...

    async def insert_project(self, name: str, code: str) -> ProjectRecord: ...

    async def get_project(self, project_id: str) -> ProjectRecord | None: ...

    async def get_project_by_code(self, code: str) -> ProjectRecord | None: ...

    async def get_project_by_name(self, name: str) -> ProjectRecord | None: ...

    async def list_projects(self, *, limit: int | None = None) -> list[ProjectRecord]: ...

    async def list_projects_by_ids(self, project_ids: Sequence[str]) -> list[ProjectRecord]: ...

    async def list_members(self, project_id: str, *, active_only: bool = True) -> list[ProjectMemberRecord]: ...

    async def list_memberships(self, user_id: str, *, active_only: bool = True) -> list[ProjectMemberRecord]: ...

    async def get_membership(self, project_id: str, user_id: str) -> ProjectMemberRecord | None: ...

    async def insert_member(
        self,
        project_id: str,
        user_id: str,
        *,
        role: UserRole = UserRole.MEMBER,
        is_active: bool = True,
    ) -> ProjectMemberRecord: ...

    async def update_member(self, member_id: int, values: dict[str, Any]) -> ProjectMemberRecord: ...

    async def delete_member(self, member_id: int) -> None: ...


__all__ = ["RemoteStore"]
