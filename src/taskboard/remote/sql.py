"""Remote store backed by SQLModel repositories over an async SQLAlchemy engine."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Sequence

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlmodel.ext.asyncio.session import AsyncSession

from ..db.session import SessionFactory, session_scope
from ..errors import DatabaseIntegrityError, NotFoundError, TransientFailureError
from ..models import Project, ProjectMember, Task, TaskCategory, TaskStatus, User, UserRole
from ..repositories import (
    ProjectMemberRepository,
    ProjectRepository,
    TaskRepository,
    UserRepository,
)
from ..schemas import (
    ProjectMemberRecord,
    ProjectRecord,
    TaskInsert,
    TaskRecord,
    UserCreate,
    UserRecord,
)

logger = logging.getLogger(__name__)

TASK_MUTABLE_COLUMNS = frozenset(
    {
        "title",
        "task_status",
        "priority",
        "task_category",
        "icon",
        "assigned_to",
        "deadline",
        "one_line",
        "memo",
        "related_url",
    }
)
MEMBER_MUTABLE_COLUMNS = frozenset({"role", "is_active"})


def _utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _task_columns(values: dict[str, Any]) -> dict[str, Any]:
    unknown = set(values) - TASK_MUTABLE_COLUMNS
    if unknown:
        raise ValueError(f"Columns cannot be updated: {sorted(unknown)}")
    columns = dict(values)
    if "task_category" in columns:
        columns["task_category"] = [TaskCategory(item).value for item in columns["task_category"]]
    if "task_status" in columns:
        columns["task_status"] = TaskStatus(columns["task_status"])
    if "deadline" in columns:
        columns["deadline"] = _utc(columns["deadline"])
    return columns


class SqlRemoteStore:
    """``RemoteStore`` implementation running each call in its own session."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self, *, commit: bool = False) -> AsyncIterator[AsyncSession]:
        try:
            async with session_scope(self._session_factory) as session:
                yield session
                if commit:
                    await session.commit()
        except IntegrityError as exc:
            logger.warning("Integrity violation reported by the database.", exc_info=True)
            raise DatabaseIntegrityError(details={"reason": str(exc.orig)}) from exc
        except (OperationalError, DBAPIError, OSError) as exc:
            logger.warning("Database call failed.", exc_info=True)
            raise TransientFailureError(details={"reason": str(exc)}) from exc

    # -- tasks

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
    ) -> list[TaskRecord]:
        async with self._session() as session:
            rows = await TaskRepository(session).list_for_project(
                project_id,
                category=category,
                assigned_to=assigned_to,
                status=status,
                exclude_status=exclude_status,
                deadline_from=_utc(deadline_from),
                deadline_to=_utc(deadline_to),
                order_by=order_by,
                descending=descending,
            )
            return [TaskRecord.model_validate(row) for row in rows]

    async def get_task(self, task_id: int) -> TaskRecord | None:
        async with self._session() as session:
            row = await TaskRepository(session).get(task_id)
            return TaskRecord.model_validate(row) if row is not None else None

    async def insert_task(self, values: TaskInsert) -> TaskRecord:
        columns = values.model_dump()
        columns["task_category"] = [category.value for category in values.task_category]
        columns["deadline"] = _utc(values.deadline)
        async with self._session(commit=True) as session:
            repository = TaskRepository(session)
            task = await repository.refresh(await repository.add(Task(**columns)))
            record = TaskRecord.model_validate(task)
        logger.info("Inserted task %s", record.id, extra={"project_id": record.project_id})
        return record

    async def update_task(self, task_id: int, values: dict[str, Any]) -> TaskRecord:
        columns = _task_columns(values)
        async with self._session(commit=True) as session:
            repository = TaskRepository(session)
            task = await repository.get(task_id)
            if task is None:
                raise NotFoundError(f"Task {task_id} does not exist.")
            await repository.refresh(await repository.apply(task, columns))
            record = TaskRecord.model_validate(task)
        logger.info("Updated task %s", task_id, extra={"columns": sorted(columns)})
        return record

    async def delete_task(self, task_id: int) -> None:
        async with self._session(commit=True) as session:
            repository = TaskRepository(session)
            task = await repository.get(task_id)
            if task is None:
                raise NotFoundError(f"Task {task_id} does not exist.")
            await repository.delete(task)
        logger.info("Deleted task %s", task_id)

    # -- users

    async def get_user(self, user_id: str) -> UserRecord | None:
        async with self._session() as session:
            user = await UserRepository(session).get(user_id)
            return UserRecord.model_validate(user) if user is not None else None

    async def list_users_by_ids(self, user_ids: Sequence[str]) -> list[UserRecord]:
        async with self._session() as session:
            users = await UserRepository(session).list_by_ids(list(user_ids))
            return [UserRecord.model_validate(user) for user in users]

    async def insert_user(self, values: UserCreate) -> UserRecord:
        async with self._session(commit=True) as session:
            repository = UserRepository(session)
            user = await repository.refresh(await repository.add(User(**values.model_dump())))
            return UserRecord.model_validate(user)

    async def set_user_active(self, user_id: str, is_active: bool) -> None:
        async with self._session(commit=True) as session:
            repository = UserRepository(session)
            user = await repository.get(user_id)
            if user is None:
                raise NotFoundError(f"User {user_id} does not exist.")
            await repository.apply(user, {"is_active": is_active})

    # -- projects

    async def insert_project(self, name: str, code: str) -> ProjectRecord:
        async with self._session(commit=True) as session:
            repository = ProjectRepository(session)
            project = await repository.refresh(await repository.add(Project(name=name, code=code)))
            return ProjectRecord.model_validate(project)

    async def get_project(self, project_id: str) -> ProjectRecord | None:
        async with self._session() as session:
            project = await ProjectRepository(session).get(project_id)
            return ProjectRecord.model_validate(project) if project is not None else None

    async def get_project_by_code(self, code: str) -> ProjectRecord | None:
        async with self._session() as session:
            project = await ProjectRepository(session).get_by_code(code)
            return ProjectRecord.model_validate(project) if project is not None else None

    async def get_project_by_name(self, name: str) -> ProjectRecord | None:
        async with self._session() as session:
            project = await ProjectRepository(session).get_by_name(name)
            return ProjectRecord.model_validate(project) if project is not None else None

    async def list_projects(self, *, limit: int | None = None) -> list[ProjectRecord]:
        async with self._session() as session:
            projects = await ProjectRepository(session).list_recent(limit)
            return [ProjectRecord.model_validate(project) for project in projects]

    async def list_projects_by_ids(self, project_ids: Sequence[str]) -> list[ProjectRecord]:
        async with self._session() as session:
            projects = await ProjectRepository(session).list_by_ids(list(project_ids))
            return [ProjectRecord.model_validate(project) for project in projects]

    # -- memberships

    async def list_members(self, project_id: str, *, active_only: bool = True) -> list[ProjectMemberRecord]:
        async with self._session() as session:
            members = await ProjectMemberRepository(session).list_for_project(
                project_id, active_only=active_only
            )
            return [ProjectMemberRecord.model_validate(member) for member in members]

    async def list_memberships(self, user_id: str, *, active_only: bool = True) -> list[ProjectMemberRecord]:
        async with self._session() as session:
            members = await ProjectMemberRepository(session).list_for_user(user_id, active_only=active_only)
            return [ProjectMemberRecord.model_validate(member) for member in members]

    async def get_membership(self, project_id: str, user_id: str) -> ProjectMemberRecord | None:
        async with self._session() as session:
            member = await ProjectMemberRepository(session).get_for(project_id, user_id)
            return ProjectMemberRecord.model_validate(member) if member is not None else None

    async def insert_member(
        self,
        project_id: str,
        user_id: str,
        *,
        role: UserRole = UserRole.MEMBER,
        is_active: bool = True,
    ) -> ProjectMemberRecord:
        async with self._session(commit=True) as session:
            repository = ProjectMemberRepository(session)
            member = await repository.add(
                ProjectMember(project_id=project_id, user_id=user_id, role=role, is_active=is_active)
            )
            await repository.refresh(member)
            return ProjectMemberRecord.model_validate(member)

    async def update_member(self, member_id: int, values: dict[str, Any]) -> ProjectMemberRecord:
        unknown = set(values) - MEMBER_MUTABLE_COLUMNS
        if unknown:
            raise ValueError(f"Columns cannot be updated: {sorted(unknown)}")
        async with self._session(commit=True) as session:
            repository = ProjectMemberRepository(session)
            member = await repository.get(member_id)
            if member is None:
                raise NotFoundError(f"Membership {member_id} does not exist.")
            await repository.refresh(await repository.apply(member, values))
            return ProjectMemberRecord.model_validate(member)

    async def delete_member(self, member_id: int) -> None:
        async with self._session(commit=True) as session:
            repository = ProjectMemberRepository(session)
            member = await repository.get(member_id)
            if member is None:
                raise NotFoundError(f"Membership {member_id} does not exist.")
            await repository.delete(member)


__all__ = ["SqlRemoteStore"]
