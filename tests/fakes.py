from __future__ import annotations

import asyncio
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from itertools import count
from typing import Any, Sequence

from taskboard.core.context import get_operation_id
from taskboard.errors import DatabaseIntegrityError, NotFoundError
from taskboard.models import TaskCategory, TaskStatus, UserRole
from taskboard.schemas import (
    ProjectMemberRecord,
    ProjectRecord,
    TaskInsert,
    TaskRecord,
    TaskView,
    UserCreate,
    UserRecord,
)

BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock usable wherever a ``Clock`` is expected."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRemoteStore:
    """In-memory ``RemoteStore`` recording every call by method name."""

    def __init__(self) -> None:
        self.tasks: dict[int, TaskRecord] = {}
        self.users: dict[str, UserRecord] = {}
        self.projects: dict[str, ProjectRecord] = {}
        self.members: dict[int, ProjectMemberRecord] = {}
        self.calls: list[str] = []
        self.operation_ids: list[str] = []
        self.failures: dict[str, list[Exception]] = defaultdict(list)
        self.user_fetch_gate: asyncio.Event | None = None
        self._task_ids = count(1)
        self._member_ids = count(1)
        self._project_ids = count(1)
        self._ticks = count(1)

    # -- helpers

    def _stamp(self) -> datetime:
        return BASE_TIME + timedelta(seconds=next(self._ticks))

    async def _io(self, name: str) -> None:
        self.calls.append(name)
        self.operation_ids.append(get_operation_id())
        # yield to the loop like a real network call would
        await asyncio.sleep(0)
        queue = self.failures.get(name)
        if queue:
            raise queue.pop(0)

    def fail(self, name: str, *errors: Exception) -> None:
        self.failures[name].extend(errors)

    def count(self, name: str) -> int:
        return self.calls.count(name)

    def add_user(
        self,
        user_id: str,
        user_name: str,
        *,
        email: str | None = None,
        role: UserRole = UserRole.MEMBER,
        is_active: bool = True,
    ) -> UserRecord:
        user = UserRecord(
            id=user_id,
            user_name=user_name,
            email=email or f"{user_id}@example.com",
            role=role,
            is_active=is_active,
            created_at=self._stamp(),
        )
        self.users[user_id] = user
        return user

    def add_project(self, name: str = "Demo Project", code: str | None = None) -> ProjectRecord:
        number = next(self._project_ids)
        project = ProjectRecord(
            id=f"project-{number}",
            name=name,
            code=code or f"PRJ-{number:06d}",
            created_at=self._stamp(),
        )
        self.projects[project.id] = project
        return project

    def add_member(
        self,
        project_id: str,
        user_id: str,
        *,
        role: UserRole = UserRole.MEMBER,
        is_active: bool = True,
    ) -> ProjectMemberRecord:
        member = ProjectMemberRecord(
            id=next(self._member_ids),
            project_id=project_id,
            user_id=user_id,
            role=role,
            is_active=is_active,
            created_at=self._stamp(),
        )
        self.members[member.id] = member
        return member

    def add_task(
        self,
        project_id: str,
        title: str,
        *,
        created_by: str,
        assigned_to: str | None = None,
        status: TaskStatus = TaskStatus.TODO,
        categories: Sequence[TaskCategory] = (TaskCategory.SOLO,),
        priority: int = 2,
        deadline: datetime | None = None,
    ) -> TaskRecord:
        created_at = self._stamp()
        record = TaskRecord(
            id=next(self._task_ids),
            title=title,
            task_status=status,
            priority=priority,
            task_category=list(categories),
            created_by=created_by,
            assigned_to=assigned_to or created_by,
            deadline=deadline or created_at + timedelta(days=3),
            project_id=project_id,
            created_at=created_at,
            updated_at=created_at,
        )
        self.tasks[record.id] = record
        return record

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
        await self._io("list_tasks")
        rows = [task for task in self.tasks.values() if task.project_id == project_id]
        if category is not None:
            rows = [task for task in rows if category in task.task_category]
        if assigned_to is not None:
            rows = [task for task in rows if task.assigned_to == assigned_to]
        if status is not None:
            rows = [task for task in rows if task.task_status is status]
        if exclude_status is not None:
            rows = [task for task in rows if task.task_status is not exclude_status]
        if deadline_from is not None:
            rows = [task for task in rows if task.deadline >= deadline_from]
        if deadline_to is not None:
            rows = [task for task in rows if task.deadline <= deadline_to]
        return sorted(rows, key=lambda task: (getattr(task, order_by), task.id), reverse=descending)

    async def get_task(self, task_id: int) -> TaskRecord | None:
        await self._io("get_task")
        return self.tasks.get(task_id)

    async def insert_task(self, values: TaskInsert) -> TaskRecord:
        await self._io("insert_task")
        created_at = self._stamp()
        record = TaskRecord(
            id=next(self._task_ids),
            created_at=created_at,
            updated_at=created_at,
            **values.model_dump(),
        )
        self.tasks[record.id] = record
        return record

    async def update_task(self, task_id: int, values: dict[str, Any]) -> TaskRecord:
        await self._io("update_task")
        record = self.tasks.get(task_id)
        if record is None:
            raise NotFoundError(f"Task {task_id} does not exist.")
        updated = TaskRecord.model_validate({**record.model_dump(), **values, "updated_at": self._stamp()})
        self.tasks[task_id] = updated
        return updated

    async def delete_task(self, task_id: int) -> None:
        await self._io("delete_task")
        if self.tasks.pop(task_id, None) is None:
            raise NotFoundError(f"Task {task_id} does not exist.")

    # -- users

    async def get_user(self, user_id: str) -> UserRecord | None:
        await self._io("get_user")
        if self.user_fetch_gate is not None:
            await self.user_fetch_gate.wait()
        return self.users.get(user_id)

    async def list_users_by_ids(self, user_ids: Sequence[str]) -> list[UserRecord]:
        await self._io("list_users_by_ids")
        return [self.users[user_id] for user_id in user_ids if user_id in self.users]

    async def insert_user(self, values: UserCreate) -> UserRecord:
        await self._io("insert_user")
        if values.id in self.users:
            raise DatabaseIntegrityError()
        user = UserRecord(created_at=self._stamp(), **values.model_dump())
        self.users[user.id] = user
        return user

    async def set_user_active(self, user_id: str, is_active: bool) -> None:
        await self._io("set_user_active")
        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} does not exist.")
        self.users[user_id] = user.model_copy(update={"is_active": is_active})

    # -- projects

    async def insert_project(self, name: str, code: str) -> ProjectRecord:
        await self._io("insert_project")
        if any(project.code == code for project in self.projects.values()):
            raise DatabaseIntegrityError()
        return self.add_project(name, code)

    async def get_project(self, project_id: str) -> ProjectRecord | None:
        await self._io("get_project")
        return self.projects.get(project_id)

    async def get_project_by_code(self, code: str) -> ProjectRecord | None:
        await self._io("get_project_by_code")
        return next((project for project in self.projects.values() if project.code == code), None)

    async def get_project_by_name(self, name: str) -> ProjectRecord | None:
        await self._io("get_project_by_name")
        return next((project for project in self.projects.values() if project.name == name), None)

    async def list_projects(self, *, limit: int | None = None) -> list[ProjectRecord]:
        await self._io("list_projects")
        projects = sorted(self.projects.values(), key=lambda project: project.created_at, reverse=True)
        return projects[:limit] if limit is not None else projects

    async def list_projects_by_ids(self, project_ids: Sequence[str]) -> list[ProjectRecord]:
        await self._io("list_projects_by_ids")
        return [self.projects[project_id] for project_id in project_ids if project_id in self.projects]

    # -- memberships

    async def list_members(self, project_id: str, *, active_only: bool = True) -> list[ProjectMemberRecord]:
        await self._io("list_members")
        return [
            member
            for member in self.members.values()
            if member.project_id == project_id and (member.is_active or not active_only)
        ]

    async def list_memberships(self, user_id: str, *, active_only: bool = True) -> list[ProjectMemberRecord]:
        await self._io("list_memberships")
        return [
            member
            for member in self.members.values()
            if member.user_id == user_id and (member.is_active or not active_only)
        ]

    async def get_membership(self, project_id: str, user_id: str) -> ProjectMemberRecord | None:
        await self._io("get_membership")
        return next(
            (
                member
                for member in self.members.values()
                if member.project_id == project_id and member.user_id == user_id
            ),
            None,
        )

    async def insert_member(
        self,
        project_id: str,
        user_id: str,
        *,
        role: UserRole = UserRole.MEMBER,
        is_active: bool = True,
    ) -> ProjectMemberRecord:
        await self._io("insert_member")
        if any(m.project_id == project_id and m.user_id == user_id for m in self.members.values()):
            raise DatabaseIntegrityError()
        return self.add_member(project_id, user_id, role=role, is_active=is_active)

    async def update_member(self, member_id: int, values: dict[str, Any]) -> ProjectMemberRecord:
        await self._io("update_member")
        member = self.members.get(member_id)
        if member is None:
            raise NotFoundError(f"Membership {member_id} does not exist.")
        updated = member.model_copy(update=values)
        self.members[member_id] = updated
        return updated

    async def delete_member(self, member_id: int) -> None:
        await self._io("delete_member")
        if self.members.pop(member_id, None) is None:
            raise NotFoundError(f"Membership {member_id} does not exist.")


def make_view(
    task_id: int,
    *categories: TaskCategory,
    status: TaskStatus = TaskStatus.TODO,
    title: str | None = None,
) -> TaskView:
    return TaskView(
        id=task_id,
        title=title or f"Task {task_id}",
        status=status,
        priority=2,
        categories=tuple(categories),
        created_by="Alice",
        assigned_to="Alice",
        created_by_id="alice",
        assigned_to_id="alice",
        created_at=BASE_TIME,
        deadline=BASE_TIME + timedelta(days=1),
        project_id="project-1",
    )


TASK_ROW = {
    "id": 1,
    "title": "Design API",
    "task_status": "todo",
    "priority": 2,
    "task_category": ["back"],
    "icon": None,
    "created_by": "user-1",
    "assigned_to": "user-1",
    "deadline": "2024-01-06T00:00:00+00:00",
    "one_line": None,
    "memo": None,
    "related_url": None,
    "project_id": "project-1",
    "created_at": "2024-01-01T12:00:00+00:00",
    "updated_at": "2024-01-01T12:00:00+00:00",
}
