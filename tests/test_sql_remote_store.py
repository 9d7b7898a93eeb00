from __future__ import annotations

from datetime import timedelta

import pytest

from taskboard.db import SessionFactory
from taskboard.errors import DatabaseIntegrityError, NotFoundError
from taskboard.models import TaskCategory, TaskStatus, UserRole, utcnow
from taskboard.remote import SqlRemoteStore
from taskboard.schemas import FilterSelection, FilterType, ProjectRecord, TaskDraft, TaskInsert, UserCreate
from taskboard.services import ProjectService, TaskStore
from taskboard.services.filters import filter_tasks

pytestmark = pytest.mark.asyncio


@pytest.fixture()
def store(session_factory: SessionFactory) -> SqlRemoteStore:
    return SqlRemoteStore(session_factory)


@pytest.fixture()
async def seeded(store: SqlRemoteStore) -> ProjectRecord:
    await store.insert_user(UserCreate(id="alice", user_name="Alice", email="alice@example.com", role=UserRole.ADMIN))
    await store.insert_user(UserCreate(id="bob", user_name="Bob", email="bob@example.com"))
    project = await store.insert_project("Demo Project", "PRJ-DEMO01")
    await store.insert_member(project.id, "alice", role=UserRole.ADMIN)
    await store.insert_member(project.id, "bob", is_active=False)
    return project


def _insert(project: ProjectRecord, title: str, *categories: TaskCategory, **overrides) -> TaskInsert:
    values = {
        "title": title,
        "task_category": list(categories) or [TaskCategory.SOLO],
        "created_by": "alice",
        "assigned_to": "alice",
        "deadline": utcnow() + timedelta(days=3),
        "project_id": project.id,
    }
    values.update(overrides)
    return TaskInsert(**values)


async def test_insert_and_get_task_round_trip(store: SqlRemoteStore, seeded: ProjectRecord) -> None:
    created = await store.insert_task(_insert(seeded, "Design API", TaskCategory.BACK))

    fetched = await store.get_task(created.id)

    assert fetched is not None
    assert fetched.id == created.id
    assert fetched.task_status is TaskStatus.TODO
    assert fetched.task_category == [TaskCategory.BACK]
    assert fetched.deadline.tzinfo is not None
    assert fetched.created_at.tzinfo is not None
    assert await store.get_task(9999) is None


async def test_list_tasks_filters_and_orders(store: SqlRemoteStore, seeded: ProjectRecord) -> None:
    now = utcnow()
    first = await store.insert_task(_insert(seeded, "First", TaskCategory.FRONT, deadline=now + timedelta(days=9)))
    second = await store.insert_task(
        _insert(seeded, "Second", TaskCategory.BACK, TaskCategory.FRONT, deadline=now + timedelta(days=1), priority=1)
    )
    third = await store.insert_task(
        _insert(seeded, "Third", TaskCategory.SETTING, assigned_to="bob", task_status=TaskStatus.DONE)
    )

    newest_first = await store.list_tasks(seeded.id)
    front = await store.list_tasks(seeded.id, category=TaskCategory.FRONT)
    by_deadline = await store.list_tasks(seeded.id, order_by="deadline", descending=False)
    open_tasks = await store.list_tasks(seeded.id, exclude_status=TaskStatus.DONE)
    bobs = await store.list_tasks(seeded.id, assigned_to="bob")
    window = await store.list_tasks(seeded.id, deadline_from=now, deadline_to=now + timedelta(days=2))

    assert [task.id for task in newest_first] == [third.id, second.id, first.id]
    assert {task.id for task in front} == {first.id, second.id}
    assert [task.id for task in by_deadline] == [second.id, third.id, first.id]
    assert {task.id for task in open_tasks} == {first.id, second.id}
    assert [task.id for task in bobs] == [third.id]
    assert [task.id for task in window] == [second.id]


async def test_update_task_changes_whitelisted_columns(store: SqlRemoteStore, seeded: ProjectRecord) -> None:
    created = await store.insert_task(_insert(seeded, "Draft"))

    updated = await store.update_task(
        created.id,
        {"title": "Final", "task_status": "in-progress", "task_category": ["team", "front"]},
    )

    assert updated.title == "Final"
    assert updated.task_status is TaskStatus.IN_PROGRESS
    assert updated.task_category == [TaskCategory.TEAM, TaskCategory.FRONT]
    with pytest.raises(ValueError):
        await store.update_task(created.id, {"project_id": "elsewhere"})
    with pytest.raises(NotFoundError):
        await store.update_task(4040, {"title": "Ghost"})


async def test_delete_task(store: SqlRemoteStore, seeded: ProjectRecord) -> None:
    created = await store.insert_task(_insert(seeded, "Short lived"))
    await store.delete_task(created.id)
    assert await store.get_task(created.id) is None
    with pytest.raises(NotFoundError):
        await store.delete_task(created.id)


async def test_integrity_violations_are_translated(store: SqlRemoteStore, seeded: ProjectRecord) -> None:
    with pytest.raises(DatabaseIntegrityError):
        await store.insert_project("Copy", seeded.code)
    with pytest.raises(DatabaseIntegrityError):
        await store.insert_member(seeded.id, "alice")


async def test_users_and_memberships(store: SqlRemoteStore, seeded: ProjectRecord) -> None:
    users = await store.list_users_by_ids(["alice", "bob", "nobody"])
    assert sorted(user.user_name for user in users) == ["Alice", "Bob"]

    active = await store.list_members(seeded.id)
    everyone = await store.list_members(seeded.id, active_only=False)
    assert [member.user_id for member in active] == ["alice"]
    assert {member.user_id for member in everyone} == {"alice", "bob"}

    bob = await store.get_membership(seeded.id, "bob")
    assert bob is not None
    reactivated = await store.update_member(bob.id, {"is_active": True, "role": UserRole.ADMIN})
    assert reactivated.is_active and reactivated.role is UserRole.ADMIN
    assert [m.project_id for m in await store.list_memberships("bob")] == [seeded.id]

    await store.set_user_active("bob", False)
    user = await store.get_user("bob")
    assert user is not None and user.is_active is False

    await store.delete_member(bob.id)
    assert await store.get_membership(seeded.id, "bob") is None


async def test_project_lookups(store: SqlRemoteStore, seeded: ProjectRecord) -> None:
    other = await store.insert_project("Other", "PRJ-OTHER1")

    assert (await store.get_project(seeded.id)) == seeded
    assert (await store.get_project_by_code("PRJ-OTHER1")).id == other.id  # type: ignore[union-attr]
    assert (await store.get_project_by_name("Demo Project")).id == seeded.id  # type: ignore[union-attr]
    assert {p.id for p in await store.list_projects_by_ids([seeded.id, other.id])} == {seeded.id, other.id}
    assert len(await store.list_projects(limit=1)) == 1


async def test_task_store_over_sql_backend(store: SqlRemoteStore, seeded: ProjectRecord) -> None:
    await ProjectService(store).join_project_by_code(seeded.code, "bob")
    tasks = TaskStore(store, project_id=seeded.id)

    created = await tasks.create(
        TaskDraft(title="Design API", categories=["back"], assigned_to="Bob", deadline=utcnow() + timedelta(days=5)),
        creator_id="alice",
    )
    toggled = await tasks.toggle_status(created.id)

    assert created.assigned_to == "Bob"
    assert created.created_by == "Alice"
    assert toggled is not None and toggled.status is TaskStatus.IN_PROGRESS
    assert [t.id for t in filter_tasks(tasks.tasks, FilterSelection(type=FilterType.BACK))] == [created.id]
    assert filter_tasks(tasks.tasks, FilterSelection(type=FilterType.FRONT)) == []
