from __future__ import annotations

import logging

import pytest

from fakes import FakeRemoteStore
from taskboard.models import UserRole
from taskboard.schemas import ProjectRecord
from taskboard.services.membership import ProjectMembershipResolver

pytestmark = pytest.mark.asyncio


async def test_get_members_returns_active_roster_in_one_batch(
    remote: FakeRemoteStore, project: ProjectRecord
) -> None:
    resolver = ProjectMembershipResolver(remote)

    roster = await resolver.get_members(project.id)

    assert [(member.id, member.user_name, member.role) for member in roster] == [
        ("alice", "Alice", UserRole.ADMIN),
        ("bob", "Bob", UserRole.MEMBER),
    ]
    assert remote.count("list_members") == 1
    assert remote.count("list_users_by_ids") == 1
    assert remote.count("get_user") == 0


async def test_get_members_skips_deactivated_users(remote: FakeRemoteStore, project: ProjectRecord) -> None:
    remote.add_user("bob", "Bob", is_active=False)
    roster = await ProjectMembershipResolver(remote).get_members(project.id)
    assert [member.id for member in roster] == ["alice"]


async def test_get_members_of_empty_project_skips_user_lookup(remote: FakeRemoteStore) -> None:
    empty = remote.add_project("Empty")
    assert await ProjectMembershipResolver(remote).get_members(empty.id) == []
    assert remote.count("list_users_by_ids") == 0


async def test_resolve_assignee_id_matches_display_name(remote: FakeRemoteStore, project: ProjectRecord) -> None:
    resolver = ProjectMembershipResolver(remote)
    assert await resolver.resolve_assignee_id("Bob", project.id) == "bob"
    assert await resolver.resolve_assignee_id("  Bob ", project.id) == "bob"


@pytest.mark.parametrize("name", ["Carol", "Zed", "", None])
async def test_resolve_assignee_id_returns_none_without_active_match(
    remote: FakeRemoteStore, project: ProjectRecord, name: str | None
) -> None:
    assert await ProjectMembershipResolver(remote).resolve_assignee_id(name, project.id) is None


async def test_duplicate_names_pick_first_and_warn(
    remote: FakeRemoteStore, project: ProjectRecord, caplog: pytest.LogCaptureFixture
) -> None:
    remote.add_user("bob-2", "Bob")
    remote.add_member(project.id, "bob-2")

    with caplog.at_level(logging.WARNING, logger="taskboard.services.membership"):
        assignee = await ProjectMembershipResolver(remote).resolve_assignee_id("Bob", project.id)

    assert assignee == "bob"
    assert any("matches 2 members" in record.getMessage() for record in caplog.records)
