"""Project roster resolution and assignee name lookup."""

from __future__ import annotations

import logging

from ..remote import RemoteStore
from ..schemas import ProjectMemberView

logger = logging.getLogger(__name__)


class ProjectMembershipResolver:
    """Join ``project_members`` with ``users`` to produce a project's active roster."""

    def __init__(self, remote: RemoteStore) -> None:
        self._remote = remote

    async def get_members(self, project_id: str) -> list[ProjectMemberView]:
        """Return active members of ``project_id`` using one batched user lookup."""

        memberships = await self._remote.list_members(project_id, active_only=True)
        if not memberships:
            return []
        user_ids = list(dict.fromkeys(membership.user_id for membership in memberships))
        users = {user.id: user for user in await self._remote.list_users_by_ids(user_ids)}

        roster: list[ProjectMemberView] = []
        for membership in memberships:
            user = users.get(membership.user_id)
            if user is None or not user.is_active:
                continue
            roster.append(
                ProjectMemberView(
                    id=user.id,
                    membership_id=membership.id,
                    user_name=user.user_name,
                    email=user.email,
                    role=membership.role,
                    is_active=True,
                )
            )
        return roster

    async def resolve_assignee_id(self, display_name: str | None, project_id: str) -> str | None:
        """Return the id of the first active member named ``display_name``, if any."""

        if not display_name or not display_name.strip():
            return None
        name = display_name.strip()
        matches = [member for member in await self.get_members(project_id) if member.user_name == name]
        if not matches:
            return None
        if len(matches) > 1:
            logger.warning(
                "Display name %r matches %d members; using the first",
                name,
                len(matches),
                extra={"project_id": project_id, "candidate_ids": [member.id for member in matches]},
            )
        return matches[0].id


__all__ = ["ProjectMembershipResolver"]
