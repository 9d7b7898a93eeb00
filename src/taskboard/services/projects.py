"""Project administration: creation, join codes and membership management."""

from __future__ import annotations

import logging
import secrets
import string
from typing import Callable

from pydantic import ValidationError as PydanticValidationError

from ..core.config import Settings
from ..errors import (
    ApplicationError,
    DatabaseIntegrityError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from ..models import UserRole
from ..remote import RemoteStore
from ..schemas import ProjectCreate, ProjectMemberRecord, ProjectRecord, UserCreate, UserRecord

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_SUFFIX_LENGTH = 6
MAX_CODE_ATTEMPTS = 5


class ProjectService:
    """Business orchestration for ``project`` and ``project_members`` rows.

    Methods taking ``acting_user_id`` enforce that the acting user is an
    active admin of the project; passing ``None`` skips the check for
    trusted callers such as seed scripts.
    """

    def __init__(
        self,
        remote: RemoteStore,
        *,
        default_project_name: str = "Default Project",
        code_prefix: str = "PRJ",
        code_generator: Callable[[], str] | None = None,
    ) -> None:
        self._remote = remote
        self._default_project_name = default_project_name
        self._code_prefix = code_prefix
        self._code_generator = code_generator or self.generate_code

    @classmethod
    def from_settings(cls, remote: RemoteStore, settings: Settings) -> "ProjectService":
        return cls(
            remote,
            default_project_name=settings.default_project_name,
            code_prefix=settings.project_code_prefix,
        )

    def generate_code(self) -> str:
        suffix = "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_SUFFIX_LENGTH))
        return f"{self._code_prefix}-{suffix}"

    async def _unused_code(self) -> str:
        for _ in range(MAX_CODE_ATTEMPTS):
            code = self._code_generator()
            if await self._remote.get_project_by_code(code) is None:
                return code
            logger.debug("Generated project code %s already taken", code)
        raise ApplicationError(
            "Could not generate an unused project code.",
            code="project_code_exhausted",
            details={"attempts": MAX_CODE_ATTEMPTS},
        )

    async def create_project(self, name: str, creator_id: str, code: str | None = None) -> ProjectRecord:
        """Create a project and make ``creator_id`` its first admin."""

        try:
            payload = ProjectCreate(name=name, code=code)
        except PydanticValidationError as exc:
            raise ValidationError("Invalid project.", details=exc.errors(include_url=False)) from exc
        project_code = payload.code or await self._unused_code()
        project = await self._remote.insert_project(payload.name, project_code)
        await self._remote.insert_member(project.id, creator_id, role=UserRole.ADMIN)
        logger.info("Project %s created", project.code, extra={"project_id": project.id, "creator_id": creator_id})
        return project

    async def get_project_by_code(self, code: str) -> ProjectRecord | None:
        return await self._remote.get_project_by_code(code.strip().upper())

    async def join_project_by_code(self, code: str, user_id: str) -> ProjectRecord:
        project = await self.get_project_by_code(code)
        if project is None:
            raise NotFoundError(f"No project uses code {code!r}.", details={"code": code})
        membership = await self._remote.get_membership(project.id, user_id)
        if membership is None:
            await self._remote.insert_member(project.id, user_id, role=UserRole.MEMBER)
            logger.info("User %s joined project %s", user_id, project.code)
        elif not membership.is_active:
            await self._remote.update_member(membership.id, {"is_active": True})
            logger.info("User %s re-joined project %s", user_id, project.code)
        return project

    async def list_user_projects(self, user_id: str) -> list[ProjectRecord]:
        memberships = await self._remote.list_memberships(user_id, active_only=True)
        if not memberships:
            return []
        projects = {
            project.id: project
            for project in await self._remote.list_projects_by_ids([m.project_id for m in memberships])
        }
        return [projects[m.project_id] for m in memberships if m.project_id in projects]

    async def is_project_admin(self, project_id: str, user_id: str) -> bool:
        membership = await self._remote.get_membership(project_id, user_id)
        return membership is not None and membership.is_active and membership.role is UserRole.ADMIN

    async def _require_admin(self, project_id: str, acting_user_id: str | None) -> None:
        if acting_user_id is None:
            return
        if not await self.is_project_admin(project_id, acting_user_id):
            raise PermissionDeniedError(
                "Only project admins can manage members.",
                details={"project_id": project_id, "user_id": acting_user_id},
            )

    async def _require_membership(self, project_id: str, user_id: str) -> ProjectMemberRecord:
        membership = await self._remote.get_membership(project_id, user_id)
        if membership is None:
            raise NotFoundError(
                f"User {user_id} is not a member of project {project_id}.",
                details={"project_id": project_id, "user_id": user_id},
            )
        return membership

    async def add_member(
        self,
        project_id: str,
        user_id: str,
        *,
        role: UserRole = UserRole.MEMBER,
        acting_user_id: str | None = None,
    ) -> ProjectMemberRecord:
        await self._require_admin(project_id, acting_user_id)
        return await self._remote.insert_member(project_id, user_id, role=role)

    async def update_member_role(
        self,
        project_id: str,
        user_id: str,
        role: UserRole,
        *,
        acting_user_id: str | None = None,
    ) -> ProjectMemberRecord:
        await self._require_admin(project_id, acting_user_id)
        membership = await self._require_membership(project_id, user_id)
        return await self._remote.update_member(membership.id, {"role": UserRole(role)})

    async def deactivate_member(
        self,
        project_id: str,
        user_id: str,
        *,
        acting_user_id: str | None = None,
    ) -> ProjectMemberRecord:
        await self._require_admin(project_id, acting_user_id)
        membership = await self._require_membership(project_id, user_id)
        return await self._remote.update_member(membership.id, {"is_active": False})

    async def remove_member(
        self,
        project_id: str,
        user_id: str,
        *,
        acting_user_id: str | None = None,
    ) -> None:
        await self._require_admin(project_id, acting_user_id)
        membership = await self._require_membership(project_id, user_id)
        await self._remote.delete_member(membership.id)
        logger.info("User %s removed from project %s", user_id, project_id)

    async def set_user_active(self, user_id: str, is_active: bool) -> None:
        await self._remote.set_user_active(user_id, is_active)

    async def ensure_user_has_project(self, user_id: str) -> ProjectRecord:
        """Return a project of ``user_id``, enrolling them in a fallback project if needed."""

        memberships = await self._remote.list_memberships(user_id, active_only=True)
        if memberships:
            project = await self._remote.get_project(memberships[0].project_id)
            if project is not None:
                return project

        project = await self._remote.get_project_by_name(self._default_project_name)
        if project is None:
            existing = await self._remote.list_projects(limit=1)
            if not existing:
                raise NotFoundError("No project exists to enrol the user in.", details={"user_id": user_id})
            project = existing[0]

        try:
            await self._remote.insert_member(project.id, user_id, role=UserRole.MEMBER)
        except DatabaseIntegrityError:
            logger.info("User %s already belongs to project %s", user_id, project.code)
        else:
            logger.info("User %s enrolled in project %s", user_id, project.code)
        return project

    async def register_user(self, values: UserCreate) -> tuple[UserRecord, ProjectRecord]:
        """Provision the profile row for a new sign-up and enrol it in a project."""

        user = await self._remote.insert_user(values)
        project = await self.ensure_user_has_project(user.id)
        return user, project


__all__ = ["ProjectService"]
