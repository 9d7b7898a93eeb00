"""Repositories for projects and project memberships."""

from __future__ import annotations

from typing import Sequence

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import Project, ProjectMember
from .base import BaseRepository


class ProjectRepository(BaseRepository[Project]):
    """Concrete repository for ``Project`` rows."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Project)

    async def get_by_code(self, code: str) -> Project | None:
        result = await self.session.execute(select(Project).where(Project.code == code))
        return result.scalar_one_or_none()

    async def get_by_name(self, name: str) -> Project | None:
        result = await self.session.execute(
            select(Project).where(Project.name == name).order_by(Project.created_at).limit(1)
        )
        return result.scalars().first()

    async def list_recent(self, limit: int | None = None) -> list[Project]:
        """Return projects newest first."""
        query = select(Project).order_by(Project.created_at.desc())
        if limit is not None:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_by_ids(self, ids: Sequence[str]) -> list[Project]:
        if not ids:
            return []
        result = await self.session.execute(select(Project).where(Project.id.in_(ids)))
        return list(result.scalars().all())


class ProjectMemberRepository(BaseRepository[ProjectMember]):
    """Concrete repository for ``ProjectMember`` rows."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, ProjectMember)

    async def list_for_project(self, project_id: str, *, active_only: bool = True) -> list[ProjectMember]:
        query = select(ProjectMember).where(ProjectMember.project_id == project_id)
        if active_only:
            query = query.where(ProjectMember.is_active.is_(True))
        query = query.order_by(ProjectMember.created_at, ProjectMember.id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_for_user(self, user_id: str, *, active_only: bool = True) -> list[ProjectMember]:
        query = select(ProjectMember).where(ProjectMember.user_id == user_id)
        if active_only:
            query = query.where(ProjectMember.is_active.is_(True))
        query = query.order_by(ProjectMember.created_at, ProjectMember.id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_for(self, project_id: str, user_id: str) -> ProjectMember | None:
        result = await self.session.execute(
            select(ProjectMember).where(
                ProjectMember.project_id == project_id,
                ProjectMember.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()
