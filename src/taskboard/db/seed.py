"""Seed script for populating development data."""

from __future__ import annotations

import asyncio
from datetime import timedelta

from ..core.config import get_settings
from ..core.logging import configure_logging
from ..models import TaskCategory, TaskStatus, UserRole, utcnow
from ..remote import SqlRemoteStore
from ..schemas import TaskDraft, UserCreate
from ..services import ProjectService, TaskStore
from .session import build_engine, build_session_factory, init_db

DEMO_USER_ID = "demo-user"
DEMO_PROJECT_CODE = "PRJ-DEMO01"


async def seed() -> None:
    """Populate the database with a small set of development fixtures."""
    settings = get_settings()
    configure_logging(settings)
    engine = build_engine(settings)
    await init_db(engine)
    remote = SqlRemoteStore(build_session_factory(engine))
    projects = ProjectService.from_settings(remote, settings)

    try:
        if await remote.get_user(DEMO_USER_ID) is None:
            await remote.insert_user(
                UserCreate(
                    id=DEMO_USER_ID,
                    user_name="Demo User",
                    email="demo@example.com",
                    role=UserRole.ADMIN,
                )
            )

        project = await remote.get_project_by_code(DEMO_PROJECT_CODE)
        if project is None:
            project = await projects.create_project(
                settings.default_project_name,
                DEMO_USER_ID,
                code=DEMO_PROJECT_CODE,
            )

        store = TaskStore.from_settings(remote, settings, project_id=project.id)
        if await store.fetch():
            return

        now = utcnow()
        await store.create(
            TaskDraft(
                title="Set up local environment",
                categories=[TaskCategory.SETTING],
                deadline=now + timedelta(days=1),
                one_line="Install dependencies and run the migrations.",
            ),
            creator_id=DEMO_USER_ID,
        )
        await store.create(
            TaskDraft(
                title="Design API",
                status=TaskStatus.IN_PROGRESS,
                categories=[TaskCategory.BACK],
                deadline=now + timedelta(days=5),
            ),
            creator_id=DEMO_USER_ID,
        )
        await store.create(
            TaskDraft(
                title="Celebrate first release",
                priority=1,
                categories=[TaskCategory.TEAM, TaskCategory.FRONT],
                deadline=now + timedelta(days=14),
            ),
            creator_id=DEMO_USER_ID,
        )
    finally:
        await engine.dispose()


def main() -> None:
    """Entry-point hook for ``python -m`` execution."""
    asyncio.run(seed())


if __name__ == "__main__":  # pragma: no cover - manual execution entry-point
    main()
