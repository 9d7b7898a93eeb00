from __future__ import annotations

from collections.abc import AsyncIterator, Iterator

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from fakes import FakeClock, FakeRemoteStore
from taskboard.core.config import Settings, get_settings
from taskboard.core.context import clear_operation_id
from taskboard.core.retry import RetryPolicy
from taskboard.db import SessionFactory, build_session_factory, init_db
from taskboard.models import UserRole
from taskboard.schemas import ProjectRecord


@pytest.fixture(autouse=True)
def reset_context() -> Iterator[None]:
    get_settings.cache_clear()
    clear_operation_id()
    yield
    clear_operation_id()
    get_settings.cache_clear()


@pytest.fixture()
def settings() -> Settings:
    return Settings(environment="test")


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def fast_retry() -> RetryPolicy:
    return RetryPolicy(retries=2, delay=0.0)


@pytest.fixture()
def remote() -> FakeRemoteStore:
    return FakeRemoteStore()


@pytest.fixture()
def project(remote: FakeRemoteStore) -> ProjectRecord:
    """Project with active members Alice (admin) and Bob, plus an inactive Carol."""
    project = remote.add_project("Demo Project", "PRJ-DEMO01")
    remote.add_user("alice", "Alice", role=UserRole.ADMIN)
    remote.add_user("bob", "Bob")
    remote.add_user("carol", "Carol")
    remote.add_member(project.id, "alice", role=UserRole.ADMIN)
    remote.add_member(project.id, "bob")
    remote.add_member(project.id, "carol", is_active=False)
    return project


@pytest.fixture()
async def engine() -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture()
def session_factory(engine: AsyncEngine) -> SessionFactory:
    return build_session_factory(engine)
