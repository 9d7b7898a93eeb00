from __future__ import annotations

import asyncio

import pytest

from fakes import FakeClock, FakeRemoteStore
from taskboard.core.retry import RetryPolicy
from taskboard.errors import TransientFailureError
from taskboard.services import (
    AuthSession,
    IdentityCache,
    LocalSessionProvider,
    SessionCacheManager,
    SessionEvent,
    SessionState,
)

pytestmark = pytest.mark.asyncio


@pytest.fixture()
def manager(remote: FakeRemoteStore, clock: FakeClock) -> SessionCacheManager:
    remote.add_user("alice", "Alice")
    return SessionCacheManager(
        remote,
        IdentityCache(10.0, clock=clock),
        timeout=0.05,
        retry=RetryPolicy(retries=1, delay=0.0),
    )


@pytest.fixture()
def provider(manager: SessionCacheManager) -> tuple[LocalSessionProvider, SessionState]:
    provider = LocalSessionProvider()
    state = SessionState(manager)
    state.attach(provider)
    return provider, state


async def test_sign_in_resolves_identity(provider, remote: FakeRemoteStore) -> None:
    session_provider, state = provider

    await session_provider.sign_in(AuthSession("alice", "alice@example.com"))

    assert state.is_authenticated
    assert state.identity is not None
    assert state.identity.user_name == "Alice"
    assert state.loading is False
    assert remote.count("get_user") == 1


async def test_token_refresh_is_ignored(provider, remote: FakeRemoteStore, clock: FakeClock) -> None:
    session_provider, state = provider
    await session_provider.sign_in(AuthSession("alice"))
    clock.advance(60)

    await session_provider.refresh_token("new-token")

    assert remote.count("get_user") == 1
    assert state.identity is not None


async def test_sign_out_clears_identity_and_cache(provider, manager: SessionCacheManager) -> None:
    session_provider, state = provider
    await session_provider.sign_in(AuthSession("alice"))

    await session_provider.sign_out()

    assert state.identity is None
    assert state.role is None
    assert "alice" not in manager.cache
    assert session_provider.session is None


async def test_unresolved_identity_leaves_state_unchanged(
    provider, remote: FakeRemoteStore, manager: SessionCacheManager
) -> None:
    session_provider, state = provider

    await session_provider.sign_in(AuthSession("pending-user"))
    assert state.identity is None

    gate = asyncio.Event()
    remote.user_fetch_gate = gate
    await session_provider.emit(SessionEvent.INITIAL_SESSION, AuthSession("alice"))
    assert state.identity is None

    gate.set()
    await manager.drain()


async def test_transient_failure_is_logged_not_raised(provider, remote: FakeRemoteStore) -> None:
    session_provider, state = provider
    remote.fail("get_user", TransientFailureError(), TransientFailureError())

    await session_provider.sign_in(AuthSession("alice"))

    assert state.identity is None
    assert state.loading is False


async def test_detach_stops_event_delivery(provider, remote: FakeRemoteStore) -> None:
    session_provider, state = provider
    state.detach()

    await session_provider.sign_in(AuthSession("alice"))

    assert state.identity is None
    assert remote.count("get_user") == 0
