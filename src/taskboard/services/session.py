"""Session provider events and the identity state derived from them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Protocol

from ..errors import TransientFailureError
from ..models import UserRole
from ..schemas import Identity
from .identity import SessionCacheManager

logger = logging.getLogger(__name__)


class SessionEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    INITIAL_SESSION = "INITIAL_SESSION"
    USER_UPDATED = "USER_UPDATED"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    SIGNED_OUT = "SIGNED_OUT"


RESOLVING_EVENTS = frozenset({SessionEvent.SIGNED_IN, SessionEvent.INITIAL_SESSION, SessionEvent.USER_UPDATED})


@dataclass(frozen=True, slots=True)
class AuthSession:
    """Authenticated session as reported by the session provider."""

    user_id: str
    email: str | None = None
    access_token: str | None = None


SessionListener = Callable[[SessionEvent, "AuthSession | None"], Awaitable[None]]


class SessionProvider(Protocol):
    def subscribe(self, listener: SessionListener) -> Callable[[], None]: ...


class LocalSessionProvider:
    """In-process session provider delivering events to subscribers in order."""

    def __init__(self) -> None:
        self._listeners: list[SessionListener] = []
        self._session: AuthSession | None = None

    @property
    def session(self) -> AuthSession | None:
        return self._session

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def emit(self, event: SessionEvent, session: AuthSession | None = None) -> None:
        self._session = None if event is SessionEvent.SIGNED_OUT else session
        for listener in list(self._listeners):
            await listener(event, session)

    async def sign_in(self, session: AuthSession) -> None:
        await self.emit(SessionEvent.SIGNED_IN, session)

    async def sign_out(self) -> None:
        await self.emit(SessionEvent.SIGNED_OUT)

    async def refresh_token(self, access_token: str | None = None) -> None:
        if self._session is None:
            return
        session = AuthSession(self._session.user_id, self._session.email, access_token)
        await self.emit(SessionEvent.TOKEN_REFRESHED, session)


class SessionState:
    """Current signed-in identity, kept in step with session provider events."""

    def __init__(self, manager: SessionCacheManager) -> None:
        self._manager = manager
        self._identity: Identity | None = None
        self._loading = False
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def identity(self) -> Identity | None:
        return self._identity

    @property
    def role(self) -> UserRole | None:
        return self._identity.role if self._identity is not None else None

    @property
    def is_authenticated(self) -> bool:
        return self._identity is not None

    @property
    def loading(self) -> bool:
        return self._loading

    def attach(self, provider: SessionProvider) -> None:
        self.detach()
        self._unsubscribe = provider.subscribe(self.handle)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def handle(self, event: SessionEvent, session: AuthSession | None) -> None:
        if event is SessionEvent.TOKEN_REFRESHED:
            logger.debug("Ignoring %s", event.value)
            return

        if event is SessionEvent.SIGNED_OUT or session is None:
            self._clear(session)
            return

        if event not in RESOLVING_EVENTS:
            return

        self._loading = True
        try:
            resolution = await self._manager.resolve(session.user_id)
        except TransientFailureError as exc:
            logger.error(
                "Could not resolve identity for %s: %s",
                session.user_id,
                exc.message,
                extra={"session_event": event.value},
            )
            return
        finally:
            self._loading = False

        if resolution.identity is not None:
            self._identity = resolution.identity
        else:
            logger.info(
                "Identity for %s unavailable (%s); keeping current state",
                session.user_id,
                resolution.status.value,
                extra={"session_event": event.value},
            )

    def _clear(self, session: AuthSession | None) -> None:
        user_ids = {identity.id for identity in [self._identity] if identity is not None}
        if session is not None:
            user_ids.add(session.user_id)
        for user_id in user_ids:
            self._manager.invalidate(user_id)
        self._identity = None
        logger.info("Session cleared", extra={"user_ids": sorted(user_ids)})


__all__ = [
    "AuthSession",
    "LocalSessionProvider",
    "RESOLVING_EVENTS",
    "SessionEvent",
    "SessionListener",
    "SessionProvider",
    "SessionState",
]
