"""Remote store interface and backends."""

from __future__ import annotations

from ..core.config import Settings
from ..db.session import build_engine, build_session_factory
from .postgrest import PostgrestRemoteStore
from .protocol import RemoteStore
from .sql import SqlRemoteStore


def create_remote_store(settings: Settings, *, access_token: str | None = None) -> RemoteStore:
    """Build the backend selected by ``settings.remote_backend``."""

    if settings.remote_backend == "postgrest":
        return PostgrestRemoteStore.from_settings(settings, access_token=access_token)
    engine = build_engine(settings)
    return SqlRemoteStore(build_session_factory(engine))


__all__ = [
    "PostgrestRemoteStore",
    "RemoteStore",
    "SqlRemoteStore",
    "create_remote_store",
]
