"""Database related helpers."""

from __future__ import annotations

from .base import SQLModel
from .session import SessionFactory, build_engine, build_session_factory, init_db, session_scope

__all__ = [
    "SQLModel",
    "SessionFactory",
    "build_engine",
    "build_session_factory",
    "init_db",
    "session_scope",
]
