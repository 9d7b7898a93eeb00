"""Persistence models for the remote relational store."""

from __future__ import annotations

from .common import TimestampMixin, ensure_aware, utcnow
from .project import Project, ProjectMember
from .task import MAX_TASK_CATEGORIES, Task, TaskCategory, TaskPriority, TaskStatus
from .user import User, UserRole

__all__ = [
    "MAX_TASK_CATEGORIES",
    "Project",
    "ProjectMember",
    "Task",
    "TaskCategory",
    "TaskPriority",
    "TaskStatus",
    "TimestampMixin",
    "User",
    "UserRole",
    "ensure_aware",
    "utcnow",
]
