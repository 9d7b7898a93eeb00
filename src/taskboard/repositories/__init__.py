"""Database repositories for encapsulating persistence logic."""

from __future__ import annotations

from .projects import ProjectMemberRepository, ProjectRepository
from .tasks import TaskRepository
from .users import UserRepository

__all__ = ["ProjectMemberRepository", "ProjectRepository", "TaskRepository", "UserRepository"]
