"""Pydantic schemas crossing the remote-store and presentation boundaries."""

from __future__ import annotations

from .filters import FilterSelection, FilterType
from .identity import Identity, UserCreate, UserRecord
from .project import (
    PROJECT_CODE_PATTERN,
    ProjectCreate,
    ProjectMemberRecord,
    ProjectMemberView,
    ProjectRecord,
)
from .task import (
    UNKNOWN_USER_NAME,
    TaskDraft,
    TaskInsert,
    TaskRecord,
    TaskStatistics,
    TaskUpdate,
    TaskView,
    normalise_categories,
)

__all__ = [
    "FilterSelection",
    "FilterType",
    "Identity",
    "PROJECT_CODE_PATTERN",
    "ProjectCreate",
    "ProjectMemberRecord",
    "ProjectMemberView",
    "ProjectRecord",
    "TaskDraft",
    "TaskInsert",
    "TaskRecord",
    "TaskStatistics",
    "TaskUpdate",
    "TaskView",
    "UNKNOWN_USER_NAME",
    "UserCreate",
    "UserRecord",
    "normalise_categories",
]
