"""Task-related Pydantic schemas."""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..models import MAX_TASK_CATEGORIES, TaskCategory, TaskStatus, ensure_aware, utcnow
from ..utils import deadline_status

UNKNOWN_USER_NAME = "Unknown"

TASK_RECORD_EXAMPLE = {
    "id": 1,
    "title": "Design API",
    "task_status": TaskStatus.TODO.value,
    "priority": 2,
    "task_category": [TaskCategory.BACK.value],
    "icon": None,
    "created_by": "user-1",
    "assigned_to": "user-1",
    "deadline": "2024-01-06T00:00:00Z",
    "one_line": "Sketch the public endpoints",
    "memo": "",
    "related_url": None,
    "project_id": "8a6f4a0e-6c1b-4d9e-9a53-2d1f1b3c9e10",
    "created_at": "2024-01-01T12:00:00Z",
    "updated_at": "2024-01-01T12:00:00Z",
}


def normalise_categories(values: Iterable[TaskCategory | str]) -> list[TaskCategory]:
    """Coerce to ``TaskCategory`` and drop duplicates while preserving order."""
    seen: list[TaskCategory] = []
    for value in values:
        category = TaskCategory(value)
        if category not in seen:
            seen.append(category)
    return seen


def _bounded_categories(values: object) -> list[TaskCategory]:
    if isinstance(values, (str, TaskCategory)):
        values = [values]
    categories = normalise_categories(values)  # type: ignore[arg-type]
    if len(categories) > MAX_TASK_CATEGORIES:
        raise ValueError(f"A task may carry at most {MAX_TASK_CATEGORIES} categories.")
    return categories


class TaskRecord(BaseModel):
    """Task row as stored by the remote store."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={"example": TASK_RECORD_EXAMPLE},
    )

    id: int
    title: str
    task_status: TaskStatus = TaskStatus.TODO
    priority: int = Field(default=2, ge=1, le=3)
    task_category: list[TaskCategory] = Field(default_factory=list)
    icon: str | None = None
    created_by: str
    assigned_to: str
    deadline: datetime
    one_line: str = ""
    memo: str = ""
    related_url: str | None = None
    project_id: str
    created_at: datetime
    updated_at: datetime | None = None

    @field_validator("deadline", "created_at", "updated_at")
    @classmethod
    def _aware(cls, value: datetime | None) -> datetime | None:
        return ensure_aware(value) if value is not None else None

    @field_validator("one_line", "memo", mode="before")
    @classmethod
    def _null_to_empty(cls, value: object) -> object:
        return "" if value is None else value

    def referenced_user_ids(self) -> tuple[str, str]:
        return self.created_by, self.assigned_to


class TaskInsert(BaseModel):
    """Column values for a new task row; the store assigns ``id`` and timestamps."""

    title: str = Field(min_length=1, max_length=255)
    task_status: TaskStatus = TaskStatus.TODO
    priority: int = Field(default=2, ge=1, le=3)
    task_category: list[TaskCategory]
    icon: str | None = None
    created_by: str
    assigned_to: str
    deadline: datetime
    one_line: str = ""
    memo: str = ""
    related_url: str | None = None
    project_id: str


class TaskView(BaseModel):
    """Hydrated task handed to presentation code; user references carry display names."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    status: TaskStatus
    priority: int
    categories: tuple[TaskCategory, ...]
    icon: str | None = None
    created_by: str
    assigned_to: str
    created_by_id: str
    assigned_to_id: str
    created_at: datetime
    deadline: datetime
    one_line: str = ""
    memo: str = ""
    related_url: str | None = None
    project_id: str

    @classmethod
    def from_record(cls, record: TaskRecord, names: dict[str, str]) -> "TaskView":
        return cls(
            id=record.id,
            title=record.title,
            status=record.task_status,
            priority=record.priority,
            categories=tuple(record.task_category),
            icon=record.icon,
            created_by=names.get(record.created_by, UNKNOWN_USER_NAME),
            assigned_to=names.get(record.assigned_to, UNKNOWN_USER_NAME),
            created_by_id=record.created_by,
            assigned_to_id=record.assigned_to,
            created_at=record.created_at,
            deadline=record.deadline,
            one_line=record.one_line,
            memo=record.memo,
            related_url=record.related_url,
            project_id=record.project_id,
        )

    def has_category(self, category: TaskCategory | str) -> bool:
        return TaskCategory(category) in self.categories

    def deadline_label(self, today: date | None = None) -> str:
        return deadline_status(self.deadline, today)


class TaskDraft(BaseModel):
    """Unsaved task as filled in by presentation code."""

    title: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: int = Field(default=2, ge=1, le=3)
    categories: list[TaskCategory] = Field(default_factory=lambda: [TaskCategory.SOLO])
    icon: str | None = None
    assigned_to: str | None = Field(default=None, description="Assignee display name.")
    deadline: datetime = Field(default_factory=utcnow)
    one_line: str = ""
    memo: str = ""
    related_url: str | None = None

    @field_validator("categories", mode="before")
    @classmethod
    def _limit_categories(cls, value: object) -> list[TaskCategory]:
        return _bounded_categories(value)

    @field_validator("deadline")
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        return ensure_aware(value)


class TaskUpdate(BaseModel):
    """Partial update of an existing task; status may be set directly."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    status: TaskStatus | None = None
    priority: int | None = Field(default=None, ge=1, le=3)
    categories: list[TaskCategory] | None = None
    icon: str | None = None
    assigned_to: str | None = Field(default=None, description="Assignee display name.")
    deadline: datetime | None = None
    one_line: str | None = None
    memo: str | None = None
    related_url: str | None = None

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            raise ValueError("Title must not be blank.")
        return value

    @field_validator("categories", mode="before")
    @classmethod
    def _limit_categories(cls, value: object) -> list[TaskCategory] | None:
        if value is None:
            return None
        categories = _bounded_categories(value)
        if not categories:
            raise ValueError("A task needs at least one category.")
        return categories

    @field_validator("deadline")
    @classmethod
    def _aware(cls, value: datetime | None) -> datetime | None:
        return ensure_aware(value) if value is not None else None

    @model_validator(mode="after")
    def _ensure_payload_not_empty(self) -> "TaskUpdate":
        if not self.model_dump(exclude_unset=True):
            raise ValueError("At least one field must be provided for update.")
        return self


class TaskStatistics(BaseModel):
    """Per-status counts and the share of tasks already done."""

    total: int = Field(ge=0)
    by_status: dict[str, int] = Field(default_factory=dict)
    completion_percentage: float = Field(default=0.0, ge=0.0, le=100.0)

    @classmethod
    def from_tasks(cls, tasks: Iterable[TaskView]) -> "TaskStatistics":
        by_status = {status.value: 0 for status in TaskStatus}
        for task in tasks:
            by_status[task.status.value] += 1
        total = sum(by_status.values())
        done = by_status[TaskStatus.DONE.value]
        percentage = round(done * 100 / total, 1) if total else 0.0
        return cls(total=total, by_status=by_status, completion_percentage=percentage)


__all__ = [
    "TaskDraft",
    "TaskInsert",
    "TaskRecord",
    "TaskStatistics",
    "TaskUpdate",
    "TaskView",
    "UNKNOWN_USER_NAME",
    "normalise_categories",
]
