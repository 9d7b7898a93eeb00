"""Task table model and its closed value sets."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

import sqlalchemy as sa
from sqlmodel import Field

from .common import TimestampMixin, enum_values

MAX_TASK_CATEGORIES = 3


class TaskStatus(str, Enum):
    """Closed set of task states; new tasks start at ``TODO``."""

    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"


class TaskCategory(str, Enum):
    """Functional area tags; a task carries between one and three of them."""

    SOLO = "solo"
    FRONT = "front"
    BACK = "back"
    SETTING = "setting"
    TEAM = "team"


class TaskPriority(int, Enum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3


class Task(TimestampMixin, table=True):
    """Persistent task row."""

    __tablename__ = "task"
    __table_args__ = (
        sa.CheckConstraint("length(title) > 0", name="ck_task_title_length"),
        sa.CheckConstraint("priority BETWEEN 1 AND 3", name="ck_task_priority_range"),
        sa.Index("ix_task_project_id", "project_id"),
    )

    id: int | None = Field(default=None, primary_key=True)
    title: str = Field(sa_column=sa.Column(sa.String(length=255), nullable=False))
    task_status: TaskStatus = Field(
        default=TaskStatus.TODO,
        sa_column=sa.Column(
            sa.Enum(
                TaskStatus,
                name="task_status",
                native_enum=False,
                validate_strings=True,
                values_callable=enum_values,
            ),
            nullable=False,
            server_default=TaskStatus.TODO.value,
        ),
    )
    priority: int = Field(
        default=TaskPriority.MEDIUM.value,
        sa_column=sa.Column(sa.SmallInteger(), nullable=False, server_default="2"),
    )
    task_category: list[str] = Field(
        default_factory=list,
        sa_column=sa.Column(sa.JSON(), nullable=False),
    )
    icon: str | None = Field(default=None, sa_column=sa.Column(sa.String(length=64), nullable=True))
    created_by: str = Field(
        sa_column=sa.Column(sa.String(length=64), sa.ForeignKey("users.id"), nullable=False),
    )
    assigned_to: str = Field(
        sa_column=sa.Column(sa.String(length=64), sa.ForeignKey("users.id"), nullable=False),
    )
    deadline: datetime = Field(sa_column=sa.Column(sa.DateTime(timezone=True), nullable=False))
    one_line: str = Field(default="", sa_column=sa.Column(sa.String(length=255), nullable=False, server_default=""))
    memo: str = Field(default="", sa_column=sa.Column(sa.Text(), nullable=False, server_default=""))
    related_url: str | None = Field(default=None, sa_column=sa.Column(sa.String(length=2048), nullable=True))
    project_id: str = Field(
        sa_column=sa.Column(
            sa.String(length=36),
            sa.ForeignKey("project.id", ondelete="CASCADE"),
            nullable=False,
        ),
    )


__all__ = ["MAX_TASK_CATEGORIES", "Task", "TaskCategory", "TaskPriority", "TaskStatus"]
