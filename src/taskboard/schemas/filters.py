"""Filter selection schema for task views."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from ..models import TaskCategory


class FilterType(str, Enum):
    """Views a task list can be narrowed to."""

    SOLO = "solo"
    FRONT = "front"
    BACK = "back"
    SETTING = "setting"
    TEAM = "team"
    ALL = "all"


class FilterSelection(BaseModel):
    """Active view filter; lives only as long as the view does."""

    model_config = ConfigDict(frozen=True)

    type: FilterType = FilterType.ALL
    category: TaskCategory | None = None


__all__ = ["FilterSelection", "FilterType"]
