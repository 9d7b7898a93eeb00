"""Status cycle and the confirmation gate guarding completed tasks."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..errors import ValidationError
from ..models import TaskStatus

_CYCLE: dict[TaskStatus, TaskStatus] = {
    TaskStatus.TODO: TaskStatus.IN_PROGRESS,
    TaskStatus.IN_PROGRESS: TaskStatus.DONE,
    TaskStatus.DONE: TaskStatus.TODO,
}

INITIAL_STATUS = TaskStatus.TODO
GATED_STATUS = TaskStatus.DONE


class ConfirmationAction(str, Enum):
    """Explicit choices offered when toggling a completed task."""

    REVERT = "revert"
    DELETE = "delete"


def next_status(status: TaskStatus | str) -> TaskStatus:
    """Return the status following ``status`` in the todo -> in-progress -> done cycle."""
    return _CYCLE[coerce_status(status)]


def coerce_status(value: TaskStatus | str) -> TaskStatus:
    """Parse a raw status value, rejecting anything outside the closed set."""
    try:
        return TaskStatus(value)
    except ValueError as exc:
        allowed = ", ".join(status.value for status in TaskStatus)
        raise ValidationError(
            f"Unknown task status {value!r}; expected one of: {allowed}.",
            details={"status": str(value)},
        ) from exc


@dataclass(frozen=True, slots=True)
class ToggleDecision:
    """Outcome of planning a toggle: either a target status or a confirmation request."""

    current: TaskStatus
    target: TaskStatus | None
    options: tuple[ConfirmationAction, ...] = ()

    @property
    def requires_confirmation(self) -> bool:
        return self.target is None


def plan_toggle(current: TaskStatus | str) -> ToggleDecision:
    """Decide what a toggle request on a task currently at ``current`` should do.

    Tasks that are not done advance immediately. A done task is already counted
    as completed, so the toggle is held until the caller picks one of the
    ``ConfirmationAction`` values.
    """

    status = coerce_status(current)
    if status is GATED_STATUS:
        return ToggleDecision(
            current=status,
            target=None,
            options=(ConfirmationAction.REVERT, ConfirmationAction.DELETE),
        )
    return ToggleDecision(current=status, target=next_status(status))


def resolve_confirmation(action: ConfirmationAction | str) -> TaskStatus | None:
    """Map a confirmed action to the status to apply; ``None`` means delete the task."""
    try:
        confirmed = ConfirmationAction(action)
    except ValueError as exc:
        raise ValidationError(
            f"Unknown confirmation action {action!r}.",
            details={"action": str(action)},
        ) from exc
    if confirmed is ConfirmationAction.REVERT:
        return TaskStatus.IN_PROGRESS
    return None


__all__ = [
    "ConfirmationAction",
    "GATED_STATUS",
    "INITIAL_STATUS",
    "ToggleDecision",
    "coerce_status",
    "next_status",
    "plan_toggle",
    "resolve_confirmation",
]
