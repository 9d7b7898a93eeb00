"""Deadline helpers."""

from __future__ import annotations

from datetime import date, datetime, timezone


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def days_until(deadline: date | datetime, today: date | datetime | None = None) -> int:
    """Whole calendar days from ``today`` to ``deadline``; negative once past."""
    reference = _as_date(today) if today is not None else datetime.now(timezone.utc).date()
    return (_as_date(deadline) - reference).days


def deadline_status(deadline: date | datetime, today: date | datetime | None = None) -> str:
    days = days_until(deadline, today)
    if days < 0:
        return "overdue"
    if days == 0:
        return "due-today"
    if days == 1:
        return "due-tomorrow"
    return f"{days} days left"


__all__ = ["days_until", "deadline_status"]
