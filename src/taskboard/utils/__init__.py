"""Small helpers shared by the service layer."""

from .dates import days_until, deadline_status

__all__ = ["days_until", "deadline_status"]
