"""Service layer of the task synchronisation core."""

from .board import TaskBoard, ToggleOutcome
from .filters import filter_tasks, group_by_status, toggle_category
from .identity import (
    CacheEntry,
    CacheMetrics,
    IdentityCache,
    IdentityResolution,
    ResolutionStatus,
    SessionCacheManager,
)
from .membership import ProjectMembershipResolver
from .projects import ProjectService
from .session import AuthSession, LocalSessionProvider, SessionEvent, SessionProvider, SessionState
from .tasks import RefreshPolicy, TaskStore
from .transitions import (
    ConfirmationAction,
    ToggleDecision,
    coerce_status,
    next_status,
    plan_toggle,
    resolve_confirmation,
)

__all__ = [
    "AuthSession",
    "CacheEntry",
    "CacheMetrics",
    "ConfirmationAction",
    "IdentityCache",
    "IdentityResolution",
    "LocalSessionProvider",
    "ProjectMembershipResolver",
    "ProjectService",
    "RefreshPolicy",
    "ResolutionStatus",
    "SessionCacheManager",
    "SessionEvent",
    "SessionProvider",
    "SessionState",
    "TaskBoard",
    "TaskStore",
    "ToggleDecision",
    "ToggleOutcome",
    "coerce_status",
    "filter_tasks",
    "group_by_status",
    "next_status",
    "plan_toggle",
    "resolve_confirmation",
    "toggle_category",
]
