"""Remote store speaking the PostgREST dialect of a hosted relational backend."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Sequence

import httpx
from pydantic_core import to_jsonable_python

from ..core.config import Settings
from ..errors import ApplicationError, DatabaseIntegrityError, NotFoundError, TransientFailureError
from ..models import TaskCategory, TaskStatus, UserRole
from ..schemas import (
    ProjectMemberRecord,
    ProjectRecord,
    TaskInsert,
    TaskRecord,
    UserCreate,
    UserRecord,
)

logger = logging.getLogger(__name__)

SINGLE_OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"
RETURN_REPRESENTATION = "return=representation"
NO_ROWS_ERROR_CODE = "PGRST116"
UNIQUE_VIOLATION_CODE = "23505"

Params = list[tuple[str, str]]


def _in_list(values: Sequence[str]) -> str:
    quoted = ",".join(f'"{value}"' for value in values)
    return f"in.({quoted})"


def _error_payload(response: httpx.Response) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {"message": response.text}
    return payload if isinstance(payload, dict) else {"message": str(payload)}


class PostgrestRemoteStore:
    """``RemoteStore`` implementation issuing REST calls through ``httpx``."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        access_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "PostgrestRemoteStore":
        headers = {
            "apikey": settings.postgrest_api_key,
            "Authorization": f"Bearer {access_token or settings.postgrest_api_key}",
            "X-Client-Info": settings.project_name,
        }
        client = httpx.AsyncClient(
            base_url=f"{settings.postgrest_url.rstrip('/')}/rest/v1",
            headers=headers,
            timeout=settings.remote_request_timeout_seconds or None,
            transport=transport,
        )
        return cls(client)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: Params | None = None,
        payload: Any | None = None,
        single: bool = False,
        prefer: str | None = None,
    ) -> Any:
        headers: dict[str, str] = {}
        if single:
            headers["Accept"] = SINGLE_OBJECT_MEDIA_TYPE
        if prefer:
            headers["Prefer"] = prefer
        try:
            response = await self._client.request(
                method,
                f"/{table}",
                params=params,
                json=to_jsonable_python(payload) if payload is not None else None,
                headers=headers,
            )
        except httpx.TransportError as exc:
            logger.warning("Request to %s failed: %s", table, exc)
            raise TransientFailureError(details={"table": table, "reason": str(exc)}) from exc

        if response.status_code >= 500:
            raise TransientFailureError(
                details={"table": table, "status_code": response.status_code, **_error_payload(response)}
            )
        if response.is_error:
            error = _error_payload(response)
            code = error.get("code")
            if single and code == NO_ROWS_ERROR_CODE:
                return None
            if response.status_code == 409 or code == UNIQUE_VIOLATION_CODE:
                raise DatabaseIntegrityError(details=error)
            raise ApplicationError(
                str(error.get("message") or "Remote store rejected the request."),
                code="remote_error",
                details={"table": table, "status_code": response.status_code, **error},
            )
        if not response.content:
            return None
        return response.json()

    # -- tasks

    async def list_tasks(
        self,
        project_id: str,
        *,
        category: TaskCategory | None = None,
        assigned_to: str | None = None,
        status: TaskStatus | None = None,
        exclude_status: TaskStatus | None = None,
        deadline_from: datetime | None = None,
        deadline_to: datetime | None = None,
        order_by: str = "created_at",
        descending: bool = True,
    ) -> list[TaskRecord]:
        direction = "desc" if descending else "asc"
        params: Params = [("select", "*"), ("project_id", f"eq.{project_id}")]
        if category is not None:
            params.append(("task_category", f"cs.{{{TaskCategory(category).value}}}"))
        if assigned_to is not None:
            params.append(("assigned_to", f"eq.{assigned_to}"))
        if status is not None:
            params.append(("task_status", f"eq.{TaskStatus(status).value}"))
        if exclude_status is not None:
            params.append(("task_status", f"neq.{TaskStatus(exclude_status).value}"))
        if deadline_from is not None:
            params.append(("deadline", f"gte.{deadline_from.isoformat()}"))
        if deadline_to is not None:
            params.append(("deadline", f"lte.{deadline_to.isoformat()}"))
        params.append(("order", f"{order_by}.{direction},id.{direction}"))
        rows = await self._request("GET", "task", params=params)
        return [TaskRecord.model_validate(row) for row in rows or []]

    async def get_task(self, task_id: int) -> TaskRecord | None:
        row = await self._request("GET", "task", params=[("id", f"eq.{task_id}")], single=True)
        return TaskRecord.model_validate(row) if row is not None else None

    async def insert_task(self, values: TaskInsert) -> TaskRecord:
        row = await self._request(
            "POST",
            "task",
            payload=values.model_dump(mode="json"),
            single=True,
            prefer=RETURN_REPRESENTATION,
        )
        return TaskRecord.model_validate(row)

    async def update_task(self, task_id: int, values: dict[str, Any]) -> TaskRecord:
        row = await self._request(
            "PATCH",
            "task",
            params=[("id", f"eq.{task_id}")],
            payload=values,
            single=True,
            prefer=RETURN_REPRESENTATION,
        )
        if row is None:
            raise NotFoundError(f"Task {task_id} does not exist.")
        return TaskRecord.model_validate(row)

    async def delete_task(self, task_id: int) -> None:
        rows = await self._request(
            "DELETE",
            "task",
            params=[("id", f"eq.{task_id}")],
            prefer=RETURN_REPRESENTATION,
        )
        if not rows:
            raise NotFoundError(f"Task {task_id} does not exist.")

    # -- users

    async def get_user(self, user_id: str) -> UserRecord | None:
        row = await self._request("GET", "users", params=[("id", f"eq.{user_id}")], single=True)
        return UserRecord.model_validate(row) if row is not None else None

    async def list_users_by_ids(self, user_ids: Sequence[str]) -> list[UserRecord]:
        if not user_ids:
            return []
        rows = await self._request("GET", "users", params=[("id", _in_list(user_ids))])
        return [UserRecord.model_validate(row) for row in rows or []]

    async def insert_user(self, values: UserCreate) -> UserRecord:
        row = await self._request(
            "POST",
            "users",
            payload=values.model_dump(mode="json"),
            single=True,
            prefer=RETURN_REPRESENTATION,
        )
        return UserRecord.model_validate(row)

    async def set_user_active(self, user_id: str, is_active: bool) -> None:
        row = await self._request(
            "PATCH",
            "users",
            params=[("id", f"eq.{user_id}")],
            payload={"is_active": is_active},
            single=True,
            prefer=RETURN_REPRESENTATION,
        )
        if row is None:
            raise NotFoundError(f"User {user_id} does not exist.")

    # -- projects

    async def insert_project(self, name: str, code: str) -> ProjectRecord:
        row = await self._request(
            "POST",
            "project",
            payload={"name": name, "code": code},
            single=True,
            prefer=RETURN_REPRESENTATION,
        )
        return ProjectRecord.model_validate(row)

    async def get_project(self, project_id: str) -> ProjectRecord | None:
        row = await self._request("GET", "project", params=[("id", f"eq.{project_id}")], single=True)
        return ProjectRecord.model_validate(row) if row is not None else None

    async def get_project_by_code(self, code: str) -> ProjectRecord | None:
        row = await self._request("GET", "project", params=[("code", f"eq.{code}")], single=True)
        return ProjectRecord.model_validate(row) if row is not None else None

    async def get_project_by_name(self, name: str) -> ProjectRecord | None:
        rows = await self._request(
            "GET",
            "project",
            params=[("name", f"eq.{name}"), ("order", "created_at.asc"), ("limit", "1")],
        )
        return ProjectRecord.model_validate(rows[0]) if rows else None

    async def list_projects(self, *, limit: int | None = None) -> list[ProjectRecord]:
        params: Params = [("select", "*"), ("order", "created_at.desc")]
        if limit is not None:
            params.append(("limit", str(limit)))
        rows = await self._request("GET", "project", params=params)
        return [ProjectRecord.model_validate(row) for row in rows or []]

    async def list_projects_by_ids(self, project_ids: Sequence[str]) -> list[ProjectRecord]:
        if not project_ids:
            return []
        rows = await self._request("GET", "project", params=[("id", _in_list(project_ids))])
        return [ProjectRecord.model_validate(row) for row in rows or []]

    # -- memberships

    async def list_members(self, project_id: str, *, active_only: bool = True) -> list[ProjectMemberRecord]:
        params: Params = [("project_id", f"eq.{project_id}")]
        if active_only:
            params.append(("is_active", "is.true"))
        params.append(("order", "created_at.asc,id.asc"))
        rows = await self._request("GET", "project_members", params=params)
        return [ProjectMemberRecord.model_validate(row) for row in rows or []]

    async def list_memberships(self, user_id: str, *, active_only: bool = True) -> list[ProjectMemberRecord]:
        params: Params = [("user_id", f"eq.{user_id}")]
        if active_only:
            params.append(("is_active", "is.true"))
        params.append(("order", "created_at.asc,id.asc"))
        rows = await self._request("GET", "project_members", params=params)
        return [ProjectMemberRecord.model_validate(row) for row in rows or []]

    async def get_membership(self, project_id: str, user_id: str) -> ProjectMemberRecord | None:
        row = await self._request(
            "GET",
            "project_members",
            params=[("project_id", f"eq.{project_id}"), ("user_id", f"eq.{user_id}")],
            single=True,
        )
        return ProjectMemberRecord.model_validate(row) if row is not None else None

    async def insert_member(
        self,
        project_id: str,
        user_id: str,
        *,
        role: UserRole = UserRole.MEMBER,
        is_active: bool = True,
    ) -> ProjectMemberRecord:
        row = await self._request(
            "POST",
            "project_members",
            payload={"project_id": project_id, "user_id": user_id, "role": role, "is_active": is_active},
            single=True,
            prefer=RETURN_REPRESENTATION,
        )
        return ProjectMemberRecord.model_validate(row)

    async def update_member(self, member_id: int, values: dict[str, Any]) -> ProjectMemberRecord:
        row = await self._request(
            "PATCH",
            "project_members",
            params=[("id", f"eq.{member_id}")],
            payload=values,
            single=True,
            prefer=RETURN_REPRESENTATION,
        )
        if row is None:
            raise NotFoundError(f"Membership {member_id} does not exist.")
        return ProjectMemberRecord.model_validate(row)

    async def delete_member(self, member_id: int) -> None:
        rows = await self._request(
            "DELETE",
            "project_members",
            params=[("id", f"eq.{member_id}")],
            prefer=RETURN_REPRESENTATION,
        )
        if not rows:
            raise NotFoundError(f"Membership {member_id} does not exist.")


__all__ = ["PostgrestRemoteStore"]
